"""Data models for hostctl: host entries and named environments.

Both types know how to validate themselves and how to convert to and from the
plain mappings stored in the YAML configuration file. ``HostEntry`` also knows
its hosts-file line representation.
"""

from __future__ import annotations

import ipaddress
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from .exceptions import InvalidEntryError, InvalidNameError

__all__ = [
    "DISABLED_PREFIX",
    "Environment",
    "HostEntry",
    "is_valid_address",
    "is_valid_hostname",
    "utc_now",
    "validate_environment_name",
]

DISABLED_PREFIX = "# "

_ENV_NAME_RE = re.compile(r"^[A-Za-z0-9_-]+$")
_LABEL_RE = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def is_valid_address(address: str) -> bool:
    """Return ``True`` if *address* is a syntactically valid IPv4/IPv6 address."""
    try:
        ipaddress.ip_address(address)
    except ValueError:
        return False
    return True


def is_valid_hostname(hostname: str) -> bool:
    """Return ``True`` if *hostname* is a well-formed DNS-style name.

    At most 253 characters, dot-separated labels of 1-63 letters, digits or
    hyphens, no label starting or ending with a hyphen.
    """
    if not hostname or len(hostname) > 253:
        return False
    return all(_LABEL_RE.match(label) for label in hostname.split("."))


def validate_environment_name(name: str) -> str:
    if not name:
        raise InvalidNameError("Environment name must not be empty")
    if not _ENV_NAME_RE.match(name):
        raise InvalidNameError(
            f"Invalid environment name: {name!r}. "
            "Use only letters, digits, '-' and '_'.",
            {"name": name},
        )
    return name


def _split_hostnames(hostnames: Union[str, Iterable[str]]) -> List[str]:
    if isinstance(hostnames, str):
        return hostnames.split()
    return [str(item) for item in hostnames]


@dataclass
class HostEntry:
    """A single address-to-hostnames mapping.

    Attributes:
        address: IPv4 or IPv6 address in canonical text form
        hostnames: one or more hostname tokens, the first one is the primary
        comment: optional free text rendered after ``#``
        enabled: disabled entries are rendered commented out
    """

    address: str
    hostnames: List[str]
    comment: Optional[str] = None
    enabled: bool = True

    @classmethod
    def create(
        cls,
        address: str,
        hostnames: Union[str, Iterable[str]],
        comment: Optional[str] = None,
        enabled: bool = True,
    ) -> "HostEntry":
        """Build a validated entry; *hostnames* may be a whitespace-separated string."""
        if comment is not None:
            comment = comment.strip() or None
        entry = cls(str(address).strip(), _split_hostnames(hostnames), comment, enabled)
        entry.validate()
        entry.address = str(ipaddress.ip_address(entry.address))
        return entry

    @property
    def hostname(self) -> str:
        return self.hostnames[0]

    def validate(self) -> None:
        """Raise :class:`InvalidEntryError` if any field is malformed."""
        if not is_valid_address(self.address):
            raise InvalidEntryError(
                f"Invalid IP address: {self.address!r}", {"address": self.address}
            )
        if not self.hostnames:
            raise InvalidEntryError(
                f"Entry for {self.address} has no hostname", {"address": self.address}
            )
        for hostname in self.hostnames:
            if not is_valid_hostname(hostname):
                raise InvalidEntryError(
                    f"Invalid hostname: {hostname!r}", {"hostname": hostname}
                )
        if self.comment is not None and ("\n" in self.comment or "\r" in self.comment):
            raise InvalidEntryError("Entry comment must be a single line")

    def matches(self, hostname: str) -> bool:
        return hostname in self.hostnames

    def to_line(self) -> str:
        """Render as a hosts file line (without line terminator).

        Format: ``<address> <hostname...>[ # <comment>]``, prefixed with
        ``# `` when the entry is disabled.
        """
        line = f"{self.address} {' '.join(self.hostnames)}"
        if self.comment:
            line += f" # {self.comment}"
        if not self.enabled:
            line = DISABLED_PREFIX + line
        return line

    @classmethod
    def from_hosts_line(cls, line: str) -> Optional["HostEntry"]:
        """Parse a hosts file line, returning ``None`` for anything else.

        Supports ``IP hostname``, ``IP hostname1 hostname2 # comment`` and the
        commented-out form produced for disabled entries.
        """
        text = line.strip()
        enabled = True
        if text.startswith("#"):
            enabled = False
            text = text[1:].strip()
        if not text or text.startswith("#"):
            return None

        comment: Optional[str] = None
        if "#" in text:
            text, _, comment = text.partition("#")
            comment = comment.strip() or None

        parts = text.split()
        if len(parts) < 2:
            return None
        address, hostnames = parts[0], parts[1:]
        if not is_valid_address(address) or not all(is_valid_hostname(h) for h in hostnames):
            return None
        return cls(str(ipaddress.ip_address(address)), hostnames, comment, enabled)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "hostnames": list(self.hostnames),
            "comment": self.comment,
            "enabled": self.enabled,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "HostEntry":
        if not isinstance(data, dict):
            raise ValueError(f"entry must be a mapping, got {type(data).__name__}")
        hostnames = data.get("hostnames", data.get("hostname"))
        if hostnames is None:
            raise ValueError("entry is missing 'hostnames'")
        if not isinstance(hostnames, (str, list)):
            raise ValueError("entry 'hostnames' must be a string or a list")
        comment = data.get("comment")
        if comment is not None and not isinstance(comment, str):
            comment = str(comment)
        enabled = data.get("enabled", True)
        if not isinstance(enabled, bool):
            raise ValueError("entry 'enabled' must be true or false")
        return cls.create(str(data.get("address", "")), hostnames, comment, enabled)

    def __str__(self) -> str:
        return self.to_line()


def _parse_timestamp(value: Any) -> datetime:
    if value is None:
        return utc_now()
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    else:
        raise ValueError(f"invalid timestamp: {value!r}")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class Environment:
    """A named, ordered collection of host entries."""

    name: str
    description: Optional[str] = None
    entries: List[HostEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def touch(self) -> None:
        self.updated_at = utc_now()

    def find_entry(self, hostname: str) -> Optional[HostEntry]:
        """Return the first entry, in insertion order, that carries *hostname*."""
        for entry in self.entries:
            if entry.matches(hostname):
                return entry
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "entries": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "Environment":
        validate_environment_name(name)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"environment {name!r} must be a mapping")
        entries = data.get("entries") or []
        if not isinstance(entries, list):
            raise ValueError(f"environment {name!r}: 'entries' must be a list")
        description = data.get("description")
        if description is not None and not isinstance(description, str):
            description = str(description)
        return cls(
            name=name,
            description=description,
            entries=[HostEntry.from_dict(item) for item in entries],
            created_at=_parse_timestamp(data.get("created_at")),
            updated_at=_parse_timestamp(data.get("updated_at")),
        )
