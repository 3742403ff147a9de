"""Environment registry and its YAML persistence.

The store is the single source of truth for environments and for which one
is active; the hosts file is only ever rendered *from* it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import (
    CorruptConfigError,
    DuplicateNameError,
    EntryNotFoundError,
    HostctlError,
    NotFoundError,
    io_error,
)
from .fileio import atomic_write_text, read_text
from .models import Environment, HostEntry, validate_environment_name

__all__ = ["EnvironmentStore", "EnvironmentSummary", "load", "save"]

logger = logging.getLogger(__name__)


@dataclass
class EnvironmentSummary:
    name: str
    description: Optional[str]
    entry_count: int
    enabled_count: int
    active: bool
    created_at: datetime
    updated_at: datetime


class EnvironmentStore:
    """Registry of named environments plus the active-environment pointer.

    Environments keep insertion order, which is also the order used by
    :meth:`list`.
    """

    def __init__(
        self,
        environments: Optional[Dict[str, Environment]] = None,
        active: Optional[str] = None,
    ) -> None:
        self.environments: Dict[str, Environment] = dict(environments or {})
        if active is not None and active not in self.environments:
            raise NotFoundError(f"Environment '{active}' not found.", {"name": active})
        self.active = active

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EnvironmentStore):
            return NotImplemented
        return (
            self.active == other.active
            and list(self.environments.items()) == list(other.environments.items())
        )

    def __repr__(self) -> str:
        return f"EnvironmentStore(environments={list(self.environments)}, active={self.active!r})"

    # ------------------------------------------------------------------
    # Environments
    # ------------------------------------------------------------------

    def create(self, name: str, description: Optional[str] = None) -> Environment:
        validate_environment_name(name)
        if name in self.environments:
            raise DuplicateNameError(f"Environment '{name}' already exists.", {"name": name})
        env = Environment(name=name, description=description or None)
        self.environments[name] = env
        logger.info(f"Created environment '{name}'")
        return env

    def remove(self, name: str) -> Environment:
        env = self.get(name)
        del self.environments[name]
        if self.active == name:
            logger.info(f"Removed environment '{name}' was active, clearing active environment")
            self.active = None
        logger.info(f"Removed environment '{name}'")
        return env

    def get(self, name: str) -> Environment:
        try:
            return self.environments[name]
        except KeyError:
            raise NotFoundError(f"Environment '{name}' not found.", {"name": name}) from None

    def list(self) -> List[EnvironmentSummary]:
        return [
            EnvironmentSummary(
                name=env.name,
                description=env.description,
                entry_count=len(env.entries),
                enabled_count=sum(1 for e in env.entries if e.enabled),
                active=env.name == self.active,
                created_at=env.created_at,
                updated_at=env.updated_at,
            )
            for env in self.environments.values()
        ]

    def set_active(self, name: Optional[str]) -> None:
        """Record *name* as active; only call after the hosts file was written."""
        if name is not None:
            self.get(name)
        self.active = name

    def active_environment(self) -> Optional[Environment]:
        if self.active is None:
            return None
        return self.environments.get(self.active)

    # ------------------------------------------------------------------
    # Entries
    # ------------------------------------------------------------------

    def add_entry(self, env_name: str, entry: HostEntry) -> HostEntry:
        env = self.get(env_name)
        entry = HostEntry.create(entry.address, entry.hostnames, entry.comment, entry.enabled)
        env.entries.append(entry)
        env.touch()
        logger.info(f"Added entry '{entry.to_line()}' to environment '{env_name}'")
        return entry

    def remove_entry(self, env_name: str, hostname: str) -> HostEntry:
        env = self.get(env_name)
        entry = self._find_entry(env, hostname)
        env.entries.remove(entry)
        env.touch()
        logger.info(f"Removed entry '{hostname}' from environment '{env_name}'")
        return entry

    def set_entry_enabled(self, env_name: str, hostname: str, enabled: bool) -> HostEntry:
        env = self.get(env_name)
        entry = self._find_entry(env, hostname)
        if entry.enabled != enabled:
            entry.enabled = enabled
            env.touch()
        logger.info(
            f"{'Enabled' if enabled else 'Disabled'} entry '{hostname}' in environment '{env_name}'"
        )
        return entry

    @staticmethod
    def _find_entry(env: Environment, hostname: str) -> HostEntry:
        entry = env.find_entry(hostname)
        if entry is None:
            raise EntryNotFoundError(
                f"Entry '{hostname}' not found in environment '{env.name}'.",
                {"environment": env.name, "hostname": hostname},
            )
        return entry

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "active": self.active,
            "environments": {name: env.to_dict() for name, env in self.environments.items()},
        }

    @classmethod
    def from_dict(cls, data: Any) -> "EnvironmentStore":
        """Build a store from a parsed config mapping.

        Raises ``ValueError`` or a :class:`HostctlError` subclass on bad data;
        :func:`load` turns those into :class:`CorruptConfigError`.
        """
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"top level must be a mapping, got {type(data).__name__}")

        raw_envs = data.get("environments") or {}
        if not isinstance(raw_envs, dict):
            raise ValueError("'environments' must be a mapping")
        environments: Dict[str, Environment] = {}
        for name, env_data in raw_envs.items():
            if not isinstance(name, str):
                raise ValueError(f"environment name must be a string, got {name!r}")
            environments[name] = Environment.from_dict(name, env_data)

        active = data.get("active")
        if active is not None and not isinstance(active, str):
            raise ValueError("'active' must be a string or null")
        if active is not None and active not in environments:
            raise ValueError(f"active environment '{active}' does not exist")
        return cls(environments, active)


def load(path: Union[str, Path]) -> EnvironmentStore:
    """Load the store from *path*; a missing file yields an empty store."""
    path = Path(path)
    try:
        content = read_text(path)
    except FileNotFoundError:
        logger.debug(f"No configuration at {path}, starting with an empty store")
        return EnvironmentStore()
    except UnicodeDecodeError as e:
        logger.error(f"Configuration {path} is not valid UTF-8: {e}")
        raise CorruptConfigError(path, "not valid UTF-8", {"error": str(e)}) from e

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.error(f"Failed to parse configuration {path}: {e}")
        raise CorruptConfigError(path, "invalid YAML", {"error": str(e).replace("\n", " ")}) from e

    try:
        store = EnvironmentStore.from_dict(data)
    except (ValueError, HostctlError) as e:
        reason = e.message if isinstance(e, HostctlError) else str(e)
        logger.error(f"Invalid configuration {path}: {reason}")
        raise CorruptConfigError(path, reason) from e

    logger.debug(f"Loaded {len(store.environments)} environment(s) from {path}")
    return store


def save(store: EnvironmentStore, path: Union[str, Path]) -> None:
    """Atomically write *store* to *path*, creating parent directories."""
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise io_error(path.parent, "create directory", e) from e

    content = yaml.safe_dump(
        store.to_dict(), sort_keys=False, default_flow_style=False, allow_unicode=True
    )
    atomic_write_text(path, content, mode=0o600)
    logger.info(f"Saved configuration to {path}")
