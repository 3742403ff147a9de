from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

from .exceptions import MalformedManagedRegionError
from .fileio import atomic_write_text, file_mode, read_text
from .models import HostEntry

__all__ = [
    "HostsLine",
    "HostsManager",
    "LineKind",
    "ScannedHosts",
    "SENTINEL_END",
    "SENTINEL_START",
    "merge_entries",
    "remove_managed_region",
    "render_block",
    "scan",
]

logger = logging.getLogger(__name__)

SENTINEL_START = "# HOSTCTL-MANAGED-START"
SENTINEL_END = "# HOSTCTL-MANAGED-END"

DEFAULT_HOSTS_MODE = 0o644

# hosts files in a legacy code page keep their bytes through a rewrite
HOSTS_ENCODING_ERRORS = "surrogateescape"


class LineKind(Enum):
    UNMANAGED = "unmanaged"
    MANAGED_ENTRY = "managed_entry"
    SENTINEL_START = "sentinel_start"
    SENTINEL_END = "sentinel_end"


@dataclass(frozen=True)
class HostsLine:
    """One line of the hosts file, ``raw`` includes its line terminator."""

    kind: LineKind
    raw: str
    entry: Optional[HostEntry] = None


@dataclass
class ScannedHosts:
    lines: List[HostsLine]
    start: Optional[int]
    end: Optional[int]
    newline: str

    @property
    def has_region(self) -> bool:
        return self.start is not None

    def managed_entries(self) -> List[HostEntry]:
        return [line.entry for line in self.lines if line.kind is LineKind.MANAGED_ENTRY and line.entry]


def _split_lines(content: str) -> List[str]:
    parts = content.split("\n")
    lines = [part + "\n" for part in parts[:-1]]
    if parts[-1]:
        lines.append(parts[-1])
    return lines


def _detect_newline(content: str) -> str:
    if "\r\n" in content:
        return "\r\n"
    if not content and os.name == "nt":
        return "\r\n"
    return "\n"


def scan(content: str) -> ScannedHosts:
    """Tag every line of *content* in a single pass.

    The managed region runs from the first start sentinel to the first end
    sentinel after it. Anything after that region is unmanaged, sentinels
    included.

    Raises:
        MalformedManagedRegionError: an end sentinel precedes any start
            sentinel, or a start sentinel is never closed
    """
    lines: List[HostsLine] = []
    start: Optional[int] = None
    end: Optional[int] = None

    for index, raw in enumerate(_split_lines(content)):
        text = raw.strip()
        if start is None:
            if text == SENTINEL_START:
                start = index
                lines.append(HostsLine(LineKind.SENTINEL_START, raw))
            elif text == SENTINEL_END:
                raise MalformedManagedRegionError(
                    f"Found '{SENTINEL_END}' on line {index + 1} without a preceding "
                    f"'{SENTINEL_START}'. Fix the hosts file manually.",
                    {"line": index + 1},
                )
            else:
                lines.append(HostsLine(LineKind.UNMANAGED, raw))
        elif end is None:
            if text == SENTINEL_END:
                end = index
                lines.append(HostsLine(LineKind.SENTINEL_END, raw))
            else:
                entry = HostEntry.from_hosts_line(raw)
                kind = LineKind.MANAGED_ENTRY if entry is not None else LineKind.UNMANAGED
                lines.append(HostsLine(kind, raw, entry))
        else:
            if text in (SENTINEL_START, SENTINEL_END):
                logger.warning(
                    f"Ignoring '{text}' on line {index + 1}: only the first managed "
                    "region is updated, remove the stale copy by hand"
                )
            lines.append(HostsLine(LineKind.UNMANAGED, raw))

    if start is not None and end is None:
        raise MalformedManagedRegionError(
            f"Found '{SENTINEL_START}' on line {start + 1} without a matching "
            f"'{SENTINEL_END}'. Fix the hosts file manually.",
            {"line": start + 1},
        )

    logger.debug(f"Scanned {len(lines)} hosts lines, managed region: {start}-{end}")
    return ScannedHosts(lines, start, end, _detect_newline(content))


def render_block(entries: Iterable[HostEntry], newline: str = "\n") -> str:
    """Render the complete managed region, sentinels included."""
    lines = [SENTINEL_START] + [entry.to_line() for entry in entries] + [SENTINEL_END]
    return newline.join(lines) + newline


def merge_entries(content: str, entries: Iterable[HostEntry]) -> str:
    """Return *content* with the managed region body replaced by *entries*.

    Without a managed region a new one is appended at the end. Bytes outside
    the region are kept exactly as they are.
    """
    scanned = scan(content)
    newline = scanned.newline
    entries = list(entries)

    if not scanned.has_region:
        prefix = content
        if prefix and not prefix.endswith("\n"):
            prefix += newline
        return prefix + render_block(entries, newline)

    before = "".join(line.raw for line in scanned.lines[: scanned.start])
    after = "".join(line.raw for line in scanned.lines[scanned.end + 1 :])
    body = "".join(entry.to_line() + newline for entry in entries)
    return (
        before
        + scanned.lines[scanned.start].raw
        + body
        + scanned.lines[scanned.end].raw
        + after
    )


def remove_managed_region(content: str) -> str:
    """Return *content* without the managed region (sentinels included)."""
    scanned = scan(content)
    if not scanned.has_region:
        return content
    before = "".join(line.raw for line in scanned.lines[: scanned.start])
    after = "".join(line.raw for line in scanned.lines[scanned.end + 1 :])
    return before + after


class HostsManager:
    """Safely manage the hostctl block of a hosts file.

    Only the lines between the two sentinels are ever rewritten; the rest of
    the file belongs to the system and to the user. Every write is an atomic
    replace, so an interrupted run leaves the previous file in place.
    """

    def __init__(self, hosts_path: Union[str, Path]) -> None:
        self.hosts_path = Path(hosts_path)

    def _read(self) -> Tuple[str, bool]:
        try:
            return read_text(self.hosts_path, errors=HOSTS_ENCODING_ERRORS), True
        except FileNotFoundError:
            logger.warning(f"Hosts file does not exist, starting empty: {self.hosts_path}")
            return "", False

    def read_managed_entries(self) -> List[HostEntry]:
        """Return the entries currently rendered inside the managed region."""
        content, _ = self._read()
        return scan(content).managed_entries()

    def backup(self, content: str) -> Path:
        """Write *content* to ``<name>.bak.<YYYYmmdd_HHMMSS>`` beside the hosts file."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        backup_path = self.hosts_path.with_name(f"{self.hosts_path.name}.bak.{timestamp}")
        counter = 1
        while backup_path.exists():
            backup_path = self.hosts_path.with_name(
                f"{self.hosts_path.name}.bak.{timestamp}.{counter}"
            )
            counter += 1
        atomic_write_text(
            backup_path,
            content,
            mode=file_mode(self.hosts_path) or DEFAULT_HOSTS_MODE,
            errors=HOSTS_ENCODING_ERRORS,
        )
        logger.info(f"Backed up {self.hosts_path} to {backup_path}")
        return backup_path

    def apply(self, entries: Iterable[HostEntry], backup: bool = False) -> Optional[Path]:
        """Render *entries* into the managed region and write the file.

        Returns the backup path when *backup* is requested and the hosts file
        existed, otherwise ``None``.
        """
        entries = list(entries)
        content, existed = self._read()
        new_content = merge_entries(content, entries)

        backup_path = self.backup(content) if backup and existed else None
        atomic_write_text(
            self.hosts_path, new_content, mode=DEFAULT_HOSTS_MODE, errors=HOSTS_ENCODING_ERRORS
        )
        logger.info(f"Wrote {len(entries)} managed entries to {self.hosts_path}")
        return backup_path

    def remove_region(self, backup: bool = False) -> Optional[Path]:
        """Delete the managed region; does nothing when there is none."""
        content, existed = self._read()
        if not scan(content).has_region:
            logger.info(f"No managed region in {self.hosts_path}, nothing to remove")
            return None

        backup_path = self.backup(content) if backup and existed else None
        atomic_write_text(
            self.hosts_path,
            remove_managed_region(content),
            mode=DEFAULT_HOSTS_MODE,
            errors=HOSTS_ENCODING_ERRORS,
        )
        logger.info(f"Removed managed region from {self.hosts_path}")
        return backup_path
