"""Switch transactions tying the environment store to the hosts file.

The hosts file is written first; only after that succeeds is the active
pointer updated and the store persisted. A failed write therefore leaves both
the hosts file and the configuration exactly as they were.

Two concurrent invocations can still lose each other's update between read
and rename. There is no file locking; the atomic rename only guarantees that
neither file is ever half written.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from . import store as store_io
from .hosts_manager import HostsManager
from .store import EnvironmentStore

__all__ = ["SwitchResult", "clear_active", "switch_environment"]

logger = logging.getLogger(__name__)


@dataclass
class SwitchResult:
    name: str
    entry_count: int
    backup_path: Optional[Path] = None


def switch_environment(
    store: EnvironmentStore,
    name: str,
    hosts_path: Union[str, Path],
    config_path: Union[str, Path],
    backup: bool = False,
) -> SwitchResult:
    """Render environment *name* into the hosts file and mark it active."""
    env = store.get(name)
    logger.info(f"Switching to environment '{name}' ({len(env.entries)} entries)")

    backup_path = HostsManager(hosts_path).apply(env.entries, backup=backup)

    store.set_active(name)
    store_io.save(store, config_path)
    logger.info(f"Active environment is now '{name}'")
    return SwitchResult(name=name, entry_count=len(env.entries), backup_path=backup_path)


def clear_active(
    store: EnvironmentStore,
    hosts_path: Union[str, Path],
    config_path: Union[str, Path],
    backup: bool = False,
) -> Optional[Path]:
    """Remove the managed region from the hosts file and unset the active environment."""
    backup_path = HostsManager(hosts_path).remove_region(backup=backup)
    previous = store.active
    store.set_active(None)
    store_io.save(store, config_path)
    logger.info(f"Cleared active environment (was {previous!r})")
    return backup_path
