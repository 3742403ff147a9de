"""hostctl - switch the hosts file between named environments"""
from __future__ import annotations

__version__ = "0.1.0"

from .hosts_manager import HostsManager  # noqa: E402
from .models import Environment, HostEntry  # noqa: E402
from .store import EnvironmentStore  # noqa: E402
from .switcher import switch_environment  # noqa: E402

__all__: list[str] = [
    "Environment",
    "EnvironmentStore",
    "HostEntry",
    "HostsManager",
    "switch_environment",
]
