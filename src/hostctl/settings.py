"""
Runtime settings with platform defaults and environment variable overrides.
"""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from pathlib import Path

__all__ = ["Settings", "default_config_path", "default_hosts_path"]

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_config_path() -> Path:
    """Return the per-user configuration file path.

    - Windows: ``%APPDATA%\\hostctl\\config.yaml``
    - Linux/macOS: ``$XDG_CONFIG_HOME/hostctl/config.yaml``, falling back to
      ``~/.config/hostctl/config.yaml``
    """
    if sys.platform == "win32":
        base = Path(os.getenv("APPDATA") or "C:\\ProgramData")
    else:
        base = Path(os.getenv("XDG_CONFIG_HOME") or Path.home() / ".config")
    return base / "hostctl" / "config.yaml"


def default_hosts_path() -> Path:
    if sys.platform == "win32":
        system_root = os.getenv("SystemRoot", "C:\\Windows")
        return Path(system_root) / "System32" / "drivers" / "etc" / "hosts"
    return Path("/etc/hosts")


@dataclass
class Settings:
    """Paths and log level used by a single hostctl invocation."""

    config_path: Path = field(default_factory=default_config_path)
    hosts_path: Path = field(default_factory=default_hosts_path)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Load settings from environment variables.

        Environment variables:
            HOSTCTL_CONFIG: configuration file (default: platform config dir)
            HOSTCTL_HOSTS_FILE: hosts file to manage (default: system hosts file)
            HOSTCTL_LOG_LEVEL: log level (default: INFO)
        """
        config = os.getenv("HOSTCTL_CONFIG")
        hosts = os.getenv("HOSTCTL_HOSTS_FILE")
        return cls(
            config_path=Path(config).expanduser() if config else default_config_path(),
            hosts_path=Path(hosts).expanduser() if hosts else default_hosts_path(),
            log_level=os.getenv("HOSTCTL_LOG_LEVEL", "INFO").upper(),
        )

    @property
    def log_file(self) -> Path:
        return self.config_path.parent / "hostctl.log"

    def validate(self) -> None:
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"Invalid HOSTCTL_LOG_LEVEL: {self.log_level}. "
                f"Must be one of: {', '.join(VALID_LOG_LEVELS)}"
            )
