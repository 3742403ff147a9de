"""
hostctl custom exceptions and error formatting utilities.

This module provides the exception hierarchy shared by the environment store,
the hosts file editor and the command line so every failure reaches the
command boundary with a kind and a contextual message.
"""

from __future__ import annotations

import logging
import traceback
from pathlib import Path
from typing import Optional, Any, Dict, Union

logger = logging.getLogger(__name__)


class HostctlError(Exception):
    """Base exception for all hostctl-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidNameError(HostctlError):
    """Raised when an environment name is empty or contains disallowed characters."""

    pass


class DuplicateNameError(HostctlError):
    """Raised when creating an environment whose name is already taken."""

    pass


class NotFoundError(HostctlError):
    """Raised when an environment does not exist."""

    pass


class EntryNotFoundError(HostctlError):
    """Raised when no entry in an environment carries the requested hostname."""

    pass


class InvalidEntryError(HostctlError):
    """Raised when a host entry has a malformed address or hostname."""

    pass


class CorruptConfigError(HostctlError):
    """Raised when the configuration file exists but cannot be understood.

    The file is left exactly as it is; the user has to inspect it.
    """

    def __init__(
        self,
        path: Union[str, Path],
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.path = Path(path)
        self.reason = reason
        super().__init__(
            f"Configuration file {self.path} is corrupt: {reason}. "
            "Inspect or remove it manually.",
            {"path": str(self.path), **(details or {})},
        )


class MalformedManagedRegionError(HostctlError):
    """Raised when the hosts file has unbalanced managed-region sentinels."""

    pass


class HostctlIOError(HostctlError):
    """Raised when reading or writing a file fails."""

    def __init__(
        self,
        message: str,
        path: Union[str, Path],
        permission_denied: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.path = Path(path)
        self.permission_denied = permission_denied
        super().__init__(message, {"path": str(self.path), **(details or {})})


class PermissionDeniedError(HostctlIOError):
    """Raised when the operating system refuses access to a file."""

    def __init__(
        self,
        path: Union[str, Path],
        operation: str = "access",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"Permission denied to {operation} {path}. "
            "Re-run with administrator privileges (e.g. sudo).",
            path,
            permission_denied=True,
            details=details,
        )


def io_error(path: Union[str, Path], operation: str, error: OSError) -> HostctlIOError:
    """Translate an ``OSError`` into the matching hostctl exception."""
    logger.debug(f"{operation} {path} failed: {error!r}")
    if isinstance(error, PermissionError):
        return PermissionDeniedError(path, operation, {"original_error": str(error)})
    return HostctlIOError(
        f"Failed to {operation} {path}: {error.strerror or error}",
        path,
        details={"original_error": str(error), "original_type": type(error).__name__},
    )


def format_error_message(error: Exception, include_traceback: bool = False) -> str:
    """Format error messages consistently."""
    if isinstance(error, HostctlError):
        message = error.message
        extra = {k: v for k, v in error.details.items() if k != "path" and not k.startswith("original_")}
        if extra:
            message += " (" + ", ".join(f"{k}={v}" for k, v in extra.items()) + ")"
    else:
        message = f"{type(error).__name__}: {str(error)}"

    if include_traceback:
        message += f"\n{traceback.format_exc()}"

    return message
