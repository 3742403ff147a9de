"""Pytest configuration and reusable fixtures for hostctl tests."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test path setup – make sure `src/` is importable when tests are invoked from
# the project root (e.g. on CI) or inside an isolated filesystem.
# ---------------------------------------------------------------------------
PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"

if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from hostctl.models import HostEntry  # noqa: E402
from hostctl.store import EnvironmentStore  # noqa: E402


# ---------------------------------------------------------------------------
# Generic fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def hosts_file(tmp_path: Path) -> Path:
    """A stand-in for /etc/hosts with a single system entry."""
    path = tmp_path / "hosts"
    path.write_text("127.0.0.1 localhost\n", encoding="utf-8")
    return path


@pytest.fixture()
def config_file(tmp_path: Path) -> Path:
    """Path of a configuration file that does not exist yet."""
    return tmp_path / "config" / "config.yaml"


@pytest.fixture()
def dev_store() -> EnvironmentStore:
    """Store with a single `dev` environment holding `api.local`."""
    store = EnvironmentStore()
    store.create("dev", "Local development")
    store.add_entry("dev", HostEntry.create("127.0.0.1", "api.local"))
    return store


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch, tmp_path: Path):
    """Never let a test pick up the developer's real config or hosts file."""
    monkeypatch.setenv("HOSTCTL_CONFIG", str(tmp_path / "config" / "config.yaml"))
    monkeypatch.setenv("HOSTCTL_HOSTS_FILE", str(tmp_path / "hosts"))
    monkeypatch.delenv("HOSTCTL_LOG_LEVEL", raising=False)
