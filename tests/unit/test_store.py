"""Unit tests for EnvironmentStore and its YAML persistence."""
from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from hostctl import store as store_io
from hostctl.exceptions import (
    CorruptConfigError,
    DuplicateNameError,
    EntryNotFoundError,
    HostctlIOError,
    InvalidEntryError,
    InvalidNameError,
    NotFoundError,
)
from hostctl.models import HostEntry
from hostctl.store import EnvironmentStore

pytestmark = pytest.mark.unit


class TestEnvironmentStore:
    """In-memory CRUD behaviour."""

    def test_create_and_get(self):
        store = EnvironmentStore()
        env = store.create("dev", "Development")
        assert store.get("dev") is env
        assert env.description == "Development"
        assert env.entries == []

    def test_create_duplicate(self):
        store = EnvironmentStore()
        store.create("dev")
        with pytest.raises(DuplicateNameError):
            store.create("dev")

    def test_names_are_case_sensitive(self):
        store = EnvironmentStore()
        store.create("dev")
        store.create("Dev")
        assert [s.name for s in store.list()] == ["dev", "Dev"]

    @pytest.mark.parametrize("name", ["", "my env", "a/b"])
    def test_create_invalid_name(self, name):
        with pytest.raises(InvalidNameError):
            EnvironmentStore().create(name)

    def test_get_missing(self):
        with pytest.raises(NotFoundError):
            EnvironmentStore().get("ghost")

    def test_list_keeps_insertion_order(self):
        store = EnvironmentStore()
        for name in ("staging", "dev", "prod"):
            store.create(name)
        store.set_active("dev")

        summaries = store.list()

        assert [s.name for s in summaries] == ["staging", "dev", "prod"]
        assert [s.active for s in summaries] == [False, True, False]

    def test_list_counts_entries(self, dev_store: EnvironmentStore):
        dev_store.add_entry("dev", HostEntry.create("10.0.0.2", "db.local", enabled=False))
        summary = dev_store.list()[0]
        assert summary.entry_count == 2
        assert summary.enabled_count == 1

    def test_remove(self, dev_store: EnvironmentStore):
        removed = dev_store.remove("dev")
        assert removed.name == "dev"
        assert dev_store.environments == {}
        with pytest.raises(NotFoundError):
            dev_store.remove("dev")

    def test_remove_active_clears_active(self, dev_store: EnvironmentStore):
        dev_store.set_active("dev")
        dev_store.remove("dev")
        assert dev_store.active is None
        assert dev_store.active_environment() is None

    def test_remove_other_keeps_active(self, dev_store: EnvironmentStore):
        dev_store.create("prod")
        dev_store.set_active("dev")
        dev_store.remove("prod")
        assert dev_store.active == "dev"

    def test_set_active_requires_existing(self):
        with pytest.raises(NotFoundError):
            EnvironmentStore().set_active("ghost")

    def test_add_entry_allows_duplicates(self, dev_store: EnvironmentStore):
        dev_store.add_entry("dev", HostEntry.create("127.0.0.1", "api.local"))
        assert len(dev_store.get("dev").entries) == 2

    def test_add_entry_validates(self, dev_store: EnvironmentStore):
        with pytest.raises(InvalidEntryError):
            dev_store.add_entry("dev", HostEntry("not-an-ip", ["api.local"]))
        with pytest.raises(InvalidEntryError):
            dev_store.add_entry("dev", HostEntry("10.0.0.1", ["bad host"]))
        assert len(dev_store.get("dev").entries) == 1

    def test_add_entry_missing_environment(self):
        with pytest.raises(NotFoundError):
            EnvironmentStore().add_entry("ghost", HostEntry.create("10.0.0.1", "a.local"))

    def test_add_entry_updates_timestamp(self, dev_store: EnvironmentStore):
        env = dev_store.get("dev")
        before = env.updated_at
        dev_store.add_entry("dev", HostEntry.create("10.0.0.9", "z.local"))
        assert env.updated_at >= before
        assert env.updated_at >= env.created_at

    def test_remove_entry_first_match_wins(self, dev_store: EnvironmentStore):
        dev_store.add_entry("dev", HostEntry.create("10.0.0.2", ["www.local", "api.local"]))

        removed = dev_store.remove_entry("dev", "api.local")

        assert removed.address == "127.0.0.1"
        remaining = dev_store.get("dev").entries
        assert [e.address for e in remaining] == ["10.0.0.2"]

    def test_remove_entry_matches_secondary_hostname(self, dev_store: EnvironmentStore):
        dev_store.add_entry("dev", HostEntry.create("10.0.0.2", ["www.local", "alias.local"]))
        removed = dev_store.remove_entry("dev", "alias.local")
        assert removed.hostname == "www.local"

    def test_remove_entry_missing(self, dev_store: EnvironmentStore):
        with pytest.raises(EntryNotFoundError):
            dev_store.remove_entry("dev", "nope.local")
        with pytest.raises(NotFoundError):
            dev_store.remove_entry("ghost", "api.local")

    def test_set_entry_enabled(self, dev_store: EnvironmentStore):
        entry = dev_store.set_entry_enabled("dev", "api.local", False)
        assert entry.enabled is False
        assert dev_store.get("dev").entries[0].enabled is False

        dev_store.set_entry_enabled("dev", "api.local", True)
        assert dev_store.get("dev").entries[0].enabled is True

        with pytest.raises(EntryNotFoundError):
            dev_store.set_entry_enabled("dev", "nope.local", True)


class TestPersistence:
    """load()/save() against a temporary config file."""

    def test_load_missing_file_returns_empty_store(self, config_file: Path):
        store = store_io.load(config_file)
        assert store.environments == {}
        assert store.active is None
        assert not config_file.exists()

    def test_load_empty_file(self, config_file: Path):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("", encoding="utf-8")
        assert store_io.load(config_file) == EnvironmentStore()

    def test_roundtrip(self, dev_store: EnvironmentStore, config_file: Path):
        dev_store.create("prod", "Production")
        dev_store.add_entry(
            "prod", HostEntry.create("2001:db8::1", ["app.prod", "www.prod"], comment="App", enabled=False)
        )
        dev_store.create("qa")
        dev_store.set_active("prod")

        store_io.save(dev_store, config_file)
        loaded = store_io.load(config_file)

        assert loaded == dev_store
        assert list(loaded.environments) == ["dev", "prod", "qa"]
        assert loaded.active == "prod"

    def test_save_creates_directory_and_leaves_no_temp_files(
        self, dev_store: EnvironmentStore, config_file: Path
    ):
        store_io.save(dev_store, config_file)
        assert [p.name for p in config_file.parent.iterdir()] == ["config.yaml"]

    def test_saved_yaml_layout(self, dev_store: EnvironmentStore, config_file: Path):
        dev_store.set_active("dev")
        store_io.save(dev_store, config_file)

        data = yaml.safe_load(config_file.read_text(encoding="utf-8"))

        assert data["active"] == "dev"
        env = data["environments"]["dev"]
        assert env["description"] == "Local development"
        assert env["entries"] == [
            {"address": "127.0.0.1", "hostnames": ["api.local"], "comment": None, "enabled": True}
        ]
        assert isinstance(env["created_at"], str)

    def test_load_hand_written_config(self, config_file: Path):
        config_file.parent.mkdir(parents=True)
        config_file.write_text(
            "active: dev\n"
            "environments:\n"
            "  dev:\n"
            "    description: Hand written\n"
            "    created_at: 2024-05-01 10:00:00\n"
            "    entries:\n"
            "      - address: 10.0.0.1\n"
            "        hostname: api.local\n"
            "        comment: API\n",
            encoding="utf-8",
        )

        store = store_io.load(config_file)

        env = store.get("dev")
        assert store.active == "dev"
        assert env.entries == [HostEntry.create("10.0.0.1", "api.local", comment="API")]
        assert env.created_at.year == 2024

    @pytest.mark.parametrize(
        "content",
        [
            "environments: [unclosed\n",
            "- just\n- a list\n",
            "environments: 5\n",
            "active: ghost\nenvironments: {}\n",
            "environments:\n  'bad name': {}\n",
            "environments:\n  dev:\n    entries:\n      - address: 999.1.1.1\n        hostnames: [a.local]\n",
            "environments:\n  dev:\n    created_at: not-a-date\n",
        ],
    )
    def test_load_corrupt_config(self, config_file: Path, content: str):
        config_file.parent.mkdir(parents=True)
        config_file.write_text(content, encoding="utf-8")

        with pytest.raises(CorruptConfigError) as excinfo:
            store_io.load(config_file)

        assert excinfo.value.path == config_file
        assert str(config_file) in excinfo.value.message
        # never repaired or removed
        assert config_file.read_text(encoding="utf-8") == content

    def test_load_non_utf8_config(self, config_file: Path):
        config_file.parent.mkdir(parents=True)
        raw = b"environments:\n  dev:\n    description: caf\xe9\n"
        config_file.write_bytes(raw)

        with pytest.raises(CorruptConfigError, match="not valid UTF-8") as excinfo:
            store_io.load(config_file)

        assert excinfo.value.path == config_file
        assert config_file.read_bytes() == raw

    def test_failed_save_keeps_previous_config(
        self, dev_store: EnvironmentStore, config_file: Path, monkeypatch
    ):
        store_io.save(dev_store, config_file)
        previous = config_file.read_text(encoding="utf-8")

        dev_store.create("prod")

        def fail_replace(src, dst):
            raise OSError(5, "I/O error")

        monkeypatch.setattr("hostctl.fileio.os.replace", fail_replace)

        with pytest.raises(HostctlIOError):
            store_io.save(dev_store, config_file)

        assert config_file.read_text(encoding="utf-8") == previous
        assert [p.name for p in config_file.parent.iterdir()] == ["config.yaml"]
