"""Tests for importing ccswitch.json configuration files."""

import json

import pytest

from ccsync.core.store import (
    ConfigFileError,
    InMemoryConfigurationRepository,
    import_configuration,
    load_config_file,
    parse_config,
)
from ccsync.models import Vendor

CURRENT_LAYOUT = {
    "current": "b",
    "vendors": [
        {"id": "a", "name": "Alpha", "env": {"URL": "x"}},
        {"id": "b", "name": "Beta", "env": {"URL": "y"}},
    ],
    "favorites": ["b", "ghost"],
}

LEGACY_LAYOUT = {
    "default": "work",
    "profiles": {
        "work": {"ANTHROPIC_BASE_URL": "https://work"},
        "home": {"ANTHROPIC_BASE_URL": "https://home"},
    },
    "descriptions": {"work": "Work account"},
}


@pytest.fixture
def config_file(tmp_path):
    """Write a configuration file in the current layout."""
    path = tmp_path / "ccswitch.json"
    path.write_text(json.dumps(CURRENT_LAYOUT))
    return path


class TestParseConfig:
    """Test parsing both layouts."""

    def test_current_layout(self):
        """Test vendors, current and favorites are read."""
        config = parse_config(CURRENT_LAYOUT)
        assert [v.id for v in config.vendors] == ["a", "b"]
        assert config.vendors[0] == Vendor(id="a", name="Alpha", env={"URL": "x"})
        assert config.current == "b"
        assert config.favorites == ["b", "ghost"]
        assert config.legacy is False

    def test_legacy_profiles(self):
        """Test legacy profiles become vendors named by their description."""
        config = parse_config(LEGACY_LAYOUT)
        by_id = {v.id: v for v in config.vendors}
        assert by_id["work"].name == "Work account"
        assert by_id["home"].name == "home"
        assert by_id["work"].env == {"ANTHROPIC_BASE_URL": "https://work"}
        assert config.current == "work"
        assert config.legacy is True

    def test_legacy_display_name(self):
        """Test displayName entries are recognized as legacy."""
        config = parse_config({"vendors": [{"id": "a", "displayName": "Alpha"}]})
        assert config.vendors == [Vendor(id="a", name="Alpha", env={})]
        assert config.legacy is True

    def test_invalid_entries_skipped(self):
        """Test entries without a usable id are dropped."""
        config = parse_config({"vendors": [{"name": "no id"}, "junk", {"id": "ok"}]})
        assert [v.id for v in config.vendors] == ["ok"]

    def test_empty_document(self):
        """Test a document without vendors yields nothing."""
        assert parse_config({}).vendors == []


class TestLoadConfigFile:
    """Test reading configuration files."""

    def test_load(self, config_file):
        """Test a valid file is parsed."""
        assert len(load_config_file(config_file).vendors) == 2

    def test_missing_file(self, tmp_path):
        """Test a missing file raises ConfigFileError."""
        with pytest.raises(ConfigFileError, match="not found"):
            load_config_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Test invalid JSON raises ConfigFileError."""
        path = tmp_path / "bad.json"
        path.write_text("{nope")
        with pytest.raises(ConfigFileError):
            load_config_file(path)

    def test_non_object(self, tmp_path):
        """Test a top-level array is rejected."""
        path = tmp_path / "list.json"
        path.write_text("[]")
        with pytest.raises(ConfigFileError):
            load_config_file(path)


class TestImportConfiguration:
    """Test copying imported vendors into a repository."""

    def test_import_into_empty_repository(self):
        """Test all vendors are added and markers applied."""
        repository = InMemoryConfigurationRepository()
        result = import_configuration(repository, parse_config(CURRENT_LAYOUT))

        assert result.added == ["a", "b"]
        assert result.changed
        assert repository.get_current_vendor().id == "b"
        assert repository.get_favorites() == {"b"}

    def test_presets_are_applied(self):
        """Test preset ids are kept only for vendors that exist."""
        layout = dict(CURRENT_LAYOUT, presets=["a", "ghost"])
        repository = InMemoryConfigurationRepository()
        import_configuration(repository, parse_config(layout))

        assert repository.get_presets() == {"a"}

    def test_existing_vendors_are_skipped(self):
        """Test existing ids are left alone without overwrite."""
        repository = InMemoryConfigurationRepository([Vendor(id="a", name="Mine")])
        result = import_configuration(repository, parse_config(CURRENT_LAYOUT))

        assert result.added == ["b"]
        assert result.skipped == ["a"]
        assert repository.get_vendor("a").name == "Mine"
        # Current vendor is only taken from the file for an empty repository
        assert repository.get_current_vendor().id == "a"

    def test_overwrite_updates_existing(self):
        """Test overwrite replaces differing vendors."""
        repository = InMemoryConfigurationRepository([Vendor(id="a", name="Mine")])
        result = import_configuration(
            repository, parse_config(CURRENT_LAYOUT), overwrite=True
        )
        assert result.updated == ["a"]
        assert repository.get_vendor("a").name == "Alpha"

    def test_reimport_changes_nothing(self):
        """Test importing the same file twice is idempotent."""
        repository = InMemoryConfigurationRepository()
        config = parse_config(CURRENT_LAYOUT)
        import_configuration(repository, config)
        result = import_configuration(repository, config, overwrite=True)
        assert not result.changed
        assert result.skipped == ["a", "b"]
