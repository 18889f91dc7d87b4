"""Tests for config loading, migration and validation."""

import json
from pathlib import Path

import pytest

from servers.comp_ingest.config.loader import STORE_PATH_ENV, _deep_merge, load_config
from servers.comp_ingest.config.migrator import (
    CURRENT_VERSION,
    get_default_config,
    migrate_config,
    validate_config,
)
from servers.comp_ingest.errors import ConfigError


@pytest.fixture(autouse=True)
def clear_store_env(monkeypatch):
    monkeypatch.delenv(STORE_PATH_ENV, raising=False)


def _write(tmp_path: Path, data) -> Path:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class TestDefaults:
    """Tests for the default config."""

    def test_default_config_is_valid(self):
        assert validate_config(get_default_config()) == []

    def test_default_sources(self):
        config = get_default_config()
        assert [s["id"] for s in config["sources"]] == ["HKU", "HKUST", "CTFTime"]
        assert config["matching"]["scorer"] == "charset"
        assert config["storage"]["path"] is None

    def test_defaults_are_independent_copies(self):
        first = get_default_config()
        first["sources"][0]["url"] = "https://changed.example"
        assert get_default_config()["sources"][0]["url"] != "https://changed.example"


class TestMigration:
    """Tests for version migration."""

    def test_current_version_unchanged(self):
        config = get_default_config()
        assert migrate_config(config) is config

    def test_v1_flat_keys(self):
        migrated = migrate_config({
            "fetch_timeout": 10,
            "similarity_threshold": 0.8,
            "store_path": "catalog.json",
        })

        assert migrated["version"] == CURRENT_VERSION
        assert migrated["fetch"]["timeout_seconds"] == 10
        assert migrated["matching"]["similarity_threshold"] == 0.8
        assert migrated["storage"]["path"] == "catalog.json"
        assert "fetch_timeout" not in migrated

    def test_v1_source_ids(self):
        migrated = migrate_config({"version": 1, "sources": ["ctftime", "HKU"]})
        assert [s["id"] for s in migrated["sources"]] == ["HKU", "CTFTime"]

    def test_v1_input_not_mutated(self):
        original = {"version": 1, "fetch_timeout": 10}
        migrate_config(original)
        assert original == {"version": 1, "fetch_timeout": 10}

    def test_newer_version_not_stamped(self):
        config = {"version": CURRENT_VERSION + 1, "future_key": True}
        assert migrate_config(config) == {"version": CURRENT_VERSION + 1, "future_key": True}


class TestValidation:
    """Tests for config validation."""

    def test_newer_version(self):
        config = get_default_config()
        config["version"] = CURRENT_VERSION + 1
        assert any("newer" in e for e in validate_config(config))

    def test_bad_timeout(self):
        config = get_default_config()
        config["fetch"]["timeout_seconds"] = 0
        assert any("timeout" in e for e in validate_config(config))

    def test_unknown_scorer(self):
        config = get_default_config()
        config["matching"]["scorer"] = "levenshtein"
        assert any("Unknown scorer" in e for e in validate_config(config))

    def test_threshold_out_of_range(self):
        config = get_default_config()
        config["matching"]["jaccard_ratio"] = 1.5
        assert validate_config(config) == ["Invalid matching.jaccard_ratio: 1.5 (must be 0-1)"]

    def test_source_missing_fields(self):
        config = get_default_config()
        config["sources"].append({"id": "Devpost"})
        errors = validate_config(config)
        assert "sources[3] missing required field: kind" in errors
        assert "sources[3] missing required field: url" in errors

    def test_duplicate_source_ids(self):
        config = get_default_config()
        config["sources"].append(dict(config["sources"][0], id="hku"))
        assert "Duplicate source id: hku" in validate_config(config)


class TestLoadConfig:
    """Tests for load_config."""

    def test_defaults_without_file(self):
        assert load_config() == get_default_config()

    def test_file_overrides_merge(self, tmp_path: Path):
        path = _write(tmp_path, {
            "version": 2,
            "matching": {"scorer": "rapidfuzz"},
            "storage": {"path": "catalog.json"},
        })

        config = load_config(path)

        assert config["matching"]["scorer"] == "rapidfuzz"
        assert config["matching"]["similarity_threshold"] == 0.75
        assert config["storage"]["path"] == "catalog.json"
        assert len(config["sources"]) == 3

    def test_sources_list_replaced(self, tmp_path: Path):
        path = _write(tmp_path, {
            "version": 2,
            "sources": [{"id": "Local", "kind": "html_table", "url": "https://local.example"}],
        })

        assert [s["id"] for s in load_config(path)["sources"]] == ["Local"]

    def test_v1_file_migrated(self, tmp_path: Path):
        path = _write(tmp_path, {"fetch_timeout": 5, "sources": ["HKUST"]})

        config = load_config(path)

        assert config["version"] == CURRENT_VERSION
        assert config["fetch"]["timeout_seconds"] == 5
        assert [s["id"] for s in config["sources"]] == ["HKUST"]

    def test_env_overrides_store_path(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv(STORE_PATH_ENV, str(tmp_path / "env.json"))
        assert load_config()["storage"]["path"] == str(tmp_path / "env.json")

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="Cannot read config"):
            load_config(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path: Path):
        path = tmp_path / "config.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_non_object(self, tmp_path: Path):
        with pytest.raises(ConfigError, match="JSON object"):
            load_config(_write(tmp_path, ["HKU"]))

    def test_newer_version_rejected(self, tmp_path: Path):
        path = _write(tmp_path, {"version": CURRENT_VERSION + 1})
        with pytest.raises(ConfigError, match="newer than supported"):
            load_config(path)

    def test_non_integer_version_rejected(self, tmp_path: Path):
        path = _write(tmp_path, {"version": "2"})
        with pytest.raises(ConfigError, match="Invalid config version"):
            load_config(path)

    def test_validation_failure(self, tmp_path: Path):
        path = _write(tmp_path, {"version": 2, "fetch": {"timeout_seconds": -1}})
        with pytest.raises(ConfigError, match="Invalid fetch timeout"):
            load_config(path)


class TestDeepMerge:
    """Tests for nested config merging."""

    def test_nested_dicts_merge(self):
        merged = _deep_merge({"a": {"x": 1, "y": 2}}, {"a": {"y": 3}})
        assert merged == {"a": {"x": 1, "y": 3}}

    def test_base_not_mutated(self):
        base = {"a": {"x": 1}}
        _deep_merge(base, {"a": {"x": 2}})
        assert base == {"a": {"x": 1}}
