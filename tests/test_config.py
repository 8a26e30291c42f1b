"""Tests for the YAML-backed config store."""

from pathlib import Path

import pytest
import yaml

from goupc.config import ConfigError, ConfigStore, default_config_path


def test_defaults_when_file_missing(store: ConfigStore) -> None:
    assert not store.path.exists()
    assert store.get("apiKey") == ""
    assert store.get_all() == {"apiKey": ""}
    assert not store.is_configured()


def test_set_persists_across_handles(store: ConfigStore) -> None:
    store.set("apiKey", "abc123")

    reopened = ConfigStore(store.path)
    assert reopened.get("apiKey") == "abc123"
    assert reopened.is_configured()
    with open(store.path, encoding="utf-8") as f:
        assert yaml.safe_load(f) == {"apiKey": "abc123"}


def test_get_all_merges_stored_values(store: ConfigStore) -> None:
    store.set("extra", 1)
    assert store.get_all() == {"apiKey": "", "extra": 1}


def test_numeric_looking_key_stays_a_string(store: ConfigStore) -> None:
    store.set("apiKey", "0123456789")
    assert ConfigStore(store.path).get("apiKey") == "0123456789"


@pytest.mark.parametrize("value", ["", "   ", "\t\n"])
def test_blank_key_is_not_configured(store: ConfigStore, value: str) -> None:
    store.set("apiKey", value)
    assert not store.is_configured()


def test_non_string_key_is_not_configured(store: ConfigStore) -> None:
    store.set("apiKey", 12345)
    assert not store.is_configured()


def test_clear(configured_store: ConfigStore) -> None:
    configured_store.clear()
    assert not configured_store.path.exists()
    assert not configured_store.is_configured()
    configured_store.clear()  # no error when already cleared


def test_empty_file_reads_as_defaults(store: ConfigStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("")
    assert store.get_all() == {"apiKey": ""}


def test_invalid_yaml_raises(store: ConfigStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("apiKey: [unclosed\n")
    with pytest.raises(ConfigError):
        store.get("apiKey")


def test_non_mapping_raises(store: ConfigStore) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        store.get_all()


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------


def test_default_path_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOUPC_CONFIG_DIR", str(tmp_path / "custom"))
    assert default_config_path() == tmp_path / "custom" / "config.yaml"


def test_default_path_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOUPC_CONFIG_DIR", raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert default_config_path() == tmp_path / "goupc" / "config.yaml"


def test_default_path_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("GOUPC_CONFIG_DIR", raising=False)
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.setenv("HOME", str(tmp_path))
    assert default_config_path() == tmp_path / ".config" / "goupc" / "config.yaml"


def test_open_uses_default_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GOUPC_CONFIG_DIR", str(tmp_path))
    assert ConfigStore.open().path == tmp_path / "config.yaml"
    assert ConfigStore.open(tmp_path / "other.yaml").path == tmp_path / "other.yaml"
