import json

from fintrack.settings import DEFAULTS, get_data_dir, get_db_path, get_rate_ttl_seconds, load_settings, save_settings


def test_save_and_load_roundtrip(tmp_path, monkeypatch):
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", tmp_path / "settings.json")
    monkeypatch.setattr("fintrack.settings.CONFIG_DIR", tmp_path)
    save_settings({**DEFAULTS, "default_currency": "EUR"})
    assert load_settings()["default_currency"] == "EUR"


def test_load_settings_returns_defaults_when_missing(tmp_path, monkeypatch):
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", tmp_path / "settings.json")
    assert load_settings() == DEFAULTS


def test_load_settings_merges_with_defaults(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"rate_ttl_hours": 1}))
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", settings_path)
    settings = load_settings()
    assert settings["rate_ttl_hours"] == 1
    assert settings["log_level"] == "WARNING"
    assert get_rate_ttl_seconds() == 3600


def test_data_dir_and_db_path(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"data_dir": "/tmp/custom-books"}))
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", settings_path)
    assert str(get_data_dir()) == "/tmp/custom-books"
    assert str(get_db_path()) == "/tmp/custom-books/fintrack.db"


def test_default_ttl_is_twelve_hours(tmp_path, monkeypatch):
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", tmp_path / "settings.json")
    assert get_rate_ttl_seconds() == 12 * 3600


def test_save_creates_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / "config" / "fintrack"
    monkeypatch.setattr("fintrack.settings.CONFIG_DIR", config_dir)
    monkeypatch.setattr("fintrack.settings.SETTINGS_PATH", config_dir / "settings.json")
    save_settings(DEFAULTS)
    assert (config_dir / "settings.json").exists()
