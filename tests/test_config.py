import json
import pytest
from pydantic import ValidationError

from egdata_client.core.config import ConfigManager, SettingsConfig


def test_config_read_default(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))
    settings = config.data

    assert settings.concurrency == 3
    assert settings.upload_speed_limit == 0
    assert settings.allowed_environments == ["Live", "Production"]
    assert settings.scan_interval_minutes == 1
    assert settings.upload_interval == 60


def test_missing_file_is_created_with_defaults(tmp_path):
    path = tmp_path / "nested" / "settings.json"
    ConfigManager(str(path))

    assert json.loads(path.read_text())["upload_interval"] == 60


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text("{not json")

    config = ConfigManager(str(path))

    assert config.data == SettingsConfig()
    assert json.loads(path.read_text()) == SettingsConfig().model_dump()


def test_existing_file_is_loaded(tmp_path):
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({
        "concurrency": 5,
        "upload_speed_limit": 100,
        "allowed_environments": ["Live"],
        "upload_interval": 120,
        "scan_interval_minutes": 2,
    }))

    config = ConfigManager(str(path))

    assert config.data.concurrency == 5
    assert config.data.allowed_environments == ["Live"]
    assert config.get("upload_interval") == 120


def test_config_update_event(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))
    received = []
    config.on_changed.connect(lambda key, value: received.append((key, value)))

    config.update("upload_interval", 1)

    assert config.data.upload_interval == 1
    assert received == [("upload_interval", 1)]


def test_update_persists(tmp_path):
    path = tmp_path / "settings.json"
    ConfigManager(str(path)).update("scan_interval_minutes", 7)

    assert ConfigManager(str(path)).data.scan_interval_minutes == 7


def test_replace_emits_only_changed_fields(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))
    received = []
    config.on_changed.connect(lambda key, value: received.append(key))

    new_settings = config.data.model_copy(update={"concurrency": 8, "scan_interval_minutes": 3})
    config.replace(new_settings)

    assert sorted(received) == ["concurrency", "scan_interval_minutes"]


def test_update_rejects_unknown_key(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))

    with pytest.raises(ValueError):
        config.update("theme", "dark")


def test_update_rejects_invalid_interval(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))

    with pytest.raises(ValidationError):
        config.update("upload_interval", 0)
    assert config.data.upload_interval == 60


def test_data_is_a_copy(tmp_path):
    config = ConfigManager(str(tmp_path / "settings.json"))

    snapshot = config.data
    snapshot.allowed_environments.append("Staging")

    assert config.data.allowed_environments == ["Live", "Production"]
