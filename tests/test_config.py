import pytest
import yaml

from vintagecam.config import DEFAULT_CONFIG, ConfigError, ConfigManager


def test_defaults_when_file_missing(tmp_path):
    config = ConfigManager.load(str(tmp_path / "absent.yaml"), environ={})
    assert config.get("storage.ttl_seconds") == 86400
    assert config.get("server.port") == 5000
    assert config.get("processing.memory_threshold") == 0.95
    assert config.get("upload.allowed_types") == ["image/jpeg", "image/png"]


def test_yaml_values_merge_over_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(yaml.safe_dump({
        "storage": {"redis_url": "redis://cache:6380"},
        "server": {"port": 8080},
    }))

    config = ConfigManager.load(str(path), environ={})

    assert config.get("storage.redis_url") == "redis://cache:6380"
    assert config.get("storage.ttl_seconds") == 86400
    assert config.get("server.port") == 8080
    assert config.get("server.host") == "127.0.0.1"


def test_empty_yaml_uses_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("")
    config = ConfigManager.load(str(path), environ={})
    assert config.to_dict() == DEFAULT_CONFIG


def test_environment_overrides(tmp_path):
    config = ConfigManager.load(
        str(tmp_path / "absent.yaml"),
        environ={"REDIS_URL": "redis://remote:6379/2", "PORT": "9000"},
    )
    assert config.get("storage.redis_url") == "redis://remote:6379/2"
    assert config.get("server.port") == 9000


def test_invalid_port_override(tmp_path):
    with pytest.raises(ConfigError):
        ConfigManager.load(str(tmp_path / "absent.yaml"), environ={"PORT": "http"})


def test_invalid_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("storage: [unclosed")
    with pytest.raises(ConfigError):
        ConfigManager.load(str(path), environ={})


def test_non_mapping_yaml_raises(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        ConfigManager.load(str(path), environ={})


def test_create_if_missing_writes_defaults(tmp_path):
    path = tmp_path / "nested" / "config.yaml"
    ConfigManager.load(str(path), create_if_missing=True, environ={})
    assert path.exists()
    assert yaml.safe_load(path.read_text())["storage"]["ttl_seconds"] == 86400


def test_missing_required_field(tmp_path):
    with pytest.raises(ConfigError) as exc_info:
        ConfigManager.from_dict({"paths": {"uploads_dir": ""}})
    assert "paths.uploads_dir" in str(exc_info.value)


def test_dot_notation_get_and_set():
    config = ConfigManager.from_dict()
    assert config.get("storage.nope", "fallback") == "fallback"
    config.set("storage.redis_url", "redis://other:6379")
    config.set("extra.flag", True)
    assert config.get("storage.redis_url") == "redis://other:6379"
    assert config.get("extra.flag") is True


def test_defaults_are_not_shared():
    first = ConfigManager.from_dict()
    first.set("upload.max_size_mb", 99)
    assert ConfigManager.from_dict().get("upload.max_size_mb") == 10


def test_save_round_trip(tmp_path):
    path = tmp_path / "saved.yaml"
    config = ConfigManager.from_dict({"server": {"port": 7000}})
    config.save(str(path))
    reloaded = ConfigManager.load(str(path), environ={})
    assert reloaded.get("server.port") == 7000


def test_save_without_path_raises():
    with pytest.raises(ConfigError):
        ConfigManager.from_dict().save()
