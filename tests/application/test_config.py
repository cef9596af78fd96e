from pathlib import Path

import pytest
from pydantic import ValidationError

import memora.application.config as config_module
from memora.application.config import AppConfig, resolve_config


def test_defaults():
    config = AppConfig()
    assert config.embedding_threshold == 0.85
    assert config.borderline_threshold == 0.6
    assert config.correct_threshold == 0.7
    assert config.strict_grades is True
    assert config.enforce_card_ownership is True
    assert config.database_path is None
    assert config.has_ai_backend is False


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MEMORA_OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("MEMORA_STRICT_GRADES", "false")

    config = AppConfig()
    assert config.has_ai_backend is True
    assert config.openai_api_key.get_secret_value() == "sk-test"
    assert config.strict_grades is False


def test_empty_api_key_means_no_backend():
    assert AppConfig(openai_api_key="").has_ai_backend is False


def test_toml_file_is_read(tmp_path, monkeypatch):
    toml = tmp_path / "config.toml"
    toml.write_text('embedding_threshold = 0.9\nlog_level = "debug"\n')
    monkeypatch.setattr(config_module, "CONFIG_FILES", [toml])

    config = AppConfig()
    assert config.embedding_threshold == 0.9
    assert config.log_level == "DEBUG"


def test_env_beats_toml(tmp_path, monkeypatch):
    toml = tmp_path / "config.toml"
    toml.write_text("port = 9000\n")
    monkeypatch.setattr(config_module, "CONFIG_FILES", [toml])
    monkeypatch.setenv("MEMORA_PORT", "9100")

    assert AppConfig().port == 9100


def test_resolve_config_ignores_none(tmp_path):
    config = resolve_config({"port": None, "database_path": tmp_path / "m.db"})
    assert config.port == 8000
    assert config.database_path == (tmp_path / "m.db").resolve()


def test_database_path_expands_user():
    config = AppConfig(database_path="~/memora.db")
    assert config.database_path == (Path.home() / "memora.db").resolve()


def test_threshold_bounds_are_validated():
    with pytest.raises(ValidationError):
        AppConfig(embedding_threshold=1.5)
