"""Unit tests for config.py"""

import pytest
from pydantic import ValidationError

from richdoc.config import load_config


@pytest.fixture(autouse=True)
def clean_env(tmp_path, monkeypatch):
    """Isolate each test from a real config.yaml and RICHDOC_* variables."""
    monkeypatch.chdir(tmp_path)
    for name in ("MAX_DEPTH", "OUTPUT_DIR", "LOG_LEVEL", "SLUG_MAX_LENGTH"):
        monkeypatch.delenv(f"RICHDOC_{name}", raising=False)


def test_load_config_defaults():
    """Settings defaults apply when no config.yaml, env var, or CLI override exists."""
    settings = load_config()
    assert settings.max_depth == 64
    assert settings.slug_max_length == 80
    assert settings.output_dir == "dist"


def test_load_config_reads_config_yaml(tmp_path):
    (tmp_path / "config.yaml").write_text("max_depth: 12\nrule_class: 'hr'\n")
    settings = load_config()
    assert settings.max_depth == 12
    assert settings.rule_class == "hr"


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """RICHDOC_MAX_DEPTH takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("max_depth: 12\n")
    monkeypatch.setenv("RICHDOC_MAX_DEPTH", "20")
    assert load_config().max_depth == 20


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var."""
    monkeypatch.setenv("RICHDOC_OUTPUT_DIR", "env-out")
    settings = load_config(overrides={"output_dir": "cli-out"})
    assert settings.output_dir == "cli-out"


def test_load_config_none_override_ignored(monkeypatch):
    monkeypatch.setenv("RICHDOC_OUTPUT_DIR", "env-out")
    assert load_config(overrides={"output_dir": None}).output_dir == "env-out"


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_rejects_bad_values(monkeypatch):
    """Out-of-range values fail validation."""
    monkeypatch.setenv("RICHDOC_MAX_DEPTH", "0")
    with pytest.raises(ValidationError):
        load_config()


def test_load_config_rejects_bad_log_level(monkeypatch):
    monkeypatch.setenv("RICHDOC_LOG_LEVEL", "LOUD")
    with pytest.raises(ValidationError):
        load_config()
