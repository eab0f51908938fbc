"""Unit tests for config.py"""

import pytest

from dokupub.config import DEFAULT_INTERWIKI, Settings, load_config


@pytest.fixture(autouse=True)
def chdir_tmp(tmp_path, monkeypatch):
    """Run each test from an empty directory so no stray config.yaml is picked up."""
    monkeypatch.chdir(tmp_path)


def test_load_config_defaults(monkeypatch):
    """Settings defaults are used when no config.yaml, env var, or CLI override exists."""
    monkeypatch.delenv("DOKUPUB_CURRENT_NAMESPACE", raising=False)
    settings = load_config()
    assert settings.current_namespace == ""
    assert settings.interwiki == DEFAULT_INTERWIKI
    assert settings.typography is True
    assert settings.html_ok is True


def test_load_config_reads_config_yaml(tmp_path):
    (tmp_path / "config.yaml").write_text("current_namespace: wiki\nuse_query_ids: true\n")
    settings = load_config()
    assert settings.current_namespace == "wiki"
    assert settings.use_query_ids is True


def test_load_config_env_overrides_config_yaml(tmp_path, monkeypatch):
    """DOKUPUB_CURRENT_NAMESPACE takes precedence over config.yaml."""
    (tmp_path / "config.yaml").write_text("current_namespace: project\n")
    monkeypatch.setenv("DOKUPUB_CURRENT_NAMESPACE", "env")
    assert load_config().current_namespace == "env"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var."""
    monkeypatch.setenv("DOKUPUB_CURRENT_NAMESPACE", "env")
    settings = load_config(overrides={"current_namespace": "cli"})
    assert settings.current_namespace == "cli"


def test_load_config_none_override_ignored(monkeypatch):
    monkeypatch.setenv("DOKUPUB_CURRENT_NAMESPACE", "env")
    assert load_config(overrides={"current_namespace": None}).current_namespace == "env"


def test_load_config_env_bool_coerced(monkeypatch):
    """DOKUPUB_TYPOGRAPHY=false is coerced to a bool."""
    monkeypatch.setenv("DOKUPUB_TYPOGRAPHY", "false")
    assert load_config().typography is False


def test_load_config_env_interwiki_mapping(monkeypatch):
    """Structured fields are parsed from YAML in the env var."""
    monkeypatch.setenv("DOKUPUB_INTERWIKI", "{gh: 'https://github.com/'}")
    assert load_config().interwiki == {"gh": "https://github.com/"}


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when config.yaml contains invalid YAML."""
    (tmp_path / "config.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid config.yaml"):
        load_config()


def test_load_config_non_mapping_yaml(tmp_path):
    (tmp_path / "config.yaml").write_text("- a\n- b\n")
    with pytest.raises(ValueError, match="expected a mapping"):
        load_config()


def test_load_config_invalid_log_level(monkeypatch):
    monkeypatch.setenv("DOKUPUB_LOG_LEVEL", "LOUD")
    with pytest.raises(ValueError):
        load_config()


def test_settings_are_frozen():
    settings = Settings()
    with pytest.raises(ValueError):
        settings.typography = False
