# tests/test_config.py
import pytest

from city_solver.config import CONFIG_ENV, load_config, load_yaml


def test_defaults(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    cfg = load_config()
    assert cfg.share_base_url == "http://localhost:8000/"
    assert cfg.max_history == 500


def test_yaml_and_overrides(tmp_path):
    path = tmp_path / "city.yaml"
    path.write_text("log_level: DEBUG\nmax_history: 20\n", encoding="utf-8")
    cfg = load_config(path, max_history=None, api_title="Test")
    assert cfg.log_level == "DEBUG"
    assert cfg.max_history == 20
    assert cfg.api_title == "Test"


def test_env_var(tmp_path, monkeypatch):
    path = tmp_path / "city.yaml"
    path.write_text("share_base_url: https://example.org/\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_ENV, str(path))
    assert load_config().share_base_url == "https://example.org/"


def test_yaml_must_be_a_mapping(tmp_path):
    path = tmp_path / "bad.yaml"
    path.write_text("- one\n- two\n", encoding="utf-8")
    with pytest.raises(ValueError):
        load_yaml(path)


def test_unknown_settings_are_rejected(tmp_path):
    path = tmp_path / "typo.yaml"
    path.write_text("max_histroy: 20\n", encoding="utf-8")
    with pytest.raises(ValueError, match="max_histroy"):
        load_config(path)
    with pytest.raises(ValueError):
        load_config(solve_timeot=1.0)
