"""Tests for layered settings."""

import logging

import pytest

from config import ConfigError, Settings, load_settings
from constants import Constants


@pytest.fixture(autouse=True)
def no_default_config(monkeypatch, tmp_path):
    monkeypatch.setattr(Constants, "CONFIG_FILE_LOCATIONS", [str(tmp_path / "absent.yml")])


def test_defaults():
    """Test settings without a config file."""
    settings = load_settings()
    assert settings == Settings()
    assert settings.repositories == Constants.DEFAULT_REPOSITORIES
    assert settings.branch == "master"


def test_file_then_overrides(tmp_path):
    """Test CLI overrides win over the file."""
    path = tmp_path / "incrementals.yml"
    path.write_text(
        "repositories:\n"
        "  - https://mirror.example/maven/\n"
        "branch: main\n"
        "timeout: 5\n"
    )

    settings = load_settings(str(path), {"branch": "topic", "timeout": None})

    assert settings.repositories == ["https://mirror.example/maven/"]
    assert settings.branch == "topic"
    assert settings.timeout == 5


def test_default_location_is_searched(monkeypatch, tmp_path):
    """Test default locations are searched."""
    path = tmp_path / "found.yml"
    path.write_text("ignore_dirt: true\n")
    monkeypatch.setattr(Constants, "CONFIG_FILE_LOCATIONS", [str(tmp_path / "absent.yml"), str(path)])

    assert load_settings().ignore_dirt is True


def test_unknown_key_is_ignored(tmp_path, caplog):
    """Test unknown keys are logged and ignored."""
    path = tmp_path / "incrementals.yml"
    path.write_text("colour: blue\n")

    with caplog.at_level(logging.WARNING):
        assert load_settings(str(path)) == Settings()
    assert "colour" in caplog.text


@pytest.mark.parametrize("text", ["timeout: soon\n", "- a\n- b\n", "branch: [unclosed\n"])
def test_invalid_files(tmp_path, text):
    """Test malformed config files are rejected."""
    path = tmp_path / "incrementals.yml"
    path.write_text(text)

    with pytest.raises(ConfigError):
        load_settings(str(path))


def test_explicit_missing_file(tmp_path):
    """Test an explicit missing file is an error."""
    with pytest.raises(ConfigError):
        load_settings(str(tmp_path / "nope.yml"))


def test_empty_file(tmp_path):
    """Test an empty file yields defaults."""
    path = tmp_path / "incrementals.yml"
    path.write_text("")
    assert load_settings(str(path)) == Settings()
