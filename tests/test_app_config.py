"""Tests for the configuration helpers."""

import logging

import pytest

from menu_tree_editor import app_config
from menu_tree_editor.app_config import CONFIG_FILE_NAME, load_app_config, parse_bool, setup_logger


class RecordingConfig:
    """Stand-in for ``dcmspec.config.Config`` recording its constructor arguments."""

    def __init__(self, app_name=None, config_file=None):
        self.app_name = app_name
        self.config_file = config_file
        self._params = {}

    def get_param(self, key):
        return self._params.get(key)

    def set_param(self, key, value):
        self._params[key] = value


@pytest.fixture
def isolated_dirs(monkeypatch, tmp_path):
    """Point the platform directories to tmp_path and clear the override variable."""
    monkeypatch.setattr(app_config, "Config", RecordingConfig)
    monkeypatch.setattr(app_config, "user_config_dir", lambda *args: str(tmp_path / "user_config"))
    monkeypatch.setattr(app_config, "user_data_dir", lambda *args: str(tmp_path / "user_data"))
    monkeypatch.setattr(app_config, "find_project_root", lambda: None)
    monkeypatch.delenv("MENU_TREE_EDITOR_CONFIG", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (False, False),
        ("true", True),
        (" Yes ", True),
        ("on", True),
        ("1", True),
        ("false", False),
        ("off", False),
        ("", False),
        (0, False),
        (1, True),
        (None, False),
    ],
)
def test_parse_bool(value, expected):
    """Booleans, common strings and other values are converted."""
    assert parse_bool(value) is expected


class TestLoadAppConfig:
    """load_app_config."""

    def test_defaults_without_config_file(self, isolated_dirs):
        """Missing keys are filled with the defaults."""
        config = load_app_config()

        assert config.config_file is None
        assert config.app_name == "menu_tree_editor"
        assert config.get_param("log_level") == "INFO"
        assert config.get_param("menu_store_dir") == str(isolated_dirs / "user_data")
        assert config.get_param("default_scope") == "main"
        assert config.get_param("require_root_icon") is True

    def test_environment_variable_wins(self, isolated_dirs, monkeypatch):
        """MENU_TREE_EDITOR_CONFIG overrides every other location."""
        user_file = isolated_dirs / "user_config" / CONFIG_FILE_NAME
        user_file.parent.mkdir()
        user_file.write_text("{}", encoding="utf-8")
        env_file = isolated_dirs / "custom.json"
        env_file.write_text("{}", encoding="utf-8")
        monkeypatch.setenv("MENU_TREE_EDITOR_CONFIG", str(env_file))

        assert load_app_config().config_file == str(env_file)

    def test_user_config_before_current_directory(self, isolated_dirs):
        """The user config directory is searched before the working directory."""
        (isolated_dirs / CONFIG_FILE_NAME).write_text("{}", encoding="utf-8")
        user_file = isolated_dirs / "user_config" / CONFIG_FILE_NAME
        user_file.parent.mkdir()
        user_file.write_text("{}", encoding="utf-8")

        assert load_app_config().config_file == str(user_file)

    def test_current_directory_as_last_resort(self, isolated_dirs):
        """A config file in the working directory is used when nothing else exists."""
        (isolated_dirs / CONFIG_FILE_NAME).write_text("{}", encoding="utf-8")

        assert load_app_config().config_file == CONFIG_FILE_NAME

    def test_missing_environment_file_is_skipped(self, isolated_dirs, monkeypatch):
        """An override pointing nowhere falls back to the other locations."""
        monkeypatch.setenv("MENU_TREE_EDITOR_CONFIG", str(isolated_dirs / "missing.json"))

        assert load_app_config().config_file is None


class TestSetupLogger:
    """setup_logger."""

    def test_level_from_config(self, make_config):
        """The configured level is applied to the logger and its handler."""
        logger = setup_logger(make_config({"log_level": "debug"}))

        assert logger.name == "menu_tree_editor"
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self, make_config):
        """Unknown level names do not break the setup."""
        logger = setup_logger(make_config({"log_level": "VERBOSE"}))

        assert logger.level == logging.INFO

    def test_handlers_are_not_duplicated(self, make_config):
        """Calling setup twice keeps a single handler."""
        setup_logger(make_config())
        logger = setup_logger(make_config())

        assert len(logger.handlers) == 1
