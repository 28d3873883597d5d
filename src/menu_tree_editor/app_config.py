"""Configuration Helper Module for the Menu Tree Editor application."""

import logging
import os
from pathlib import Path

from platformdirs import user_config_dir, user_data_dir

from dcmspec.config import Config

APP_NAME = "menu-tree-editor"
APP_AUTHOR = "menu-tree-editor"
CONFIG_FILE_NAME = "menu_tree_editor_config.json"


def find_project_root(marker="pyproject.toml"):
    """Find the project root by searching for a marker file up the directory tree.

    Returns None when the package runs from an installation with no project around it.
    """
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / marker).exists():
            return parent
    return None


def parse_bool(val):
    """Convert a value to boolean, handling both Python bools and common string representations.

    This is useful for config values that may be stored as either a boolean or a string
    (e.g., true/false, "true"/"false", "yes"/"no", "on"/"off", "1"/"0").

    Args:
        val: The value to convert (bool, str, or any type).

    Returns:
        bool: The converted boolean value.

    """
    if isinstance(val, bool):
        return val
    if isinstance(val, str):
        return val.strip().lower() in ("1", "true", "yes", "on")
    return bool(val)


def load_app_config() -> Config:
    r"""Load app-specific configuration with priority search order.

    Configuration keys:
    - log_level (str): Logging level ("DEBUG", "INFO", "WARNING", "ERROR"). Default: "INFO"
    - menu_store_dir (str): Directory of the JSON menu store. Default: the platform user data directory.
    - default_scope (str): Menu scope loaded on start. Default: "main"
    - require_root_icon (bool): If true, new root items need an icon before they can be synced. Default: True

    Search order:
    0. Environment variable (highest priority):
        - Set MENU_TREE_EDITOR_CONFIG to the full path of a config file to override all other locations.
    1. User config directory:
        - platformdirs user_config_dir("menu-tree-editor", "menu-tree-editor"), e.g.:
            - Linux:   ~/.config/menu-tree-editor/menu_tree_editor_config.json
            - macOS:   ~/Library/Application Support/menu-tree-editor/menu_tree_editor_config.json
            - Windows: %LOCALAPPDATA%\menu-tree-editor\menu-tree-editor\menu_tree_editor_config.json
    2. Project config directory (for developers):
        - config/menu_tree_editor_config.json in the project root.
    3. Current directory:
        - menu_tree_editor_config.json in the current working directory.
    4. If no config file is found, or if a key is missing, defaults are used.

    Returns:
        Config: Configuration object with app-specific settings.

    """
    project_root = find_project_root()
    env_config = os.environ.get("MENU_TREE_EDITOR_CONFIG")
    app_config_locations = [
        env_config or None,
        os.path.join(user_config_dir(APP_NAME, APP_AUTHOR), CONFIG_FILE_NAME),
        str(project_root / "config" / CONFIG_FILE_NAME) if project_root else None,
        CONFIG_FILE_NAME,
    ]

    config_file = next(
        (location for location in app_config_locations if location and os.path.exists(location)),
        None,
    )
    config = Config(app_name="menu_tree_editor", config_file=config_file)

    defaults = {
        "log_level": "INFO",
        "menu_store_dir": user_data_dir(APP_NAME, APP_AUTHOR),
        "default_scope": "main",
        "require_root_icon": True,
    }
    for key, value in defaults.items():
        if config.get_param(key) is None:
            config.set_param(key, value)

    return config


def setup_logger(config: Config) -> logging.Logger:
    """Set up logger with configurable level from config.

    Args:
        config (Config): Configuration object containing log_level setting.

    Returns:
        logging.Logger: Configured logger instance.

    """
    logger = logging.getLogger("menu_tree_editor")

    # Remove any existing handlers to avoid duplicates
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()

    log_level_str = config.get_param("log_level") or "INFO"
    log_level = getattr(logging, str(log_level_str).upper(), logging.INFO)

    logger.setLevel(log_level)
    console_handler.setLevel(log_level)

    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    return logger
