"""
Configuration loading for GIS Layer Viewer.

This module handles loading and validation of the viewer configuration JSON file.

Constants:
    PROJECT_ROOT: Root directory of the project
    CONFIG_DIR: Configuration files directory
    OUTPUT_DIR: Output files directory

Functions:
    load_config: Load and validate viewer configuration from JSON
    load_viewer_settings: Map/interaction settings merged with defaults
    get_messages: Localized display strings for the configured language
"""

import json
from pathlib import Path
from typing import Dict, Optional

from core.exceptions import ConfigError

# Project paths
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = Path(__file__).parent
OUTPUT_DIR = PROJECT_ROOT / 'outputs'

REQUIRED_KEYS = ('settings', 'credentials', 'palette', 'styles', 'basemaps', 'messages')


def load_config(config_path: Optional[Path] = None) -> Dict:
    """
    Load viewer configuration from JSON file.

    Reads viewer_config.json (or the given path) and validates basic structure.

    Parameters:
    -----------
    config_path : Optional[Path]
        Alternative configuration file. Defaults to CONFIG_DIR/viewer_config.json

    Returns:
    --------
    Dict
        Configuration dictionary with settings, credentials, palette, styles,
        basemaps and messages keys

    Raises:
    -------
    FileNotFoundError
        If configuration file doesn't exist
    json.JSONDecodeError
        If configuration file contains invalid JSON
    ConfigError
        If required configuration keys are missing or the palette is empty
    """
    if config_path is None:
        config_path = CONFIG_DIR / 'viewer_config.json'

    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        config = json.load(f)

    for key in REQUIRED_KEYS:
        if key not in config:
            raise ConfigError(f"Configuration missing required '{key}' key")

    if not config['palette']:
        raise ConfigError("Configuration 'palette' must contain at least one color")

    return config


def load_viewer_settings(config: Dict = None) -> Dict:
    """
    Load map and interaction settings from configuration.

    Args:
        config: Configuration dictionary (optional, will load if not provided)

    Returns:
        Dictionary with viewer settings

    Defaults:
        - default_center: [30.0444, 31.2357]
        - default_zoom: 5
        - min_zoom: 2
        - max_zoom: 20
        - fit_padding: [50, 50]
        - hit_tolerance: 1e-9
        - language: 'en'
    """
    if config is None:
        config = load_config()

    defaults = {
        'default_center': [30.0444, 31.2357],
        'default_zoom': 5,
        'min_zoom': 2,
        'max_zoom': 20,
        'fit_padding': [50, 50],
        'hit_tolerance': 1e-9,
        'language': 'en'
    }

    return {**defaults, **config.get('settings', {})}


def get_messages(config: Dict, language: Optional[str] = None) -> Dict[str, str]:
    """
    Return the localized message table, falling back to English.

    Raises:
        ConfigError: If neither the requested language nor 'en' is defined
    """
    if language is None:
        language = load_viewer_settings(config)['language']

    messages = config['messages']
    if language in messages:
        return messages[language]
    if 'en' in messages:
        return messages['en']
    raise ConfigError(f"No messages defined for language '{language}'")
