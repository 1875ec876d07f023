"""Persistent user settings (display theme) stored in an INI file."""

import configparser
import logging
import os
from pathlib import Path

import click

logger = logging.getLogger(__name__)

THEMES = ('dark', 'light')
DEFAULT_THEME = 'dark'

_SECTION = 'display'
_FILENAME = 'settings.ini'


def config_dir() -> Path:
    """Directory holding settings.ini (TIFFMETA_CONFIG_DIR overrides)."""
    override = os.environ.get('TIFFMETA_CONFIG_DIR')
    if override:
        return Path(override)
    return Path(click.get_app_dir('tiffmeta'))


def settings_path() -> Path:
    return config_dir() / _FILENAME


def _read_config() -> configparser.ConfigParser:
    config = configparser.ConfigParser()
    try:
        config.read(settings_path(), encoding='utf-8')
    except (OSError, UnicodeDecodeError, configparser.Error) as e:
        logger.debug('Ignoring unreadable settings file: %s', e)
        return configparser.ConfigParser()
    return config


def get_theme() -> str:
    """Return the stored theme, falling back to dark on any problem."""
    theme = _read_config().get(_SECTION, 'theme', fallback=DEFAULT_THEME)
    return theme if theme in THEMES else DEFAULT_THEME


def set_theme(theme: str) -> str:
    if theme not in THEMES:
        raise ValueError(f'Unknown theme: {theme!r} (expected one of {THEMES})')
    config = _read_config()
    if not config.has_section(_SECTION):
        config.add_section(_SECTION)
    config.set(_SECTION, 'theme', theme)

    path = settings_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        config.write(f)
    return theme


def toggle_theme() -> str:
    """Flip between dark and light and persist the result."""
    return set_theme('light' if get_theme() == 'dark' else 'dark')
