"""Tests for configuration loading, credentials and logging setup."""

import json
import logging

import pytest

from config.config_loader import get_messages, load_config, load_viewer_settings
from core.auth import AuthSession, check_credentials
from core.exceptions import ConfigError
from utils.logger import get_logger, setup_logging


def test_bundled_config_is_complete(config):
    assert len(config['palette']) == 7
    assert [b['key'] for b in config['basemaps']] == ['satellite', 'street']
    assert set(config['messages']['en']) == set(config['messages']['ar'])


def test_settings_merge_defaults():
    settings = load_viewer_settings({'settings': {'default_zoom': 8}})

    assert settings['default_zoom'] == 8
    assert settings['max_zoom'] == 20
    assert settings['hit_tolerance'] == 1e-9


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / 'absent.json')


def test_missing_key_and_empty_palette(tmp_path, config):
    partial = tmp_path / 'partial.json'
    partial.write_text(json.dumps({k: v for k, v in config.items() if k != 'basemaps'}))
    empty_palette = tmp_path / 'empty.json'
    empty_palette.write_text(json.dumps({**config, 'palette': []}))

    with pytest.raises(ConfigError, match='basemaps'):
        load_config(partial)
    with pytest.raises(ConfigError, match='palette'):
        load_config(empty_palette)


def test_messages_fall_back_to_english(config):
    assert get_messages(config, 'fr') is config['messages']['en']
    assert get_messages(config, 'ar')['delete'] == 'حذف'


def test_check_credentials(config):
    assert check_credentials('gisuser', 'gispass', config['credentials'])
    assert not check_credentials('gisuser', 'GISPASS', config['credentials'])


def test_auth_session_signals_once(config):
    auth = AuthSession(config['credentials'])
    events = []
    auth.on_established(lambda: events.append('up'))
    auth.on_ended(lambda: events.append('down'))

    auth.login('gisuser', 'gispass')
    auth.login('gisuser', 'gispass')
    auth.logout()
    auth.logout()

    assert events == ['up', 'down']
    assert not auth.authenticated


def test_setup_logging_writes_debug_to_file(tmp_path):
    log_file = setup_logging(tmp_path)
    try:
        get_logger('tests').debug('debug line for the log file')
        for handler in logging.getLogger('gis_viewer').handlers:
            handler.flush()

        assert log_file.parent == tmp_path
        assert 'debug line for the log file' in log_file.read_text(encoding='utf-8')
    finally:
        root = logging.getLogger('gis_viewer')
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()


def test_verbose_logging_lowers_console_level(tmp_path):
    setup_logging(tmp_path)
    log_file = setup_logging(tmp_path, verbose=True)
    root = logging.getLogger('gis_viewer')
    try:
        levels = sorted(handler.level for handler in root.handlers)

        assert len(root.handlers) == 2
        assert levels == [logging.DEBUG, logging.DEBUG]
        assert log_file.exists()
    finally:
        for handler in list(root.handlers):
            handler.close()
        root.handlers.clear()
