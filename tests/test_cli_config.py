"""Tests for CLI configuration module."""

import json

from cli.config import Config


def test_config_creates_default_file(tmp_path):
    """Test that config file is created with defaults if missing."""
    config_path = tmp_path / '.docstore' / 'config.json'
    config = Config(config_path)

    assert config_path.exists()

    assert config.data['timeout'] == 30
    assert config.data['max_retries'] == 3
    assert config.data['retry_backoff_multiplier'] == 2
    assert 'api_key' not in config.data


def test_config_loads_existing_file(tmp_path):
    """Test loading existing config file."""
    config_path = tmp_path / '.docstore' / 'config.json'
    config_path.parent.mkdir(parents=True)

    existing_data = {
        'api_key': 'dsk_test123',
        'server_host': 'docs.example.com',
        'server_port': 9000,
    }
    with open(config_path, 'w') as f:
        json.dump(existing_data, f)

    config = Config(config_path)

    assert config.data['api_key'] == 'dsk_test123'
    assert config.get_base_url() == 'http://docs.example.com:9000'
    assert config.data['timeout'] == 30


def test_config_save_and_get_api_key(temp_config):
    """Test saving and retrieving API key."""
    assert temp_config.get_api_key() is None

    temp_config.set_api_key('dsk_abc123')

    assert temp_config.get_api_key() == 'dsk_abc123'
    with open(temp_config.config_path, 'r') as f:
        assert json.load(f)['api_key'] == 'dsk_abc123'


def test_corrupt_config_is_backed_up(tmp_path):
    config_path = tmp_path / '.docstore' / 'config.json'
    config_path.parent.mkdir(parents=True)
    config_path.write_text('{not json')

    config = Config(config_path)

    assert config.get_api_key() is None
    assert config_path.with_suffix('.json.bak').read_text() == '{not json'


def test_get_retry_config(temp_config):
    assert temp_config.get_retry_config() == {'max_retries': 3, 'retry_backoff_multiplier': 2}
