# tests/test_config_manager.py

import argparse
import logging
import pytest

from catalog_app import config_manager
from catalog_app.config_manager import ConfigManager, ConfigHelper, ResolverConfig
from catalog_app.exceptions import ConfigError

DEFAULT_CONFIG_FILENAME = config_manager.DEFAULT_CONFIG_FILENAME

VALID_TOML = """
[default]
score_acceptance_cutoff = 60
log_level = "debug"
video_extensions = "mkv, .MP4"

[strict]
score_acceptance_cutoff = 75
year_match_bonus = 15
"""

# --- Fixtures ---

@pytest.fixture(autouse=True)
def isolated_environment(mocker, monkeypatch, tmp_path):
    """Keeps real user config, .env files and environment variables out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CATALOG_API_KEY", raising=False)
    monkeypatch.delenv("CATALOG_API_URL", raising=False)
    mocker.patch('catalog_app.config_manager.find_dotenv', return_value="")
    mocker.patch('catalog_app.config_manager.platformdirs.user_config_dir', return_value=str(tmp_path / "user_config"))
    mocker.patch('catalog_app.config_manager.__file__', str(tmp_path / "fake_project" / "catalog_app" / "config_manager.py"))

@pytest.fixture
def write_config(tmp_path):
    def _write(content, name=DEFAULT_CONFIG_FILENAME):
        path = tmp_path / name
        path.write_text(content, encoding='utf-8')
        return path
    return _write


# --- Loading ---

def test_missing_file_uses_defaults(caplog):
    caplog.set_level(logging.INFO, logger="catalog_app.config_manager")
    manager = ConfigManager()
    assert "Using internal defaults" in caplog.text
    assert manager.get_value('score_acceptance_cutoff') == 50
    assert manager.get_value('catalog_api_url') == config_manager.DEFAULT_CATALOG_API_URL
    assert manager.get_value('ignore_patterns') == ['.*', '*.partial', '*[sS]ample*']

def test_cwd_config_is_found(write_config, tmp_path):
    write_config(VALID_TOML)
    manager = ConfigManager()
    assert manager.config_path == (tmp_path / DEFAULT_CONFIG_FILENAME).resolve()
    assert manager.get_value('score_acceptance_cutoff') == 60
    assert manager.get_value('log_level') == 'DEBUG'
    assert manager.get_value('video_extensions') == ['.mkv', '.mp4']

def test_explicit_path_overrides_search(write_config, tmp_path):
    write_config("[default]\nscore_acceptance_cutoff = 10\n")
    explicit = write_config("[default]\nscore_acceptance_cutoff = 20\n", name="other.toml")
    manager = ConfigManager(config_path_override=explicit)
    assert manager.get_value('score_acceptance_cutoff') == 20

def test_user_config_dir_is_searched(tmp_path):
    user_dir = tmp_path / "user_config"
    user_dir.mkdir()
    (user_dir / DEFAULT_CONFIG_FILENAME).write_text("[default]\nyear_match_bonus = 5\n", encoding='utf-8')
    manager = ConfigManager()
    assert manager.get_value('year_match_bonus') == 5

def test_empty_file_uses_defaults(write_config):
    write_config("   \n")
    assert ConfigManager().get_value('year_match_bonus') == 20

@pytest.mark.parametrize("content, message", [
    ("[default\nbroken", "Failed to parse TOML"),
    ("[default]\nlog_level = 'LOUD'\n", "validation failed"),
    ("[default]\ncatalog_api_url = 'ftp://example.org'\n", "validation failed"),
    ("[default]\nmax_concurrent_resolutions = 0\n", "validation failed"),
    ("[default]\n[fast]\napi_timeout_seconds = -1\n", "Profile 'fast'"),
])
def test_invalid_files_raise_config_error(write_config, content, message):
    write_config(content)
    with pytest.raises(ConfigError, match=message):
        ConfigManager()


# --- Precedence ---

def test_profile_overrides_default(write_config):
    write_config(VALID_TOML)
    manager = ConfigManager()
    assert manager.get_value('score_acceptance_cutoff', profile='strict') == 75
    assert manager.get_value('log_level', profile='strict') == 'DEBUG' # Falls back to [default]
    assert manager.get_value('score_penalty_factor', profile='strict') == 5 # Falls back to model default

def test_command_line_wins(write_config):
    write_config(VALID_TOML)
    manager = ConfigManager()
    assert manager.get_value('score_acceptance_cutoff', profile='strict', command_line_value=90) == 90

def test_environment_values(monkeypatch, write_config):
    write_config(VALID_TOML)
    monkeypatch.setenv("CATALOG_API_KEY", "abc123")
    monkeypatch.setenv("CATALOG_API_URL", "http://localhost:9000/")
    manager = ConfigManager()
    assert manager.get_api_key() == "abc123"
    assert manager.get_value('catalog_api_url') == "http://localhost:9000"


# --- ConfigHelper and ResolverConfig ---

def test_config_helper_reads_args_then_profile(write_config):
    write_config(VALID_TOML)
    args = argparse.Namespace(profile='strict', recursive=False, log_level=None)
    cfg = ConfigHelper(ConfigManager(), args)
    assert cfg('recursive', True) is False
    assert cfg('log_level', 'INFO') == 'DEBUG'
    assert cfg('score_acceptance_cutoff') == 75
    assert cfg.get_list('video_extensions') == ['.mkv', '.mp4']

def test_config_helper_defaults_profile(write_config):
    cfg = ConfigHelper(ConfigManager(), argparse.Namespace(profile=None))
    assert cfg.profile == 'default'

def test_resolver_config_from_config(write_config):
    write_config(VALID_TOML)
    cfg = ConfigHelper(ConfigManager(), argparse.Namespace(profile='strict'))
    resolver_config = ResolverConfig.from_config(cfg)
    assert resolver_config == ResolverConfig(penalty_factor=5, acceptance_cutoff=75, year_match_bonus=15)

def test_resolver_config_is_frozen():
    with pytest.raises(AttributeError):
        ResolverConfig().penalty_factor = 10
