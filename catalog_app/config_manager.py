# catalog_app/config_manager.py

import os
import logging
import argparse
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Dict, Any, Union

import platformdirs
import pytomlpp
from dotenv import load_dotenv, find_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigError

log = logging.getLogger(__name__)
DEFAULT_CONFIG_FILENAME = "config.toml"
DEFAULT_CATALOG_API_URL = "https://metadata.fankai.fr"
APP_NAME = "catalog_app"

class BaseProfileSettings(BaseModel):
    # Catalog API
    catalog_api_url: Optional[str] = Field(default=DEFAULT_CATALOG_API_URL, description="Base URL of the metadata catalog API.")
    api_timeout_seconds: Optional[float] = Field(default=15.0, gt=0.0, description="Per-request timeout (seconds).")
    api_rate_limit_delay: Optional[float] = Field(default=0.0, ge=0.0, description="Delay (seconds) between API calls.")
    api_retry_attempts: Optional[int] = Field(default=3, ge=0, description="Number of retry attempts for API calls.")
    api_retry_wait_seconds: Optional[float] = Field(default=1.0, ge=0.0, description="Initial backoff (seconds) between API retry attempts.")
    api_retry_max_wait_seconds: Optional[float] = Field(default=30.0, ge=0.0, description="Upper bound (seconds) for the exponential backoff.")

    # Matching
    score_penalty_factor: Optional[int] = Field(default=5, ge=1, description="Points lost per edit-distance unit (score = 100 - distance * factor).")
    score_acceptance_cutoff: Optional[int] = Field(default=50, description="Candidates must score strictly above this value.")
    year_match_bonus: Optional[int] = Field(default=20, ge=0, description="Bonus added when the local year equals the catalog year.")
    max_concurrent_resolutions: Optional[int] = Field(default=4, ge=1, description="Episode files resolved at the same time during a scan.")

    # Local files
    recursive: Optional[bool] = Field(default=True, description="Scan subdirectories of a series folder.")
    video_extensions: Optional[List[str]] = Field(default_factory=lambda: [".mkv", ".mp4", ".avi", ".mov", ".wmv", ".flv", ".webm", ".mpg", ".mpeg", ".m4v", ".ts", ".m2ts"], description="List of video file extensions.")
    ignore_patterns: Optional[List[str]] = Field(
        default_factory=lambda: ['.*', '*.partial', '*[sS]ample*'],
        description="List of glob patterns (e.g., '*.tmp', '.*') to ignore."
    )

    # Caching Options
    cache_enabled: Optional[bool] = Field(default=False, description="Enable persistent API response caching.")
    cache_directory: Optional[str] = Field(default=None, description="Custom cache directory (default: user cache dir).")
    cache_expire_seconds: Optional[int] = Field(default=86400, ge=0, description="Cache expiration time in seconds (default: 1 day).")

    # Logging Options
    log_file: Optional[str] = Field(default=None, description="Path to log file (e.g., catalog_app.log).")
    log_level: Optional[str] = Field(default='INFO', description="Logging level: DEBUG, INFO, WARNING, ERROR.")

    @field_validator('log_level', mode='before')
    @classmethod
    def check_log_level(cls, v: Any) -> Optional[str]:
        if v is not None and isinstance(v, str) and v.upper() not in ['DEBUG', 'INFO', 'WARNING', 'ERROR']:
            raise ValueError("log_level must be one of DEBUG, INFO, WARNING, ERROR")
        return v.upper() if isinstance(v, str) else None

    @field_validator('catalog_api_url', mode='before')
    @classmethod
    def check_catalog_api_url(cls, v: Any) -> Optional[str]:
        if v is None: return None
        if not isinstance(v, str) or not v.lower().startswith(('http://', 'https://')):
            raise ValueError("catalog_api_url must be an http(s) URL")
        return v.rstrip('/')

    @field_validator('video_extensions', mode='before')
    @classmethod
    def check_video_extensions(cls, v: Any) -> Optional[List[str]]:
        if v is None: return None
        items = v.split(',') if isinstance(v, str) else v
        if not isinstance(items, list):
            raise ValueError("video_extensions must be a list or comma-separated string")
        cleaned = [str(ext).strip().lower() for ext in items if str(ext).strip()]
        return [ext if ext.startswith('.') else f".{ext}" for ext in cleaned]


class DefaultSettings(BaseProfileSettings):
    pass

class RootConfigModel(BaseModel):
    default: DefaultSettings = Field(default_factory=DefaultSettings)
    model_config = {'extra': 'allow'}


class ConfigManager:
    def __init__(self, config_path_override: Optional[Path] = None):
        self.config_path = self._resolve_config_path(config_path_override)
        self._config = self._load_config()
        self._env_values = self._load_env_values()
        log.debug(f"Config path used: {self.config_path}")

    def _resolve_config_path(self, config_path_override: Optional[Path]) -> Path:
        if config_path_override:
            p = Path(config_path_override)
            log.debug(f"Using explicit config path target: {p.resolve()}")
            return p.resolve()

        cwd_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
        if cwd_path.is_file():
            log.debug(f"Found config file in current directory: {cwd_path}")
            return cwd_path.resolve()

        try:
            user_dir_str = platformdirs.user_config_dir(APP_NAME, ensure_exists=False)
            user_config_path = Path(user_dir_str) / DEFAULT_CONFIG_FILENAME
            if user_config_path.is_file():
                log.debug(f"Found config file in user config directory: {user_config_path}")
                return user_config_path.resolve()
        except OSError as e:
            log.warning(f"Could not access or check user config directory via platformdirs: {e}")

        proj_path = Path(__file__).parent.parent.resolve() / DEFAULT_CONFIG_FILENAME
        if proj_path.is_file():
            log.debug(f"Found config file in project directory: {proj_path}")
            return proj_path

        log.debug(f"No config file found. Defaulting to CWD: {cwd_path.resolve()}")
        return cwd_path.resolve()

    def _load_config(self) -> Dict[str, Any]:
        if not self.config_path.is_file():
            log.info(f"Config file not found at '{self.config_path}'. Using internal defaults.")
            return RootConfigModel().model_dump(exclude_unset=False, by_alias=False)

        try:
            raw_content = self.config_path.read_text(encoding='utf-8')
        except OSError as e_os:
            raise ConfigError(f"Failed to read config file '{self.config_path}': {e_os}")
        if not raw_content.strip():
            log.warning(f"Config file '{self.config_path}' is empty. Using internal defaults.")
            return RootConfigModel().model_dump(exclude_unset=False, by_alias=False)
        try:
            cfg_dict = pytomlpp.loads(raw_content)
            log.info(f"Loaded configuration from '{self.config_path}'")
        except pytomlpp.DecodeError as e_toml:
            raise ConfigError(f"Failed to parse TOML config '{self.config_path}': {e_toml}")

        try:
            validated_config = RootConfigModel.model_validate(cfg_dict)
        except ValidationError as e_val:
            error_msgs = [f"  - Field `{' -> '.join(map(str, err['loc']))}`: {err['msg']}" for err in e_val.errors()]
            error_summary = f"Config file '{self.config_path}' validation failed:\n" + "\n".join(error_msgs)
            log.error(error_summary)
            raise ConfigError(error_summary) from e_val

        # Named profiles are free-form tables; validate them against the same schema.
        for profile_name, profile_data in cfg_dict.items():
            if profile_name == 'default' or not isinstance(profile_data, dict):
                continue
            try:
                BaseProfileSettings.model_validate(profile_data)
            except ValidationError as e_val:
                raise ConfigError(f"Profile '{profile_name}' in '{self.config_path}' is invalid: {e_val}") from e_val
        log.debug("Config validation successful.")
        return validated_config.model_dump(exclude_unset=False, by_alias=False)

    def _load_env_values(self) -> Dict[str, Optional[str]]:
        values: Dict[str, Optional[str]] = {}
        env_path: Union[str, Path, None] = find_dotenv(usecwd=True)
        if env_path:
            log.debug(f"Loading environment variables from: {env_path}")
            load_dotenv(dotenv_path=env_path)
        else:
            log.debug(".env file not found by find_dotenv. Checking os.getenv directly.")

        values['catalog_api_key'] = os.getenv("CATALOG_API_KEY")
        values['catalog_api_url'] = os.getenv("CATALOG_API_URL")
        if values['catalog_api_key']:
            log.info("Loaded catalog API key from environment.")
        return values

    def get_value(self, key: str, profile: str = 'default', command_line_value: Any = None, default_value: Any = None) -> Any:
        if command_line_value is not None:
            return command_line_value

        if key == 'catalog_api_url' and self._env_values.get('catalog_api_url'):
            return self._env_values['catalog_api_url'].rstrip('/')

        profile_settings_dict = self._config.get(profile, {})
        if isinstance(profile_settings_dict, dict) and profile_settings_dict.get(key) is not None:
            return profile_settings_dict[key]

        default_settings_dict = self._config.get('default', {})
        if isinstance(default_settings_dict, dict) and default_settings_dict.get(key) is not None:
            return default_settings_dict[key]

        if default_value is None and key in BaseProfileSettings.model_fields:
            field_info = BaseProfileSettings.model_fields[key]
            if field_info.default_factory is not None:
                return field_info.default_factory()
            return field_info.default

        return default_value

    def get_api_key(self) -> Optional[str]:
        return self._env_values.get('catalog_api_key')


class ConfigHelper:
    def __init__(self, config_manager: ConfigManager, args_ns: argparse.Namespace):
        self.manager = config_manager
        self.args = args_ns
        self.profile = getattr(args_ns, 'profile', 'default') or 'default'

    def __call__(self, key: str, default_value: Any = None, arg_value: Any = None) -> Any:
        cmd_line_val = arg_value if arg_value is not None else getattr(self.args, key, None)
        return self.manager.get_value(key, self.profile, cmd_line_val, default_value)

    def get_api_key(self) -> Optional[str]:
        return self.manager.get_api_key()

    def get_list(self, key: str, default_value: Optional[List[Any]] = None) -> List[Any]:
        val = self(key, default_value)
        if isinstance(val, list):
            return val
        if isinstance(val, str):
            return [item.strip() for item in val.split(',') if item.strip()]
        return default_value if isinstance(default_value, list) else []


@dataclass(frozen=True)
class ResolverConfig:
    """Matching constants handed to resolvers at construction."""
    penalty_factor: int = 5
    acceptance_cutoff: int = 50
    year_match_bonus: int = 20

    @classmethod
    def from_config(cls, cfg_helper: ConfigHelper) -> 'ResolverConfig':
        return cls(
            penalty_factor=int(cfg_helper('score_penalty_factor', 5)),
            acceptance_cutoff=int(cfg_helper('score_acceptance_cutoff', 50)),
            year_match_bonus=int(cfg_helper('year_match_bonus', 20)),
        )
