# --- FILE: config.py ---
import os
import logging
import threading
from typing import Any, Optional, Literal

from dotenv import load_dotenv, find_dotenv
from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

# --- Constants ---
DEFAULT_PORT = 3978
DEFAULT_LUIS_SLOT = "production"


class AppSettings(BaseSettings):
    app_env: Literal["development", "production"] = Field("development", alias="APP_ENV")
    port: int = Field(DEFAULT_PORT, alias="PORT", gt=0, lt=65536)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field("INFO", alias="LOG_LEVEL")
    log_json_file: Optional[str] = Field(None, alias="LOG_JSON_FILE")

    # API Endpoints
    bot_api_messages_endpoint: str = Field("/api/messages", alias="BOT_API_MESSAGES_ENDPOINT")
    bot_api_healthcheck_endpoint: str = Field("/api/healthz", alias="BOT_API_HEALTHCHECK_ENDPOINT")

    MicrosoftAppId: Optional[str] = Field(None, alias="MICROSOFT_APP_ID")
    MicrosoftAppPassword: Optional[str] = Field(None, alias="MICROSOFT_APP_PASSWORD")

    # State storage
    memory_type: Literal["memory", "sqlite", "redis"] = Field("memory", alias="MEMORY_TYPE")
    state_db_path: str = Field("db/state.sqlite", alias="STATE_DB_PATH")
    redis_url: Optional[str] = Field(None, alias="REDIS_URL")
    redis_host: Optional[str] = Field("localhost", alias="REDIS_HOST")
    redis_port: Optional[int] = Field(6379, alias="REDIS_PORT")
    redis_password: Optional[str] = Field(None, alias="REDIS_PASSWORD")
    redis_db: int = Field(0, alias="REDIS_DB")
    redis_ssl_enabled: bool = Field(False, alias="REDIS_SSL_ENABLED")
    redis_prefix: str = Field("guessbot:", alias="REDIS_PREFIX")

    # Intent recognition
    intent_recognizer: Literal["none", "keyword", "luis"] = Field("keyword", alias="INTENT_RECOGNIZER")
    luis_app_id: Optional[str] = Field(None, alias="LUIS_APP_ID")
    luis_api_key: Optional[str] = Field(None, alias="LUIS_API_KEY")
    luis_endpoint: Optional[str] = Field(None, alias="LUIS_ENDPOINT")
    luis_slot: str = Field(DEFAULT_LUIS_SLOT, alias="LUIS_SLOT")
    luis_timeout_seconds: float = Field(10.0, alias="LUIS_TIMEOUT_SECONDS", gt=0)

    # Game presentation
    welcome_card_path: Optional[str] = Field(None, alias="WELCOME_CARD_PATH")
    show_menu_after_game: bool = Field(True, alias="SHOW_MENU_AFTER_GAME")

    @field_validator('luis_app_id', 'luis_api_key', 'luis_endpoint', 'redis_url', mode='before')
    def _blank_to_none(cls, v: Optional[Any]) -> Optional[Any]:
        if v is not None and isinstance(v, str) and not v.strip(): return None
        return v

    @model_validator(mode='after')
    def check_redis_config_if_needed(self) -> 'AppSettings':
        if self.memory_type == "redis":
            if self.redis_url:
                log.info(f"Using REDIS_URL for Redis connection: {self.redis_url}")
            elif not self.redis_host: raise ValueError("REDIS_HOST must be set if REDIS_URL is not provided and memory_type is 'redis'.")
        return self

    @model_validator(mode='after')
    def check_luis_config_if_needed(self) -> 'AppSettings':
        if self.intent_recognizer == "luis":
            luis_fields = {'luis_app_id': self.luis_app_id, 'luis_api_key': self.luis_api_key, 'luis_endpoint': self.luis_endpoint}
            missing_fields = []
            for field_name, value in luis_fields.items():
                if not value:
                    pydantic_field = type(self).model_fields.get(field_name)
                    env_var_name = pydantic_field.alias if pydantic_field and pydantic_field.alias else field_name.upper()
                    missing_fields.append(f"{field_name} (env var: {env_var_name})")
            if missing_fields:
                error_message = f"LUIS configuration incomplete: INTENT_RECOGNIZER is 'luis' but values are missing for: {', '.join(missing_fields)}."
                log.error(error_message)
                raise ValueError(error_message)
        return self

    model_config = SettingsConfigDict(
        env_file=find_dotenv(),
        env_file_encoding='utf-8',
        extra='ignore',
        case_sensitive=False,
        populate_by_name=True,
    )


class Config:
    """
    Main configuration class that wraps AppSettings and provides a unified interface
    for accessing the bot's configuration values.
    """

    def __init__(self, env_file: Optional[str] = None):
        # An explicit env_file (e.g. a test .env) overrides whatever AppSettings found.
        if env_file and os.path.exists(env_file):
            if load_dotenv(env_file, override=True):
                log.info(f"Config explicitly loaded .env file: {env_file}")

        try:
            self.settings = AppSettings()
            log.info("AppSettings initialized within Config object.")
        except ValidationError as e:
            log.error(f"AppSettings validation failed within Config: {e}")
            raise

        self._log_config_summary()

    def _log_config_summary(self):
        """Log a summary of the loaded configuration."""
        log.info("=== Configuration Summary ===")
        log.info(f"Environment: {self.settings.app_env}")
        log.info(f"Port: {self.settings.port}")
        log.info(f"Log Level: {self.settings.log_level}")
        log.info(f"Memory Type: {self.settings.memory_type}")
        if self.settings.memory_type == "sqlite":
            log.info(f"Database: {self.settings.state_db_path}")
        log.info(f"Intent Recognizer: {self.settings.intent_recognizer}")
        log.info("=============================")


# Global configuration instance
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config(env_file: Optional[str] = None, force_reload: bool = False) -> Config:
    """
    Get the global configuration instance (singleton pattern).

    Args:
        env_file: Optional path to a .env file to load (only used on first initialization)
        force_reload: Force reloading the configuration (useful for testing)

    Returns:
        The global Config instance
    """
    global _config_instance

    with _config_lock:
        if _config_instance is None or force_reload:
            try:
                _config_instance = Config(env_file=env_file)
                log.info("Global configuration instance initialized")
            except Exception as e:
                log.error(f"Failed to initialize global configuration: {e}")
                raise

        return _config_instance


def reload_config(env_file: Optional[str] = None) -> Config:
    """Force reload the global configuration instance."""
    return get_config(env_file=env_file, force_reload=True)
