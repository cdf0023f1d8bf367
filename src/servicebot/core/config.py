"""
Application configuration with layered loading.

Configuration precedence (highest to lowest):
1. Environment variables
2. config.yml values
3. Default values defined here

This allows for flexible configuration across different environments
while maintaining sensible defaults.
"""
import os
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field
from dotenv import load_dotenv

# Load .env file first (lowest priority, will be overridden by config.yml and env vars)
load_dotenv()

# Setup basic logging for config loading
logger = logging.getLogger(__name__)


def _find_project_root() -> Path:
    """Find the project root directory."""
    current = Path(__file__).resolve()
    for parent in current.parents:
        if (parent / "config.example.yml").exists() or (parent / "pyproject.toml").exists():
            return parent
    return Path(os.getenv("SERVICEBOT_ROOT", os.getcwd()))


def _load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load configuration from YAML file if it exists."""
    if not config_path.exists():
        logger.debug(f"Config file not found: {config_path}")
        return {}

    try:
        import yaml
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f) or {}
        logger.info(f"Loaded configuration from {config_path}")
        return config
    except Exception as e:
        logger.error(f"Error loading config file {config_path}: {e}")
        return {}


def _get_nested(d: Dict, *keys, default=None):
    """Safely get a nested dictionary value."""
    for key in keys:
        if isinstance(d, dict):
            d = d.get(key, default)
        else:
            return default
    return d if d is not None else default


def _env_or_yaml(env_key: str, yaml_config: Dict, *yaml_keys, default=None):
    """Get value from environment variable, falling back to YAML config, then default."""
    env_value = os.getenv(env_key)
    if env_value is not None:
        return env_value

    yaml_value = _get_nested(yaml_config, *yaml_keys)
    if yaml_value is not None:
        return yaml_value

    return default


def _as_bool(value: Any) -> bool:
    """Interpret env/yaml flag values."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")


def _as_list(value: Any) -> List[str]:
    """Accept either a YAML list or a comma-separated env string."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if str(v).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


# Find project root and load YAML config
PROJECT_ROOT = _find_project_root()
YAML_CONFIG = _load_yaml_config(
    Path(os.getenv("SERVICEBOT_CONFIG_FILE", str(PROJECT_ROOT / "config.yml")))
)

_paths_root = _env_or_yaml("SERVICEBOT_ROOT", YAML_CONFIG, "paths", "root", default=str(PROJECT_ROOT))
_paths_data = _env_or_yaml("SERVICEBOT_DATA_PATH", YAML_CONFIG, "paths", "data", default=f"{_paths_root}/data")
_paths_logs = _env_or_yaml("SERVICEBOT_LOGS_PATH", YAML_CONFIG, "paths", "logs", default=f"{_paths_root}/logs")
_max_context_turns = _get_nested(YAML_CONFIG, "llm", "max_context_turns", default=None)


class PathsConfig(BaseModel):
    """Path configuration."""
    root: Path = Path(_paths_root)
    data: Path = Path(_paths_data)
    logs: Path = Path(_paths_logs)


class LLMConfig(BaseModel):
    """Chat completion backend (any OpenAI-compatible endpoint)."""
    base_url: Optional[str] = _env_or_yaml("LLM_BASE_URL", YAML_CONFIG, "llm", "base_url", default=None)
    api_key: str = _env_or_yaml("OPENAI_API_KEY", YAML_CONFIG, "llm", "api_key", default="not-needed")
    model_name: str = _env_or_yaml("LLM_MODEL_NAME", YAML_CONFIG, "llm", "model_name", default="gpt-3.5-turbo")
    temperature: float = float(_env_or_yaml("LLM_TEMPERATURE", YAML_CONFIG, "llm", "temperature", default=0.7))
    system_prompt: str = _get_nested(
        YAML_CONFIG, "llm", "system_prompt",
        default="You are a friendly and helpful assistant.",
    )
    max_context_turns: Optional[int] = int(_max_context_turns) if _max_context_turns else None
    max_tokens: int = int(_get_nested(YAML_CONFIG, "llm", "max_tokens", default=4096))
    response_max_tokens: int = int(_get_nested(YAML_CONFIG, "llm", "response_max_tokens", default=500))


class ImagesConfig(BaseModel):
    """Image generation backend."""
    size: str = _get_nested(YAML_CONFIG, "images", "size", default="512x512")


class PredictionsConfig(BaseModel):
    """Request-style prediction backend (Replicate-compatible)."""
    base_url: str = _env_or_yaml("PREDICTIONS_BASE_URL", YAML_CONFIG, "predictions", "base_url", default="https://api.replicate.com/v1")
    api_token: str = _env_or_yaml("REPLICATE_API_TOKEN", YAML_CONFIG, "predictions", "api_token", default="")
    poll_interval: float = float(_get_nested(YAML_CONFIG, "predictions", "poll_interval", default=0.5))
    timeout: float = float(_env_or_yaml("PREDICTIONS_TIMEOUT", YAML_CONFIG, "predictions", "timeout", default=120.0))


class AgentsConfig(BaseModel):
    """Agents API configuration."""
    url: str = _env_or_yaml("AGENTS_API_URL", YAML_CONFIG, "agents", "url", default="http://localhost:8000")
    actor: str = _get_nested(YAML_CONFIG, "agents", "actor", default="assistant")
    timeout: float = float(_get_nested(YAML_CONFIG, "agents", "timeout", default=120.0))


class SpeechConfig(BaseModel):
    """Speech-to-text and text-to-speech models."""
    transcription_model: str = _get_nested(YAML_CONFIG, "speech", "transcription_model", default="whisper-1")
    tts_model: str = _get_nested(YAML_CONFIG, "speech", "tts_model", default="tts-1")


class TelegramConfig(BaseModel):
    """Telegram bot configuration."""
    bot_token: str = _env_or_yaml("TELEGRAM_BOT_TOKEN", YAML_CONFIG, "telegram", "bot_token", default="")
    allowed_user_ids: List[str] = _as_list(
        _env_or_yaml("TELEGRAM_ALLOWED_USERS", YAML_CONFIG, "telegram", "allowed_user_ids", default="")
    )


class SessionsConfig(BaseModel):
    """Session store configuration."""
    backend: str = _env_or_yaml("SERVICEBOT_SESSION_BACKEND", YAML_CONFIG, "sessions", "backend", default="memory")
    path: Path = Path(_env_or_yaml(
        "SERVICEBOT_SESSION_PATH", YAML_CONFIG, "sessions", "path", default=f"{_paths_data}/sessions.db"
    ))


class RegistryConfig(BaseModel):
    """Service catalog location."""
    services_file: Path = Path(_env_or_yaml(
        "SERVICEBOT_SERVICES_FILE", YAML_CONFIG, "registry", "services_file", default=f"{_paths_root}/services.yml"
    ))


class AuthConfig(BaseModel):
    """Authentication configuration."""
    api_key: Optional[str] = _env_or_yaml("SERVICEBOT_API_KEY", YAML_CONFIG, "auth", "api_key", default=None)


class LoggingConfig(BaseModel):
    """Logging configuration."""
    level: str = _env_or_yaml("SERVICEBOT_LOG_LEVEL", YAML_CONFIG, "logging", "level", default="INFO")
    format: str = _env_or_yaml(
        "SERVICEBOT_LOG_FORMAT", YAML_CONFIG, "logging", "format",
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


class FeaturesConfig(BaseModel):
    """Feature flags."""
    voice_transcription: bool = _as_bool(_get_nested(YAML_CONFIG, "features", "voice_transcription", default=True))
    auto_speak: bool = _as_bool(_get_nested(YAML_CONFIG, "features", "auto_speak", default=True))


class Settings(BaseModel):
    """
    Application settings with layered configuration.

    Configuration is loaded from (in order of precedence):
    1. Environment variables
    2. config.yml
    3. Default values
    """

    paths: PathsConfig = Field(default_factory=PathsConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)
    images: ImagesConfig = Field(default_factory=ImagesConfig)
    predictions: PredictionsConfig = Field(default_factory=PredictionsConfig)
    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    speech: SpeechConfig = Field(default_factory=SpeechConfig)
    telegram: TelegramConfig = Field(default_factory=TelegramConfig)
    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    features: FeaturesConfig = Field(default_factory=FeaturesConfig)

    @property
    def data_path(self) -> Path:
        return self.paths.data

    @property
    def logs_path(self) -> Path:
        return self.paths.logs

    @property
    def max_context_entries(self) -> Optional[int]:
        """Context holds a question and an answer per turn; None keeps all of it."""
        if not self.llm.max_context_turns:
            return None
        return self.llm.max_context_turns * 2


settings = Settings()
