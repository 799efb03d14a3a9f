"""
Runtime configuration for the prescription service.

All values come from environment variables (a local .env file is loaded
first). Tests build Settings directly instead of touching the environment.
"""
import os
from dataclasses import dataclass, field
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

DEFAULT_BHASHINI_CALLBACK_URL = "https://dhruva-api.bhashini.gov.in/services/inference/pipeline"
DEFAULT_ULCA_PIPELINE_URL = "https://meity-auth.ulcacontrib.org/ulca/apis/v0/model/getModelsPipeline"
DEFAULT_ULCA_PIPELINE_ID = "64392f96daac500b55c543cd"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return float(value)


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


def _env_list(name: str, default: str) -> tuple[str, ...]:
    raw = os.getenv(name, default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    # LLM inference endpoint
    aws_region: str = "ap-south-1"
    default_model: str = "nova-lite"
    llm_max_tokens: int = 2000
    llm_timeout_seconds: float = 30.0

    # Translation / speech backend
    bhashini_callback_url: str = DEFAULT_BHASHINI_CALLBACK_URL
    bhashini_api_key: str = ""
    bhashini_user_id: str = ""
    ulca_pipeline_url: str = DEFAULT_ULCA_PIPELINE_URL
    ulca_api_key: str = ""
    ulca_user_id: str = ""
    ulca_pipeline_id: str = DEFAULT_ULCA_PIPELINE_ID
    translation_timeout_seconds: float = 15.0
    translation_delay_seconds: float = 0.2
    translation_chunk_size: int = 350
    pipeline_cache_ttl_seconds: float = 3600.0
    source_language: str = "en"

    # Patient database
    db_path: str = "./data/patients.db"

    # HTTP / logging
    log_json: bool = True
    log_level: str = "INFO"
    cors_origins: tuple[str, ...] = field(default_factory=lambda: ("http://localhost:3000",))


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        aws_region=os.getenv("AWS_REGION", "ap-south-1"),
        default_model=os.getenv("LLM_DEFAULT_MODEL", "nova-lite"),
        llm_max_tokens=_env_int("LLM_MAX_TOKENS", 2000),
        llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 30.0),
        bhashini_callback_url=os.getenv("BHASHINI_CALLBACK_URL", DEFAULT_BHASHINI_CALLBACK_URL),
        bhashini_api_key=os.getenv("BHASHINI_API_KEY", ""),
        bhashini_user_id=os.getenv("BHASHINI_USER_ID", ""),
        ulca_pipeline_url=os.getenv("ULCA_PIPELINE_URL", DEFAULT_ULCA_PIPELINE_URL),
        ulca_api_key=os.getenv("ULCA_API_KEY", ""),
        ulca_user_id=os.getenv("ULCA_USER_ID", ""),
        ulca_pipeline_id=os.getenv("ULCA_PIPELINE_ID", DEFAULT_ULCA_PIPELINE_ID),
        translation_timeout_seconds=_env_float("TRANSLATION_TIMEOUT_SECONDS", 15.0),
        translation_delay_seconds=_env_float("TRANSLATION_DELAY_SECONDS", 0.2),
        translation_chunk_size=max(1, _env_int("TRANSLATION_CHUNK_SIZE", 350)),
        pipeline_cache_ttl_seconds=_env_float("PIPELINE_CACHE_TTL_SECONDS", 3600.0),
        source_language=os.getenv("SOURCE_LANGUAGE", "en"),
        db_path=os.getenv("DB_PATH", "./data/patients.db"),
        log_json=_env_bool("LOG_JSON", True),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        cors_origins=_env_list("CORS_ORIGINS", "http://localhost:3000"),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read once."""
    return load_settings()
