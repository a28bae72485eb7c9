import os
from functools import lru_cache

from dotenv import load_dotenv

from resume_scanner.models.settings import AIServiceSettings, AppSettings, ProcessingSettings
from resume_scanner.utils.exceptions import ConfigurationError


def _env_number(key: str, default, cast):
    raw = os.getenv(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Environment variable {key} must be a number", config_key=key, config_value=raw, cause=e)


def load_settings() -> AppSettings:
    """Build settings from the environment (and a .env file if present)."""
    load_dotenv()

    ai = AIServiceSettings(
        endpoint=os.getenv("AZURE_OPENAI_ENDPOINT", ""),
        api_key=os.getenv("AZURE_OPENAI_API_KEY", ""),
        deployment_name=os.getenv("AZURE_OPENAI_DEPLOYMENT", "gpt-4o-mini"),
        api_version=os.getenv("AZURE_OPENAI_API_VERSION", "2024-02-01"),
        max_prompt_length=_env_number("AI_MAX_PROMPT_LENGTH", 50000, int),
        timeout=_env_number("AI_TIMEOUT", 120.0, float),
        retry_attempts=_env_number("AI_RETRY_ATTEMPTS", 3, int),
        retry_delay=_env_number("AI_RETRY_DELAY", 1.0, float),
    )
    processing = ProcessingSettings(
        max_concurrent=_env_number("MAX_CONCURRENT", 5, int),
    )
    return AppSettings(
        resume_folder=os.getenv("RESUME_FOLDER", "./data/resumes"),
        ai=ai,
        processing=processing,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()
