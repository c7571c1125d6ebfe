import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from review_errors import ConfigurationError

DEFAULT_MODEL = "command-a-03-2025"
DEFAULT_TEMPERATURE = 0.3
DEFAULT_GITHUB_TIMEOUT = 30.0


@dataclass(frozen=True)
class Settings:
    cohere_api_key: str
    cohere_model: str = DEFAULT_MODEL
    temperature: float = DEFAULT_TEMPERATURE
    github_token: Optional[str] = None
    github_timeout: float = DEFAULT_GITHUB_TIMEOUT
    log_level: str = "INFO"


def _float_env(environ, name, default):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}.")


def load_settings(environ=None, use_dotenv=True) -> Settings:
    """Read settings from the environment (and a `.env` file, if present).

    COHERE_API_KEY is mandatory; everything else has a default.
    """
    if use_dotenv:
        load_dotenv()
    if environ is None:
        environ = os.environ

    api_key = (environ.get("COHERE_API_KEY") or "").strip()
    if not api_key:
        raise ConfigurationError(
            "Cohere API key not found! Please add it to your `.env` file as COHERE_API_KEY."
        )

    return Settings(
        cohere_api_key=api_key,
        cohere_model=environ.get("COHERE_MODEL") or DEFAULT_MODEL,
        temperature=_float_env(environ, "COHERE_TEMPERATURE", DEFAULT_TEMPERATURE),
        github_token=environ.get("GITHUB_TOKEN") or None,
        github_timeout=_float_env(environ, "GITHUB_TIMEOUT", DEFAULT_GITHUB_TIMEOUT),
        log_level=(environ.get("LOG_LEVEL") or "INFO").upper(),
    )
