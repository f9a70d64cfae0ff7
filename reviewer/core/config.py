import logging
import os

from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

# Hard cap to prevent abuse of the completion endpoint from a CI runner
MAX_FIXES_CAP = 10
DEFAULT_MAX_FIXES = 5
DEFAULT_FIX_TIMEOUT = 120.0


class ConfigError(RuntimeError):
    """Raised when required run configuration is missing or inconsistent."""


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _number_or_default(name: str, value, cast, default):
    """Parse a numeric setting; an empty value means unset, junk falls back with a warning."""
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        return cast(value)
    except (TypeError, ValueError):
        logger.warning("Invalid %s=%r, using default %s", name, value, default)
        return default


def clamp_max_fixes(value: int) -> int:
    return max(0, min(value, MAX_FIXES_CAP))


_WORKDIR = os.getenv("WORKDIR", "/tmp/ai-review")


class Settings(BaseModel):
    # Numeric settings come in as raw env strings and are parsed by the validators
    model_config = ConfigDict(validate_default=True)

    WORKDIR: str = _WORKDIR

    # Stage documents
    FINDINGS_FILE: str = os.getenv("FINDINGS_FILE", f"{_WORKDIR}/findings.json")
    FIXES_FILE: str = os.getenv("FIXES_FILE", f"{_WORKDIR}/fixes.json")
    CHANGED_FILES_LIST: str = os.getenv("CHANGED_FILES_LIST", f"{_WORKDIR}/changed-files.txt")
    REPO_ROOT: str = os.getenv("REPO_ROOT", ".")

    # Fix generation
    MAX_FIXES: int = os.getenv("MAX_FIXES", str(DEFAULT_MAX_FIXES))
    FIX_TIMEOUT: float = os.getenv("FIX_TIMEOUT", str(DEFAULT_FIX_TIMEOUT))
    STRICT_ALLOW_LIST: bool = _env_flag("STRICT_ALLOW_LIST")

    # LLM: OpenAI-compatible chat completions endpoint
    FIX_MODEL: str | None = os.getenv("FIX_MODEL")
    API_URL: str | None = os.getenv("API_URL")
    API_KEY: str | None = os.getenv("API_KEY")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @field_validator("MAX_FIXES", mode="before")
    @classmethod
    def _parse_max_fixes(cls, value) -> int:
        return clamp_max_fixes(_number_or_default("MAX_FIXES", value, int, DEFAULT_MAX_FIXES))

    @field_validator("FIX_TIMEOUT", mode="before")
    @classmethod
    def _parse_fix_timeout(cls, value) -> float:
        timeout = _number_or_default("FIX_TIMEOUT", value, float, DEFAULT_FIX_TIMEOUT)
        if not timeout > 0:
            logger.warning("Invalid FIX_TIMEOUT=%r, using default %s", value, DEFAULT_FIX_TIMEOUT)
            return DEFAULT_FIX_TIMEOUT
        return timeout

    def missing_for_dispatch(self, model: str | None = None) -> list[str]:
        """Names of the settings the fix dispatcher cannot run without.

        *model* overrides ``FIX_MODEL`` (e.g. from the command line).
        """
        required = {"API_URL": self.API_URL, "API_KEY": self.API_KEY, "FIX_MODEL": model or self.FIX_MODEL}
        return [name for name, value in required.items() if not value]


settings = Settings()
