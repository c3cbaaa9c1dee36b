"""Configuration: frozen Settings resolved from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
import os

from dotenv import find_dotenv, load_dotenv

from promisefor.constants import DEFAULT_STATUS_CODE
from promisefor.errors import ConfigurationError

_STATUS_ENV_VAR = "PROMISEFOR_DEFAULT_STATUS_CODE"
_STACK_ENV_VAR = "PROMISEFOR_CAPTURE_STACK"


@dataclass(frozen=True)
class Settings:
    """Immutable library settings.

    Example:
        settings = Settings(default_status_code=502, capture_stack=False)
    """

    #: Status reported by throwable adapters when the descriptor has none.
    default_status_code: int = DEFAULT_STATUS_CODE
    #: Format tracebacks into ``ErrorDescriptor.stack`` when normalizing.
    capture_stack: bool = True

    def __post_init__(self) -> None:
        """Validate settings early for clear errors."""
        if isinstance(self.default_status_code, bool) or not isinstance(
            self.default_status_code, int
        ):
            raise ConfigurationError(
                "default_status_code must be an integer",
                hint=f"Set {_STATUS_ENV_VAR}=500 or pass default_status_code=500.",
            )
        if not 100 <= self.default_status_code <= 599:
            raise ConfigurationError(
                f"default_status_code must be in 100..599, got {self.default_status_code}",
                hint="Use a standard HTTP status code such as 500.",
            )

    @classmethod
    def from_env(cls) -> Settings:
        """Build settings from ``PROMISEFOR_*`` environment variables."""
        load_dotenv(find_dotenv(usecwd=True))

        raw_status = os.environ.get(_STATUS_ENV_VAR)
        status = DEFAULT_STATUS_CODE
        if raw_status is not None and raw_status.strip():
            try:
                status = int(raw_status)
            except ValueError:
                raise ConfigurationError(
                    f"{_STATUS_ENV_VAR} must be an integer, got {raw_status!r}",
                    hint=f"Set {_STATUS_ENV_VAR}=500 or unset it.",
                ) from None

        capture_stack = os.environ.get(_STACK_ENV_VAR, "1").strip() != "0"
        return cls(default_status_code=status, capture_stack=capture_stack)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return process-wide settings, resolved once from the environment."""
    return Settings.from_env()


def reset_settings() -> None:
    """Forget cached settings so the next lookup re-reads the environment."""
    get_settings.cache_clear()
