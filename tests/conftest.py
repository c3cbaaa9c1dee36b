"""Pytest configuration and fixtures.

Provides environment isolation, logging configuration, and small test doubles
for async producers. All fixtures here are autouse unless noted.
"""

from __future__ import annotations

from collections.abc import Callable
from contextlib import suppress
from dataclasses import dataclass, field
import logging
import os
from typing import Any

import pytest

from promisefor.config import reset_settings

# =============================================================================
# Test Doubles
# =============================================================================


@dataclass
class CallRecorder:
    """Wraps step functions and records every invocation.

    Use to assert short-circuiting and once-only execution without relying on
    side effects inside lambdas.
    """

    calls: list[tuple[str, Any]] = field(default_factory=list)

    def sync(self, name: str, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        def step(value: Any) -> Any:
            self.calls.append((name, value))
            return fn(value)

        return step

    def async_(self, name: str, fn: Callable[[Any], Any]) -> Callable[[Any], Any]:
        async def step(value: Any) -> Any:
            self.calls.append((name, value))
            return fn(value)

        return step

    def names(self) -> list[str]:
        return [name for name, _ in self.calls]


@pytest.fixture
def recorder() -> CallRecorder:
    """Return a fresh CallRecorder (not autouse)."""
    return CallRecorder()


# =============================================================================
# Environment Isolation (Autouse)
# =============================================================================


@pytest.fixture(autouse=True)
def block_dotenv(request, monkeypatch):
    """Prevent python-dotenv from loading project .env files during tests.

    Opt-out: @pytest.mark.allow_dotenv
    """
    if request.node.get_closest_marker("allow_dotenv"):
        return
    with suppress(Exception):
        monkeypatch.setattr(
            "promisefor.config.load_dotenv",
            lambda *_args, **_kwargs: False,
            raising=False,
        )


@pytest.fixture(autouse=True)
def isolate_settings_env(request, monkeypatch):
    """Ensure a clean PROMISEFOR_* environment and fresh cached settings.

    Opt-out: @pytest.mark.allow_env_pollution
    """
    if not request.node.get_closest_marker("allow_env_pollution"):
        for key in list(os.environ.keys()):
            if key.startswith("PROMISEFOR_"):
                monkeypatch.delenv(key, raising=False)
    reset_settings()
    yield
    reset_settings()


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(scope="session", autouse=True)
def quiet_noisy_libraries():
    """Suppress noisy third-party loggers."""
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
