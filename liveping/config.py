"""Environment configuration for a single bot run"""

import logging
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_SETTLE_MS = 500

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigurationError(ValueError):
    """Required settings are missing; raised before any browser work."""


def _get(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip()


def parse_settle_ms(raw: Optional[str]) -> int:
    """Parse AI_SETTLE_MS; unset or non-numeric falls back to the default."""
    if raw is None:
        return DEFAULT_SETTLE_MS
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"⚠️ Invalid AI_SETTLE_MS {raw!r}, using {DEFAULT_SETTLE_MS}ms")
        return DEFAULT_SETTLE_MS
    return max(value, 0)


@dataclass(frozen=True)
class BotConfig:
    event_url: str
    email: str
    password: str
    start_time: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_MODEL
    openai_base_url: Optional[str] = None
    headful: bool = False
    settle_ms: int = DEFAULT_SETTLE_MS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "BotConfig":
        """
        Build the run configuration from environment variables.

        Raises ConfigurationError when the target URL or either credential
        is missing.
        """
        env = os.environ if environ is None else environ

        required = {
            "EVENT_URL": _get(env, "EVENT_URL"),
            "LOGIN_EMAIL": _get(env, "LOGIN_EMAIL"),
            "LOGIN_PASSWORD": _get(env, "LOGIN_PASSWORD"),
        }
        missing = [name for name, value in required.items() if value is None]
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}"
            )

        return cls(
            event_url=required["EVENT_URL"],
            email=required["LOGIN_EMAIL"],
            password=required["LOGIN_PASSWORD"],
            start_time=_get(env, "START_TIME"),
            openai_api_key=_get(env, "OPENAI_API_KEY"),
            openai_model=_get(env, "OPENAI_MODEL") or DEFAULT_MODEL,
            openai_base_url=_get(env, "OPENAI_BASE_URL"),
            headful=(_get(env, "HEADFUL") or "").lower() in _TRUTHY,
            settle_ms=parse_settle_ms(_get(env, "AI_SETTLE_MS")),
        )


def start_time_passed(start_time: Optional[str], now: Optional[datetime] = None) -> bool:
    """
    Check the optional not-before gate.

    A missing or unparsable start time lets the run proceed immediately.
    Naive timestamps are read as local time.
    """
    if not start_time:
        return True

    try:
        parsed = datetime.fromisoformat(start_time)
    except ValueError:
        logger.warning(f"⚠️ Invalid start time provided: {start_time}. Continuing immediately.")
        return True

    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    current = now or datetime.now().astimezone()
    if current.tzinfo is None:
        current = current.astimezone()

    if current < parsed:
        logger.info(f"⏳ Start time not reached ({parsed.isoformat()}), exiting early.")
        return False
    return True
