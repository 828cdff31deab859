"""Runtime settings for the reconciliation engine.

Reads configuration from environment variables, loading a `.env` file from the
repository root first when one exists:
- RECON_RATE_SLACK: absolute slack for the rate-based checks (default 0.02)
- RECON_SUM_TOLERANCE: tolerance for taxes + total_excl = total_incl (default 0.01)
- RECON_LOG_LEVEL: logging level name (default INFO)
- RECON_LOG_JSON: emit JSON log lines when true (default false)
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

# Load .env file if it exists
from dotenv import load_dotenv
env_path = Path(__file__).resolve().parents[1] / ".env"
if env_path.exists():
    load_dotenv(env_path)


DEFAULT_RATE_SLACK = 0.02
DEFAULT_SUM_TOLERANCE = 0.01


def _read_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


def _read_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class ReconciliationSettings:
    """Tolerances and logging options.

    Attributes:
        rate_slack: Absolute slack added to both ends of the rate-based bands
        sum_tolerance: Fixed tolerance of the taxes + total_excl identity
        log_level: Logging level name
        log_json: Use the JSON formatter instead of the human-readable one
    """
    rate_slack: float = DEFAULT_RATE_SLACK
    sum_tolerance: float = DEFAULT_SUM_TOLERANCE
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "ReconciliationSettings":
        return cls(
            rate_slack=_read_float("RECON_RATE_SLACK", DEFAULT_RATE_SLACK),
            sum_tolerance=_read_float("RECON_SUM_TOLERANCE", DEFAULT_SUM_TOLERANCE),
            log_level=os.getenv("RECON_LOG_LEVEL", "INFO").upper(),
            log_json=_read_bool("RECON_LOG_JSON", False),
        )

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level)
        return level if isinstance(level, int) else logging.INFO


_settings: Optional[ReconciliationSettings] = None


def get_settings() -> ReconciliationSettings:
    """Get the process-wide settings, loading them on first use."""
    global _settings
    if _settings is None:
        _settings = ReconciliationSettings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop cached settings so the next get_settings() re-reads the environment."""
    global _settings
    _settings = None
