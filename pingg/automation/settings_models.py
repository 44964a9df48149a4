"""
Runtime settings for the latency monitor.

Defaults come from the environment (or a .env file) via python-decouple;
command-line values override them. Everything is validated with Pydantic
before the probe is started.
"""

from decouple import config
from pydantic import BaseModel, Field, field_validator, model_validator


class MonitorSettings(BaseModel):
    """Validated settings for one monitoring session."""

    target: str = Field(..., min_length=1, max_length=253, description="Host name or address to ping")
    history_size: int = Field(default=100, ge=1, le=10000, description="Samples kept in the rolling window")
    compat_stats: bool = Field(
        default=True,
        description=(
            "If True (default), keep the classic statistics exactly: "
            "warm-up skip of the first samples and 0.0 treated as an unset Min. "
            "If False, every sample counts and Min has a real unset state."
        )
    )
    ping_binary: str = Field(default="ping", min_length=1, description="Ping executable")
    log_dir: str = Field(default="logs", min_length=1, description="Directory for the debug log")
    seed_value: float = Field(default=30.0, ge=0, description="Placeholder samples shown before the first reply")

    @field_validator("target")
    @classmethod
    def validate_target(cls, v: str) -> str:
        """Reject values ping would read as options or split arguments."""
        v = v.strip()
        if not v:
            raise ValueError("Target must not be empty")
        if v.startswith("-"):
            raise ValueError(f"Invalid target: {v}. Must not start with '-'.")
        if any(ch.isspace() for ch in v):
            raise ValueError(f"Invalid target: {v!r}. Must not contain whitespace.")
        return v

    @model_validator(mode="after")
    def validate_compat_history(self):
        # Classic stats skip aggregation until three samples are held
        if self.compat_stats and self.history_size < 3:
            raise ValueError(
                f"history_size must be >= 3 with classic statistics, got {self.history_size}. "
                "Use a larger window or corrected statistics."
            )
        return self


def load_settings(target: str, **overrides) -> MonitorSettings:
    """
    Build settings from environment defaults plus explicit overrides.

    Args:
        target: Host to probe
        **overrides: Field values from the command line; None means "not given"

    Returns:
        Validated MonitorSettings

    Raises:
        ValidationError: If any value is out of range
        ValueError: If an environment value cannot be cast
    """
    values = {
        "target": target,
        "history_size": config("PINGG_HISTORY_SIZE", default=100, cast=int),
        "compat_stats": config("PINGG_COMPAT_STATS", default=True, cast=bool),
        "ping_binary": config("PINGG_PING_BINARY", default="ping"),
        "log_dir": config("PINGG_LOG_DIR", default="logs"),
        "seed_value": config("PINGG_SEED_VALUE", default=30.0, cast=float),
    }
    values.update({k: v for k, v in overrides.items() if v is not None})

    return MonitorSettings(**values)
