"""Engine configuration via Pydantic Settings.

All configuration is loaded from environment variables (prefixed with
``ELECTION_TALLY_``) or a ``.env`` file, following 12-factor principles.
"""

import codecs

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Engine settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ELECTION_TALLY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Cache
    cache_dir: str = Field(
        default="./.cache/election-tally",
        description="Directory for the per-source file cache",
    )
    use_cache: bool = Field(
        default=False,
        description="Serve a cached payload when one exists instead of fetching live",
    )
    check_for_change: bool = Field(
        default=True,
        description="Probe the remote size/date before serving a cached payload",
    )
    use_cache_on_fail: bool = Field(
        default=True,
        description="Fall back to any cached payload when the live fetch fails",
    )

    # HTTP
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for feed requests",
        gt=0,
    )
    feed_encoding: str = Field(
        default="utf-8",
        description="Text encoding of the delimited feeds",
    )

    # Tabulation
    close_margin_percent: float = Field(
        default=0.5,
        description="Percent-point margin at or below which a contest is flagged close",
        ge=0,
    )
    ranked_rounds: int = Field(
        default=3,
        description="Number of ranked-choice rounds carried per candidate",
        gt=0,
        le=10,
    )

    # Output
    output_dir: str = Field(
        default="./output",
        description="Directory for exported election JSON",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_dir: str | None = Field(
        default=None,
        description="Directory for log files (enables file logging with 24h rotation when set)",
    )
    log_json: bool = Field(
        default=False,
        description="Write stderr logs as JSON lines",
    )

    @field_validator("feed_encoding")
    @classmethod
    def validate_feed_encoding(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as exc:
            msg = f"Unknown feed_encoding: {v!r}"
            raise ValueError(msg) from exc
        return v


def get_settings() -> Settings:
    """Create and return engine settings."""
    return Settings()
