"""Application settings loaded from environment variables / .env file."""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _strip_str(v: str | object) -> str | object:
    """Strip whitespace from string env values (common .env copy-paste issue)."""
    return v.strip() if isinstance(v, str) else v


class Settings(BaseSettings):
    """TripSplit configuration.

    Values are loaded from environment variables and/or an ``.env`` file
    located at the project root.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Local storage ─────────────────────────────────────────────────
    database_url: str = Field(
        default="sqlite+aiosqlite:///tripsplit.db",
        description="Async SQLAlchemy URI of the on-device snapshot database.",
    )

    # ── Remote ledger store ───────────────────────────────────────────
    remote_base_url: str = Field(
        default="http://localhost:8080",
        description="Base URL of the remote trip store (PUT/GET /api/trips/...).",
    )
    remote_timeout_seconds: float = Field(
        default=10.0,
        description="Total timeout for a single push or pull request.",
    )

    @field_validator("remote_base_url", "connectivity_probe_url", mode="before")
    @classmethod
    def strip_urls(cls, v: str | object) -> str | object:
        return _strip_str(v)

    # ── Connectivity ──────────────────────────────────────────────────
    connectivity_probe_url: str = Field(
        default="https://www.google.com",
        description="Any stable external resource; only reachability matters.",
    )
    connectivity_interval_seconds: float = Field(
        default=5.0,
        description="Seconds between two connectivity probes.",
    )
    probe_timeout_seconds: float = Field(
        default=3.0,
        description="Timeout for a single connectivity probe.",
    )

    # ── Ledger ────────────────────────────────────────────────────────
    min_settlement_amount: int = Field(
        default=100,
        ge=0,
        description=(
            "Smallest transfer worth recording, in whole currency units. "
            "Balances closer to zero than this are treated as settled."
        ),
    )
    currency_symbol: str = Field(
        default="Rp",
        description="Symbol prefixed to formatted amounts.",
    )

    # ── Reference sync server ─────────────────────────────────────────
    server_host: str = Field(
        default="0.0.0.0",
        description="Bind address for ``python -m tripsplit``.",
    )
    server_port: int = Field(
        default=8080,
        description="Port for ``python -m tripsplit``.",
    )

    # ── General ───────────────────────────────────────────────────────
    debug: bool = Field(
        default=False,
        description="Enable debug logging.",
    )


settings = Settings()
