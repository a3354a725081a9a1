import json
from datetime import timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator, model_validator

DEFAULT_COLOR_PALETTE = (
    "#ec4899",  # pink
    "#8b5cf6",  # purple
    "#06b6d4",  # cyan
    "#10b981",  # emerald
    "#f59e0b",  # amber
    "#ef4444",  # red
    "#3b82f6",  # blue
    "#14b8a6",  # teal
    "#f97316",  # orange
    "#a855f7",  # violet
    "#84cc16",  # lime
    "#eab308",  # yellow
)

TIMEOUT_WINDOW_POLICIES = {"wrap", "strict"}


def _split_list_setting(raw: str | None, *, lowercase: bool = False) -> list[str]:
    raw = (raw or "").strip()
    if not raw:
        return []

    values: list[str]
    if raw.startswith("["):
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            values = [str(v) for v in parsed if isinstance(v, str)]
        else:
            values = [raw]
    else:
        values = raw.split(",")

    normalized: list[str] = []
    seen: set[str] = set()
    for value in values:
        cleaned = value.strip().strip("\"'")
        if not cleaned:
            continue
        if lowercase:
            cleaned = cleaned.lower()
        if cleaned in seen:
            continue
        seen.add(cleaned)
        normalized.append(cleaned)

    return normalized


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = Field(default="local", alias="ENV")
    database_url: str = Field(alias="DATABASE_URL")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    cors_origins: str = Field(default="http://localhost:5173", alias="CORS_ORIGINS")

    # ─────────────────────────────────────────────
    # Colors
    # ─────────────────────────────────────────────
    color_palette: str = Field(default=",".join(DEFAULT_COLOR_PALETTE), alias="COLOR_PALETTE")
    color_allocation_retries: int = Field(default=5, alias="COLOR_ALLOCATION_RETRIES")

    # ─────────────────────────────────────────────
    # Reachability windows
    # ─────────────────────────────────────────────
    timeout_window_policy: str = Field(default="wrap", alias="TIMEOUT_WINDOW_POLICY")
    reachability_timezone: str = Field(default="UTC", alias="REACHABILITY_TIMEZONE")

    # ─────────────────────────────────────────────
    # Signal queue
    # ─────────────────────────────────────────────
    signal_queue_max_length: int | None = Field(default=None, alias="SIGNAL_QUEUE_MAX_LENGTH")

    # ─────────────────────────────────────────────
    # Presence
    # ─────────────────────────────────────────────
    presence_timeout_seconds: int = Field(default=150, alias="PRESENCE_TIMEOUT_SECONDS")
    presence_sweep_enabled: bool = Field(default=True, alias="PRESENCE_SWEEP_ENABLED")
    presence_sweep_interval_seconds: int = Field(default=30, alias="PRESENCE_SWEEP_INTERVAL_SECONDS")

    @field_validator("database_url", mode="before")
    @classmethod
    def normalize_database_url(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        cleaned = value.strip()
        if cleaned.startswith("postgres://"):
            cleaned = f"postgresql://{cleaned[len('postgres://'):]}"
        if cleaned.startswith("postgresql://") and not cleaned.startswith("postgresql+"):
            cleaned = cleaned.replace("postgresql://", "postgresql+asyncpg://", 1)
        return cleaned

    @field_validator("timeout_window_policy", "log_level", mode="before")
    @classmethod
    def normalize_choice(cls, value: object) -> object:
        if not isinstance(value, str):
            return value
        return value.strip().lower()

    @field_validator("signal_queue_max_length", mode="before")
    @classmethod
    def blank_means_unbounded(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        if self.timeout_window_policy not in TIMEOUT_WINDOW_POLICIES:
            raise ValueError("TIMEOUT_WINDOW_POLICY must be one of: wrap, strict")
        try:
            self.reachability_zone()
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown REACHABILITY_TIMEZONE: {self.reachability_timezone}") from exc
        if not self.color_palette_list():
            raise ValueError("COLOR_PALETTE must contain at least one color")
        if self.color_allocation_retries < 1:
            raise ValueError("COLOR_ALLOCATION_RETRIES must be at least 1")
        if self.signal_queue_max_length is not None and self.signal_queue_max_length < 1:
            raise ValueError("SIGNAL_QUEUE_MAX_LENGTH must be positive when set")
        if self.presence_timeout_seconds <= 0 or self.presence_sweep_interval_seconds <= 0:
            raise ValueError("Presence durations must be positive")
        return self

    def color_palette_list(self) -> list[str]:
        return _split_list_setting(self.color_palette, lowercase=True)

    def cors_origin_list(self) -> list[str]:
        # CORS origins are scheme + host (+ optional port) with no path slash.
        return [
            value if value == "*" else value.rstrip("/")
            for value in _split_list_setting(self.cors_origins)
        ]

    def reachability_zone(self) -> tzinfo:
        if self.reachability_timezone.upper() == "UTC":
            return timezone.utc
        return ZoneInfo(self.reachability_timezone)


settings = Settings()
