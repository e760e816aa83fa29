"""Configuration for genrental, read from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

# Centralized storage constants
# Can be overridden via GENRENTAL_DATA_DIR environment variable
_default_data_dir = Path(__file__).parent.parent.parent / "data"
RENTALS_FILE = "rentals.json"
UNITS_FILE = "generators.json"

DEFAULT_PRICE_PER_DAY = 95.0  # EUR, VAT included
DEFAULT_UNIT_COUNT = 3
DEFAULT_UNIT_NAME = "Aggregaatti"
DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"


def _parse_csv_env(name: str, default: str) -> list[str]:
    raw = os.environ.get(name, default)
    return [item.strip() for item in str(raw).split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings."""

    data_dir: Path
    price_per_day: float = DEFAULT_PRICE_PER_DAY
    unit_count: int = DEFAULT_UNIT_COUNT
    unit_name: str = DEFAULT_UNIT_NAME
    cors_origins: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    mail_from: str | None = None
    mail_to: str | None = None

    @property
    def rentals_path(self) -> Path:
        return self.data_dir / RENTALS_FILE

    @property
    def units_path(self) -> Path:
        return self.data_dir / UNITS_FILE


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    env = os.environ
    return Settings(
        data_dir=Path(env.get("GENRENTAL_DATA_DIR", _default_data_dir)),
        price_per_day=float(env.get("GENRENTAL_PRICE_PER_DAY", DEFAULT_PRICE_PER_DAY)),
        unit_count=int(env.get("GENRENTAL_UNIT_COUNT", DEFAULT_UNIT_COUNT)),
        unit_name=env.get("GENRENTAL_UNIT_NAME", DEFAULT_UNIT_NAME),
        cors_origins=_parse_csv_env("GENRENTAL_CORS_ORIGINS", DEFAULT_CORS_ORIGINS),
        log_level=env.get("GENRENTAL_LOG_LEVEL", "INFO").upper(),
        smtp_host=env.get("GENRENTAL_SMTP_HOST") or None,
        smtp_port=int(env.get("GENRENTAL_SMTP_PORT", 587)),
        smtp_user=env.get("GENRENTAL_SMTP_USER") or None,
        smtp_password=env.get("GENRENTAL_SMTP_PASSWORD") or None,
        mail_from=env.get("GENRENTAL_MAIL_FROM") or None,
        mail_to=env.get("GENRENTAL_MAIL_TO") or None,
    )
