"""Engine configuration objects and helpers."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

load_dotenv()

PAYOFF_STRATEGIES = ("avalanche", "snowball")


def _env_bool(name: str, default: bool = False) -> bool:
    """Interpret environment variable values as booleans."""

    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_number(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ValueError(f"{name} must be numeric, got {value!r}.") from exc


class BaseConfig:
    """Base configuration shared across environments."""

    APP_NAME = "DebtSage"
    DB_FILENAME = "debtsage.db"
    SQLITE_PRAGMAS = {"foreign_keys": "on"}

    def __init__(self) -> None:
        self.DATA_DIR = self._resolve_data_dir()
        self.DEV_MODE = _env_bool("DEBTSAGE_DEV_MODE", default=True)
        self.DATABASE_URL = os.getenv("DEBTSAGE_DATABASE_URL", self._build_sqlite_url())

        months = _env_number("DEBTSAGE_PROJECTION_MONTHS", 12)
        if months < 1 or months != int(months):
            raise ValueError("DEBTSAGE_PROJECTION_MONTHS must be a positive whole number.")
        self.PROJECTION_MONTHS = int(months)

        budget = _env_number("DEBTSAGE_OVERPAY_BUDGET", 0.0)
        if budget < 0:
            raise ValueError("DEBTSAGE_OVERPAY_BUDGET cannot be negative.")
        self.OVERPAY_BUDGET = budget

        strategy = os.getenv("DEBTSAGE_PAYOFF_STRATEGY", "avalanche").strip().lower()
        if strategy not in PAYOFF_STRATEGIES:
            raise ValueError(
                f"DEBTSAGE_PAYOFF_STRATEGY must be one of {', '.join(PAYOFF_STRATEGIES)}."
            )
        self.PAYOFF_STRATEGY = strategy

    def _resolve_data_dir(self) -> Path:
        """Return the directory where the SQLite file and logs live."""

        data_root = os.getenv("DEBTSAGE_DATA_DIR", "instance")
        path = Path(data_root).expanduser().resolve()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _build_sqlite_url(self) -> str:
        return f"sqlite:///{self.DATA_DIR / self.DB_FILENAME}"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        """Expose engine kwargs for SQLModel to consume."""

        connect_args: dict[str, Any] = {}
        if self.DATABASE_URL.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        return {"connect_args": connect_args}


class DevConfig(BaseConfig):
    """Development configuration using local SQLite."""

    DEBUG = True
    TESTING = False


class TestConfig(BaseConfig):
    """Testing configuration with an in-memory database."""

    DEBUG = False
    TESTING = True

    def __init__(self) -> None:
        super().__init__()
        self.DATABASE_URL = "sqlite://"

    def sqlalchemy_engine_options(self) -> dict[str, Any]:
        from sqlalchemy.pool import StaticPool

        options = super().sqlalchemy_engine_options()
        options["poolclass"] = StaticPool
        return options
