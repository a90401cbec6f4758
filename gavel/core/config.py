"""
Marketplace configuration parameters for Gavel.

Defines bidding rules, sweeper timing, and storage locations.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

ENV_PREFIX = "GAVEL_"


@dataclass
class MarketConfig:
    """Marketplace-wide configuration parameters"""

    # Expiry sweeper
    sweep_interval: float = 1.0  # Seconds between sweeper ticks

    # Registration rules
    min_password_length: int = 6

    # Auction creation
    require_end_date: bool = True  # Creation form requires an end time
    seed_users: bool = True  # Insert default accounts into an empty store

    # Paths
    data_dir: Path = Path("data")
    db_name: str = "market.db"
    log_dir: Path = Path("logs")

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name

    def ensure_dirs(self) -> None:
        """Create necessary directories"""
        self.data_dir.mkdir(exist_ok=True, parents=True)
        self.log_dir.mkdir(exist_ok=True, parents=True)


def _env_bool(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def load_config(env_file: Optional[str] = None, **overrides) -> MarketConfig:
    """
    Load configuration from the environment or use defaults.

    Variables are read with the GAVEL_ prefix (GAVEL_DATA_DIR,
    GAVEL_SWEEP_INTERVAL, ...). A .env file is loaded first if present.

    Args:
        env_file: Optional path to a .env file
        **overrides: Explicit values that win over the environment

    Returns:
        MarketConfig instance
    """
    load_dotenv(dotenv_path=env_file)

    values = {}
    env = os.environ
    if f"{ENV_PREFIX}DATA_DIR" in env:
        values["data_dir"] = Path(env[f"{ENV_PREFIX}DATA_DIR"]).expanduser()
    if f"{ENV_PREFIX}DB_NAME" in env:
        values["db_name"] = env[f"{ENV_PREFIX}DB_NAME"]
    if f"{ENV_PREFIX}LOG_DIR" in env:
        values["log_dir"] = Path(env[f"{ENV_PREFIX}LOG_DIR"]).expanduser()
    if f"{ENV_PREFIX}SWEEP_INTERVAL" in env:
        values["sweep_interval"] = float(env[f"{ENV_PREFIX}SWEEP_INTERVAL"])
    if f"{ENV_PREFIX}MIN_PASSWORD_LENGTH" in env:
        values["min_password_length"] = int(env[f"{ENV_PREFIX}MIN_PASSWORD_LENGTH"])
    if f"{ENV_PREFIX}REQUIRE_END_DATE" in env:
        values["require_end_date"] = _env_bool(env[f"{ENV_PREFIX}REQUIRE_END_DATE"])
    if f"{ENV_PREFIX}SEED_USERS" in env:
        values["seed_users"] = _env_bool(env[f"{ENV_PREFIX}SEED_USERS"])

    values.update({k: v for k, v in overrides.items() if v is not None})
    return MarketConfig(**values)
