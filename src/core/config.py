"""
CampfireBot - Configuration
===========================

Central configuration from environment variables.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo


ROOT_DIR = Path(__file__).parent.parent.parent
DATA_DIR = Path(os.getenv("CAMPFIRE_DATA_DIR", str(ROOT_DIR / "data")))
LOGS_DIR = ROOT_DIR / "logs"

DATA_DIR.mkdir(parents=True, exist_ok=True)
LOGS_DIR.mkdir(exist_ok=True)


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float with default."""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool (1/true/yes/on)."""
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Config:
    """Bot configuration from environment variables."""

    # Bot settings
    TOKEN: str = os.getenv("CAMPFIRE_BOT_TOKEN", "")

    # Calendar used for the daily bonus and log timestamps
    TIMEZONE_NAME: str = os.getenv("CAMPFIRE_TIMEZONE", "Europe/Berlin")

    # Levelboard
    LEVELBOARD_INTERVAL: int = _get_env_int("CAMPFIRE_LEVELBOARD_INTERVAL", 300)  # 5 minutes
    LEVELBOARD_SIZE: int = _get_env_int("CAMPFIRE_LEVELBOARD_SIZE", 15)
    LEVEL_ROLES_ENABLED: bool = _get_env_bool("CAMPFIRE_LEVEL_ROLES", True)

    # Voice
    VOICE_TICK_SECONDS: float = _get_env_float("CAMPFIRE_VOICE_TICK", 60.0)

    # Remote recovery
    RECOVERY_TIMEOUT: float = _get_env_float("CAMPFIRE_RECOVERY_TIMEOUT", 15.0)

    # Storage
    LEVELS_FILE: str = str(DATA_DIR / "levels.json")
    SCOREBOARD_FILE: str = str(DATA_DIR / "scoreboard.json")

    @property
    def timezone(self) -> ZoneInfo:
        """Timezone object for TIMEZONE_NAME."""
        return ZoneInfo(self.TIMEZONE_NAME)


config = Config()
