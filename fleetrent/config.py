import os
from pathlib import Path

from fleetrent.utils.clock import DEFAULT_TZ
from fleetrent.utils.constants import BUFFER_DAYS, PICKUP_LOCATION

BASE_DIR = Path(__file__).resolve().parents[1]


class Config:
    TESTING = False
    # Pickle file for the catalog; empty means keep everything in memory
    DATA_PATH = os.getenv("FLEETRENT_DATA_PATH", str(BASE_DIR / "data.pkl"))
    # "Today" for pickups and late returns is the rental office's day
    TIMEZONE = os.getenv("FLEETRENT_TIMEZONE", DEFAULT_TZ)
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    PICKUP_LOCATION = os.getenv("FLEETRENT_PICKUP_LOCATION", PICKUP_LOCATION)
    BUFFER_DAYS = int(os.getenv("FLEETRENT_BUFFER_DAYS", BUFFER_DAYS))


class TestConfig(Config):
    TESTING = True
    DATA_PATH = ""
    LOG_LEVEL = "WARNING"


def config_for_env():
    """APP_ENV=test selects the in-memory test configuration."""
    return TestConfig if os.getenv("APP_ENV") == "test" else Config
