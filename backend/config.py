"""Runtime configuration read from the environment and an optional .env file."""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")


def _optional_int_env(name: str) -> Optional[int]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    return _int_env(name, 0)


# Streaming defaults
DEFAULT_TICK_INTERVAL_MS = _int_env("VELOCITYCHIP_TICK_INTERVAL_MS", 100)
DEFAULT_DURATION_MS = _int_env("VELOCITYCHIP_DURATION_MS", 30000)
MIN_TICK_INTERVAL_MS = _int_env("VELOCITYCHIP_MIN_TICK_INTERVAL_MS", 10)
MAX_DURATION_MS = _int_env("VELOCITYCHIP_MAX_DURATION_MS", 3600000)

# Batch limits
DEFAULT_BATCH_STEPS = 100
DEFAULT_BATCH_TIME_STEP = 0.001
MAX_BATCH_STEPS = _int_env("VELOCITYCHIP_MAX_BATCH_STEPS", 10000)

# Seed for the noise generators; unset means OS entropy
SIMULATION_SEED = _optional_int_env("VELOCITYCHIP_SEED")

# "memory" or "sqlite"
DESIGN_STORE = os.getenv("VELOCITYCHIP_DESIGN_STORE", "memory").lower()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Bind address for `python -m backend.main`
HOST = os.getenv("VELOCITYCHIP_HOST", "127.0.0.1")
PORT = _int_env("VELOCITYCHIP_PORT", 8000)
