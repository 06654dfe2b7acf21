"""
This module contains the default configuration settings for childguard.
Values may be overridden from the environment (or a .env file) and, for the
keys listed in MODIFIABLE_SETTINGS, from a JSON overrides file.
"""

import os
import pathlib
from dotenv import find_dotenv, load_dotenv

# Load environment variables from the host's .env file (searched from the cwd upward)
load_dotenv(find_dotenv(usecwd=True))

#* --- Shutdown Settings ---
DEFAULT_KILL_TIMEOUT = 10.0   # seconds between SIGTERM and SIGKILL
DEFAULT_POLL_INTERVAL = 0.1   # seconds between exit checks, not user-configurable
KILL_TIMEOUT = float(os.getenv("CHILDGUARD_KILL_TIMEOUT", str(DEFAULT_KILL_TIMEOUT)))

#* --- Logging Settings ---
LOG_LEVEL = os.getenv("CHILDGUARD_LOG_LEVEL", "INFO").upper()
LOG_FORMAT = '%(asctime)s - %(levelname)-8s - [%(name)s] - %(message)s'

#* --- Overrides ---
OVERRIDES_JSON_PATH = pathlib.Path(os.getenv("CHILDGUARD_OVERRIDES", "childguard.json"))

#* --- MODIFIABLE SETTINGS (Changeable via the overrides file) ---
MODIFIABLE_SETTINGS = {
    "KILL_TIMEOUT",
    "LOG_LEVEL",
}
