"""
setup_imports.py

Centralized bootstrap for TLE Ingest entry points.
Loads .env and configures logging once so every script logs the same way.
Import for side effects:  import tle_ingest.setup_imports  # noqa: F401
"""

import logging
import os

from dotenv import load_dotenv

# ✅ Load environment variables from .env file (credentials, DATABASE_URL)
load_dotenv()

# ✅ Configure Logging (before any logging calls)
_level_name = os.getenv("TLE_LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, _level_name, logging.INFO),
    format='%(asctime)s - %(levelname)s - %(message)s',
)

if os.getenv("DATABASE_URL"):
    logging.info("[OK] DATABASE_URL loaded; records go to the database.")
else:
    logging.info("[WARN] DATABASE_URL not found; records go to the file store.")
