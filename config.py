"""
config.py — Loads scraping.yaml and environment variables.
Provides typed access to all configuration.
"""

import logging
import os
from pathlib import Path

import yaml
from dotenv import load_dotenv

# Load .env file
load_dotenv()

# Project root directory
PROJECT_ROOT = Path(__file__).parent

# Load scraping.yaml
SETTINGS_PATH = Path(os.getenv("JOB_HARVEST_SETTINGS", PROJECT_ROOT / "scraping.yaml"))
with open(SETTINGS_PATH, "r") as f:
    _prefs = yaml.safe_load(f)


# --- Sources ---
DEFAULT_LOCATION = _prefs["default_location"]
ENABLED_SOURCES = list(_prefs["enabled_sources"])

# --- Limits ---
DEFAULT_LIMIT = _prefs["limits"]["default"]
CONTINUOUS_LIMIT = _prefs["limits"]["continuous"]

# --- Rate Limiting ---
RATE_LIMITS = _prefs["rate_limiting"]

# --- Browser ---
BROWSER = _prefs["browser"]
NAVIGATION_TIMEOUT_MS = BROWSER["navigation_timeout_ms"]
SELECTOR_TIMEOUT_MS = BROWSER["selector_timeout_ms"]

# --- Continuous scraping ---
CONTINUOUS_KEYWORDS = list(_prefs["continuous"]["keywords"])
CONTINUOUS_LOCATIONS = list(_prefs["continuous"]["locations"])

# --- Secrets (from .env) ---
SCRAPED_ID_SALT = os.getenv("SCRAPED_ID_SALT", "scraping_salt")

# --- Database ---
DB_PATH = Path(os.getenv("JOB_HARVEST_DB", PROJECT_ROOT / "data" / "jobs.db"))

# --- Logging ---
LOG_DIR = Path(os.getenv("JOB_HARVEST_LOG_DIR", PROJECT_ROOT / "logs"))
LOG_FILE = LOG_DIR / "job_harvest.log"
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)


def validate_config(known_sources=None):
    """Check that critical configuration is present and sane."""
    warnings = []

    if known_sources is not None:
        for source_id in ENABLED_SOURCES:
            if source_id not in known_sources:
                warnings.append(f"Source '{source_id}' is enabled but not registered — it will be skipped")
    if not ENABLED_SOURCES:
        warnings.append("No sources enabled — runs will return no jobs")

    for name, window in RATE_LIMITS.items():
        if window["delay_min"] > window["delay_max"]:
            warnings.append(f"rate_limiting.{name}: delay_min is greater than delay_max")

    if SCRAPED_ID_SALT == "scraping_salt":
        warnings.append("SCRAPED_ID_SALT is not set — using the default salt for scraped ids")

    return warnings
