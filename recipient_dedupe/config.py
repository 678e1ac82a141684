"""
Configuration
-------------
Settings are read from the environment, with a local .env file loaded first.
"""

import os
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

API_VERSION = "1.0.0"

HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", 8000))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

# Largest recipient list a single scan request may submit (pairwise scan is O(n^2))
MAX_SCAN_RECIPIENTS = int(os.environ.get("MAX_SCAN_RECIPIENTS", 2000))

# Country assigned to imported contacts that carry none
DEFAULT_COUNTRY = os.environ.get("DEFAULT_COUNTRY", "US")


def cors_allow_origins() -> List[str]:
    """Comma-separated CORS_ALLOW_ORIGINS, defaulting to all origins."""
    raw = os.environ.get("CORS_ALLOW_ORIGINS", "*")
    origins = [origin.strip() for origin in raw.split(",") if origin.strip()]
    return origins or ["*"]
