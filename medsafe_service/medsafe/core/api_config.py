import os

from medsafe.core.env import load_env

load_env()

OPENFDA_BASE_URL = os.getenv("OPENFDA_BASE_URL", "https://api.fda.gov")
RXNAV_BASE_URL = os.getenv("RXNAV_BASE_URL", "https://rxnav.nlm.nih.gov/REST")

# openFDA allows 240 requests per minute without a key
OPENFDA_RATE_LIMIT = int(os.getenv("OPENFDA_RATE_LIMIT", "240"))
RATE_LIMIT_WINDOW_S = float(os.getenv("RATE_LIMIT_WINDOW_S", "60"))

OPENFDA_CACHE_TTL_S = float(os.getenv("OPENFDA_CACHE_TTL_S", str(10 * 60)))
RXNAV_CACHE_TTL_S = float(os.getenv("RXNAV_CACHE_TTL_S", str(5 * 60)))
CACHE_MAX_ITEMS = int(os.getenv("CACHE_MAX_ITEMS", "256"))

HTTP_TIMEOUT_S = float(os.getenv("HTTP_TIMEOUT_S", "15"))
DEFAULT_SEARCH_LIMIT = int(os.getenv("DEFAULT_SEARCH_LIMIT", "20"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE") or None

# RxNav retired its interaction endpoint in 2024; opt in only against a mirror
USE_RXNAV_INTERACTIONS = os.getenv("USE_RXNAV_INTERACTIONS", "false").lower() == "true"
