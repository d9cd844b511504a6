# Shared configuration and fixed constants for the dashboard client

import os
from pathlib import Path

from dotenv import load_dotenv

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------
# Try multiple .env locations: next to this package, one level up, then cwd
_package_dir = Path(__file__).resolve().parent
for _env_path in [_package_dir / ".env", _package_dir.parent / ".env", Path.cwd() / ".env"]:
    if _env_path.is_file():
        load_dotenv(_env_path, override=False)
        break
else:
    load_dotenv(override=False)  # fall back to python-dotenv's own search

API_URL = os.getenv("CIVICPULSE_API_URL", "http://localhost:8080/api").rstrip("/")
REQUEST_TIMEOUT = float(os.getenv("CIVICPULSE_TIMEOUT", "15"))
SESSION_FILE = Path(os.getenv(
    "CIVICPULSE_SESSION_FILE", str(Path.home() / ".civicpulse" / "session.json"))).expanduser()
LOG_LEVEL = os.getenv("CIVICPULSE_LOG_LEVEL", "WARNING").upper()

# ---------------------------------------------------------------------------
# Heat tiers for zone / category counts
# ---------------------------------------------------------------------------
HEAT_HIGH_THRESHOLD = 10
HEAT_MEDIUM_THRESHOLD = 5

# Officer workload badge cut-offs (assigned count strictly greater than)
WORKLOAD_HIGH_ABOVE = 5
WORKLOAD_MEDIUM_ABOVE = 2

# SLA compliance badge cut-offs (percent)
SLA_SUCCESS_RATE = 80.0
SLA_WARNING_RATE = 60.0

# Analytics tables
TOP_ZONES_CHART = 15
TOP_ZONES_TABLE = 20

# ---------------------------------------------------------------------------
# Mutation defaults
# ---------------------------------------------------------------------------
DEFAULT_APPROVAL_REASON = "Report verified and approved for processing"
HIGH_RATING_REOPEN_WARNING = 4
DUPLICATE_WINDOW_HOURS = 24

MAX_IMAGE_BYTES = 5 * 1024 * 1024
ALLOWED_IMAGE_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
}

# ---------------------------------------------------------------------------
# Department display names (officer department -> table label)
# ---------------------------------------------------------------------------
DEPARTMENT_NAMES = {
    "Road": "Roads & Infrastructure",
    "Water": "Water Supply",
    "Electricity": "Electricity & Power",
    "Sanitation": "Sanitation & Waste",
    "Street Light": "Street Lighting",
    "General": "General Department",
    "Other": "Other Services",
}
DEFAULT_DEPARTMENT = "General"
