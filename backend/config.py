"""Arrest Map Backend — Configuration & Constants"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env from project root (one level up from backend/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path)

# ── Firebase project ──
FIREBASE_API_KEY = os.environ.get("FIREBASE_API_KEY", "")
FIREBASE_PROJECT_ID = os.environ.get("FIREBASE_PROJECT_ID", "")
FIRESTORE_BASE_URL = os.environ.get("FIRESTORE_BASE_URL", "https://firestore.googleapis.com/v1")
IDENTITY_TOOLKIT_URL = os.environ.get(
    "IDENTITY_TOOLKIT_URL", "https://identitytoolkit.googleapis.com/v1/accounts:lookup"
)

# SHA-256 of the lowercased admin email; the address itself is never stored
ADMIN_EMAIL_HASH = os.environ.get(
    "ADMIN_EMAIL_HASH",
    "166d1337c4641be7b320ddb2e0bad8be0bc630b3efb3917b0f2128ed5a5506d8",
)

# ── Collections ──
ARRESTS_COLLECTION = os.environ.get("ARRESTS_COLLECTION", "arrests")
MEDIA_COLLECTION = os.environ.get("MEDIA_COLLECTION", "media")

# ── Boundary data (file path or http(s) URL) ──
GEOJSON_SOURCE = os.environ.get(
    "GEOJSON_SOURCE",
    str(Path(__file__).resolve().parent.parent / "assets" / "india-states.json"),
)

# ── HTTP ──
HTTP_TIMEOUT = float(os.environ.get("HTTP_TIMEOUT", "15.0"))
RATE_LIMIT = int(os.environ.get("RATE_LIMIT", "30"))  # write requests per minute per IP
ALLOWED_ORIGINS = [
    o.strip() for o in os.environ.get("ALLOWED_ORIGINS", "").split(",") if o.strip()
]

# ── Input limits ──
MAX_COUNT = 999_999
MAX_BATCH_UPDATES = 50
MAX_NAME_LENGTH = 100
MAX_TITLE_LENGTH = 200
