import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL")

# Time of day stamped on sessions when a booking does not carry one (HH:MM)
DEFAULT_SESSION_TIME = os.getenv("DEFAULT_SESSION_TIME", "09:00")

# Default page size for the booking list endpoint
BOOKING_LIST_LIMIT = int(os.getenv("BOOKING_LIST_LIMIT", "50"))

# Free-text progress notes are escaped and capped at this length
SESSION_NOTES_MAX_LENGTH = int(os.getenv("SESSION_NOTES_MAX_LENGTH", "2000"))

# Frontend base URL, also the default CORS origin
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:5173")

ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    f"{FRONTEND_URL},http://localhost:3000",
).split(",")
