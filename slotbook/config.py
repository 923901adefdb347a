import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./slotbook.db")

# Display settings for the quick-slot teaser and booking cut-offs.
# Providers without their own timezone fall back to DISPLAY_TIMEZONE.
DISPLAY_TIMEZONE = os.getenv("DISPLAY_TIMEZONE", "Europe/Berlin")
DISPLAY_LOCALE = os.getenv("DISPLAY_LOCALE", "en")  # en, ru, de

# Service duration bounds (minutes)
DEFAULT_DURATION_MIN = int(os.getenv("DEFAULT_DURATION_MIN", "60"))
MIN_DURATION_MIN = int(os.getenv("MIN_DURATION_MIN", "15"))
MAX_DURATION_MIN = int(os.getenv("MAX_DURATION_MIN", "240"))

# Quick scan ("next available") settings
QUICK_SCAN_DAYS = int(os.getenv("QUICK_SCAN_DAYS", "7"))
QUICK_SCAN_GRANULARITY_MIN = int(os.getenv("QUICK_SCAN_GRANULARITY_MIN", "30"))
QUICK_SCAN_MAX_PER_PERIOD = int(os.getenv("QUICK_SCAN_MAX_PER_PERIOD", "3"))
QUICK_SCAN_LEAD_MIN = int(os.getenv("QUICK_SCAN_LEAD_MIN", "30"))

# Admission lock - Redis when configured, in-process otherwise
REDIS_URL = os.getenv("REDIS_URL")
SLOT_LOCK_TIMEOUT_SEC = float(os.getenv("SLOT_LOCK_TIMEOUT_SEC", "10"))
SLOT_LOCK_WAIT_SEC = float(os.getenv("SLOT_LOCK_WAIT_SEC", "5"))

# Telegram provider notifications (skipped when the token is not set)
TELEGRAM_BOT_TOKEN = os.getenv("TELEGRAM_BOT_TOKEN")
TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", "https://api.telegram.org")
NOTIFY_TIMEOUT_SEC = float(os.getenv("NOTIFY_TIMEOUT_SEC", "5"))

# Frontend base URL used in provider notifications
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("ALLOWED_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]
