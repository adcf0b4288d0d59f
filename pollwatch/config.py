import os
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# --- Source ---
SOURCE_PAGE = os.getenv("SOURCE_PAGE", "https://www.racetothewh.com/allpolls")
SOURCE_NAME = os.getenv("SOURCE_NAME", "racetothewh")
SOURCE_HOST = urlparse(SOURCE_PAGE).hostname or ""

# --- Limits ---
MAX_POLLS = int(os.getenv("MAX_POLLS", "600"))
MIN_POLLS = int(os.getenv("MIN_POLLS", "10"))

# --- Output ---
OUTPUT_FILE = os.getenv("OUTPUT_FILE", "polls.json")
DEBUG_SNAPSHOT = os.getenv("DEBUG_SNAPSHOT", "").strip().lower() in ("1", "true", "yes")
SNAPSHOT_DIR = os.getenv("SNAPSHOT_DIR", ".")

# --- Browser ---
HEADLESS = os.getenv("HEADLESS", "true").lower() == "true"
USER_AGENT = os.getenv("USER_AGENT", "Theo-PollsBot/1.0 (+github actions; racetothewh scrape)")
NAV_TIMEOUT_MS = int(os.getenv("NAV_TIMEOUT_MS", "120000"))
RENDER_WAIT_MS = int(os.getenv("RENDER_WAIT_MS", "8000"))
POLL_LINK_TIMEOUT_MS = int(os.getenv("POLL_LINK_TIMEOUT_MS", "90000"))
MAX_RETRIES = int(os.getenv("MAX_RETRIES", "3"))
RETRY_BACKOFF_SEC = float(os.getenv("RETRY_BACKOFF_SEC", "5"))
