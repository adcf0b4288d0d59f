# utils/captcha_tools.py
# ---------------------------------------------------------------
# Bot-wall / Cloudflare interstitial detection (Playwright pages)
# ---------------------------------------------------------------

import os
import re

from playwright.sync_api import Error as PlaywrightError

from ..utils.logger_instance import logger

DEFAULT_BOT_WALL_INDICATORS = [
    "just a moment",
    "checking your browser",
    "cf-chl",
    "cloudflare",
    "access denied",
    "attention required",
]

# .env can extend the indicator list (comma-separated)
_EXTRA = [s.strip() for s in os.getenv("BOT_WALL_INDICATORS", "").split(",") if s.strip()]
BOT_WALL_INDICATORS = DEFAULT_BOT_WALL_INDICATORS + _EXTRA
BOT_WALL_PATTERN = re.compile("|".join(re.escape(s) for s in BOT_WALL_INDICATORS), re.IGNORECASE)


def looks_like_bot_wall(title, body_text) -> bool:
    """True when the page title or body text matches a known interstitial phrase."""
    haystack = f"{title or ''} {body_text or ''}"
    match = BOT_WALL_PATTERN.search(haystack)
    if match:
        logger.warning(f"[CAPTCHA] Bot-wall indicator found: '{match.group(0)}'")
        return True
    return False


def read_title_and_body(page):
    """Best-effort (title, body text) of a Playwright page; empty strings on failure."""
    try:
        title = page.title() or ""
    except PlaywrightError as e:
        logger.debug(f"[CAPTCHA] Could not read page title: {e}")
        title = ""
    try:
        body = page.text_content("body") or ""
    except PlaywrightError as e:
        logger.debug(f"[CAPTCHA] Could not read body text: {e}")
        body = ""
    return title, body


def detect_bot_wall(page) -> bool:
    title, body = read_title_and_body(page)
    return looks_like_bot_wall(title, body)
