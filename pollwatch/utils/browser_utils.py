# utils/browser_utils.py
# ---------------------------------------------------------------
# Playwright launch and page preparation for client-rendered poll
# listings: heavy-resource blocking, navigation with fallback,
# cookie banner dismissal, lazy-render scrolling and debug snapshots.
# Every step after launch is best-effort and never aborts a run.
# ---------------------------------------------------------------

import os
from pathlib import Path

from playwright.sync_api import Error as PlaywrightError

from ..utils.logger_instance import logger
from ..utils.output_utils import safe_join

LAUNCH_ARGS = [
    "--disable-dev-shm-usage",
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
]
VIEWPORT = {"width": 1280, "height": 720}
BLOCKED_RESOURCE_TYPES = {"image", "media", "font"}
COOKIE_BUTTON_SELECTORS = [
    'button:has-text("Accept")',
    'button:has-text("I Accept")',
    'button:has-text("Agree")',
    'button:has-text("OK")',
    "text=Accept Cookies",
]


def launch_browser(playwright, headless=True, user_agent=None, nav_timeout_ms=120000):
    """Launch chromium and open one page. Returns (browser, context, page)."""
    browser = playwright.chromium.launch(headless=headless, args=LAUNCH_ARGS)
    context = browser.new_context(user_agent=user_agent, viewport=VIEWPORT)
    page = context.new_page()
    page.set_default_navigation_timeout(nav_timeout_ms)
    logger.info(f"[BROWSER] Chromium launched (headless={headless}) with User-Agent: {user_agent}")
    return browser, context, page


def _route_handler(route):
    if route.request.resource_type in BLOCKED_RESOURCE_TYPES:
        return route.abort()
    return route.continue_()


def block_heavy_resources(page):
    """Abort image/media/font requests; scripts and XHR still load."""
    page.route("**/*", _route_handler)


def navigate(page, url, timeout_ms=120000):
    """
    Go to `url` waiting only for DOMContentLoaded ("networkidle" often never
    fires on analytics-heavy sites). On failure, fall back to "commit" and a
    best-effort DOMContentLoaded wait.

    Returns the wait_until stage that succeeded. Re-raises the "commit"
    error when the page never loads at all.
    """
    logger.info(f"[BROWSER] Opening {url} ...")
    try:
        page.goto(url, wait_until="domcontentloaded", timeout=timeout_ms)
        return "domcontentloaded"
    except PlaywrightError as e:
        logger.warning(f"[BROWSER] goto(domcontentloaded) failed: {e}")
    try:
        page.goto(url, wait_until="commit", timeout=timeout_ms)
    except PlaywrightError as e:
        logger.warning(f"[BROWSER] goto(commit) failed: {e}")
        raise
    try:
        page.wait_for_load_state("domcontentloaded", timeout=min(timeout_ms, 60000))
    except PlaywrightError as e:
        logger.debug(f"[BROWSER] DOMContentLoaded never fired: {e}")
    return "commit"


def wait_for_poll_links(page, site_host, timeout_ms=90000):
    """Wait until an off-site http link exists (the client app has rendered)."""
    selector = 'a[href^="http"]'
    if site_host:
        selector += f':not([href*="{site_host.removeprefix("www.")}"])'
    try:
        page.wait_for_selector(selector, timeout=timeout_ms)
        return True
    except PlaywrightError as e:
        logger.warning(f"[BROWSER] No external poll links appeared: {e}")
        return False


def dismiss_cookie_banner(page):
    for selector in COOKIE_BUTTON_SELECTORS:
        try:
            button = page.locator(selector).first
            if button.count():
                button.click(timeout=1500)
                logger.info(f"[BROWSER] Dismissed cookie banner via {selector}")
                return True
        except PlaywrightError as e:
            logger.debug(f"[BROWSER] Cookie banner click failed for {selector}: {e}")
            return False
    return False


def trigger_lazy_render(page, rounds=6, pause_ms=900):
    """Scroll to the bottom a few times so lazily rendered rows get painted."""
    try:
        for _ in range(rounds):
            page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            page.wait_for_timeout(pause_ms)
        page.evaluate("() => window.scrollTo(0, 0)")
        page.wait_for_timeout(600)
    except PlaywrightError as e:
        logger.warning(f"[BROWSER] Scrolling failed: {e}")


def save_debug_snapshot(page, name, snapshot_dir=".", screenshot=True):
    """Write `<name>.html` (and `<name>.png`) for post-mortem inspection. Returns written paths."""
    os.makedirs(snapshot_dir, exist_ok=True)
    written = []
    html_path = Path(safe_join(snapshot_dir, f"{name}.html"))
    try:
        html_path.write_text(page.content(), encoding="utf-8")
        written.append(str(html_path))
        logger.info(f"[SNAPSHOT] Wrote {html_path}")
    except PlaywrightError as e:
        logger.warning(f"[SNAPSHOT] Could not capture HTML: {e}")
    if screenshot:
        png_path = safe_join(snapshot_dir, f"{name}.png")
        try:
            page.screenshot(path=png_path, full_page=True)
            written.append(png_path)
            logger.info(f"[SNAPSHOT] Wrote {png_path}")
        except PlaywrightError as e:
            logger.warning(f"[SNAPSHOT] Could not capture screenshot: {e}")
    return written
