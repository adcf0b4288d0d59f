# ============================================================
# Poll listing scraper
# ============================================================
#
# Orchestrator for extracting poll records from a client-rendered poll
# listing (RaceToTheWH "all polls" by default). Renders the page with
# Playwright, checks for bot walls with retry/backoff, runs the extraction
# engine over every frame, and writes polls.json.
#
# The extraction heuristics live in extraction/; this module only owns
# rendering, retry policy, failure diagnostics and output.
# ============================================================

import argparse
import sys
import time
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import sync_playwright
from rich.console import Console

from . import config
from .extraction.dedupe import dedupe_polls
from .extraction.engine import EngineInputError, extract_polls, parse_snapshot
from .utils.browser_utils import (
    block_heavy_resources,
    dismiss_cookie_banner,
    launch_browser,
    navigate,
    save_debug_snapshot,
    trigger_lazy_render,
    wait_for_poll_links,
)
from .utils.captcha_tools import detect_bot_wall, read_title_and_body
from .utils.logger_instance import logger
from .utils.output_utils import build_payload, write_payload
from .utils.shared_logger import log_critical, log_warning

console = Console()

BODY_SNIPPET_CHARS = 800


class ScrapeError(RuntimeError):
    """A run that should be reported as failed."""


class BotWallError(ScrapeError):
    pass


class NavigationError(ScrapeError):
    """The page never loaded (DNS, network, timeouts); no bot wall was seen."""


class TooFewPollsError(ScrapeError):
    def __init__(self, count, min_polls):
        self.count = count
        self.min_polls = min_polls
        super().__init__(
            f"Scrape produced too few poll rows ({count} < {min_polls}). "
            "Either the page did not render poll blocks in headless mode, or the markup "
            "differs from what we expect. Inspect the HTML snapshot and screenshot to see "
            "whether you got a bot wall, a blank shell, or a new DOM."
        )


# --- Extraction stages ---

def extract_polls_from_frame(frame, max_polls=config.MAX_POLLS, site_host=config.SOURCE_HOST) -> List[Dict[str, Any]]:
    """
    Run the engine over one frame. A frame that cannot be read or parsed
    contributes nothing; it never aborts the run.
    """
    frame_url = getattr(frame, "url", "") or ""
    try:
        document = parse_snapshot(frame.content())
        polls = extract_polls(document, base_url=frame_url, site_host=site_host, max_polls=max_polls)
    except Exception as e:
        logger.warning(f"[FRAME] Extraction failed for frame {frame_url or '<anonymous>'}: {e}")
        return []
    logger.info(f"[FRAME] {len(polls)} poll(s) from {frame_url or '<anonymous>'}")
    return polls


def collect_polls(frames, max_polls=config.MAX_POLLS, site_host=config.SOURCE_HOST) -> List[Dict[str, Any]]:
    """Concatenate per-frame results, dedupe across frames, cap at max_polls."""
    polls = []
    for frame in frames:
        polls.extend(extract_polls_from_frame(frame, max_polls, site_host))
    return dedupe_polls(polls)[:max_polls]


def check_poll_count(polls, min_polls=config.MIN_POLLS):
    if len(polls) < min_polls:
        raise TooFewPollsError(len(polls), min_polls)


def summarize(polls):
    counts = Counter(p.get("category", "other") for p in polls)
    console.print(f"\n[bold]Polls extracted:[/bold] {len(polls)}")
    for category, n in counts.most_common():
        console.print(f"  {category}: {n}")


# --- Rendering stages ---

def render_source_page(
    playwright,
    url,
    max_retries=config.MAX_RETRIES,
    backoff_sec=config.RETRY_BACKOFF_SEC,
    headless=config.HEADLESS,
    user_agent=config.USER_AGENT,
    snapshot_dir=config.SNAPSHOT_DIR,
    debug_snapshot=config.DEBUG_SNAPSHOT,
):
    """
    Load `url` until it renders without a bot wall.
    Returns (browser, page); the caller closes the browser.
    Raises BotWallError when any attempt hit a bot wall, NavigationError
    when every attempt failed without one.
    """
    site_host = urlparse(url).hostname or ""
    attempts = max(1, max_retries)
    walled = 0
    last_error = None
    for attempt in range(1, attempts + 1):
        browser, _context, page = launch_browser(
            playwright, headless=headless, user_agent=user_agent, nav_timeout_ms=config.NAV_TIMEOUT_MS
        )
        rendered = False
        try:
            block_heavy_resources(page)
            navigate(page, url, timeout_ms=config.NAV_TIMEOUT_MS)
            page.wait_for_timeout(config.RENDER_WAIT_MS)
            wait_for_poll_links(page, site_host, timeout_ms=config.POLL_LINK_TIMEOUT_MS)
            page.wait_for_timeout(1500)
            dismiss_cookie_banner(page)
            if not detect_bot_wall(page):
                trigger_lazy_render(page)
                rendered = True
                return browser, page
            walled += 1
            title, _body = read_title_and_body(page)
            log_warning(f"[CAPTCHA] Attempt {attempt}/{attempts}: page looks like a bot wall.", context=f"Title: {title}")
            trigger_lazy_render(page)
            if debug_snapshot or attempt == attempts:
                save_debug_snapshot(page, "rtw_blocked", snapshot_dir)
        except PlaywrightError as e:
            last_error = e
            logger.warning(f"[BROWSER] Attempt {attempt}/{attempts} failed: {e}")
        finally:
            if not rendered:
                browser.close()
        if attempt < attempts:
            delay = backoff_sec * (2 ** (attempt - 1))
            logger.info(f"[BROWSER] Retrying in {delay:.0f}s...")
            time.sleep(delay)
    if walled:
        raise BotWallError(
            f"{url} appears to be blocking headless traffic (bot wall) on {walled} of {attempts} attempt(s). "
            "Enable DEBUG_SNAPSHOT=1 to inspect HTML, or switch data source."
        )
    raise NavigationError(f"{url} could not be loaded after {attempts} attempt(s). Last error: {last_error}")


def dump_failure_diagnostics(page, snapshot_dir=config.SNAPSHOT_DIR):
    save_debug_snapshot(page, "rtw_snapshot", snapshot_dir)
    title, body = read_title_and_body(page)
    logger.error(f"[DIAG] Page title: {title}")
    logger.error(f"[DIAG] Body snippet: {body[:BODY_SNIPPET_CHARS]}")


# --- Runs ---

def run(
    url=config.SOURCE_PAGE,
    max_polls=config.MAX_POLLS,
    min_polls=config.MIN_POLLS,
    output_file=config.OUTPUT_FILE,
    debug_snapshot=config.DEBUG_SNAPSHOT,
    snapshot_dir=config.SNAPSHOT_DIR,
):
    """Render `url`, extract polls from every frame, write the artifact. Returns the payload."""
    site_host = urlparse(url).hostname or ""
    with sync_playwright() as p:
        browser, page = render_source_page(p, url, snapshot_dir=snapshot_dir, debug_snapshot=debug_snapshot)
        try:
            if debug_snapshot:
                save_debug_snapshot(page, "rtw_snapshot", snapshot_dir)
            frames = page.frames
            logger.info(f"[FRAME] Frames detected: {len(frames)}")
            polls = collect_polls(frames, max_polls, site_host)
            try:
                check_poll_count(polls, min_polls)
            except TooFewPollsError:
                dump_failure_diagnostics(page, snapshot_dir)
                raise
        finally:
            browser.close()

    payload = build_payload(polls, config.SOURCE_NAME, [url])
    write_payload(payload, output_file)
    summarize(polls)
    return payload


def run_offline(
    html_path,
    base_url=config.SOURCE_PAGE,
    max_polls=config.MAX_POLLS,
    min_polls=config.MIN_POLLS,
    output_file=config.OUTPUT_FILE,
):
    """Run the engine over a saved HTML snapshot; no browser involved."""
    html = Path(html_path).read_text(encoding="utf-8", errors="replace")
    document = parse_snapshot(html)
    polls = extract_polls(document, base_url=base_url, max_polls=max_polls)
    logger.info(f"[EXTRACT] {len(polls)} poll(s) from snapshot {html_path}")
    check_poll_count(polls, min_polls)
    payload = build_payload(polls, config.SOURCE_NAME, [base_url])
    write_payload(payload, output_file)
    summarize(polls)
    return payload


def build_arg_parser():
    parser = argparse.ArgumentParser(description="Extract poll records from a client-rendered poll listing.")
    parser.add_argument("--url", default=config.SOURCE_PAGE, help="Listing page to render.")
    parser.add_argument("--html", default=None, help="Parse a saved HTML snapshot instead of rendering.")
    parser.add_argument("--max-polls", type=int, default=config.MAX_POLLS)
    parser.add_argument("--min-polls", type=int, default=config.MIN_POLLS)
    parser.add_argument("--output", default=config.OUTPUT_FILE)
    parser.add_argument("--snapshot-dir", default=config.SNAPSHOT_DIR)
    parser.add_argument("--debug-snapshot", action="store_true", default=config.DEBUG_SNAPSHOT,
                        help="Write HTML snapshot and screenshot on every run.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    try:
        if args.html:
            run_offline(args.html, base_url=args.url, max_polls=args.max_polls,
                        min_polls=args.min_polls, output_file=args.output)
        else:
            run(args.url, max_polls=args.max_polls, min_polls=args.min_polls, output_file=args.output,
                debug_snapshot=args.debug_snapshot, snapshot_dir=args.snapshot_dir)
    except (ScrapeError, EngineInputError, PlaywrightError, OSError) as e:
        logger.error(f"[ERROR] {type(e).__name__}: {e}")
        log_critical("Poll scrape failed.", context=str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
