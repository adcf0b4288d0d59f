import json

import pytest
from playwright.sync_api import Error as PlaywrightError

from conftest import SITE, page, poll_card
from pollwatch import poll_scraper
from pollwatch.poll_scraper import (
    BotWallError,
    NavigationError,
    TooFewPollsError,
    check_poll_count,
    collect_polls,
    extract_polls_from_frame,
    main,
    render_source_page,
    run_offline,
)
from pollwatch.utils.captcha_tools import detect_bot_wall, looks_like_bot_wall
from pollwatch.utils.output_utils import build_payload, safe_join, write_payload


class FakeFrame:
    def __init__(self, html, url=SITE):
        self.html = html
        self.url = url

    def content(self):
        return self.html


class BrokenFrame:
    url = "https://ads.example.net/frame"

    def content(self):
        raise PlaywrightError("Frame was detached")


class FakeLocator:
    def __init__(self, present=False):
        self.present = present
        self.clicked = False

    @property
    def first(self):
        return self

    def count(self):
        return 1 if self.present else 0

    def click(self, timeout=None):
        self.clicked = True


class FakePage:
    def __init__(self, title="All Polls", body="Smith 47%", html="<html></html>"):
        self._title = title
        self._body = body
        self._html = html
        self.gotos = []
        self.frames = [FakeFrame(html)]

    def set_default_navigation_timeout(self, ms):
        pass

    def route(self, pattern, handler):
        self.route_handler = handler

    def goto(self, url, wait_until=None, timeout=None):
        self.gotos.append((url, wait_until))

    def wait_for_load_state(self, state, timeout=None):
        pass

    def wait_for_timeout(self, ms):
        pass

    def wait_for_selector(self, selector, timeout=None):
        self.selector = selector

    def locator(self, selector):
        return FakeLocator()

    def evaluate(self, script):
        pass

    def title(self):
        return self._title

    def text_content(self, selector):
        return self._body

    def content(self):
        return self._html

    def screenshot(self, path=None, full_page=False):
        with open(path, "wb") as f:
            f.write(b"png")


class UnreachablePage(FakePage):
    def goto(self, url, wait_until=None, timeout=None):
        self.gotos.append((url, wait_until))
        raise PlaywrightError("net::ERR_NAME_NOT_RESOLVED")


class FakeBrowser:
    def __init__(self, page):
        self.page = page
        self.closed = False

    def new_context(self, user_agent=None, viewport=None):
        return self

    def new_page(self):
        return self.page

    def close(self):
        self.closed = True


class FakePlaywright:
    def __init__(self, pages):
        self.pages = list(pages)
        self.browsers = []

    @property
    def chromium(self):
        return self

    def launch(self, headless=True, args=None):
        browser = FakeBrowser(self.pages.pop(0))
        self.browsers.append(browser)
        return browser


@pytest.fixture
def no_sleep(monkeypatch):
    delays = []
    monkeypatch.setattr(poll_scraper.time, "sleep", delays.append)
    return delays


# --- Bot wall detection ---

@pytest.mark.parametrize("title,body,blocked", [
    ("Just a moment...", "", True),
    ("", "Checking your browser before accessing", True),
    ("Attention Required! | Cloudflare", "", True),
    ("All Polls", "<div id='cf-chl-widget'>", True),
    ("All Polls | RaceToTheWH", "Senate polls: Smith 47%", False),
    (None, None, False),
])
def test_looks_like_bot_wall(title, body, blocked):
    assert looks_like_bot_wall(title, body) is blocked


def test_detect_bot_wall_reads_page():
    assert detect_bot_wall(FakePage(title="Access denied"))
    assert not detect_bot_wall(FakePage())


# --- Frame stages ---

def test_frame_failure_contributes_nothing(listing_html):
    polls = collect_polls([BrokenFrame(), FakeFrame(listing_html)], max_polls=600, site_host="www.racetothewh.com")
    assert len(polls) == 6
    assert extract_polls_from_frame(BrokenFrame()) == []


def test_frames_are_deduped_and_capped(listing_html):
    frames = [FakeFrame(listing_html), FakeFrame(listing_html)]
    assert len(collect_polls(frames, max_polls=600, site_host="www.racetothewh.com")) == 6
    assert len(collect_polls(frames, max_polls=4, site_host="www.racetothewh.com")) == 4


def test_check_poll_count():
    check_poll_count([{}] * 10, min_polls=10)
    with pytest.raises(TooFewPollsError) as exc:
        check_poll_count([{}] * 3, min_polls=10)
    assert exc.value.count == 3
    assert "too few poll rows (3 < 10)" in str(exc.value)


# --- Rendering / retry ---

def test_render_returns_first_clean_page(no_sleep):
    clean = FakePage()
    pw = FakePlaywright([clean])
    browser, rendered = render_source_page(pw, SITE, max_retries=3, backoff_sec=1)
    assert rendered is clean
    assert not browser.closed
    assert clean.gotos == [(SITE, "domcontentloaded")]
    assert ':not([href*="racetothewh.com"])' in clean.selector
    assert no_sleep == []


def test_render_retries_bot_wall_with_backoff(no_sleep, tmp_path):
    blocked_1 = FakePage(title="Just a moment...")
    blocked_2 = FakePage(title="Just a moment...")
    clean = FakePage()
    pw = FakePlaywright([blocked_1, blocked_2, clean])
    browser, rendered = render_source_page(pw, SITE, max_retries=3, backoff_sec=2,
                                           snapshot_dir=str(tmp_path), debug_snapshot=False)
    assert rendered is clean
    assert [b.closed for b in pw.browsers] == [True, True, False]
    assert no_sleep == [2, 4]


def test_render_gives_up_and_snapshots(no_sleep, tmp_path):
    pw = FakePlaywright([FakePage(title="Just a moment...", html="<html>wall</html>") for _ in range(2)])
    with pytest.raises(BotWallError):
        render_source_page(pw, SITE, max_retries=2, backoff_sec=1,
                           snapshot_dir=str(tmp_path), debug_snapshot=False)
    assert all(b.closed for b in pw.browsers)
    assert (tmp_path / "rtw_blocked.html").read_text(encoding="utf-8") == "<html>wall</html>"
    assert (tmp_path / "rtw_blocked.png").exists()



def test_unreachable_site_is_not_a_bot_wall(no_sleep, tmp_path):
    pages = [UnreachablePage(), UnreachablePage()]
    pw = FakePlaywright(pages)
    with pytest.raises(NavigationError, match="ERR_NAME_NOT_RESOLVED") as exc:
        render_source_page(pw, SITE, max_retries=2, backoff_sec=1, snapshot_dir=str(tmp_path))
    assert not isinstance(exc.value, BotWallError)
    assert pages[0].gotos == [(SITE, "domcontentloaded"), (SITE, "commit")]
    assert all(b.closed for b in pw.browsers)
    assert no_sleep == [1]


def test_bot_wall_reported_even_if_last_attempt_fails_to_load(no_sleep, tmp_path):
    pw = FakePlaywright([FakePage(title="Just a moment..."), UnreachablePage()])
    with pytest.raises(BotWallError, match="on 1 of 2"):
        render_source_page(pw, SITE, max_retries=2, backoff_sec=1, snapshot_dir=str(tmp_path))


def test_failed_attempt_closes_browser_on_snapshot_error(no_sleep, tmp_path):
    occupied = tmp_path / "occupied"
    occupied.write_text("not a directory", encoding="utf-8")
    pw = FakePlaywright([FakePage(title="Just a moment...")])
    with pytest.raises(OSError):
        render_source_page(pw, SITE, max_retries=1, backoff_sec=1, snapshot_dir=str(occupied))
    assert pw.browsers[0].closed

# --- Output ---

def test_build_and_write_payload(tmp_path):
    polls = [{"url": "u", "results": [{"choice": "Smith", "pct": 47.0}]}]
    payload = build_payload(polls, "racetothewh", [SITE], updated_at="2024-10-06T12:00:00.000Z")
    assert payload == {
        "updatedAt": "2024-10-06T12:00:00.000Z",
        "source": "racetothewh",
        "sourcePages": [SITE],
        "polls": polls,
    }
    path = write_payload(payload, tmp_path / "out" / "polls.json")
    assert json.loads(open(path, encoding="utf-8").read()) == payload


def test_payload_timestamp_is_utc_iso():
    stamp = build_payload([], "s", [])["updatedAt"]
    assert stamp.endswith("Z") and "T" in stamp


def test_safe_join_rejects_traversal(tmp_path):
    assert safe_join(str(tmp_path), "rtw.html").endswith("rtw.html")
    with pytest.raises(ValueError):
        safe_join(str(tmp_path), "..", "escape.html")


# --- Offline runs / CLI ---

def test_run_offline_writes_artifact(tmp_path, listing_html):
    snapshot = tmp_path / "snap.html"
    snapshot.write_text(listing_html, encoding="utf-8")
    out = tmp_path / "polls.json"
    payload = run_offline(snapshot, base_url=SITE, min_polls=5, output_file=str(out))
    written = json.loads(out.read_text(encoding="utf-8"))
    assert written["source"] == "racetothewh"
    assert written["sourcePages"] == [SITE]
    assert len(written["polls"]) == 6 == len(payload["polls"])


def test_main_offline_success_and_failure(tmp_path, listing_html):
    snapshot = tmp_path / "snap.html"
    snapshot.write_text(listing_html, encoding="utf-8")
    out = tmp_path / "polls.json"
    assert main(["--html", str(snapshot), "--min-polls", "5", "--output", str(out)]) == 0
    assert out.exists()
    # six polls fall short of a threshold of ten
    assert main(["--html", str(snapshot), "--min-polls", "10", "--output", str(tmp_path / "x.json")]) == 1
    assert not (tmp_path / "x.json").exists()


def test_main_missing_snapshot(tmp_path):
    assert main(["--html", str(tmp_path / "missing.html")]) == 1


def test_main_offline_many_cards(tmp_path):
    cards = "".join(poll_card(pollster=f"Firm {i}", source=f"https://firm{i}.org/p") for i in range(12))
    snapshot = tmp_path / "snap.html"
    snapshot.write_text(page(cards), encoding="utf-8")
    out = tmp_path / "polls.json"
    assert main(["--html", str(snapshot), "--max-polls", "11", "--output", str(out)]) == 0
    assert len(json.loads(out.read_text(encoding="utf-8"))["polls"]) == 11
