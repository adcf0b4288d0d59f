"""
block_discovery.py

Finds DOM elements that probably hold exactly one poll.

The target listings carry no usable classes or ids, so discovery works from
structure and text only:

1. Link pass: start at every meaningful <a href> and walk up the ancestors
   (bounded) until one reads like a poll. The first hit is the smallest
   enclosing block.
2. Container pass: scan generic containers with the same predicate. The
   engine only runs it when the link pass comes up short, so polls without
   any outbound link are still caught.
"""

from dataclasses import dataclass
from typing import Callable, Iterator, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from ..utils.shared_logger import log_trace
from ..utils.text_utils import inner_text

ANCESTOR_DEPTH = 10
MIN_BLOCK_CHARS = 25
MAX_BLOCK_CHARS = 2200
FALLBACK_SCAN_LIMIT = 2500
DEFAULT_MAX_BLOCKS = 600

EXCLUDED_REGIONS = ["header", "nav", "footer"]
CONTAINER_TAGS = ["div", "li", "p", "article", "section"]

SOCIAL_DOMAINS = (
    "twitter.com", "x.com", "facebook.com", "instagram.com", "youtube.com", "tiktok.com",
)
NOISE_SCHEMES = ("mailto:", "tel:", "javascript:")

POLL_KEYWORDS = (
    "lv", "rv", "likely voters", "registered voters", "n=", "poll", "survey",
    "approve", "disapprove", "ballot", "senate", "governor", "house", "primary",
    "republican", "democrat", "gop", "dem",
)

TextOf = Callable[[Tag], str]
Predicate = Callable[[str], bool]


@dataclass(frozen=True)
class PollBlock:
    """One discovered block: the element, its inner text, and the link that led to it (if any)."""
    element: Tag
    text: str
    anchor: Optional[Tag] = None


def host_matches(host: str, domain: str) -> bool:
    host = (host or "").lower()
    domain = domain.lower()
    return host == domain or host.endswith("." + domain)


def is_noise_href(href) -> bool:
    """Fragment, mailto/tel/javascript and social-media links carry no poll source."""
    if not href:
        return True
    h = str(href).strip().lower()
    if not h or h.startswith("#"):
        return True
    if h.startswith(NOISE_SCHEMES):
        return True
    parsed = urlparse(h)
    if not parsed.scheme and not h.startswith(("/", ".")):
        # bare "twitter.com/x" style hrefs
        parsed = urlparse("//" + h)
    host = parsed.hostname or ""
    return any(host_matches(host, d) for d in SOCIAL_DOMAINS)


def in_excluded_region(el: Tag) -> bool:
    return el.find_parent(EXCLUDED_REGIONS) is not None


def is_likely_poll_block(text) -> bool:
    """
    Poll-likeness predicate: has a percent sign, is between MIN_BLOCK_CHARS
    and MAX_BLOCK_CHARS long, and mentions at least one polling keyword.
    """
    if not text:
        return False
    text = str(text).strip()
    if "%" not in text:
        return False
    if len(text) < MIN_BLOCK_CHARS or len(text) > MAX_BLOCK_CHARS:
        return False
    t = text.lower()
    return any(k in t for k in POLL_KEYWORDS)


def make_text_cache() -> TextOf:
    """innerText lookups memoized by element identity for one extraction call."""
    cache = {}

    def text_of(el: Tag) -> str:
        key = id(el)
        hit = cache.get(key)
        if hit is None:
            # keep the element alive so its id cannot be reused mid-run
            hit = (el, inner_text(el))
            cache[key] = hit
        return hit[1]

    return text_of


def collect_anchors(root: Tag) -> List[Tag]:
    anchors = []
    for a in root.find_all("a", href=True):
        if in_excluded_region(a):
            continue
        if is_noise_href(a.get("href")):
            continue
        anchors.append(a)
    return anchors


def find_poll_block(
    start: Tag,
    predicate: Predicate = is_likely_poll_block,
    max_depth: int = ANCESTOR_DEPTH,
    text_of: Optional[TextOf] = None,
    root: Optional[Tag] = None,
) -> Optional[Tag]:
    """
    Walk from `start` up through at most `max_depth` elements; first one whose
    text passes wins. The walk never climbs above `root` when one is given.
    """
    text_of = text_of or inner_text
    el = start
    for _ in range(max_depth):
        if el is None or isinstance(el, BeautifulSoup):
            return None
        if predicate(text_of(el)):
            return el
        if el is root:
            return None
        el = el.parent
    return None


def discover_link_blocks(
    root: Tag,
    predicate: Predicate = is_likely_poll_block,
    max_blocks: int = DEFAULT_MAX_BLOCKS,
    max_depth: int = ANCESTOR_DEPTH,
    text_of: Optional[TextOf] = None,
) -> Iterator[PollBlock]:
    """Link-anchored pass. Each enclosing element is yielded once, in anchor order."""
    text_of = text_of or make_text_cache()
    seen = set()
    found = 0
    for a in collect_anchors(root):
        if found >= max_blocks:
            break
        chosen = find_poll_block(a, predicate, max_depth, text_of, root=root)
        if chosen is None:
            log_trace("[DISCOVERY] no poll-like ancestor for %s", a.get("href"))
            continue
        if id(chosen) in seen:
            continue
        seen.add(id(chosen))
        found += 1
        yield PollBlock(element=chosen, text=text_of(chosen), anchor=a)


def iter_containers(root: Tag, limit: int = FALLBACK_SCAN_LIMIT) -> Iterator[Tag]:
    scanned = 0
    for el in root.find_all(CONTAINER_TAGS):
        if scanned >= limit:
            break
        if in_excluded_region(el):
            continue
        scanned += 1
        yield el


def discover_container_blocks(
    root: Tag,
    predicate: Predicate = is_likely_poll_block,
    max_blocks: int = DEFAULT_MAX_BLOCKS,
    scan_limit: int = FALLBACK_SCAN_LIMIT,
    text_of: Optional[TextOf] = None,
) -> Iterator[PollBlock]:
    """Fallback pass over div/li/p/article/section, no anchor required."""
    text_of = text_of or make_text_cache()
    found = 0
    for el in iter_containers(root, scan_limit):
        if found >= max_blocks:
            break
        text = text_of(el)
        if not predicate(text):
            continue
        found += 1
        yield PollBlock(element=el, text=text)
