"""
record_assembler.py

Turns one discovered PollBlock into a candidate poll record (a plain dict).
"""

from typing import Any, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from .block_discovery import PollBlock, host_matches, is_noise_href
from .classifiers import (
    extract_date_text,
    extract_results,
    extract_sample,
    infer_category,
    pick_pollster,
    pick_race,
)
from ..utils.text_utils import clean_text

POLL_FIELDS = (
    "url", "category", "race", "pollster", "date_text", "sample",
    "population", "results_text", "results",
)


def resolve_href(href, base_url: str = "") -> str:
    href = (href or "").strip()
    if not href:
        return ""
    if base_url:
        return urljoin(base_url, href)
    return href


def block_links(block: PollBlock, base_url: str = "") -> List[str]:
    """Non-noise links inside the block element, resolved, in document order."""
    links = []
    for a in block.element.find_all("a", href=True):
        href = a.get("href")
        if is_noise_href(href):
            continue
        links.append(resolve_href(href, base_url))
    # the block may be the anchor itself
    if block.element.name == "a" and not is_noise_href(block.element.get("href")):
        links.insert(0, resolve_href(block.element.get("href"), base_url))
    return [link for link in links if link]


def is_external_url(url: str, site_host: Optional[str]) -> bool:
    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https"):
        return False
    if not site_host:
        return True
    return not host_matches(parsed.hostname or "", site_host.lower().removeprefix("www."))


def pick_canonical_url(block: PollBlock, base_url: str = "", site_host: Optional[str] = None) -> str:
    """
    Prefer the first off-site http(s) link inside the block, then the link that
    led to the block, then any link in the block.
    """
    if site_host is None and base_url:
        site_host = urlparse(base_url).hostname
    links = block_links(block, base_url)
    for link in links:
        if is_external_url(link, site_host):
            return link
    if block.anchor is not None:
        anchor_url = resolve_href(block.anchor.get("href"), base_url)
        if anchor_url:
            return anchor_url
    return links[0] if links else ""


def assemble_record(block: PollBlock, base_url: str = "", site_host: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Build the record for one block, or None when the block has no numeric results."""
    txt = block.text or ""
    results = extract_results(txt)
    if not results:
        return None
    return {
        "url": pick_canonical_url(block, base_url, site_host),
        "category": infer_category(txt),
        "race": pick_race(txt),
        "pollster": pick_pollster(txt),
        "date_text": extract_date_text(txt),
        "sample": extract_sample(txt),
        "population": "",
        "results_text": clean_text(txt),
        "results": results,
    }
