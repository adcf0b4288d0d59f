# extraction/engine.py
# ---------------------------------------------------------------
# Entry point of the extraction engine: DOM snapshot in, deduplicated
# poll records out. Performs no I/O; the browser side lives in
# poll_scraper.py and utils/browser_utils.py.
# ---------------------------------------------------------------

from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from bs4 import BeautifulSoup, Tag

from .block_discovery import (
    DEFAULT_MAX_BLOCKS,
    Predicate,
    PollBlock,
    discover_container_blocks,
    discover_link_blocks,
    is_likely_poll_block,
    make_text_cache,
)
from .dedupe import dedupe_polls
from .record_assembler import assemble_record
from ..utils.logger_instance import logger
from ..utils.shared_logger import log_trace

FALLBACK_MIN_BLOCKS = 5


class EngineInputError(ValueError):
    """Raised when the engine is handed something it cannot traverse at all."""


def parse_snapshot(html) -> BeautifulSoup:
    """Parse serialized frame HTML into a traversable tree."""
    if html is None:
        raise EngineInputError("No HTML snapshot supplied.")
    return BeautifulSoup(html, "html.parser")


def _assemble(blocks: Iterable[PollBlock], base_url: str, site_host: Optional[str], limit: int) -> List[Dict[str, Any]]:
    records = []
    for block in blocks:
        if len(records) >= limit:
            break
        record = assemble_record(block, base_url, site_host)
        if record is None:
            log_trace("[EXTRACT] block without results dropped: %.80s", block.text)
            continue
        records.append(record)
    return records


def extract_polls(
    document,
    base_url: str = "",
    site_host: Optional[str] = None,
    max_polls: int = DEFAULT_MAX_BLOCKS,
    predicate: Predicate = is_likely_poll_block,
) -> List[Dict[str, Any]]:
    """
    Discover poll blocks in `document` and return their records.

    Args:
        document: BeautifulSoup tree (or any bs4 Tag) of one rendered frame.
        base_url: URL the frame was loaded from; relative links resolve against it.
        site_host: host of the listing site. Links to it are not treated as
            a poll's source. Defaults to the host of base_url.
        max_polls: upper bound on returned records.
        predicate: poll-likeness test applied to element text.

    Returns:
        Records in first-discovered order, deduplicated, at most max_polls.
    """
    if document is None or not isinstance(document, Tag):
        raise EngineInputError(f"Cannot traverse document of type {type(document).__name__}.")
    if max_polls <= 0:
        return []
    if site_host is None:
        site_host = urlparse(base_url).hostname if base_url else None

    text_of = make_text_cache()
    link_blocks = discover_link_blocks(document, predicate, max_blocks=max_polls, text_of=text_of)
    records = _assemble(link_blocks, base_url, site_host, max_polls)
    logger.debug(f"[EXTRACT] Link pass produced {len(records)} record(s).")

    if len(records) < FALLBACK_MIN_BLOCKS:
        container_blocks = discover_container_blocks(
            document, predicate, max_blocks=max_polls - len(records), text_of=text_of
        )
        extra = _assemble(container_blocks, base_url, site_host, max_polls - len(records))
        logger.debug(f"[EXTRACT] Container fallback produced {len(extra)} record(s).")
        records.extend(extra)

    return dedupe_polls(records)[:max_polls]
