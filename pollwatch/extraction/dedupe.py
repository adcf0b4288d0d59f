from typing import Any, Dict, Iterable, List

FINGERPRINT_TEXT_CHARS = 160


def poll_fingerprint(poll: Dict[str, Any]) -> str:
    """url | first 160 chars of the block text | date text."""
    url = poll.get("url") or ""
    text = (poll.get("results_text") or "")[:FINGERPRINT_TEXT_CHARS]
    date_text = poll.get("date_text") or ""
    return f"{url}|{text}|{date_text}"


def dedupe_polls(polls: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Keep the first record per fingerprint, preserving discovery order."""
    seen = set()
    out = []
    for poll in polls:
        key = poll_fingerprint(poll)
        if key in seen:
            continue
        seen.add(key)
        out.append(poll)
    return out
