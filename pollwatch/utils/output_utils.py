import json
import os
from datetime import datetime, timezone

from ..utils.logger_instance import logger


def safe_join(base, *paths):
    """
    Safely join paths and ensure the result is inside base.
    Prevents path traversal and path-injection.
    """
    base = os.path.abspath(base)
    path = os.path.abspath(os.path.join(base, *paths))
    if path != base and not path.startswith(base + os.sep):
        raise ValueError("Unsafe path detected.")
    return path


def utc_timestamp():
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def build_payload(polls, source, source_pages, updated_at=None):
    return {
        "updatedAt": updated_at or utc_timestamp(),
        "source": source,
        "sourcePages": list(source_pages),
        "polls": list(polls),
    }


def write_payload(payload, path):
    """Write the polls artifact as pretty-printed UTF-8 JSON. Returns the absolute path."""
    path = os.path.abspath(path)
    parent = os.path.dirname(path)
    if parent:
        os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)
    logger.info(f"[OUTPUT] Wrote {path} with {len(payload.get('polls', []))} rows.")
    return path
