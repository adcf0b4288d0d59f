"""
classifiers.py

Field classifiers for poll blocks.

Each function maps the text of one poll block to a single typed field and is
total: when nothing matches it returns the field's empty value ("" or []).
Header-like fields (date, pollster, race) only look at the first few lines of
the block, where poll listings put them.
"""

import math
import re
from typing import Any, Dict, List

from ..utils.text_utils import clean_text, split_lines

CATEGORIES = (
    "generic_ballot", "approval", "senate", "governor", "house",
    "dem_primary", "gop_primary", "pres_general", "president", "other",
)

MAX_RESULTS = 12
DATE_LOOKBACK_LINES = 12
POLLSTER_LOOKBACK_LINES = 10
RACE_LOOKBACK_LINES = 12
POLLSTER_MAX_CHARS = 100
RACE_MAX_CHARS = 120

# Order matters: a primary block can also mention "president".
CATEGORY_RULES = [
    ("generic_ballot", ("generic ballot",)),
    ("approval", ("approval",)),
    ("senate", ("senate",)),
    ("governor", ("governor",)),
    ("house", ("house",)),
    ("dem_primary", ("democratic", "primary")),
    ("gop_primary", ("republican", "primary")),
    ("pres_general", ("general election",)),
]

_PCT = r"100(?:\.0+)?|\d{1,2}(?:\.\d+)?"
_NAME_WORD = r"[A-Z][A-Za-z.'’\-]*"
RESULT_RE = re.compile(
    r"(?<![A-Za-z])(" + _NAME_WORD + r"(?:[ \t]+" + _NAME_WORD + r"){0,4})\s+(" + _PCT + r")\s*%"
)
MARGIN_RE = re.compile(r"\b(\d{1,2}(?:\.\d+)?)\s*[-–]\s*(\d{1,2}(?:\.\d+)?)\b")

MONTH_DATE_RE = re.compile(
    r"\b(?:Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Sept|Oct|Nov|Dec)[a-z]*\s+\d{1,2}"
    r"(?:\s*[-–]\s*\d{1,2})?(?:,?\s*\d{4})?",
    re.IGNORECASE,
)
NUMERIC_DATE_RE = re.compile(
    r"\b\d{1,2}/\d{1,2}(?:/\d{2,4})?(?:\s*[-–]\s*\d{1,2}/\d{1,2}(?:/\d{2,4})?)?"
)

SAMPLE_N_RE = re.compile(r"\b[nN]\s*=\s*(\d{2,6})\b")
SAMPLE_POP_RE = re.compile(r"\b(\d{2,6})\s*(LV|RV|Adults|Voters|A)\b", re.IGNORECASE)

POLLSTER_LABEL_RE = re.compile(r"^(?:Pollster|Poll|Firm)\s*:\s*(.+)$", re.IGNORECASE)

RACE_KEYWORD_RE = re.compile(r"(senate|governor|house|president|primary|generic ballot|approval)", re.IGNORECASE)
STATE_OFFICE_RE = re.compile(r"\b[A-Z]{2}\b.*\b(?:Senate|Governor)\b")
DISTRICT_RE = re.compile(r"\b[A-Z]{2}-\d{2}\b")


def infer_category(text) -> str:
    """First matching rule wins; "other" when nothing matches."""
    t = clean_text(text).lower()
    if not t:
        return "other"
    for category, keywords in CATEGORY_RULES:
        if all(k in t for k in keywords):
            return category
    if "president" in t:
        # also covers "presidential"
        return "president"
    return "other"


def _to_pct(raw):
    try:
        pct = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(pct) or pct < 0 or pct > 100:
        return None
    return pct


def extract_results(text) -> List[Dict[str, Any]]:
    """
    Pull `Name 47%` pairs out of block text, left to right, at most MAX_RESULTS.

    Falls back to a bare `47-43` margin labeled "A"/"B" when the block has no
    named percentages. The candidate names are unknown in that case.
    """
    if not text:
        return []
    text = str(text)
    out = []
    for match in RESULT_RE.finditer(text):
        pct = _to_pct(match.group(2))
        if pct is None:
            continue
        out.append({"choice": clean_text(match.group(1)), "pct": pct})
        if len(out) >= MAX_RESULTS:
            break
    if out:
        return out

    margin = MARGIN_RE.search(text)
    if margin:
        a, b = _to_pct(margin.group(1)), _to_pct(margin.group(2))
        if a is not None and b is not None:
            return [{"choice": "A", "pct": a}, {"choice": "B", "pct": b}]
    return []


def extract_date_text(text) -> str:
    lines = split_lines(text, DATE_LOOKBACK_LINES)
    for pattern in (MONTH_DATE_RE, NUMERIC_DATE_RE):
        for line in lines:
            m = pattern.search(line)
            if m:
                return m.group(0)
    return ""


def extract_sample(text) -> str:
    """`n=812` wins over `812 LV`; the population suffix is upper-cased."""
    if not text:
        return ""
    text = str(text)
    m = SAMPLE_N_RE.search(text)
    if m:
        return f"n={m.group(1)}"
    m = SAMPLE_POP_RE.search(text)
    if m:
        return f"{m.group(1)} {m.group(2).upper()}"
    return ""


def pick_pollster(text) -> str:
    lines = split_lines(text)
    for line in lines[:POLLSTER_LOOKBACK_LINES]:
        m = POLLSTER_LABEL_RE.match(line)
        if m:
            return m.group(1).strip()[:POLLSTER_MAX_CHARS]
    if lines:
        # Listings usually open a block with the poll/pollster name.
        return lines[0][:POLLSTER_MAX_CHARS]
    return ""


def pick_race(text) -> str:
    for line in split_lines(text, RACE_LOOKBACK_LINES):
        if RACE_KEYWORD_RE.search(line) or STATE_OFFICE_RE.search(line) or DISTRICT_RE.search(line):
            return line[:RACE_MAX_CHARS]
    return ""
