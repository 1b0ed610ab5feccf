"""
search.py — Catalog item search with query parsing and token boosting.

Extracts structured tokens (nominal sizes, pipe class codes) from a free-text
query, then ranks items using weighted fuzzy matching plus token bonuses.
"""

from __future__ import annotations

import re

import pandas as pd
from rapidfuzz import fuzz

from pipingsheets.attributes import first_non_empty, resolve
from pipingsheets.pipe_class import CLASS_ATTRIBUTES, class_tokens, is_class_code
from pipingsheets.records import Record
from pipingsheets.sizes import index_of, normalize_token

ITEM_COLUMNS = [
    "item_id", "group", "code", "name", "type", "description",
    "size_min", "size_max", "pipe_class",
]


# ── Query parser token types ──────────────────────────────

# Nominal sizes: DN50, DN 50, 1-1/2", 1 1/2, 3/4, 2"
_DN_PATTERN = re.compile(r'\bDN\s*\d{2,3}\b', re.IGNORECASE)
_INCH_PATTERN = re.compile(
    r'(?<![\w/])(\d{1,2}(?:[ -]\d/\d)?|\d/\d)\s*(?:"|IN\b|INCH\b)?(?![\w/])',
    re.IGNORECASE,
)

# Abbreviations used on isometrics and in catalog comments
_EXPANSIONS = [
    (re.compile(r'\bELL\b', re.I),   'ELBOW'),
    (re.compile(r'\bSMLS\b', re.I),  'SEAMLESS'),
    (re.compile(r'\bFLG\b', re.I),   'FLANGE'),
    (re.compile(r'\bGSKT\b', re.I),  'GASKET'),
    (re.compile(r'\bVLV\b', re.I),   'VALVE'),
    (re.compile(r'\bRED\b', re.I),   'REDUCER'),
    (re.compile(r'\bSTUD\b', re.I),  'BOLT'),
]

_STOP_WORDS = {'THE', 'A', 'AN', 'FOR', 'AND', 'WITH', 'OF', 'IN', 'INCH', 'DN'}


class ParsedQuery:
    """Structured representation of a search query."""

    def __init__(self, raw: str):
        self.raw = raw
        self.sizes: list[int] = []          # canonical size indexes
        self.classes: list[str] = []        # e.g. ["150JX00"]
        self.tokens: list[str] = []         # remaining tokens
        self.normalized: str = ""           # full normalized query string


def parse_query(text: str) -> ParsedQuery:
    """Parse a catalog query into structured tokens."""
    pq = ParsedQuery(text)
    working = (text or "").strip()
    if not working:
        return pq

    for m in _DN_PATTERN.finditer(working):
        idx = index_of(m.group(0))
        if idx is not None:
            pq.sizes.append(idx)
    without_dn = _DN_PATTERN.sub(" ", working)
    for m in _INCH_PATTERN.finditer(without_dn):
        idx = index_of(normalize_token(m.group(1)))
        if idx is not None and idx not in pq.sizes:
            pq.sizes.append(idx)

    norm = working.upper()
    for pattern, replacement in _EXPANSIONS:
        norm = pattern.sub(replacement, norm)
    pq.normalized = " ".join(norm.split())

    raw_tokens = re.findall(r'[A-Z0-9/]+', pq.normalized)
    pq.classes = [t for t in raw_tokens if is_class_code(t)]
    # Size tokens are scored through pq.sizes
    pq.tokens = [t for t in raw_tokens if t not in _STOP_WORDS and index_of(t) is None]

    return pq


def _covers(size_min: str, size_max: str, wanted: list[int]) -> bool:
    lo, hi = index_of(size_min), index_of(size_max)
    if lo is None or hi is None:
        return False
    lo, hi = min(lo, hi), max(lo, hi)
    return any(lo <= w <= hi for w in wanted)


def _score_item(pq: ParsedQuery, row: dict) -> float:
    """Score a single item against a parsed query."""
    text_upper = f"{row['type']} {row['description']} {row['name']}".upper()
    code_upper = str(row["code"]).upper()
    combined = f"{text_upper} {code_upper} {str(row['pipe_class']).upper()}"

    covers = _covers(row["size_min"], row["size_max"], pq.sizes) if pq.sizes else False

    if pq.tokens:
        hits = sum(1 for token in pq.tokens if token in combined)
        token_ratio = hits / len(pq.tokens)
        if token_ratio == 0:
            return 0.0
    elif covers:
        token_ratio = 1.0
    else:
        return 0.0

    text_fuzzy = fuzz.token_set_ratio(pq.normalized, text_upper)
    code_fuzzy = fuzz.partial_ratio(pq.normalized, code_upper)
    fuzzy_best = max(text_fuzzy, code_fuzzy)

    # Base score = 50% token hits + 35% fuzzy
    score = (token_ratio * 50) + (fuzzy_best / 100 * 35)

    # ── Token bonuses ──

    if pq.sizes:
        if covers:
            score += 15
        else:
            score -= 10

    if pq.classes:
        item_classes = set(class_tokens(str(row["pipe_class"])))
        if any(c in item_classes for c in pq.classes):
            score += 12
        else:
            score -= 8

    if token_ratio == 1.0:
        score += 8

    # Exact item code match
    if pq.normalized.replace(" ", "") == code_upper.replace(" ", ""):
        score = 100

    return max(min(score, 100), 0)


def items_frame(records: list[Record]) -> pd.DataFrame:
    """Flat table of selectable items; item_id is the position in records."""
    rows = []
    for idx, rec in enumerate(records):
        rows.append({
            "item_id": idx,
            "group": rec.group,
            "code": rec.code,
            "name": rec.name,
            "type": rec.type,
            "description": first_non_empty(
                resolve(rec, "Additional Comment", fuzzy=False),
                resolve(rec, "Comment", fuzzy=False),
            ),
            "size_min": resolve(rec, ("Size (Min)", "Size min", "DN min"), fuzzy=False),
            "size_max": resolve(rec, ("Size (Max)", "Size max", "DN max"), fuzzy=False),
            "pipe_class": resolve(rec, CLASS_ATTRIBUTES, fuzzy=False),
        })
    return pd.DataFrame(rows, columns=ITEM_COLUMNS)


def search_items(
    query: str,
    items_df: pd.DataFrame,
    max_results: int = 25,
    min_score: float = 30,
) -> pd.DataFrame:
    """
    Parse the query, fuzzy-match every item and return the best ones.
    Returns DataFrame with match_score column (0-100).
    """
    if items_df.empty or not (query or "").strip():
        return pd.DataFrame(columns=ITEM_COLUMNS + ["match_score"])

    pq = parse_query(query)
    if not pq.tokens and not pq.sizes:
        return pd.DataFrame(columns=ITEM_COLUMNS + ["match_score"])

    frame = items_df.fillna("").astype({c: str for c in ITEM_COLUMNS if c != "item_id"})
    scores = [_score_item(pq, row) for row in frame.to_dict("records")]

    result = items_df.copy()
    result["match_score"] = scores

    result = result[result["match_score"] >= min_score]
    result = result.sort_values("match_score", ascending=False, kind="stable")
    result = result.head(max_results)

    return result.reset_index(drop=True)
