"""
Text normalisation, sentence splitting and fuzzy similarity helpers.

Every function here is pure and total: empty strings are valid input.
"""

import difflib
import re
from typing import List

_WHITESPACE_RE = re.compile(r"\s+")
_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
_NON_WORD_RE = re.compile(r"[^\w\s]")
_TOKEN_STRIP_RE = re.compile(r"[^a-z0-9\s-]")
_URL_RE = re.compile(r"https?://[^\s<>\"')\]]+", re.IGNORECASE)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace runs and unescape markdown-escaped dashes/backslashes."""
    text = (text or "").replace("\\-", "-").replace("\\\\", "\\")
    return _WHITESPACE_RE.sub(" ", text).strip()


def split_sentences(text: str) -> List[str]:
    """Split on terminal punctuation followed by whitespace; drops empty pieces."""
    return [s.strip() for s in _SENTENCE_BOUNDARY_RE.split(normalize_whitespace(text)) if s.strip()]


def normalize_sentence(sentence: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace for exact comparison."""
    stripped = _NON_WORD_RE.sub("", (sentence or "").strip().lower())
    return _WHITESPACE_RE.sub(" ", stripped).strip()


def tokenize(text: str) -> List[str]:
    """Word tokens used by the similarity ratios and n-gram overlap."""
    return [t for t in _TOKEN_STRIP_RE.sub(" ", (text or "").lower()).split() if t]


def text_similarity(a: str, b: str) -> float:
    """
    Fuzzy similarity in [0, 1] between two strings.

    Both sides are case-folded and trimmed. The pair is ordered before
    comparison so the score does not depend on argument order.
    """
    left = (a or "").strip().lower()
    right = (b or "").strip().lower()
    if not left and not right:
        return 1.0
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0
    first, second = sorted((left, right))
    return difflib.SequenceMatcher(None, first, second, autojunk=False).ratio()


def extract_urls(text: str) -> List[str]:
    """URLs found in free text, in order of appearance, trailing punctuation trimmed."""
    return [m.group(0).rstrip(".,;:") for m in _URL_RE.finditer(text or "")]


def unique_list(values: List[str]) -> List[str]:
    """Order-preserving de-duplication, case-insensitive, values trimmed."""
    seen = set()
    result = []
    for value in values:
        key = value.strip().lower()
        if key and key not in seen:
            seen.add(key)
            result.append(value.strip())
    return result


def difference(a: List[str], b: List[str]) -> List[str]:
    """Items of ``a`` absent from ``b`` (case-insensitive), in ``a`` order."""
    other = {value.strip().lower() for value in b}
    return [value for value in a if value.strip().lower() not in other]
