"""
Heuristic bias measurements: polarity, subjectivity and loaded language.

Deltas are grok minus wiki. The lexicons are fixed module constants.
"""

import re
from typing import Dict, List

LOADED_TERMS = (
    'alarmist',
    'agenda',
    'bias',
    'woke',
    'skeptic',
    'critics say',
    'so-called',
    'mainstream media',
    'propaganda',
    'controversial',
    'exaggerated',
    'allegedly',
    'reportedly',
    'rumored',
)

POSITIVE_WORDS = frozenset({
    'reliable',
    'credible',
    'scientific',
    'robust',
    'well-established',
    'trusted',
})

NEGATIVE_WORDS = frozenset({'fraud', 'hoax', 'fake', 'biased', 'corrupt', 'politicized'})

_SUBJECTIVE_WORDS = POSITIVE_WORDS | NEGATIVE_WORDS

_TOKEN_STRIP_RE = re.compile(r"[^a-z0-9'-]")

# Phrases tolerate any whitespace run between their words
_LOADED_PATTERNS = tuple(
    (term, re.compile(r"\b" + r"\s+".join(re.escape(part) for part in term.split()) + r"\b", re.IGNORECASE))
    for term in LOADED_TERMS
)


def tokenize(text: str) -> List[str]:
    return [t for t in _TOKEN_STRIP_RE.sub(" ", (text or "").lower()).split() if t]


def score_polarity(tokens: List[str]) -> float:
    score = 0
    for token in tokens:
        if token in POSITIVE_WORDS:
            score += 1
        elif token in NEGATIVE_WORDS:
            score -= 1
    return score / max(len(tokens), 1)


def score_subjectivity(tokens: List[str]) -> float:
    subjective = sum(1 for token in tokens if token in _SUBJECTIVE_WORDS)
    return subjective / max(len(tokens), 1)


def count_loaded_terms(text: str) -> Dict[str, int]:
    """Whole-word/phrase occurrences per loaded term; zero counts omitted."""
    counts: Dict[str, int] = {}
    for term, pattern in _LOADED_PATTERNS:
        hits = len(pattern.findall(text or ""))
        if hits:
            counts[term] = hits
    return counts


def compute_bias_metrics(wiki_text: str, grok_text: str) -> Dict[str, object]:
    """
    Compare subjectivity, polarity and loaded-term usage of two texts.

    Returns:
        Dict with subjectivity_delta, polarity_delta (grok - wiki, 3 decimals)
        and loaded_terms_wiki / loaded_terms_grok term -> count maps
    """
    wiki_tokens = tokenize(wiki_text)
    grok_tokens = tokenize(grok_text)
    subjectivity_delta = score_subjectivity(grok_tokens) - score_subjectivity(wiki_tokens)
    polarity_delta = score_polarity(grok_tokens) - score_polarity(wiki_tokens)
    return {
        'subjectivity_delta': round(subjectivity_delta, 3),
        'polarity_delta': round(polarity_delta, 3),
        'loaded_terms_wiki': count_loaded_terms(wiki_text),
        'loaded_terms_grok': count_loaded_terms(grok_text),
    }
