"""
Numeric and entity differences between aligned claim/sentence pairs.

A pair is a dict with ``wikipedia`` and ``grokipedia`` sides, each holding at
least ``text`` and optionally ``claim_id``, ``numbers`` and ``entities`` as
provided by the claim extractor. Missing numbers/entities are extracted from
the text.
"""

import re
from typing import Any, Dict, Iterable, List, Optional

# Relative difference at which two primary numbers count as discrepant
NUMERIC_TOLERANCE = 0.05

UNIT_WORDS = frozenset({
    '%', 'percent', 'per cent',
    'km', 'kilometre', 'kilometres', 'kilometer', 'kilometers',
    'm', 'metre', 'metres', 'meter', 'meters', 'cm', 'mm',
    'mi', 'mile', 'miles', 'ft', 'feet', 'foot',
    'kg', 'kilogram', 'kilograms', 'g', 'gram', 'grams', 't', 'tonnes', 'tons',
    'year', 'years', 'day', 'days', 'month', 'months', 'hour', 'hours',
    'million', 'billion', 'trillion', 'thousand',
    'people', 'usd', 'eur', 'k', 'c', 'f',
})

_NUMBER_RE = re.compile(
    r"(?<![\w.])(-?\d{1,3}(?:,\d{3})+(?:\.\d+)?|-?\d+(?:\.\d+)?)(?:\s*(%|[A-Za-z]+))?"
)

_ENTITY_RE = re.compile(r"\b[A-Z][A-Za-z'\-]+(?:\s+[A-Z][A-Za-z'\-]+)*")

_ENTITY_STOPWORDS = frozenset({
    'the', 'a', 'an', 'it', 'its', 'this', 'that', 'these', 'those', 'in', 'on',
    'at', 'by', 'for', 'from', 'of', 'and', 'but', 'or', 'as', 'he', 'she',
    'they', 'we', 'his', 'her', 'their', 'after', 'before', 'during', 'when',
    'while', 'some', 'many', 'most', 'critics', 'however', 'although',
})


def extract_numbers(text: str) -> List[Dict[str, Any]]:
    """Numeric mentions as ``{"raw", "value", "unit"}`` in order of appearance."""
    numbers = []
    for match in _NUMBER_RE.finditer(text or ""):
        digits, trailing = match.group(1), match.group(2)
        unit: Optional[str] = None
        raw = digits
        if trailing and trailing.lower() in UNIT_WORDS:
            unit = 'percent' if trailing.lower() in ('%', 'percent') else trailing.lower()
            raw = match.group(0)
        try:
            value = float(digits.replace(',', ''))
        except ValueError:
            continue
        numbers.append({'raw': raw, 'value': value, 'unit': unit})
    return numbers


def extract_entities(text: str) -> List[str]:
    """Capitalized phrases, case-folded and de-duplicated in order of appearance."""
    entities: List[str] = []
    for match in _ENTITY_RE.finditer(text or ""):
        words = match.group(0).split()
        while words and words[0].lower() in _ENTITY_STOPWORDS:
            words = words[1:]
        if not words:
            continue
        label = " ".join(words).lower()
        if label not in entities:
            entities.append(label)
    return entities


def relative_difference(a: float, b: float) -> float:
    if a == 0 and b == 0:
        return 0.0
    if a == 0 or b == 0:
        return 1.0
    return abs(a - b) / max(abs(a), abs(b))


def _numbers_of(side: Dict[str, Any]) -> List[Dict[str, Any]]:
    provided = [n for n in side.get('numbers') or [] if isinstance(n.get('value'), (int, float))]
    return provided or extract_numbers(side.get('text', ''))


def _entities_of(side: Dict[str, Any]) -> List[str]:
    provided = [str(e).strip().lower() for e in side.get('entities') or [] if str(e).strip()]
    return list(dict.fromkeys(provided)) if provided else extract_entities(side.get('text', ''))


def _matched(pairs: Iterable[Dict[str, Any]]):
    for pair in pairs:
        if pair.get('wikipedia') and pair.get('grokipedia'):
            yield pair['wikipedia'], pair['grokipedia']


def detect_numeric_discrepancies(pairs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Compare the primary number of each matched pair.

    Pairs whose units are both known and differ are not comparable and are
    skipped. A pair is flagged when the relative difference reaches
    NUMERIC_TOLERANCE.
    """
    results = []
    for wiki, grok in _matched(pairs):
        wiki_numbers = _numbers_of(wiki)
        grok_numbers = _numbers_of(grok)
        if not wiki_numbers or not grok_numbers:
            continue
        primary_w, primary_g = wiki_numbers[0], grok_numbers[0]
        if primary_w.get('unit') and primary_g.get('unit') and primary_w['unit'] != primary_g['unit']:
            continue
        delta = relative_difference(float(primary_w['value']), float(primary_g['value']))
        if delta >= NUMERIC_TOLERANCE:
            results.append({
                'wikipedia_claim_id': wiki.get('claim_id'),
                'grokipedia_claim_id': grok.get('claim_id'),
                'wikipedia_value': primary_w,
                'grokipedia_value': primary_g,
                'relative_difference': round(delta, 3),
                'description': f"Numeric discrepancy detected ({primary_w.get('raw')} vs {primary_g.get('raw')}).",
            })
    return results


def detect_entity_discrepancies(pairs: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Flag matched pairs whose entity sets differ."""
    results = []
    for wiki, grok in _matched(pairs):
        wiki_entities = _entities_of(wiki)
        grok_entities = _entities_of(grok)
        if set(wiki_entities) != set(grok_entities):
            results.append({
                'wikipedia_claim_id': wiki.get('claim_id'),
                'grokipedia_claim_id': grok.get('claim_id'),
                'wikipedia_entities': wiki_entities,
                'grokipedia_entities': grok_entities,
                'description': 'Entity mismatch between Wikipedia and Grokipedia claims.',
            })
    return results
