"""
Section and claim alignment between two structured articles.

Matching is greedy and single-pass: each wiki unit, in document order, takes
the most similar grok unit that has not been consumed yet. Grok candidates are
scanned in document order and only a strictly greater score replaces the
current best, so on ties the first-encountered candidate wins. This is not a
globally optimal assignment.

Every input unit appears in exactly one record: matched pairs carry both
sides, unmatched wiki units keep their best (sub-threshold) similarity, and
leftover grok units are appended with similarity 0.
"""

from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from .models import Claim, Section, StructuredArticle
from .text import text_similarity

SECTION_THRESHOLD = 0.70
CLAIM_THRESHOLD = 0.65


def _greedy_align(
    left: Sequence[Any],
    right: Sequence[Any],
    key: Callable[[Any], str],
    threshold: float,
    describe: Callable[[Any], Dict[str, Any]],
    candidate_ok: Callable[[Any], bool] = lambda _unit: True,
) -> List[Dict[str, Any]]:
    records: List[Dict[str, Any]] = []
    consumed = set()

    for unit in left:
        best: Optional[Tuple[int, float]] = None
        for idx, candidate in enumerate(right):
            if idx in consumed or not candidate_ok(candidate):
                continue
            similarity = round(text_similarity(key(unit), key(candidate)), 3)
            if best is None or similarity > best[1]:
                best = (idx, similarity)

        if best is not None and best[1] >= threshold:
            consumed.add(best[0])
            records.append({
                'wikipedia': describe(unit),
                'grokipedia': describe(right[best[0]]),
                'similarity': best[1],
            })
        else:
            records.append({
                'wikipedia': describe(unit),
                'grokipedia': None,
                'similarity': best[1] if best is not None else 0.0,
            })

    for idx, candidate in enumerate(right):
        if idx in consumed:
            continue
        records.append({
            'wikipedia': None,
            'grokipedia': describe(candidate),
            'similarity': 0.0,
        })

    return records


def _describe_section(section: Section) -> Dict[str, Any]:
    return {'section_id': section.section_id, 'heading': section.heading}


def align_sections(wiki: StructuredArticle, grok: StructuredArticle) -> List[Dict[str, Any]]:
    """
    Align sections by heading similarity (threshold 0.70).

    Grok sections without a heading are never match candidates but are still
    reported as unmatched.
    """
    return _greedy_align(
        wiki.sections,
        grok.sections,
        key=lambda section: section.heading,
        threshold=SECTION_THRESHOLD,
        describe=_describe_section,
        candidate_ok=lambda section: bool(section.heading),
    )


def align_claims(wiki: StructuredArticle, grok: StructuredArticle) -> List[Dict[str, Any]]:
    """Align extracted claims by text similarity (threshold 0.65)."""
    return _greedy_align(
        wiki.claims,
        grok.claims,
        key=lambda claim: claim.text,
        threshold=CLAIM_THRESHOLD,
        describe=Claim.to_dict,
    )
