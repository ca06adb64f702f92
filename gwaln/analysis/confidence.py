"""
Confidence scoring for a wiki/grok comparison.

Base score is the mean of sentence similarity and n-gram overlap. Adjustments
are applied in a fixed order, each capped, and each contributes a rationale
sentence only when its count is non-zero:

    agreement      +0.01 per sentence, cap 0.10
    reworded       rationale only
    truly missing  -0.03 per sentence, cap 0.25
    extra          -0.025 per sentence, cap 0.20
    factual errors -0.05 per error,    cap 0.30

The result is clamped to [0, 1] and rounded to 3 decimals. Label bands are
half-open with each boundary belonging to the higher band.
"""

import math
from typing import Any, Dict, List

LABEL_SUSPECTED_DIVERGENCE = "suspected_divergence"
LABEL_LOW_CONFIDENCE = "low_confidence"
LABEL_MODERATE_CONFIDENCE = "moderate_confidence"
LABEL_HIGH_CONFIDENCE = "high_confidence"

CONFIDENCE_LABELS = (
    LABEL_SUSPECTED_DIVERGENCE,
    LABEL_LOW_CONFIDENCE,
    LABEL_MODERATE_CONFIDENCE,
    LABEL_HIGH_CONFIDENCE,
)

AGREEMENT_STEP, AGREEMENT_CAP = 0.01, 0.10
MISSING_STEP, MISSING_CAP = 0.03, 0.25
EXTRA_STEP, EXTRA_CAP = 0.025, 0.20
FACTUAL_STEP, FACTUAL_CAP = 0.05, 0.30


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _ratio(value: Any) -> float:
    try:
        value = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(value):
        return 0.0
    return _clamp(value)


def _count(value: Any) -> int:
    try:
        return max(int(value), 0)
    except (TypeError, ValueError, OverflowError):
        return 0


def confidence_label(score: float) -> str:
    """Map a clamped score onto the four ordinal labels."""
    if score < 0.30:
        return LABEL_SUSPECTED_DIVERGENCE
    if score < 0.50:
        return LABEL_LOW_CONFIDENCE
    if score < 0.70:
        return LABEL_MODERATE_CONFIDENCE
    return LABEL_HIGH_CONFIDENCE


def calculate_confidence(
    similarity: float,
    overlap: float,
    truly_missing_count: int,
    extra_count: int,
    factual_errors: int,
    agreement_count: int,
    reworded_count: int,
) -> Dict[str, Any]:
    """
    Score how closely the two sources agree.

    Returns:
        Dict with label, score (0-1, 3 decimals) and ordered rationale list
    """
    agreement_count = _count(agreement_count)
    reworded_count = _count(reworded_count)
    truly_missing_count = _count(truly_missing_count)
    extra_count = _count(extra_count)
    factual_errors = _count(factual_errors)

    rationale: List[str] = []
    score = (_ratio(similarity) + _ratio(overlap)) / 2

    if agreement_count > 0:
        score += min(AGREEMENT_CAP, agreement_count * AGREEMENT_STEP)
        rationale.append(f"{agreement_count} sentences match exactly between sources")

    if reworded_count > 0:
        rationale.append(f"{reworded_count} sentences reworded but semantically similar")

    if truly_missing_count > 0:
        score -= min(MISSING_CAP, truly_missing_count * MISSING_STEP)
        rationale.append(f"{truly_missing_count} Wikipedia sentences truly missing on Grokipedia")

    if extra_count > 0:
        score -= min(EXTRA_CAP, extra_count * EXTRA_STEP)
        rationale.append(f"{extra_count} Grokipedia sentences not found on Wikipedia")

    if factual_errors > 0:
        score -= min(FACTUAL_CAP, factual_errors * FACTUAL_STEP)
        rationale.append(f"{factual_errors} factual errors detected")

    score = round(_clamp(score), 3)

    return {
        'label': confidence_label(score),
        'score': score,
        'rationale': rationale,
    }
