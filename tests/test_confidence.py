"""
Tests for confidence scoring and labelling.
"""

import itertools

import pytest

from gwaln.analysis.confidence import CONFIDENCE_LABELS, calculate_confidence, confidence_label


class TestCalculateConfidence:
    """Tests for calculate_confidence."""

    def test_perfect_agreement(self):
        assert calculate_confidence(1.0, 1.0, 0, 0, 0, 0, 0) == {
            'label': 'high_confidence',
            'score': 1.0,
            'rationale': [],
        }

    def test_agreement_boost_is_capped(self):
        result = calculate_confidence(0.8, 0.8, 0, 0, 0, 100, 0)
        assert result['score'] == 0.9
        assert result['rationale'] == ["100 sentences match exactly between sources"]

    def test_missing_penalty(self):
        assert calculate_confidence(0.5, 0.5, 5, 0, 0, 0, 0)['score'] == 0.35
        assert calculate_confidence(0.8, 0.8, 10, 0, 0, 0, 0)['score'] == 0.55

    def test_extra_penalty_is_capped(self):
        assert calculate_confidence(0.8, 0.8, 0, 10, 0, 0, 0)['score'] == 0.6

    def test_factual_penalty(self):
        assert calculate_confidence(0.8, 0.8, 0, 0, 5, 0, 0)['score'] == 0.55
        result = calculate_confidence(0.8, 0.8, 0, 0, 10, 0, 0)
        assert result['score'] == 0.5
        assert result['label'] == 'moderate_confidence'

    def test_rationale_order(self):
        """Rationale follows the fixed adjustment order."""
        result = calculate_confidence(0.5, 0.5, 2, 3, 1, 4, 5)
        assert result['rationale'] == [
            "4 sentences match exactly between sources",
            "5 sentences reworded but semantically similar",
            "2 Wikipedia sentences truly missing on Grokipedia",
            "3 Grokipedia sentences not found on Wikipedia",
            "1 factual errors detected",
        ]
        assert result['score'] == pytest.approx(0.355, abs=1e-3)

    def test_rewording_does_not_change_score(self):
        assert calculate_confidence(0.6, 0.6, 0, 0, 0, 0, 7)['score'] == 0.6

    def test_clamped_low(self):
        result = calculate_confidence(0.0, 0.0, 100, 100, 100, 0, 0)
        assert result['score'] == 0.0
        assert result['label'] == 'suspected_divergence'

    def test_clamped_high(self):
        assert calculate_confidence(1.0, 1.0, 0, 0, 0, 100, 0)['score'] == 1.0

    def test_bad_inputs_degrade(self):
        """NaN / out-of-range ratios and negative counts never raise."""
        result = calculate_confidence(float('nan'), 2.0, -3, -1, -2, -5, -1)
        assert result['score'] == 0.5
        assert result['rationale'] == []

    def test_score_always_in_unit_interval(self):
        ratios = (0.0, 0.25, 0.5, 0.99, 1.0)
        counts = (0, 1, 7, 50)
        for similarity, overlap, missing, extra, factual, agreed in itertools.product(
            ratios, ratios, counts, counts, counts, counts
        ):
            result = calculate_confidence(similarity, overlap, missing, extra, factual, agreed, 0)
            assert 0.0 <= result['score'] <= 1.0
            assert result['label'] in CONFIDENCE_LABELS


class TestConfidenceLabel:
    """Tests for label band boundaries."""

    def test_boundaries_belong_to_higher_band(self):
        table = {
            0.29: 'suspected_divergence',
            0.30: 'low_confidence',
            0.49: 'low_confidence',
            0.50: 'moderate_confidence',
            0.69: 'moderate_confidence',
            0.70: 'high_confidence',
        }
        for score, label in table.items():
            assert confidence_label(score) == label, score

    def test_extremes(self):
        assert confidence_label(0.0) == 'suspected_divergence'
        assert confidence_label(1.0) == 'high_confidence'
