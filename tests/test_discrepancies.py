"""
Tests for numeric and entity discrepancy helpers.
"""

from gwaln.analysis.discrepancies import (
    detect_entity_discrepancies,
    detect_numeric_discrepancies,
    extract_entities,
    extract_numbers,
    relative_difference,
)


def _pair(wiki_text, grok_text, **extra):
    return {'wikipedia': {'text': wiki_text, **extra}, 'grokipedia': {'text': grok_text, **extra}}


class TestExtractNumbers:
    """Tests for extract_numbers."""

    def test_percent_and_plain(self):
        assert extract_numbers("Growth was 12% in 2020") == [
            {'raw': "12%", 'value': 12.0, 'unit': 'percent'},
            {'raw': "2020", 'value': 2020.0, 'unit': None},
        ]

    def test_thousands_separator_and_unit(self):
        assert extract_numbers("The road is 1,200 km long") == [
            {'raw': "1,200 km", 'value': 1200.0, 'unit': 'km'},
        ]

    def test_no_numbers(self):
        assert extract_numbers("") == []


class TestExtractEntities:
    """Tests for extract_entities."""

    def test_leading_stopwords_stripped(self):
        assert extract_entities("The United Nations met in New York.") == ["united nations", "new york"]

    def test_deduplicated(self):
        assert extract_entities("Rome. Rome again.") == ["rome"]


class TestRelativeDifference:
    """Tests for relative_difference."""

    def test_values(self):
        assert relative_difference(0, 0) == 0.0
        assert relative_difference(0, 5) == 1.0
        assert relative_difference(10, 8) == 0.2


class TestDetectNumericDiscrepancies:
    """Tests for detect_numeric_discrepancies."""

    def test_within_tolerance(self):
        assert detect_numeric_discrepancies([_pair("Costs 100 dollars", "Costs 104 dollars")]) == []

    def test_beyond_tolerance(self):
        results = detect_numeric_discrepancies([_pair("Height 100 m", "Height 110 m")])
        assert len(results) == 1
        assert results[0]['relative_difference'] == 0.091
        assert results[0]['wikipedia_value']['value'] == 100.0
        assert results[0]['grokipedia_value']['value'] == 110.0

    def test_different_units_are_skipped(self):
        assert detect_numeric_discrepancies([_pair("It is 5 km away", "It is 9 miles away")]) == []

    def test_unmatched_pairs_ignored(self):
        assert detect_numeric_discrepancies([{'wikipedia': {'text': "5"}, 'grokipedia': None}]) == []

    def test_provided_numbers_win(self):
        pair = {
            'wikipedia': {'claim_id': "w1", 'text': "about five", 'numbers': [{'raw': "5", 'value': 5, 'unit': None}]},
            'grokipedia': {'claim_id': "g1", 'text': "about ten", 'numbers': [{'raw': "10", 'value': 10, 'unit': None}]},
        }
        results = detect_numeric_discrepancies([pair])
        assert results[0]['wikipedia_claim_id'] == "w1"
        assert results[0]['grokipedia_claim_id'] == "g1"
        assert results[0]['relative_difference'] == 0.5


class TestDetectEntityDiscrepancies:
    """Tests for detect_entity_discrepancies."""

    def test_differing_entities(self):
        results = detect_entity_discrepancies([_pair("Paris is in France.", "Lyon is in France.")])
        assert len(results) == 1
        assert results[0]['wikipedia_entities'] == ["paris", "france"]
        assert results[0]['grokipedia_entities'] == ["lyon", "france"]

    def test_same_entities(self):
        assert detect_entity_discrepancies([_pair("Paris is in France.", "In France, Paris.")]) == []
