"""Tests for the bias / citation verifiers and payload enrichment."""
import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from gwaln.verify.bias_verifier import build_prompt, verify_bias_with_gemini
from gwaln.verify.citation_verifier import verify_sentences_against_citations
from gwaln.verify.enrichment import enrich_payload


def _gemini_response(entries):
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.json.return_value = {
        'candidates': [{'content': {'parts': [{'text': f"```json\n{json.dumps(entries)}\n```"}]}}],
    }
    return response


def _page(text):
    response = MagicMock()
    response.raise_for_status = MagicMock()
    response.text = text
    return response


@pytest.fixture
def events():
    return [
        {'type': 'bias_shift', 'description': 'a', 'evidence': {'grokipedia': "Critics say it is not."},
         'tags': ['loaded_language', 'critics say']},
        {'type': 'bias_shift', 'description': 'b', 'evidence': {'grokipedia': "A legendary band."},
         'tags': ['puffery', 'legendary']},
    ]


class TestBiasVerifier:
    """Test suite for the Gemini bias verifier."""

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_successful_verification(self, mock_post, events):
        """Verdicts are normalised and confidences clamped to 2 decimals."""
        mock_post.return_value = _gemini_response([
            {'index': 0, 'verdict': "CONFIRM", 'confidence': 1.4, 'rationale': "loaded"},
            {'index': 1, 'verdict': "reject", 'confidence': 0.333, 'rationale': "fine"},
        ])

        records = verify_bias_with_gemini(events, "wiki", "grok", "key", model="m", endpoint="https://x.test/")

        assert records == [
            {'provider': 'gemini', 'event_index': 0, 'verdict': 'confirm', 'confidence': 1.0, 'rationale': "loaded"},
            {'provider': 'gemini', 'event_index': 1, 'verdict': 'reject', 'confidence': 0.33, 'rationale': "fine"},
        ]
        args, kwargs = mock_post.call_args
        assert args[0] == "https://x.test/v1beta/models/m:generateContent"
        assert kwargs['params'] == {'key': "key"}

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_unknown_verdict_and_bad_index(self, mock_post, events):
        mock_post.return_value = _gemini_response([
            {'index': 0, 'verdict': "maybe"},
            {'index': 7, 'verdict': "confirm"},
        ])

        records = verify_bias_with_gemini(events, "wiki", "grok", "key")

        assert len(records) == 1
        assert records[0]['verdict'] == 'error'
        assert records[0]['confidence'] is None

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_network_failure_degrades_per_event(self, mock_post, events):
        mock_post.side_effect = requests.ConnectionError("boom")

        records = verify_bias_with_gemini(events, "wiki", "grok", "key")

        assert [r['event_index'] for r in records] == [0, 1]
        assert all(r['verdict'] == 'error' for r in records)
        assert "boom" in records[0]['rationale']

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_non_json_answer_degrades(self, mock_post, events):
        response = MagicMock()
        response.json.return_value = {'candidates': [{'content': {'parts': [{'text': "I think so"}]}}]}
        mock_post.return_value = response

        records = verify_bias_with_gemini(events, "wiki", "grok", "key")
        assert [r['verdict'] for r in records] == ['error', 'error']

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_api_error_payload_degrades(self, mock_post, events):
        response = MagicMock()
        response.json.return_value = {'error': {'message': "quota exceeded"}}
        mock_post.return_value = response

        records = verify_bias_with_gemini(events, "wiki", "grok", "key")
        assert "quota exceeded" in records[0]['rationale']

    @pytest.mark.parametrize("body", [
        {'candidates': ["oops"]},
        {'candidates': [{'content': {'parts': ["x"]}}]},
        {'candidates': [{'content': "text"}]},
    ])
    @patch('gwaln.verify.bias_verifier._session.post')
    def test_malformed_candidates_degrade(self, mock_post, body, events):
        """Non-object candidates or parts become error records instead of raising."""
        response = MagicMock()
        response.json.return_value = body
        mock_post.return_value = response

        records = verify_bias_with_gemini(events, "wiki", "grok", "key")

        assert [r['verdict'] for r in records] == ['error', 'error']
        assert "unexpected body" in records[0]['rationale']

    @patch('gwaln.verify.bias_verifier._session.post')
    def test_no_events_no_request(self, mock_post):
        assert verify_bias_with_gemini([], "wiki", "grok", "key") == []
        mock_post.assert_not_called()

    def test_prompt_lists_candidates_and_trims_context(self, events):
        prompt = build_prompt(events, "w" * 50, "g" * 5000, context_limit=10)

        assert "0. (loaded_language) Critics say it is not." in prompt
        assert "1. (puffery) A legendary band." in prompt
        assert '"""wwwwwwwwww…"""' in prompt
        assert "g" * 1000 + "…" in prompt


class TestCitationVerifier:
    """Test suite for citation verification."""

    @patch('gwaln.verify.citation_verifier._session.get')
    def test_supported_and_unsupported(self, mock_get):
        mock_get.return_value = _page("<p>The Sky   is blue indeed</p>")

        results = verify_sentences_against_citations(
            ["the sky is blue", "Grass is purple."], ["https://example.org/sky"],
        )

        assert results[0] == {'sentence': "the sky is blue", 'status': 'supported',
                              'supporting_url': "https://example.org/sky"}
        assert results[1]['status'] == 'unsupported'
        assert results[1]['message'] == "Sentence not found in fetched citations."

    def test_no_citations(self):
        results = verify_sentences_against_citations(["A."], [])
        assert results == [{'sentence': "A.", 'status': 'error',
                            'message': "No citations available for verification."}]

    def test_no_http_citations(self):
        results = verify_sentences_against_citations(["A."], ["ftp://example.org/file"])
        assert results[0]['message'] == "No HTTP citations available."

    def test_no_sentences(self):
        assert verify_sentences_against_citations([], ["https://example.org"]) == []

    @patch('gwaln.verify.citation_verifier._session.get')
    def test_all_fetches_fail(self, mock_get):
        mock_get.side_effect = requests.Timeout("slow")

        results = verify_sentences_against_citations(["A.", "B."], ["https://example.org/a"])

        assert [r['status'] for r in results] == ['error', 'error']
        assert "https://example.org/a" in results[0]['message']
        assert "slow" in results[0]['message']

    @patch('gwaln.verify.citation_verifier._session.get')
    def test_partial_failure_still_checks_fetched_pages(self, mock_get):
        mock_get.side_effect = [requests.ConnectionError("down"), _page("A. b c")]

        results = verify_sentences_against_citations(["a.", "zzz"], ["https://a.test", "https://b.test"])

        assert results[0]['status'] == 'supported'
        assert results[0]['supporting_url'] == "https://b.test"
        assert results[1]['status'] == 'unsupported'

    @patch('gwaln.verify.citation_verifier._session.get')
    def test_citations_deduplicated_and_limited(self, mock_get):
        mock_get.return_value = _page("")

        verify_sentences_against_citations(
            ["A."],
            ["https://a.test", "https://A.test", "https://b.test", "https://c.test"],
            max_citations=2,
        )

        assert [c.args[0] for c in mock_get.call_args_list] == ["https://a.test", "https://b.test"]


class TestEnrichPayload:
    """Tests for enrich_payload."""

    def test_unsupported_citations_become_hallucinations(self):
        payload = {'hallucination_events': [], 'discrepancies': [{'type': 'added_claim', 'description': 'x'}]}
        citations = [
            {'sentence': "Grass is purple.", 'status': 'unsupported'},
            {'sentence': "Sky is blue.", 'status': 'supported', 'supporting_url': "https://a.test"},
        ]

        enriched = enrich_payload(payload, citation_verifications=citations)

        assert enriched['citation_verifications'] == citations
        assert len(enriched['hallucination_events']) == 1
        assert enriched['hallucination_events'][0]['tags'] == ['unsupported_citation']
        assert enriched['hallucination_events'][0]['evidence'] == {'grokipedia': "Grass is purple."}
        assert [d['type'] for d in enriched['discrepancies']] == ['added_claim', 'hallucination']

    def test_input_payload_untouched(self):
        payload = {'hallucination_events': [], 'discrepancies': []}
        enrich_payload(payload, bias_verifications=[{'event_index': 0}],
                       citation_verifications=[{'sentence': "x", 'status': 'unsupported'}])
        assert payload == {'hallucination_events': [], 'discrepancies': []}

    def test_bias_verifications_attached(self):
        enriched = enrich_payload({}, bias_verifications=[{'event_index': 0, 'verdict': 'confirm'}])
        assert enriched['bias_verifications'] == [{'event_index': 0, 'verdict': 'confirm'}]
        assert 'citation_verifications' not in enriched
