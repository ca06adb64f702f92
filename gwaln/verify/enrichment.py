"""Merge verifier results into an analysis payload."""

import copy
from typing import Any, Dict, List, Optional


def citation_hallucination_events(citation_verifications: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        {
            'type': 'hallucination',
            'description': 'Sentence not supported by the cited sources.',
            'evidence': {'grokipedia': result['sentence']},
            'severity': 4,
            'category': 'hallucination',
            'tags': ['unsupported_citation'],
        }
        for result in citation_verifications
        if result.get('status') == 'unsupported'
    ]


def enrich_payload(
    payload: Dict[str, Any],
    bias_verifications: Optional[List[Dict[str, Any]]] = None,
    citation_verifications: Optional[List[Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with verifier results attached.

    Unsupported citation results also become hallucination events, added to
    both ``hallucination_events`` and the primary ``discrepancies`` list.
    """
    enriched = copy.deepcopy(payload)
    if bias_verifications is not None:
        enriched['bias_verifications'] = list(bias_verifications)
    if citation_verifications is not None:
        enriched['citation_verifications'] = list(citation_verifications)
        events = citation_hallucination_events(citation_verifications)
        if events:
            enriched['hallucination_events'] = list(enriched.get('hallucination_events') or []) + events
            enriched['discrepancies'] = list(enriched.get('discrepancies') or []) + events
    return enriched
