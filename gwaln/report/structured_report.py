"""
Structured analysis report (schema ``gwaln.analysis/2``).

Reshapes the raw analyzer payload into a topic-aware, versioned report that
downstream tooling (renderers, notes, publishing) consumes. Persisted files
are either this report or a legacy raw payload; the two are told apart by the
``schema`` field alone.
"""

from typing import Any, Dict, List

from gwaln.analysis.models import Topic, topic_urls

STRUCTURED_ANALYSIS_SCHEMA = "gwaln.analysis/2"


def _count(values: Any) -> int:
    return len(values) if isinstance(values, (list, tuple)) else 0


def format_count(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def build_headline(title: str, summary: Dict[str, Any]) -> str:
    parts: List[str] = []
    if summary['discrepancy_count']:
        parts.append(format_count(summary['discrepancy_count'], 'discrepancy', 'discrepancies'))
    if summary['bias_event_count']:
        parts.append(format_count(summary['bias_event_count'], 'bias cue', 'bias cues'))
    if summary['hallucination_count']:
        parts.append(format_count(summary['hallucination_count'], 'hallucination flag', 'hallucination flags'))
    if not parts:
        return f"Grokipedia remains aligned with Wikipedia for {title}."
    return f"Detected {' + '.join(parts)} for {title}."


def build_structured_analysis(topic: Topic, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Project a raw analysis payload into the structured report schema.

    Missing payload fields default to zero/empty values, so any dict produces
    a report. The payload is not modified.
    """
    stats = payload.get('stats') or {}
    similarity_ratio = stats.get('similarity_ratio') or {}
    wiki_sentence_count = stats.get('wiki_sentence_count', 0)
    grok_sentence_count = stats.get('grok_sentence_count', 0)

    summary = {
        'similarity_ratio': {
            'word': similarity_ratio.get('word', 0.0),
            'sentence': similarity_ratio.get('sentence', 0.0),
        },
        'ngram_overlap': payload.get('ngram_overlap', 0.0),
        'wiki_char_count': stats.get('wiki_char_count', 0),
        'grok_char_count': stats.get('grok_char_count', 0),
        'wiki_sentence_count': wiki_sentence_count,
        'grok_sentence_count': grok_sentence_count,
        'sentences_reviewed': wiki_sentence_count + grok_sentence_count,
        'missing_sentence_count': stats.get('missing_sentence_total', 0),
        'extra_sentence_count': stats.get('extra_sentence_total', 0),
        'reworded_sentence_count': stats.get('reworded_sentence_count', 0),
        'truly_missing_count': stats.get('truly_missing_count', 0),
        'agreement_count': stats.get('agreement_count', 0),
        'discrepancy_count': _count(payload.get('discrepancies')),
        'bias_event_count': _count(payload.get('bias_events')),
        'hallucination_count': _count(payload.get('hallucination_events')),
        'factual_error_count': _count(payload.get('factual_errors')),
        'headline': '',
        'confidence': payload.get('confidence') or {'label': 'suspected_divergence', 'score': 0.0, 'rationale': []},
    }
    summary['headline'] = build_headline(topic.title, summary)

    citations = payload.get('citations') or {}
    highlights = payload.get('highlights') or {}
    meta = payload.get('meta') or {}

    return {
        'schema': STRUCTURED_ANALYSIS_SCHEMA,
        'topic': {
            'id': topic.id,
            'title': topic.title,
            'category': topic.category,
            'ual': topic.ual,
            'slugs': {
                'wikipedia': topic.wikipedia_slug,
                'grokipedia': topic.grokipedia_slug,
            },
            'urls': topic_urls(topic),
        },
        'meta': meta,
        'generated_at': payload.get('updated_at') or meta.get('generated_at'),
        'summary': summary,
        'comparison': {
            'sentences': {
                'missing': payload.get('missing_sentences', []),
                'extra': payload.get('extra_sentences', []),
                'reworded': payload.get('reworded_sentences', []),
                'truly_missing': payload.get('truly_missing_sentences', []),
                'agreed': payload.get('agreed_sentences', []),
            },
            'sections': {
                'missing': payload.get('sections_missing', []),
                'extra': payload.get('sections_extra', []),
                'alignment': payload.get('section_alignment', []),
            },
            'claims': {
                'missing': payload.get('claims_missing', []),
                'extra': payload.get('claims_extra', []),
                'alignment': payload.get('claim_alignment', []),
            },
            'citations': {
                'missing': citations.get('missing', []),
                'extra': citations.get('extra', []),
            },
            'numbers': payload.get('numeric_discrepancies', []),
            'entities': payload.get('entity_discrepancies', []),
        },
        'discrepancies': {
            'primary': payload.get('discrepancies', []),
            'bias': payload.get('bias_events', []),
            'hallucinations': payload.get('hallucination_events', []),
            'factual_errors': payload.get('factual_errors', []),
            'highlights': {
                'missing': highlights.get('missing', []),
                'extra': highlights.get('extra', []),
            },
        },
        'attachments': {
            'diff_sample': payload.get('diff_sample', []),
            'bias_verifications': payload.get('bias_verifications'),
            'citation_verifications': payload.get('citation_verifications'),
        },
        'bias_metrics': payload.get('bias_metrics') or {
            'subjectivity_delta': 0.0,
            'polarity_delta': 0.0,
            'loaded_terms_wiki': {},
            'loaded_terms_grok': {},
        },
    }


def is_structured_analysis_report(value: Any) -> bool:
    return isinstance(value, dict) and value.get('schema') == STRUCTURED_ANALYSIS_SCHEMA


def coerce_structured_analysis_report(topic: Topic, value: Dict[str, Any]) -> Dict[str, Any]:
    """Return ``value`` unchanged if it is already a report, else build one from the payload."""
    if is_structured_analysis_report(value):
        return value
    return build_structured_analysis(topic, value)
