"""
Discrepancy analyzer: compares a wiki article with its grok counterpart.

``analyze_content`` is the single entry point. It is a pure function of its
inputs (plus the ``now`` timestamp) and returns a new JSON-shaped payload on
every call. Empty articles are valid input and produce zeroed ratios with
all-missing / all-extra classification.
"""

import difflib
import logging
import re
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from gwaln.cache.hashing import compute_content_hash
from gwaln.config.settings import ANALYZER_VERSION, DEFAULT_CACHE_TTL_HOURS

from .alignment import align_claims, align_sections
from .bias_lexicon import BIAS_CATEGORIES, SPECULATIVE_KEYWORDS
from .bias_metrics import compute_bias_metrics, count_loaded_terms
from .confidence import calculate_confidence
from .discrepancies import detect_entity_discrepancies, detect_numeric_discrepancies
from .models import Section, StructuredArticle, Topic
from .text import (
    difference,
    extract_urls,
    normalize_sentence,
    normalize_whitespace,
    split_sentences,
    text_similarity,
    tokenize,
    unique_list,
)

logger = logging.getLogger(__name__)


SHINGLE_SIZE = 3
SENTENCE_MATCH_THRESHOLD = 0.75
REWORD_THRESHOLD = 0.65
HALLUCINATION_SIMILARITY_MIN = 0.15
HALLUCINATION_SIMILARITY_MAX = 0.60
NUMERIC_ERROR_THRESHOLD = 0.20
ENTITY_ERROR_MIN_DIFF = 2
HIGHLIGHT_WINDOW = 3
DIFF_SAMPLE_MAX_LINES = 120

META_SECTION_HEADINGS = frozenset({
    'references',
    'external links',
    'notes',
    'bibliography',
    'sources',
    'further reading',
    'see also',
    'citations',
    'footnotes',
})

_SPECULATIVE_PATTERNS = tuple(
    re.compile(r"\b" + r"\s+".join(re.escape(p) for p in phrase.split()) + r"\b", re.IGNORECASE)
    for phrase in SPECULATIVE_KEYWORDS
)


def is_meta_section(section: Section) -> bool:
    return section.heading.strip().lower() in META_SECTION_HEADINGS


def prepare_article_text(article: StructuredArticle) -> str:
    """Flatten lead + content sections into whitespace-normalised text."""
    parts = [article.lead] + [s.text for s in article.sections if not is_meta_section(s)]
    return normalize_whitespace(" ".join(p for p in parts if p and p.strip()))


# ---------------------------------------------------------------------------
# Similarity ratios
# ---------------------------------------------------------------------------

def word_similarity_ratio(wiki_text: str, grok_text: str) -> float:
    """Mean of the share of each side's tokens present on the other side."""
    wiki_tokens = tokenize(wiki_text)
    grok_tokens = tokenize(grok_text)
    if not wiki_tokens or not grok_tokens:
        return 0.0
    wiki_set, grok_set = set(wiki_tokens), set(grok_tokens)
    forward = sum(1 for t in wiki_tokens if t in grok_set) / len(wiki_tokens)
    backward = sum(1 for t in grok_tokens if t in wiki_set) / len(grok_tokens)
    return round((forward + backward) / 2, 4)


def _directional_sentence_similarity(source: Sequence[str], target: Sequence[str]) -> float:
    total = 0.0
    for sentence in source:
        best = max(text_similarity(sentence, other) for other in target)
        if best >= SENTENCE_MATCH_THRESHOLD:
            total += best
    return total / len(source)


def sentence_similarity_ratio(wiki_sentences: Sequence[str], grok_sentences: Sequence[str]) -> float:
    """Symmetric mean best-match similarity, counting only matches >= 0.75."""
    if not wiki_sentences or not grok_sentences:
        return 0.0
    forward = _directional_sentence_similarity(wiki_sentences, grok_sentences)
    backward = _directional_sentence_similarity(grok_sentences, wiki_sentences)
    return round((forward + backward) / 2, 4)


def shingles(tokens: Sequence[str], size: int = SHINGLE_SIZE) -> Set[str]:
    if not tokens:
        return set()
    if len(tokens) <= size:
        return {" ".join(tokens)}
    return {" ".join(tokens[i:i + size]) for i in range(len(tokens) - size + 1)}


def ngram_overlap(wiki_text: str, grok_text: str, size: int = SHINGLE_SIZE) -> float:
    """Jaccard overlap of token n-gram sets."""
    wiki_set = shingles(tokenize(wiki_text), size)
    grok_set = shingles(tokenize(grok_text), size)
    union = wiki_set | grok_set
    if not union:
        return 0.0
    return round(len(wiki_set & grok_set) / len(union), 4)


# ---------------------------------------------------------------------------
# Sentence partitioning
# ---------------------------------------------------------------------------

def partition_sentences(wiki_sentences: Sequence[str], grok_sentences: Sequence[str]) -> Dict[str, Any]:
    """
    Split sentences into agreed, missing, extra and reworded groups.

    Agreement is exact equality after normalisation. Rewordings are paired
    greedily (wiki order, first-encountered best wins) between the missing and
    extra pools and removed from them.
    """
    # punctuation-only fragments normalise to "" and never count as sentences
    wiki_sentences = [s for s in wiki_sentences if normalize_sentence(s)]
    grok_sentences = [s for s in grok_sentences if normalize_sentence(s)]
    wiki_norm = [normalize_sentence(s) for s in wiki_sentences]
    grok_norm = [normalize_sentence(s) for s in grok_sentences]
    wiki_set, grok_set = set(wiki_norm), set(grok_norm)

    agreed = [s for s, n in zip(wiki_sentences, wiki_norm) if n in grok_set]
    missing = [(s, n) for s, n in zip(wiki_sentences, wiki_norm) if n not in grok_set]
    extra = [(s, n) for s, n in zip(grok_sentences, grok_norm) if n not in wiki_set]

    reworded = []
    reworded_wiki: Set[int] = set()
    consumed: Set[int] = set()
    for wiki_idx, (sentence, norm) in enumerate(missing):
        best: Optional[Tuple[int, float]] = None
        for grok_idx, (_candidate, candidate_norm) in enumerate(extra):
            if grok_idx in consumed:
                continue
            similarity = text_similarity(norm, candidate_norm)
            if best is None or similarity > best[1]:
                best = (grok_idx, similarity)
        if best is not None and best[1] >= REWORD_THRESHOLD:
            consumed.add(best[0])
            reworded_wiki.add(wiki_idx)
            reworded.append({
                'wikipedia': sentence,
                'grokipedia': extra[best[0]][0],
                'similarity': round(best[1], 3),
            })

    return {
        'agreed': agreed,
        'missing': [s for s, _n in missing],
        'extra': [s for s, _n in extra],
        'reworded': reworded,
        'truly_missing': [s for i, (s, _n) in enumerate(missing) if i not in reworded_wiki],
        'unmatched_extra': [s for i, (s, _n) in enumerate(extra) if i not in consumed],
    }


# ---------------------------------------------------------------------------
# Event classification
# ---------------------------------------------------------------------------

def detect_bias_events(extra_sentences: Sequence[str], wiki_text: str) -> List[Dict[str, Any]]:
    """
    Flag grok-only sentences that use bias-lexicon or loaded terms.

    A pattern that already occurs anywhere in the wiki text is not a shift and
    is ignored.
    """
    if not extra_sentences:
        return []

    wiki_hits = set()
    for category in BIAS_CATEGORIES:
        for pattern in category.patterns:
            if pattern.regex.search(wiki_text):
                wiki_hits.add((category.id, pattern.label.lower()))
    wiki_loaded = count_loaded_terms(wiki_text)

    events: List[Dict[str, Any]] = []
    seen = set()
    for sentence in extra_sentences:
        for category in BIAS_CATEGORIES:
            for pattern in category.patterns:
                key = (category.id, pattern.label.lower())
                if key in wiki_hits or (pattern.label.lower(), sentence) in seen:
                    continue
                if pattern.regex.search(sentence):
                    seen.add((pattern.label.lower(), sentence))
                    events.append({
                        'type': 'bias_shift',
                        'description': f"{category.label}: {category.description} ({category.reference})",
                        'evidence': {'grokipedia': sentence},
                        'severity': category.severity,
                        'category': 'bias',
                        'tags': [category.id, pattern.label],
                    })
        for term in count_loaded_terms(sentence):
            if term in wiki_loaded or (term, sentence) in seen:
                continue
            seen.add((term, sentence))
            events.append({
                'type': 'bias_shift',
                'description': f"Loaded language '{term}' appears only on Grokipedia.",
                'evidence': {'grokipedia': sentence},
                'severity': 2,
                'category': 'bias',
                'tags': ['loaded_language', term],
            })
    return events


def _is_speculative(sentence: str) -> bool:
    return any(p.search(sentence) for p in _SPECULATIVE_PATTERNS)


def detect_hallucination_events(extra_sentences: Sequence[str], reference: Sequence[str]) -> List[Dict[str, Any]]:
    """
    Flag speculative grok-only sentences.

    A speculative sentence is a hallucination when it loosely resembles some
    wiki reference text (similarity strictly between 0.15 and 0.60, i.e. the
    same subject with different content) or when the wiki side offers no
    reference text at all.
    """
    reference_norm = [normalize_sentence(r) for r in reference if normalize_sentence(r)]
    events = []
    for sentence in extra_sentences:
        if not _is_speculative(sentence):
            continue
        norm = normalize_sentence(sentence)
        conflict = any(
            HALLUCINATION_SIMILARITY_MIN < text_similarity(norm, ref) < HALLUCINATION_SIMILARITY_MAX
            for ref in reference_norm
        )
        if conflict or not reference_norm:
            events.append({
                'type': 'hallucination',
                'description': 'Grokipedia uses speculative or unverified language.',
                'evidence': {'grokipedia': sentence},
                'severity': 4,
                'category': 'hallucination',
                'tags': ['speculative_language'],
            })
    return events


def detect_factual_errors(
    numeric_discrepancies: Sequence[Dict[str, Any]],
    entity_discrepancies: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    errors = []
    for discrepancy in numeric_discrepancies:
        if discrepancy['relative_difference'] >= NUMERIC_ERROR_THRESHOLD:
            errors.append({
                'type': 'factual_error',
                'description': f"Significant numeric discrepancy: {discrepancy['description']}",
                'evidence': {
                    'wikipedia': (discrepancy.get('wikipedia_value') or {}).get('raw'),
                    'grokipedia': (discrepancy.get('grokipedia_value') or {}).get('raw'),
                },
                'severity': 5,
                'category': 'factual',
                'tags': ['numeric_mismatch'],
            })

    for discrepancy in entity_discrepancies:
        wiki_entities = discrepancy['wikipedia_entities']
        grok_entities = discrepancy['grokipedia_entities']
        missing = [e for e in wiki_entities if e not in grok_entities]
        extra = [e for e in grok_entities if e not in wiki_entities]
        if len(missing) + len(extra) >= ENTITY_ERROR_MIN_DIFF:
            errors.append({
                'type': 'factual_error',
                'description': (
                    f"Entity discrepancy: Wikipedia mentions [{', '.join(missing)}], "
                    f"Grokipedia adds [{', '.join(extra)}]"
                ),
                'evidence': {'wikipedia': ', '.join(missing), 'grokipedia': ', '.join(extra)},
                'severity': 3,
                'category': 'factual',
                'tags': ['entity_mismatch'],
            })
    return errors


def build_discrepancies(
    truly_missing: Sequence[str],
    unmatched_extra: Sequence[str],
    reworded: Sequence[Dict[str, Any]],
    missing_sections: Sequence[str],
    extra_sections: Sequence[str],
    missing_citations: Sequence[str],
    extra_citations: Sequence[str],
    bias: Sequence[Dict[str, Any]],
    hallucinations: Sequence[Dict[str, Any]],
    factual_errors: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Primary discrepancy list: structural events first, then classified events."""
    issues: List[Dict[str, Any]] = []
    for sentence in truly_missing:
        issues.append({
            'type': 'missing_context',
            'description': 'Sentence present on Wikipedia but truly absent on Grokipedia.',
            'evidence': {'wikipedia': sentence},
        })
    for sentence in unmatched_extra:
        issues.append({
            'type': 'added_claim',
            'description': 'Sentence present on Grokipedia but absent on Wikipedia.',
            'evidence': {'grokipedia': sentence},
        })
    for pair in reworded:
        issues.append({
            'type': 'reworded_claim',
            'description': f"Sentence reworded ({pair['similarity'] * 100:.0f}% similar).",
            'evidence': {'wikipedia': pair['wikipedia'], 'grokipedia': pair['grokipedia']},
            'severity': 2,
            'category': 'rewording',
        })
    for heading in missing_sections:
        issues.append({
            'type': 'section_missing',
            'description': f'Section "{heading}" exists on Wikipedia but not on Grokipedia.',
            'evidence': {'wikipedia': heading},
            'category': 'structure',
        })
    for heading in extra_sections:
        issues.append({
            'type': 'section_extra',
            'description': f'Grokipedia adds a section "{heading}" not found on Wikipedia.',
            'evidence': {'grokipedia': heading},
            'category': 'structure',
        })
    for url in missing_citations:
        issues.append({
            'type': 'missing_citation',
            'description': 'Citation present on Wikipedia is missing on Grokipedia.',
            'evidence': {'wikipedia': url},
            'category': 'citation',
        })
    for url in extra_citations:
        issues.append({
            'type': 'added_citation',
            'description': 'Grokipedia introduces a reference not present on Wikipedia.',
            'evidence': {'grokipedia': url},
            'category': 'citation',
        })
    return issues + list(bias) + list(hallucinations) + list(factual_errors)


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------

def make_preview(sentence: str, window: int = HIGHLIGHT_WINDOW) -> str:
    words = sentence.split()
    if len(words) <= window * 2:
        return sentence
    return f"{' '.join(words[:window])} … {' '.join(words[-window:])}"


def build_highlights(sentences: Sequence[str], source: str, tag: str) -> List[Dict[str, str]]:
    return [
        {'source': source, 'tag': tag, 'text': text, 'preview': make_preview(text)}
        for text in sentences
    ]


def diff_sample(wiki_sentences: Sequence[str], grok_sentences: Sequence[str], topic_id: str) -> List[str]:
    """Unified diff over sentence lines, truncated for storage."""
    lines = list(difflib.unified_diff(
        list(wiki_sentences),
        list(grok_sentences),
        fromfile=f"{topic_id}-wiki",
        tofile=f"{topic_id}-grok",
        n=2,
        lineterm="",
    ))
    if len(lines) > DIFF_SAMPLE_MAX_LINES:
        return lines[:DIFF_SAMPLE_MAX_LINES] + ['... (diff truncated)']
    return lines


def collect_citations(article: StructuredArticle, text: str) -> List[str]:
    return unique_list(list(article.references) + extract_urls(text))


def _evidence_sentences(events: Sequence[Dict[str, Any]]) -> List[str]:
    return [e['evidence']['grokipedia'] for e in events if e.get('evidence', {}).get('grokipedia')]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def analyze_content(
    topic: Topic,
    wiki_article: StructuredArticle,
    grok_article: StructuredArticle,
    wiki_text: Optional[str] = None,
    grok_text: Optional[str] = None,
    content_hash: Optional[str] = None,
    now: Optional[datetime] = None,
    cache_ttl_hours: float = DEFAULT_CACHE_TTL_HOURS,
) -> Dict[str, Any]:
    """
    Compare two structured articles and return the raw analysis payload.

    Args:
        topic: Topic identity for the comparison
        wiki_article: Reference article (left side)
        grok_article: Alternate article (right side)
        wiki_text: Flattened wiki text; reconstructed from sections if omitted
        grok_text: Flattened grok text; reconstructed from sections if omitted
        content_hash: Precomputed cache key; computed from the texts if omitted
        now: Generation timestamp (defaults to current UTC time)
        cache_ttl_hours: TTL recorded in meta for downstream cache probes

    Returns:
        Analysis payload dictionary
    """
    wiki_text = normalize_whitespace(wiki_text) if wiki_text is not None else prepare_article_text(wiki_article)
    grok_text = normalize_whitespace(grok_text) if grok_text is not None else prepare_article_text(grok_article)

    # 1-2. Counts and global ratios
    wiki_sentences = split_sentences(wiki_text)
    grok_sentences = split_sentences(grok_text)
    word_similarity = word_similarity_ratio(wiki_text, grok_text)
    sentence_similarity = sentence_similarity_ratio(wiki_sentences, grok_sentences)
    overlap = ngram_overlap(wiki_text, grok_text)

    # 3. Sentence partitioning
    partition = partition_sentences(wiki_sentences, grok_sentences)

    # 4. Structural alignment over content sections
    wiki_content = replace(wiki_article, sections=tuple(s for s in wiki_article.sections if not is_meta_section(s)))
    grok_content = replace(grok_article, sections=tuple(s for s in grok_article.sections if not is_meta_section(s)))
    section_alignment = align_sections(wiki_content, grok_content)
    claim_alignment = align_claims(wiki_content, grok_content)

    sections_missing = [r['wikipedia']['heading'] for r in section_alignment
                        if r['grokipedia'] is None and r['wikipedia']['heading']]
    sections_extra = [r['grokipedia']['heading'] for r in section_alignment
                      if r['wikipedia'] is None and r['grokipedia']['heading']]
    claims_missing = [r['wikipedia']['text'] for r in claim_alignment if r['grokipedia'] is None]
    claims_extra = [r['grokipedia']['text'] for r in claim_alignment if r['wikipedia'] is None]

    # 5-6. Numeric / entity checks over aligned claims and reworded sentences
    pairs = [r for r in claim_alignment if r['wikipedia'] and r['grokipedia']]
    pairs += [
        {'wikipedia': {'text': p['wikipedia']}, 'grokipedia': {'text': p['grokipedia']}}
        for p in partition['reworded']
    ]
    numeric_discrepancies = detect_numeric_discrepancies(pairs)
    entity_discrepancies = detect_entity_discrepancies(pairs)

    # 7. Event classification
    reference = [c.text for c in wiki_article.claims] or wiki_sentences
    bias_events = detect_bias_events(partition['extra'], wiki_text)
    hallucination_events = detect_hallucination_events(partition['unmatched_extra'], reference)
    factual_errors = detect_factual_errors(numeric_discrepancies, entity_discrepancies)

    # 8. Citations
    wiki_citations = collect_citations(wiki_article, wiki_text)
    grok_citations = collect_citations(grok_article, grok_text)
    missing_citations = difference(wiki_citations, grok_citations)
    extra_citations = difference(grok_citations, wiki_citations)

    # 9. Cache key
    if content_hash is None:
        content_hash = compute_content_hash(wiki_text, grok_text)

    # 10. Confidence
    confidence = calculate_confidence(
        sentence_similarity,
        overlap,
        len(partition['truly_missing']),
        len(partition['unmatched_extra']),
        len(factual_errors),
        len(partition['agreed']),
        len(partition['reworded']),
    )

    generated_at = (now or datetime.now(timezone.utc)).isoformat()
    logger.debug(
        f"Analyzed {topic.id}: {len(partition['agreed'])} agreed, "
        f"{len(partition['truly_missing'])} missing, {len(partition['unmatched_extra'])} extra, "
        f"confidence={confidence['score']}"
    )

    return {
        'topic_id': topic.id,
        'title': topic.title,
        'stats': {
            'wiki_char_count': len(wiki_text),
            'grok_char_count': len(grok_text),
            'similarity_ratio': {'word': word_similarity, 'sentence': sentence_similarity},
            'wiki_sentence_count': len(wiki_sentences),
            'grok_sentence_count': len(grok_sentences),
            'missing_sentence_total': len(partition['missing']),
            'extra_sentence_total': len(partition['extra']),
            'reworded_sentence_count': len(partition['reworded']),
            'truly_missing_count': len(partition['truly_missing']),
            'unmatched_extra_count': len(partition['unmatched_extra']),
            'agreement_count': len(partition['agreed']),
        },
        'ngram_overlap': overlap,
        'missing_sentences': partition['missing'],
        'extra_sentences': partition['extra'],
        'unmatched_extra_sentences': partition['unmatched_extra'],
        'reworded_sentences': partition['reworded'],
        'truly_missing_sentences': partition['truly_missing'],
        'agreed_sentences': partition['agreed'],
        'sections_missing': sections_missing,
        'sections_extra': sections_extra,
        'claims_missing': claims_missing,
        'claims_extra': claims_extra,
        'citations': {'missing': missing_citations, 'extra': extra_citations},
        'diff_sample': diff_sample(wiki_sentences, grok_sentences, topic.id),
        'discrepancies': build_discrepancies(
            partition['truly_missing'],
            partition['unmatched_extra'],
            partition['reworded'],
            sections_missing,
            sections_extra,
            missing_citations,
            extra_citations,
            bias_events,
            hallucination_events,
            factual_errors,
        ),
        'bias_events': bias_events,
        'hallucination_events': hallucination_events,
        'factual_errors': factual_errors,
        'confidence': confidence,
        'highlights': {
            'missing': build_highlights(partition['truly_missing'], 'wikipedia', 'missing'),
            'extra': (
                build_highlights(partition['unmatched_extra'], 'grokipedia', 'extra')
                + build_highlights(_evidence_sentences(bias_events), 'grokipedia', 'bias')
                + build_highlights(_evidence_sentences(hallucination_events), 'grokipedia', 'hallucination')
            ),
        },
        'updated_at': generated_at,
        'meta': {
            'analyzer_version': ANALYZER_VERSION,
            'content_hash': content_hash,
            'generated_at': generated_at,
            'cache_ttl_hours': cache_ttl_hours,
            'shingle_size': SHINGLE_SIZE,
            'analysis_window': {
                'wiki_analyzed_chars': len(wiki_text),
                'grok_analyzed_chars': len(grok_text),
                'source_note': 'Analyzed text is whitespace-normalised article text',
            },
        },
        'section_alignment': section_alignment,
        'claim_alignment': claim_alignment,
        'numeric_discrepancies': numeric_discrepancies,
        'entity_discrepancies': entity_discrepancies,
        'bias_metrics': compute_bias_metrics(wiki_text, grok_text),
    }
