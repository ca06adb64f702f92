"""
Analyse workflow: parsed article pair -> persisted structured report.

Steps:
    1. Load both parser snapshots
    2. Compute the content hash and probe the persisted analysis
    3. Skip when fresh (unless forced), otherwise run the analyzer
    4. Optionally enrich with bias / citation verifier results
    5. Build, validate and atomically write the structured report

Verifier failures are recorded per item and never abort the run. Two
processes analysing the same topic race with last-write-wins; recomputation
is deterministic so either result is acceptable.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional

from gwaln.analysis.analyzer import analyze_content, collect_citations, prepare_article_text
from gwaln.analysis.models import Topic, load_structured_article
from gwaln.cache.analysis_cache import probe_cached_analysis, write_analysis
from gwaln.cache.hashing import compute_content_hash
from gwaln.config.secrets import MissingAPIKeyError, get_gemini_key
from gwaln.config.settings import get_cache_ttl_hours, get_citation_config, get_gemini_config, load_analyzer_config
from gwaln.report.structured_report import build_structured_analysis
from gwaln.report.validation import ReportValidationError, validate_structured_report
from gwaln.verify.bias_verifier import verify_bias_with_gemini
from gwaln.verify.citation_verifier import verify_sentences_against_citations
from gwaln.verify.enrichment import enrich_payload

logger = logging.getLogger(__name__)

BIAS_VERIFIERS = ("gemini",)

STATUS_CACHED = "cached"
STATUS_WRITTEN = "written"


class AnalyzeError(Exception):
    """Raised when a topic cannot be analysed (bad input, config or report)."""
    pass


@dataclass
class AnalyzeResult:
    topic_id: str
    status: str
    analysis_path: Path
    detail: Optional[str] = None


def analyze_topic(
    topic: Topic,
    wiki_path: Path,
    grok_path: Path,
    output_path: Path,
    force: bool = False,
    verify_citations: bool = False,
    bias_verifier: Optional[str] = None,
    config_path: Optional[str] = None,
    now: Optional[datetime] = None,
) -> AnalyzeResult:
    """
    Analyse one topic and persist its structured report.

    Args:
        topic: Topic identity
        wiki_path: Parsed Wikipedia snapshot (JSON)
        grok_path: Parsed Grokipedia snapshot (JSON)
        output_path: Where the structured report is written
        force: Recompute even when the persisted analysis is fresh
        verify_citations: Check unmatched grok sentences against citations
        bias_verifier: Bias verification provider ("gemini") or None
        config_path: Explicit analyzer.yaml path
        now: Reference time for generation and freshness

    Returns:
        AnalyzeResult with status "cached" or "written"

    Raises:
        AnalyzeError: If inputs cannot be loaded, the report is invalid or
            cannot be written
    """
    if bias_verifier is not None and bias_verifier not in BIAS_VERIFIERS:
        raise AnalyzeError(f"Unknown bias verifier: {bias_verifier}")

    config = load_analyzer_config(config_path)
    ttl_hours = get_cache_ttl_hours(config)

    try:
        wiki_article = load_structured_article(Path(wiki_path))
        grok_article = load_structured_article(Path(grok_path))
    except (OSError, ValueError) as e:
        raise AnalyzeError(f"Failed to load parsed articles for {topic.id}: {e}") from e

    wiki_text = prepare_article_text(wiki_article)
    grok_text = prepare_article_text(grok_article)
    content_hash = compute_content_hash(wiki_text, grok_text)

    output_path = Path(output_path)
    probe = probe_cached_analysis(output_path, content_hash, ttl_hours=ttl_hours, now=now)
    if probe.is_fresh and not force:
        logger.info(f"{topic.id}: cached analysis is fresh, skipping")
        return AnalyzeResult(topic.id, STATUS_CACHED, output_path, "fresh")
    logger.info(f"{topic.id}: analysing (cache {probe.status}{', forced' if force else ''})")

    payload = analyze_content(
        topic,
        wiki_article,
        grok_article,
        wiki_text=wiki_text,
        grok_text=grok_text,
        content_hash=content_hash,
        now=now,
        cache_ttl_hours=ttl_hours,
    )

    bias_verifications = None
    if bias_verifier == "gemini" and payload['bias_events']:
        try:
            api_key = get_gemini_key()
        except MissingAPIKeyError as e:
            raise AnalyzeError(str(e)) from e
        gemini = get_gemini_config(config)
        bias_verifications = verify_bias_with_gemini(
            payload['bias_events'],
            wiki_text,
            grok_text,
            api_key,
            model=gemini['model'],
            endpoint=gemini['endpoint'],
            max_context_chars=gemini['max_context_chars'],
        )

    citation_verifications = None
    if verify_citations and payload['unmatched_extra_sentences']:
        limits = get_citation_config(config)
        citation_verifications = verify_sentences_against_citations(
            payload['unmatched_extra_sentences'],
            collect_citations(grok_article, grok_text),
            max_citations=limits['max_citations'],
            timeout=limits['timeout_seconds'],
        )

    if bias_verifications is not None or citation_verifications is not None:
        payload = enrich_payload(payload, bias_verifications, citation_verifications)

    report = build_structured_analysis(topic, payload)
    try:
        validate_structured_report(report)
    except ReportValidationError as e:
        raise AnalyzeError(f"Structured report for {topic.id} failed validation: {e}") from e

    try:
        write_analysis(output_path, report)
    except OSError as e:
        raise AnalyzeError(f"Failed to write analysis for {topic.id} to {output_path}: {e}") from e

    summary = report['summary']
    logger.info(
        f"{topic.id}: {summary['headline']} "
        f"(confidence {summary['confidence']['label']} {summary['confidence']['score']})"
    )
    return AnalyzeResult(topic.id, STATUS_WRITTEN, output_path, summary['headline'])
