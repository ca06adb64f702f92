"""
Citation verifier: checks whether grok-only sentences appear in the pages
their citations point to.

Each http(s) citation is fetched at most once. Results are per sentence:
``supported`` (with the supporting URL), ``unsupported`` when pages were
fetched but none contains the sentence, or ``error`` when nothing could be
fetched.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gwaln.analysis.text import unique_list
from gwaln.config.settings import DEFAULT_CITATION_TIMEOUT_SECONDS, DEFAULT_MAX_CITATIONS

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "citation"

_retry = Retry(total=1, allowed_methods=["GET"], backoff_factor=1, status_forcelist=[502, 503, 504])
_session = requests.Session()
_session.mount("https://", HTTPAdapter(max_retries=_retry))
_session.mount("http://", HTTPAdapter(max_retries=_retry))

_HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


def _normalize(value: str) -> str:
    return re.sub(r"\s+", " ", value).strip().lower()


def fetch_citation(url: str, timeout: float = DEFAULT_CITATION_TIMEOUT_SECONDS) -> str:
    """Fetch a citation page body. Raises ExternalServiceError."""
    try:
        response = _session.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as e:
        raise ExternalServiceError(SERVICE_NAME, f"{url}: {e}", e) from e
    return response.text


def _error_results(sentences: Sequence[str], message: str) -> List[Dict[str, Any]]:
    return [{'sentence': s, 'status': 'error', 'message': message} for s in sentences]


def verify_sentences_against_citations(
    sentences: Sequence[str],
    citations: Sequence[str],
    max_citations: int = DEFAULT_MAX_CITATIONS,
    timeout: float = DEFAULT_CITATION_TIMEOUT_SECONDS,
) -> List[Dict[str, Any]]:
    """
    Look for each sentence in the fetched citation pages.

    Args:
        sentences: Sentences to verify (typically unmatched grok sentences)
        citations: Candidate citation URLs
        max_citations: Number of distinct http(s) citations to fetch
        timeout: Per-request timeout in seconds

    Returns:
        One result dict per sentence, in input order
    """
    if not sentences:
        return []
    if not citations:
        return _error_results(sentences, "No citations available for verification.")

    urls = unique_list([c for c in citations if isinstance(c, str) and _HTTP_URL.match(c)])[:max_citations]
    if not urls:
        return _error_results(sentences, "No HTTP citations available.")

    pages: Dict[str, str] = {}
    errors: List[str] = []
    for url in urls:
        try:
            pages[url] = _normalize(fetch_citation(url, timeout))
        except ExternalServiceError as e:
            logger.warning(f"Citation fetch failed: {e}")
            errors.append(str(e.original_error or e))

    if not pages:
        message = "; ".join(f"{url}: {err}" for url, err in zip(urls, errors)) or "Unable to fetch citations."
        return _error_results(sentences, message)

    results = []
    for sentence in sentences:
        needle = _normalize(sentence)
        supporting_url: Optional[str] = next((url for url, text in pages.items() if needle and needle in text), None)
        if supporting_url:
            results.append({'sentence': sentence, 'status': 'supported', 'supporting_url': supporting_url})
        else:
            results.append({
                'sentence': sentence,
                'status': 'unsupported',
                'message': 'Sentence not found in fetched citations.',
            })

    logger.info(
        f"Citation check: {sum(1 for r in results if r['status'] == 'supported')}/{len(results)} "
        f"sentences supported by {len(pages)} fetched pages"
    )
    return results
