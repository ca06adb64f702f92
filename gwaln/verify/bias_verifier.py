"""
Optional Gemini double-check of detected bias events.

The verifier sends the candidate events with trimmed context from both
articles to the Generative Language API and maps the JSON answer onto one
record per event. It never raises: any transport, HTTP or parse failure
becomes a ``verdict: "error"`` record for every event.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from gwaln.config.settings import (
    DEFAULT_GEMINI_ENDPOINT,
    DEFAULT_GEMINI_MAX_CONTEXT_CHARS,
    DEFAULT_GEMINI_MODEL,
)

from .errors import ExternalServiceError

logger = logging.getLogger(__name__)

SERVICE_NAME = "gemini"
VERDICTS = ("confirm", "reject", "uncertain")
VERDICT_ERROR = "error"

# (connect, read) timeouts
REQUEST_TIMEOUT = (10, 60)

_retry = Retry(total=1, allowed_methods=["POST"], backoff_factor=1, status_forcelist=[502, 503, 504])
_session = requests.Session()
_session.mount("https://", HTTPAdapter(max_retries=_retry))

_CODE_FENCE = re.compile(r"```(?:json)?")


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def _trim(text: str, limit: int) -> str:
    return f"{text[:limit]}…" if len(text) > limit else text


def build_prompt(events: Sequence[Dict[str, Any]], wiki_text: str, grok_text: str, context_limit: int) -> str:
    wiki_context = _trim(wiki_text, context_limit)
    grok_context = _trim(grok_text, max(1000, int(context_limit * 0.8)))
    bullets = []
    for idx, event in enumerate(events):
        snippet = (event.get('evidence') or {}).get('grokipedia') or ''
        tag = (event.get('tags') or [event.get('type')])[0]
        bullets.append(f"{idx}. ({tag}) {snippet}")

    return "\n".join([
        "You are verifying whether Grokipedia sentences introduce biased framing absent from Wikipedia.",
        "Base your decision on Wikipedia tone (reference excerpt) and the Grokipedia snippet provided.",
        'Respond with compact JSON only. Allowed verdicts: "confirm", "reject", or "uncertain".',
        "Include a rationale per entry and a confidence score between 0 and 1.",
        "",
        "Reference excerpt (Wikipedia):",
        f'"""{wiki_context}"""',
        "",
        "Grokipedia context (trimmed):",
        f'"""{grok_context}"""',
        "",
        "Candidate sentences:",
        "\n".join(bullets),
        "",
        "Return JSON shaped like:",
        '[{"index":0,"verdict":"confirm","confidence":0.8,"rationale":"Why the wording is biased"}]',
    ])


def normalize_verdict(value: Any) -> str:
    verdict = str(value or '').strip().lower()
    return verdict if verdict in VERDICTS else VERDICT_ERROR


def normalize_confidence(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return round(_clamp(float(value)), 2)


def _request_verdicts(prompt: str, api_key: str, model: str, endpoint: str) -> List[Dict[str, Any]]:
    """POST the prompt and return the parsed JSON list. Raises ExternalServiceError."""
    url = f"{endpoint.rstrip('/')}/v1beta/models/{model}:generateContent"
    body = {
        'contents': [{'role': 'user', 'parts': [{'text': prompt}]}],
        'generationConfig': {'temperature': 0},
    }
    try:
        response = _session.post(url, params={'key': api_key}, json=body, timeout=REQUEST_TIMEOUT)
        response.raise_for_status()
        payload = response.json()
    except requests.RequestException as e:
        raise ExternalServiceError(SERVICE_NAME, f"Gemini API request failed: {e}", e) from e
    except ValueError as e:
        raise ExternalServiceError(SERVICE_NAME, f"Gemini API returned non-JSON body: {e}", e) from e

    if not isinstance(payload, dict):
        raise ExternalServiceError(SERVICE_NAME, "Gemini API returned an unexpected body.")
    error = payload.get('error')
    if isinstance(error, dict) and error.get('message'):
        raise ExternalServiceError(SERVICE_NAME, f"Gemini API returned an error: {error['message']}")

    candidates = payload.get('candidates') or []
    if not isinstance(candidates, list) or (candidates and not isinstance(candidates[0], dict)):
        raise ExternalServiceError(SERVICE_NAME, "Gemini API returned an unexpected body.")
    content = (candidates[0].get('content') or {}) if candidates else {}
    parts = (content.get('parts') or []) if isinstance(content, dict) else None
    if not isinstance(parts, list) or not all(isinstance(part, dict) for part in parts):
        raise ExternalServiceError(SERVICE_NAME, "Gemini API returned an unexpected body.")
    text = "\n".join(part.get('text') or '' for part in parts).strip()
    if not text:
        raise ExternalServiceError(SERVICE_NAME, "Gemini response contained no text content.")

    try:
        parsed = json.loads(_CODE_FENCE.sub('', text).strip())
    except ValueError as e:
        raise ExternalServiceError(SERVICE_NAME, "Gemini response was not valid JSON.", e) from e
    if not isinstance(parsed, list):
        raise ExternalServiceError(SERVICE_NAME, "Gemini response was not a JSON list.")
    return parsed


def _error_records(count: int, message: str) -> List[Dict[str, Any]]:
    return [
        {
            'provider': SERVICE_NAME,
            'event_index': idx,
            'verdict': VERDICT_ERROR,
            'confidence': None,
            'rationale': message,
        }
        for idx in range(count)
    ]


def verify_bias_with_gemini(
    events: Sequence[Dict[str, Any]],
    wiki_text: str,
    grok_text: str,
    api_key: str,
    model: str = DEFAULT_GEMINI_MODEL,
    endpoint: str = DEFAULT_GEMINI_ENDPOINT,
    max_context_chars: int = DEFAULT_GEMINI_MAX_CONTEXT_CHARS,
) -> List[Dict[str, Any]]:
    """
    Ask Gemini to confirm or reject each bias event.

    Args:
        events: Candidate bias events (``bias_events`` from the payload)
        wiki_text: Reference article text
        grok_text: Compared article text
        api_key: Generative Language API key
        model: Gemini model name
        endpoint: API base URL
        max_context_chars: Character limit for the wiki excerpt

    Returns:
        One record per answered event: provider, event_index, verdict,
        confidence (0-1, 2 decimals, or None) and rationale
    """
    if not events:
        return []

    prompt = build_prompt(events, wiki_text, grok_text, max_context_chars)
    try:
        entries = _request_verdicts(prompt, api_key, model, endpoint)
    except ExternalServiceError as e:
        logger.warning(f"Bias verification failed: {e}")
        return _error_records(len(events), str(e))

    records = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        index = entry.get('index')
        if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(events):
            continue
        records.append({
            'provider': SERVICE_NAME,
            'event_index': index,
            'verdict': normalize_verdict(entry.get('verdict')),
            'confidence': normalize_confidence(entry.get('confidence')),
            'rationale': entry.get('rationale'),
        })

    logger.info(f"Gemini verified {len(records)}/{len(events)} bias events")
    return records
