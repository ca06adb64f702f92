"""
Freshness probe and writer for persisted analysis files.

A persisted file holds either a structured report (``schema`` set to
``gwaln.analysis/2``) or a legacy raw payload. ``probe_cached_analysis`` only
reads; deciding whether to recompute and re-persist is the caller's job.
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from gwaln.report.structured_report import is_structured_analysis_report

logger = logging.getLogger(__name__)


STATUS_MISSING = "missing"
STATUS_FRESH = "fresh"
STATUS_STALE = "stale"
STATUS_MISMATCH = "mismatch"
STATUS_INVALID = "invalid"


@dataclass
class CacheProbeResult:
    status: str
    analysis: Optional[Dict[str, Any]] = None
    reason: Optional[str] = None

    @property
    def is_fresh(self) -> bool:
        return self.status == STATUS_FRESH


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def extract_cache_metadata(analysis: Dict[str, Any]) -> Tuple[Optional[str], Optional[str]]:
    """
    Pull (content_hash, generated_at) out of either persisted shape.

    Structured reports keep both under ``meta`` (top-level ``generated_at`` as
    fallback); legacy payloads keep the timestamp in ``updated_at``.
    """
    meta = analysis.get('meta')
    meta = meta if isinstance(meta, dict) else {}
    content_hash = meta.get('content_hash')
    if is_structured_analysis_report(analysis):
        generated_at = meta.get('generated_at') or analysis.get('generated_at')
    else:
        generated_at = analysis.get('updated_at') or meta.get('generated_at')
    return content_hash, generated_at


def probe_cached_analysis(
    path: Path,
    expected_hash: str,
    ttl_hours: float,
    now: Optional[datetime] = None,
) -> CacheProbeResult:
    """
    Judge whether the analysis persisted at ``path`` can be reused.

    Args:
        path: Persisted analysis file
        expected_hash: Content hash of the current article pair
        ttl_hours: Maximum age in hours, resolved by the caller
        now: Reference time (defaults to current UTC time)

    Returns:
        CacheProbeResult with status missing, invalid, mismatch, stale or fresh
    """
    path = Path(path)
    if not path.exists():
        return CacheProbeResult(STATUS_MISSING, reason=f"No cached analysis at {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            analysis = json.load(f)
    except (OSError, ValueError) as e:
        logger.warning(f"Unreadable cached analysis {path}: {e}")
        return CacheProbeResult(STATUS_INVALID, reason=f"Failed to parse cached analysis: {e}")

    if not isinstance(analysis, dict):
        return CacheProbeResult(STATUS_INVALID, reason="Cached analysis is not a JSON object")

    content_hash, generated_at = extract_cache_metadata(analysis)
    if not content_hash or not generated_at:
        return CacheProbeResult(STATUS_INVALID, analysis, "Cached analysis lacks content_hash or timestamp")

    # Changed content is never merely stale
    if content_hash != expected_hash:
        return CacheProbeResult(STATUS_MISMATCH, analysis, "Content hash changed since last analysis")

    generated = parse_timestamp(generated_at)
    if generated is None:
        return CacheProbeResult(STATUS_INVALID, analysis, f"Unparsable timestamp: {generated_at!r}")

    now = now or datetime.now(timezone.utc)
    age_hours = (now - generated).total_seconds() / 3600

    if age_hours > ttl_hours:
        return CacheProbeResult(STATUS_STALE, analysis, f"Analysis is {age_hours:.1f}h old (TTL {ttl_hours}h)")
    return CacheProbeResult(STATUS_FRESH, analysis)


def write_analysis(path: Path, report: Dict[str, Any]) -> Path:
    """Persist a report as JSON, writing atomically (temp file then rename)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(report, indent=2, sort_keys=True, ensure_ascii=False)
    temp_path = path.with_suffix('.tmp')
    try:
        with open(temp_path, 'w', encoding='utf-8') as f:
            f.write(content)
        temp_path.replace(path)
    except Exception:
        if temp_path.exists():
            temp_path.unlink()
        raise

    logger.info(f"Wrote analysis to {path}")
    return path
