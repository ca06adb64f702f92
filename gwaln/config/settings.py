"""
Analyzer settings loaded from config/analyzer.yaml.

Values missing from the file (or the whole file) fall back to the module
defaults below, so the analyzer runs without any configuration present.
"""

import logging
import os
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)


ANALYZER_VERSION = "gwaln-analyzer@1.0.0"

# Cached analyses remain valid for this many hours unless the content hash changes.
DEFAULT_CACHE_TTL_HOURS = 72

DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"
DEFAULT_GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com"
DEFAULT_GEMINI_MAX_CONTEXT_CHARS = 2500

DEFAULT_MAX_CITATIONS = 5
DEFAULT_CITATION_TIMEOUT_SECONDS = 8


def _config_paths() -> list:
    return [
        os.path.join("config", "analyzer.yaml"),
        os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))),
                     "config", "analyzer.yaml"),
    ]


def load_analyzer_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load analyzer configuration from YAML.

    Args:
        path: Explicit config path; when omitted, config/analyzer.yaml is
            searched in the working directory and then the repo root.

    Returns:
        Config dict or empty dict if no readable file was found
    """
    candidates = [path] if path else _config_paths()

    for candidate in candidates:
        if candidate and os.path.exists(candidate):
            try:
                with open(candidate, 'r') as f:
                    loaded = yaml.safe_load(f) or {}
            except (OSError, yaml.YAMLError) as e:
                logger.warning(f"Failed to load analyzer config from {candidate}: {e}")
                continue
            if not isinstance(loaded, dict):
                logger.warning(f"Ignoring analyzer config at {candidate}: top level is not a mapping")
                continue
            return loaded

    return {}


def get_cache_ttl_hours(config: Optional[Dict[str, Any]] = None) -> float:
    """Return the cache TTL in hours, preferring config over the default."""
    config = load_analyzer_config() if config is None else config
    value = (config.get('cache') or {}).get('ttl_hours', DEFAULT_CACHE_TTL_HOURS)
    try:
        ttl = float(value)
    except (TypeError, ValueError):
        logger.warning(f"Invalid cache.ttl_hours value {value!r}, using {DEFAULT_CACHE_TTL_HOURS}")
        return float(DEFAULT_CACHE_TTL_HOURS)
    return max(ttl, 0.0)


def get_gemini_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return model/endpoint/context settings for the Gemini bias verifier."""
    config = load_analyzer_config() if config is None else config
    gemini = config.get('gemini', {}) or {}
    return {
        'model': gemini.get('model', DEFAULT_GEMINI_MODEL),
        'endpoint': gemini.get('endpoint', DEFAULT_GEMINI_ENDPOINT),
        'max_context_chars': gemini.get('max_context_chars', DEFAULT_GEMINI_MAX_CONTEXT_CHARS),
    }


def get_citation_config(config: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Return fetch limits for the citation verifier."""
    config = load_analyzer_config() if config is None else config
    citations = config.get('citations', {}) or {}
    return {
        'max_citations': citations.get('max_citations', DEFAULT_MAX_CITATIONS),
        'timeout_seconds': citations.get('timeout_seconds', DEFAULT_CITATION_TIMEOUT_SECONDS),
    }
