"""
Content hashing for wiki/grok article pairs.

The hash is the cache key for persisted analyses: it changes whenever either
source text (after whitespace normalisation) or the analyzer version changes.
"""

import hashlib

from gwaln.analysis.text import normalize_whitespace
from gwaln.config.settings import ANALYZER_VERSION


def compute_content_hash(wiki_text: str, grok_text: str, analyzer_version: str = ANALYZER_VERSION) -> str:
    """
    Compute SHA256 hash of a normalised article pair.

    Returns:
        String in format "sha256:<hex_digest>"
    """
    hasher = hashlib.sha256()
    hasher.update(normalize_whitespace(wiki_text).encode('utf-8'))
    # Separator keeps ("ab", "c") and ("a", "bc") apart
    hasher.update(b"\x00")
    hasher.update(normalize_whitespace(grok_text).encode('utf-8'))
    hasher.update(b"\x00")
    hasher.update(analyzer_version.encode('utf-8'))
    return f"sha256:{hasher.hexdigest()}"
