"""
gwaln: compares Grokipedia articles against their Wikipedia counterparts.

Modules:
    gwaln.analysis  Alignment, bias metrics, confidence and the discrepancy analyzer
    gwaln.report    Structured report builder and schema validation
    gwaln.cache     Content hashing and cached-analysis freshness probe
    gwaln.verify    Optional bias / citation verifiers
    gwaln.pipeline  Analyse workflow and CLI
"""

__version__ = "1.0.0"
