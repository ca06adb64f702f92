"""Network-backed verifiers run outside the analysis core."""
