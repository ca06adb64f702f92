"""Structured analysis report."""
