"""Analyse workflow and command-line entry point."""
