"""
Command-line interface for the gwaln analyzer.

Subcommands:
    analyse  Compare a parsed Wikipedia/Grokipedia pair and write the report
    probe    Print the freshness status of a persisted analysis
    keys     Report which verifier API keys are configured
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional

from gwaln.analysis.analyzer import prepare_article_text
from gwaln.analysis.models import Topic, load_structured_article
from gwaln.cache.analysis_cache import probe_cached_analysis
from gwaln.cache.hashing import compute_content_hash
from gwaln.config.secrets import check_keys
from gwaln.config.settings import get_cache_ttl_hours, load_analyzer_config
from gwaln.logging_config import configure_logging

from .analyze_workflow import BIAS_VERIFIERS, AnalyzeError, analyze_topic


def _topic_from_args(args: argparse.Namespace) -> Topic:
    return Topic(
        id=args.topic_id,
        title=args.title or args.topic_id,
        wikipedia_slug=args.wikipedia_slug or args.topic_id,
        grokipedia_slug=args.grokipedia_slug or args.topic_id,
        category=args.category,
    )


def cmd_analyse(args: argparse.Namespace) -> int:
    """Analyse one topic and write its structured report."""
    try:
        result = analyze_topic(
            _topic_from_args(args),
            Path(args.wiki),
            Path(args.grok),
            Path(args.output),
            force=args.force,
            verify_citations=args.verify_citations,
            bias_verifier=args.bias_verifier,
            config_path=args.config,
        )
    except AnalyzeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if result.status == "cached":
        print(f"{result.topic_id}: cached analysis is fresh ({result.analysis_path})")
    else:
        print(f"{result.topic_id}: {result.detail}")
        print(f"Wrote {result.analysis_path}")
    return 0


def cmd_probe(args: argparse.Namespace) -> int:
    """Report whether a persisted analysis matches the current article pair."""
    try:
        wiki_text = prepare_article_text(load_structured_article(Path(args.wiki)))
        grok_text = prepare_article_text(load_structured_article(Path(args.grok)))
    except (OSError, ValueError) as e:
        print(f"Error: failed to load parsed articles: {e}", file=sys.stderr)
        return 1

    ttl_hours = args.ttl_hours
    if ttl_hours is None:
        ttl_hours = get_cache_ttl_hours(load_analyzer_config(args.config))
    probe = probe_cached_analysis(Path(args.analysis), compute_content_hash(wiki_text, grok_text), ttl_hours)
    if args.json:
        print(json.dumps({'status': probe.status, 'reason': probe.reason}, indent=2))
    else:
        print(f"Status: {probe.status}")
        if probe.reason:
            print(f"Reason: {probe.reason}")
    return 0


def cmd_keys(args: argparse.Namespace) -> int:
    """Show which verifier API keys are configured; 1 if any is missing."""
    status = check_keys()
    for env_name, state in status.items():
        print(f"{env_name}: {state}")
    if "MISSING" in status.values():
        print("Add missing keys to .env at the repo root or export them.", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[list] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="gwaln",
        description="Compare Grokipedia articles against Wikipedia"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose (debug) logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # analyse command
    analyse_parser = subparsers.add_parser("analyse", help="Analyse a parsed article pair")
    analyse_parser.add_argument("wiki", help="Parsed Wikipedia snapshot (JSON)")
    analyse_parser.add_argument("grok", help="Parsed Grokipedia snapshot (JSON)")
    analyse_parser.add_argument("--topic-id", required=True, help="Topic identifier")
    analyse_parser.add_argument("--title", help="Topic title (defaults to topic id)")
    analyse_parser.add_argument("--wikipedia-slug", help="Wikipedia slug (defaults to topic id)")
    analyse_parser.add_argument("--grokipedia-slug", help="Grokipedia slug (defaults to topic id)")
    analyse_parser.add_argument("--category", help="Topic category")
    analyse_parser.add_argument("--output", "-o", required=True, help="Report output path")
    analyse_parser.add_argument("--config", help="Path to analyzer.yaml")
    analyse_parser.add_argument("--force", action="store_true", help="Recompute even if cached analysis is fresh")
    analyse_parser.add_argument("--verify-citations", action="store_true",
                                help="Check unmatched Grokipedia sentences against their citations")
    analyse_parser.add_argument("--bias-verifier", choices=list(BIAS_VERIFIERS),
                                help="Double-check bias events with an LLM provider")
    analyse_parser.set_defaults(func=cmd_analyse)

    # probe command
    probe_parser = subparsers.add_parser("probe", help="Show cache status for a persisted analysis")
    probe_parser.add_argument("wiki", help="Parsed Wikipedia snapshot (JSON)")
    probe_parser.add_argument("grok", help="Parsed Grokipedia snapshot (JSON)")
    probe_parser.add_argument("analysis", help="Persisted analysis path")
    probe_parser.add_argument("--ttl-hours", type=float, help="Override the configured TTL")
    probe_parser.add_argument("--config", help="Path to analyzer.yaml")
    probe_parser.add_argument("--json", action="store_true", help="Print JSON")
    probe_parser.set_defaults(func=cmd_probe)

    # keys command
    keys_parser = subparsers.add_parser("keys", help="Check verifier API key configuration")
    keys_parser.set_defaults(func=cmd_keys)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(verbose=args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
