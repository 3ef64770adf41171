#!/usr/bin/env python3
"""
Generate macro benchmark comparison and summary reports.

Usage:
    # Compare two git refs (console tables)
    python generate_report.py compare 1a2b3c4 5d6e7f8 --db-path results/macrobench.db

    # Compare against the HEAD of a local checkout, markdown output
    python generate_report.py compare 1a2b3c4 --git-dir ../vitess -o results/compare.md

    # Summarize one git ref over the last 30 days
    python generate_report.py summary 1a2b3c4 --last-days 30 --format json
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from macrobench.analysis import compare_revisions, summarize_revision
from macrobench.config import AnalysisConfig, load_analysis_config
from macrobench.db import get_database
from macrobench.errors import MacrobenchError
from macrobench.git import get_commit_hash
from macrobench.report import (
    comparisons_to_markdown,
    plot_relative_changes,
    print_console_report,
    print_summary_report,
    save_comparison_csv,
    save_summary_csv,
    summaries_to_markdown,
    to_json,
)

# Output formats inferred from the --output extension
OUTPUT_FORMATS = {
    ".md": "markdown",
    ".json": "json",
    ".csv": "csv",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare and summarize macro benchmark results",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Compare OLTP and TPCC between two commits
    python generate_report.py compare 1a2b3c4 5d6e7f8

    # Only TPCC, Gen4 planner, as CSV
    python generate_report.py compare 1a2b3c4 5d6e7f8 --types tpcc --planner Gen4 \\
        --format csv -o results/compare.csv

    # Summary of the current checkout
    python generate_report.py summary --git-dir ../vitess
        """,
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config", "-c",
        help="YAML config file with defaults (db_path, planner, alpha, last_days, benchmark_types)",
    )
    common.add_argument(
        "--db-path",
        default=None,
        help="Path to SQLite database (default: results/macrobench.db)",
    )
    common.add_argument(
        "--types", "-t",
        help="Comma-separated list of benchmark types (default: oltp,tpcc)",
    )
    common.add_argument(
        "--planner", "-p",
        help="Planner version (default: V3)",
    )
    common.add_argument(
        "--last-days",
        type=int,
        help="Only consider runs created in the last N days",
    )
    common.add_argument(
        "--git-dir",
        help="Local repository whose HEAD is used when a git ref is omitted",
    )
    common.add_argument(
        "--format", "-f",
        choices=["console", "markdown", "json", "csv"],
        default="console",
        help="Output format (default: console)",
    )
    common.add_argument(
        "--output", "-o",
        help="Output file path (default: stdout)",
    )
    common.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    compare_parser = subparsers.add_parser(
        "compare", parents=[common], help="Compare a baseline and a candidate git ref",
    )
    compare_parser.add_argument("old", help="Baseline git ref")
    compare_parser.add_argument("new", nargs="?", help="Candidate git ref (default: HEAD of --git-dir)")
    compare_parser.add_argument(
        "--alpha",
        type=float,
        help="Significance level (default: 0.05)",
    )
    compare_parser.add_argument(
        "--plot",
        help="Save a relative change chart to this PNG path",
    )

    summary_parser = subparsers.add_parser(
        "summary", parents=[common], help="Summarize the benchmarks of one git ref",
    )
    summary_parser.add_argument("ref", nargs="?", help="Git ref (default: HEAD of --git-dir)")

    return parser


def resolve_config(args: argparse.Namespace) -> AnalysisConfig:
    """Load the config file and apply command line overrides."""
    config = load_analysis_config(args.config)
    if args.db_path:
        config.db_path = args.db_path
    if args.types:
        config.benchmark_types = [t.strip() for t in args.types.split(",") if t.strip()]
    if args.planner:
        config.planner = args.planner
    if args.last_days is not None:
        config.last_days = args.last_days
    if getattr(args, "alpha", None) is not None:
        config.alpha = args.alpha
    config.validate()
    return config


def resolve_ref(ref: Optional[str], git_dir: Optional[str]) -> str:
    """Return ref, or the HEAD commit of git_dir when ref is omitted."""
    if ref:
        return ref
    if not git_dir:
        raise ValueError("A git ref is required when --git-dir is not given")
    return get_commit_hash(git_dir)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = resolve_config(args)
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Validate database file exists
    if not Path(config.db_path).exists():
        print(f"Error: Database not found: {config.db_path}", file=sys.stderr)
        return 1

    # Auto-detect format from output file extension
    if args.output and args.format == "console":
        suffix = Path(args.output).suffix.lower()
        if suffix not in OUTPUT_FORMATS:
            print(
                f"Error: cannot write console output to {args.output}; "
                "use --format markdown, json or csv",
                file=sys.stderr,
            )
            return 1
        args.format = OUTPUT_FORMATS[suffix]

    if args.format == "csv" and not args.output:
        print("Error: --format csv requires --output", file=sys.stderr)
        return 1

    db = get_database(config.db_path)
    try:
        if args.command == "compare":
            new = resolve_ref(args.new, args.git_dir)
            comparisons = compare_revisions(
                db,
                config.benchmark_types,
                args.old,
                new,
                config.planner,
                alpha=config.alpha,
                last_days=config.last_days,
            )
            if args.format == "console":
                print_console_report(comparisons, args.old, new)
            elif args.format == "markdown":
                _write_report(comparisons_to_markdown(comparisons, args.old, new), args.output)
            elif args.format == "json":
                _write_report(to_json(comparisons), args.output)
            else:
                save_comparison_csv(comparisons, args.output)
            if args.plot:
                plot_relative_changes(comparisons, args.plot, title=f"{args.old} vs {new}")
        else:
            ref = resolve_ref(args.ref, args.git_dir)
            summaries = summarize_revision(
                db,
                config.benchmark_types,
                ref,
                config.planner,
                last_days=config.last_days,
            )
            if args.format == "console":
                print_summary_report(summaries, ref)
            elif args.format == "markdown":
                _write_report(summaries_to_markdown(summaries, ref), args.output)
            elif args.format == "json":
                _write_report(to_json(summaries), args.output)
            else:
                save_summary_csv(summaries, args.output)
    except (MacrobenchError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        db.close()

    return 0


def _write_report(report: str, output: Optional[str]):
    """Write report to file or stdout."""
    if output:
        output_path = Path(output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report)
        print(f"Report written to: {output}")
    else:
        print(report)


if __name__ == "__main__":
    sys.exit(main())
