#!/usr/bin/env python3
"""
Music Catalog Valuation System - Main Entry Point.

This is the main entry point for the catalog valuation system. It
provides a command-line interface over the ingestion and valuation
pipeline.

Usage:
    Command Line:
        python main.py ingest statements/spotify.csv statements/apple.pdf
        python main.py status 3f2c9a...
        python main.py value --year-one-decay 30 --year-two-decay 20 --year-three-decay 10
        python main.py report 1 --json

    Python:
        from catalog_valuation.pipeline import build_pipeline
        pipeline = build_pipeline()

Author: ML Engineering Team
Version: 1.0.0
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

# Import project modules
from config import ConfigurationManager
from catalog_valuation.utils.logger import ROOT_LOGGER_NAME, setup_logger_from_config, get_logger
from catalog_valuation.utils.exceptions import CatalogValuationError, InvalidConfigError


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Music Catalog Valuation System",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Ingest statements:
        python main.py ingest spotify_2024.csv apple_q1.pdf screenshot.png

    Value the latest complete batch:
        python main.py value --year-one-decay 30 --year-two-decay 20 --year-three-decay 10
        """
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Print results as JSON"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Process statement files as one batch")
    ingest.add_argument("files", nargs="+", help="Statement files (CSV, TSV, XLSX, PDF, PNG, JPG)")

    status = subparsers.add_parser("status", help="Show the status of a batch")
    status.add_argument("batch_id", help="Batch id printed by ingest")

    value = subparsers.add_parser("value", help="Value the latest complete batch")
    value.add_argument("--year-one-decay", type=int, required=True, help="Decay in percent for years 1-2")
    value.add_argument("--year-two-decay", type=int, required=True, help="Decay in percent for years 3-4")
    value.add_argument("--year-three-decay", type=int, required=True, help="Decay in percent for years 5+")
    value.add_argument("--spotify-rate", type=float, default=0.004, help="Spotify per-stream rate (default: 0.004)")
    value.add_argument("--apple-music-rate", type=float, default=0.008, help="Apple Music per-stream rate (default: 0.008)")

    report = subparsers.add_parser("report", help="Show a stored valuation")
    report.add_argument("valuation_id", type=int, help="Valuation id printed by value")

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Initialize the system with configuration and logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    if args.config:
        ConfigurationManager.reset()
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.setLevel(logging.DEBUG)

    logger.info("=" * 60)
    logger.info("MUSIC CATALOG VALUATION SYSTEM")
    logger.info("=" * 60)
    logger.info(f"Version: {config.get('project.version', '1.0.0')}")
    logger.info(f"Command: {args.command}")

    return config


def format_status(status: Dict[str, Any]) -> str:
    lines = [
        f"Batch:     {status['batchId']}",
        f"Status:    {status['status']}",
        f"Progress:  {status['progress']}%",
        f"Files:     {status['filesProcessed']}/{status['totalFiles']}",
        f"Records:   {status['recordCount']}",
    ]
    if status.get('error'):
        lines.append(f"Error:     {status['error']}")
    return "\n".join(lines)


def format_report(report: Dict[str, Any]) -> str:
    summary = report['summary']
    lines = [
        f"Valuation #{report['id']} ({report['createdAt']})",
        f"  Tracks:                 {summary['totalTracks']}",
        f"  Total streams:          {summary['totalStreams']:,}",
        f"  Current annual revenue: {summary['currentAnnualRevenue']:,}",
        f"  Projected value (NPV):  {summary['projectedValue']:,}",
        "",
        "  Year   Revenue   Decay",
    ]
    for p in report['projections']:
        lines.append(f"  {p['year']}  {p['revenue']:>8,}   {p['decayRate']}%")

    if summary.get('platformBreakdown'):
        lines.append("")
        lines.append("  Platform breakdown:")
        for platform, totals in sorted(summary['platformBreakdown'].items()):
            lines.append(
                f"    {platform:<16} {totals['streams']:>12,} streams  {totals['revenue']:>12,.2f}"
            )
    return "\n".join(lines)


def emit(payload: Dict[str, Any], text: str, as_json: bool) -> None:
    print(json.dumps(payload, indent=2) if as_json else text)


async def run_command(args: argparse.Namespace) -> int:
    """
    Execute the selected command.

    Returns:
        Exit code.
    """
    from catalog_valuation.pipeline import build_pipeline

    pipeline = build_pipeline()

    if args.command == "ingest":
        batch_id = await pipeline.process_batch(args.files)
        status = await pipeline.get_batch_status(batch_id)
        emit(status, format_status(status), args.json)

    elif args.command == "status":
        status = await pipeline.get_batch_status(args.batch_id)
        emit(status, format_status(status), args.json)

    elif args.command == "value":
        report = await pipeline.submit_valuation({
            'year_one_decay': args.year_one_decay,
            'year_two_decay': args.year_two_decay,
            'year_three_decay': args.year_three_decay,
            'spotify_rate': args.spotify_rate,
            'apple_music_rate': args.apple_music_rate,
        })
        data = report.to_dict()
        emit(data, format_report(data), args.json)

    elif args.command == "report":
        report = await pipeline.get_valuation_report(args.valuation_id)
        data = report.to_dict()
        emit(data, format_report(data), args.json)

    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        return asyncio.run(run_command(args))

    except InvalidConfigError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        for field, reason in e.errors.items():
            print(f"  {field}: {reason}", file=sys.stderr)
        return 1

    except CatalogValuationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130

    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        if "--debug" in sys.argv:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
