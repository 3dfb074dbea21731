#!/usr/bin/env python3
"""
Reconcile pending exam papers against the question banks.

Every paper source in the papers directory is matched question by question,
submitted in order, and then removed. Papers that needed generated or manual
questions are recorded in the audit file.

Usage:
    python scripts/reconcile_papers.py
    python scripts/reconcile_papers.py --papers-dir output_toml --max-papers 10
    python scripts/reconcile_papers.py --retain-imperfect -v

Environment variables:
- ANTHROPIC_API_KEY: Judge model key (required)
- RECONCILE_BANK_TOKEN: Question bank token
- RECONCILE_COOKIES: Comma-separated session cookies
- See core/config.py for the full list
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

# Load .env file
load_dotenv(Path(__file__).parent.parent / ".env")

from core.config import load_config  # noqa: E402
from core.logging import configure_logging, end_run, start_run  # noqa: E402
from workflows.paper_reconcile import run_fleet  # noqa: E402

logger = logging.getLogger("scripts.reconcile_papers")


def main():
    parser = argparse.ArgumentParser(
        description="Reconcile pending exam papers against the question banks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--papers-dir",
        type=Path,
        default=None,
        help="Directory of pending paper sources (default: RECONCILE_PAPERS_DIR or output_toml)",
    )
    parser.add_argument(
        "--max-papers",
        type=int,
        default=None,
        help="Papers processed concurrently (default: 30)",
    )
    parser.add_argument(
        "--max-questions",
        type=int,
        default=None,
        help="Questions resolved concurrently per paper (default: 50)",
    )
    parser.add_argument(
        "--retain-imperfect",
        action="store_true",
        default=None,
        help="Keep sources of imperfect papers for reprocessing",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    args = parser.parse_args()

    try:
        config = load_config(
            papers_dir=args.papers_dir,
            max_concurrent_papers=args.max_papers,
            max_concurrent_questions=args.max_questions,
            retain_imperfect_sources=args.retain_imperfect,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(2)

    configure_logging(config.log_dir, level=logging.DEBUG if args.verbose else logging.INFO)

    if not config.has_credentials:
        logger.warning("RECONCILE_BANK_TOKEN is not set; bank requests will be unauthenticated")

    start_run(f"fleet-{datetime.now():%Y%m%d-%H%M%S}")
    try:
        report = asyncio.run(run_fleet(config))
    except KeyboardInterrupt:
        logger.warning("Interrupted")
        sys.exit(130)
    finally:
        end_run()

    print(
        f"Processed {report.succeeded}/{report.total} papers "
        f"({report.perfect} perfect, {len(report.skipped)} skipped)"
    )
    for path, reason in report.skipped.items():
        print(f"  skipped {path}: {reason}")

    sys.exit(1 if report.skipped else 0)


if __name__ == "__main__":
    main()
