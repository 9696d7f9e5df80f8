"""
============================================================================
TMDB SILVER - Command Line Entry Point
============================================================================
Rebuilds the silver database from the two TMDB 5000 extracts.

🔧 USAGE:
    tmdb-silver [--infos FILE] [--credits FILE] [--database-url URL]
                [--merge-map FILE] [--language-reference FILE]
                [--batch SIZE] [--verify] [--summary] [--yes]

    python -m tmdb_silver.cli --verify

⚠️  IMPORTANT:
    - Every run is a full rebuild: all silver tables are dropped first
    - Nothing is written when a check fails; a database error drops
      the partially written schema

📝 OUTPUT:
    - SQLite database: data/silver/tmdb_movies.db (DATABASE_URL)
    - Log: data/logs/tmdb_silver.log (LOG_FILE)
============================================================================
"""

import argparse
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .config import Config, config
from .errors import PipelineError
from .logs import setup_logging
from .pipeline import run


logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tmdb-silver',
        description='Normalize the TMDB 5000 movies and credits extracts into a relational schema',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('--infos', type=Path, help='Movies (infos) extract CSV')
    parser.add_argument('--credits', type=Path, help='Credits extract CSV')
    parser.add_argument('--database-url', type=str, help='SQLAlchemy URL of the silver database')
    parser.add_argument('--merge-map', type=Path, help='Company equivalence map CSV')
    parser.add_argument('--language-reference', type=Path, help='ISO 639-1 reference CSV')

    parser.add_argument(
        '--batch',
        type=int,
        help=f'Rows per insert batch (default: {config.pipeline.batch_size})'
    )

    parser.add_argument(
        '--verify',
        action='store_true',
        help='Read the tables back and re-check every constraint'
    )

    parser.add_argument(
        '--summary',
        action='store_true',
        help='Print the configuration summary before running'
    )

    parser.add_argument(
        '--yes',
        action='store_true',
        help='Replace an existing database without asking (⚠️ DESTRUCTIVE!)'
    )

    return parser


def apply_arguments(base: Config, args: argparse.Namespace) -> Config:
    """Copy of ``base`` with command-line overrides applied."""
    settings = base.model_copy(deep=True)
    if args.infos:
        settings.paths.infos_file = args.infos
    if args.credits:
        settings.paths.credits_file = args.credits
    if args.database_url:
        settings.database.database_url = args.database_url
    if args.merge_map:
        settings.paths.company_merge_map = args.merge_map
    if args.language_reference:
        settings.paths.language_reference = args.language_reference
    if args.batch:
        settings.pipeline.batch_size = args.batch
    return settings


def confirm_replace(settings: Config) -> bool:
    """Ask before replacing an existing SQLite file."""
    db_path = settings.database.database_path
    if db_path is None or not db_path.exists():
        return True

    print(f"\n⚠️  WARNING: {db_path} exists and all silver tables will be replaced!")
    response = input("Are you sure? (yes/no): ")
    if response.lower() != 'yes':
        print("❌ Cancelled")
        return False
    return True


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    settings = apply_arguments(config, args)

    settings.paths.ensure_directories()
    setup_logging(settings.logging)
    if args.summary:
        settings.print_summary()

    if not args.yes and not confirm_replace(settings):
        return 1

    print("\n" + "="*70)
    print("🎬 TMDB SILVER - Relational Build")
    print("="*70)
    print(f"📅 Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"📄 Infos: {settings.paths.infos_file}")
    print(f"📄 Credits: {settings.paths.credits_file}")
    print(f"💾 Database: {settings.database.database_url}")

    start_time = time.time()
    try:
        counts = run(settings, verify=args.verify)
    except PipelineError as e:
        logger.error("Build failed: %s", e)
        print(f"\n❌ Build failed: {e}")
        return 1

    print("\n" + "="*70)
    print("📊 BUILD SUMMARY")
    print("="*70)
    print(f"⏱️  Total time: {time.time() - start_time:.1f} seconds")
    print("\n📈 Record counts in database:")
    for table_name, count in counts.items():
        print(f"   • {table_name}: {count:,}")
    if args.verify:
        print("\n✅ Verification passed")
    print("\n" + "="*70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
