#!/usr/bin/env python3
"""Import games from the MetaWin API into Sanity CMS as placeholder entries.

Games that already exist (by metawinId or slug) are skipped automatically.
``--delete-imported`` removes every previously imported game instead.

Usage:
    python import_games.py --dry-run
    python import_games.py --collection=popular --limit=50
    python import_games.py --collection=all-slots --limit=100
    python import_games.py --delete-imported --dry-run

Environment:
    SANITY_WRITE_TOKEN   Required for imports and deletes (not needed for --dry-run)
"""

import argparse
import asyncio
import logging

import httpx

from casino_site.config import get_settings
from casino_site.games.importer import (
    DEFAULT_COLLECTION,
    DEFAULT_LIMIT,
    DeleteSummary,
    GameImporter,
    GameImportError,
    ImportOptions,
    ImportSummary,
    build_clients,
)

logger = logging.getLogger("import_games")

_PREVIEW_COUNT = 10

_EPILOG = """\
collections:
  popular, new, all-slots, crash, plinkos, blackjack, baccarat,
  roulette, table-games, live-casino, originals

examples:
  python import_games.py --dry-run
  SANITY_WRITE_TOKEN=xxx python import_games.py --collection=popular --limit=50
  SANITY_WRITE_TOKEN=xxx python import_games.py --delete-imported
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Import MetaWin games into Sanity CMS as placeholder entries.",
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--collection",
        default=DEFAULT_COLLECTION,
        help=f"API collection to import from (default: {DEFAULT_COLLECTION})",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=DEFAULT_LIMIT,
        help=f"Max games to import (default: {DEFAULT_LIMIT})",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Preview without creating or deleting documents",
    )
    parser.add_argument(
        "--delete-imported",
        action="store_true",
        help="Delete every game that has a metawinId instead of importing",
    )
    return parser


def print_summary(summary: ImportSummary) -> None:
    print(f"\nFetched {summary.fetched} games from collection '{summary.collection}'")
    print(f"Skipped: {summary.skipped_by_id} by metawinId, {summary.skipped_by_slug} by slug")

    if summary.dry_run:
        print(f"\n--- DRY RUN PREVIEW ---\nWould import {len(summary.documents)} games:")
        for doc in summary.documents[:_PREVIEW_COUNT]:
            refs = doc.get("categories")
            category = f"[{refs[0]['_ref']}]" if refs else "[no category]"
            print(f"  - {doc['title']} ({doc['provider']}) {category}")
        if len(summary.documents) > _PREVIEW_COUNT:
            print(f"  ... and {len(summary.documents) - _PREVIEW_COUNT} more")
        print("\nRun without --dry-run to import these games.")
    else:
        print(f"\nCreated {summary.created} games, skipped {summary.skipped}.")


def print_delete_summary(summary: DeleteSummary) -> None:
    print(f"\nFound {len(summary.games)} imported games (with metawinId)")
    if not summary.games:
        print("No imported games to delete.")
        return
    for game in summary.games:
        print(f"  - {game.get('title')} (metawinId: {game.get('metawinId')})")
    if summary.dry_run:
        print("\nRun without --dry-run to delete these games.")
    else:
        print(f"\nDeleted {summary.deleted} imported games.")


async def run_import(options: ImportOptions) -> ImportSummary:
    metawin, sanity = build_clients(get_settings(), dry_run=options.dry_run)
    try:
        return await GameImporter(metawin, sanity).run(options)
    finally:
        await metawin.close()
        await sanity.close()


async def run_delete(dry_run: bool) -> DeleteSummary:
    metawin, sanity = build_clients(get_settings(), dry_run=dry_run)
    try:
        return await GameImporter(metawin, sanity).delete_imported(dry_run=dry_run)
    finally:
        await metawin.close()
        await sanity.close()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL, logging.INFO),
        format="%(levelname)s: %(message)s",
    )

    mode = "DRY RUN (no changes)" if args.dry_run else "LIVE"
    try:
        if args.delete_imported:
            print(f"MetaWin games delete: mode={mode}")
            print_delete_summary(asyncio.run(run_delete(args.dry_run)))
            return 0

        print(f"MetaWin games import: collection={args.collection} limit={args.limit} mode={mode}")
        options = ImportOptions(
            collection=args.collection, limit=args.limit, dry_run=args.dry_run
        )
        summary = asyncio.run(run_import(options))
    except GameImportError as exc:
        logger.error("%s", exc)
        return 1
    except httpx.HTTPError as exc:
        logger.error("Import failed: %s", exc)
        return 1

    print_summary(summary)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
