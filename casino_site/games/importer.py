"""Import MetaWin games into Sanity as placeholder ``game`` documents.

Workflow:
    1. Load existing categories (slug -> _id) and existing games
       (metawin ids and slugs) from Sanity.
    2. Page through the MetaWin collection until ``limit`` games are fetched
       or the collection is exhausted.
    3. Skip games already in Sanity (by metawin id, then by slug).
    4. Map the rest to documents, resolving the category from the collection
       first and from the game type as a fallback.
    5. Dry run: return the documents without writing. Live: commit them with
       ``createIfNotExists`` in batches, keyed by a stable ``_id``.

There is no rollback: a failure mid-run leaves committed batches in place,
and a re-run skips them.

``delete_imported`` undoes imports: it removes every game that carries a
``metawinId``, again in batches.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from casino_site.cms.sanity_client import SanityClient
from casino_site.config import Settings

from .documents import (
    MetaWinGame,
    collection_category_slug,
    create_game_document,
    type_category_slug,
)
from .metawin_client import MetaWinClient

logger = logging.getLogger(__name__)

DEFAULT_COLLECTION = "popular"
DEFAULT_LIMIT = 250
_PAGE_SIZE = 100  # API maximum per request
_BATCH_SIZE = 50  # mutations per Sanity transaction

CATEGORIES_QUERY = '*[_type == "category"] { _id, "slug": slug.current }'
EXISTING_GAMES_QUERY = '*[_type == "game"] { metawinId, "slug": slug.current }'
IMPORTED_GAMES_QUERY = '*[_type == "game" && defined(metawinId)] { _id, title, metawinId }'


class GameImportError(Exception):
    """Raised for import misconfiguration (e.g. missing write token)."""


@dataclass
class ImportOptions:
    collection: str = DEFAULT_COLLECTION
    limit: int = DEFAULT_LIMIT
    dry_run: bool = False

    def __post_init__(self) -> None:
        if self.limit < 1:
            raise GameImportError(f"limit must be a positive integer, got {self.limit}")
        if not self.collection:
            raise GameImportError("collection must not be empty")


@dataclass
class ImportSummary:
    """Outcome of one import run."""

    collection: str
    dry_run: bool
    fetched: int = 0
    created: int = 0
    skipped_by_id: int = 0
    skipped_by_slug: int = 0
    category_slug: str | None = None
    unmapped_types: set[str] = field(default_factory=set)
    documents: list[dict[str, Any]] = field(default_factory=list)

    @property
    def skipped(self) -> int:
        return self.skipped_by_id + self.skipped_by_slug


@dataclass
class DeleteSummary:
    """Outcome of removing previously imported games."""

    dry_run: bool
    deleted: int = 0
    games: list[dict[str, Any]] = field(default_factory=list)


class GameImporter:
    """Single-pass importer from the MetaWin API into Sanity.

    Args:
        metawin: MetaWin API client.
        sanity: Sanity client; needs a write token unless every run is a dry run.
    """

    def __init__(
        self,
        metawin: MetaWinClient,
        sanity: SanityClient,
        *,
        page_size: int = _PAGE_SIZE,
        batch_size: int = _BATCH_SIZE,
    ) -> None:
        self._metawin = metawin
        self._sanity = sanity
        self._page_size = page_size
        self._batch_size = batch_size

    async def fetch_categories(self) -> dict[str, str]:
        """Return a map of category slug to Sanity ``_id``."""
        rows = await self._sanity.query(CATEGORIES_QUERY) or []
        return {row["slug"]: row["_id"] for row in rows if row.get("slug")}

    async def fetch_existing_games(self) -> tuple[set[int], set[str]]:
        """Return the metawin ids and slugs of games already in Sanity."""
        rows = await self._sanity.query(EXISTING_GAMES_QUERY) or []
        ids = {row["metawinId"] for row in rows if row.get("metawinId")}
        slugs = {row["slug"] for row in rows if row.get("slug")}
        return ids, slugs

    async def fetch_games(self, collection: str, limit: int) -> list[MetaWinGame]:
        """Page through a collection, never returning more than ``limit`` games.

        Stops at ``totalCount`` when the API reports one; otherwise a short
        or empty page marks the end of the collection.
        """
        games: list[MetaWinGame] = []
        skip = 0
        while len(games) < limit:
            take = min(self._page_size, limit - len(games))
            page, total = await self._metawin.fetch_collection(collection, take=take, skip=skip)
            games.extend(page[:take])
            skip += len(page)
            if len(page) < take or (total and skip >= total):
                break
        logger.info("Fetched %d games from collection=%s", len(games), collection)
        return games

    async def run(self, options: ImportOptions) -> ImportSummary:
        """Run one import pass.

        Raises:
            httpx.HTTPError: When either API call fails; the run halts.
        """
        summary = ImportSummary(collection=options.collection, dry_run=options.dry_run)

        categories = await self.fetch_categories()
        existing_ids, existing_slugs = await self.fetch_existing_games()
        logger.info(
            "Sanity has %d categories, %d games with metawinId, %d game slugs",
            len(categories),
            len(existing_ids),
            len(existing_slugs),
        )

        games = await self.fetch_games(options.collection, options.limit)
        summary.fetched = len(games)

        collection_slug = collection_category_slug(options.collection)
        collection_category_id = categories.get(collection_slug) if collection_slug else None
        if collection_category_id:
            summary.category_slug = collection_slug
            logger.info("Using collection-based category: %s", collection_slug)
        else:
            logger.info(
                "No collection mapping for %r, falling back to game type mapping",
                options.collection,
            )

        for game in games:
            if game["id"] in existing_ids:
                summary.skipped_by_id += 1
                continue
            if game["slug"] in existing_slugs:
                summary.skipped_by_slug += 1
                continue

            category_id = collection_category_id
            if not category_id:
                type_slug = type_category_slug(game.get("type"))
                category_id = categories.get(type_slug) if type_slug else None
                if game.get("type") and not type_slug:
                    summary.unmapped_types.add(game["type"])

            summary.documents.append(create_game_document(game, category_id))
            # A collection can list the same game twice
            existing_ids.add(game["id"])
            existing_slugs.add(game["slug"])

        if summary.unmapped_types:
            logger.warning(
                "Unmapped game types (imported without a category): %s",
                ", ".join(sorted(summary.unmapped_types)),
            )

        if options.dry_run:
            logger.info("Dry run: %d documents would be created", len(summary.documents))
            return summary

        for start in range(0, len(summary.documents), self._batch_size):
            batch = summary.documents[start : start + self._batch_size]
            await self._sanity.create_if_not_exists(batch)
            summary.created += len(batch)
            logger.info("Imported %d/%d games", summary.created, len(summary.documents))

        return summary

    async def delete_imported(self, *, dry_run: bool = False) -> DeleteSummary:
        """Delete every game created by an import (any game with a ``metawinId``).

        Manually created games have no ``metawinId`` and are left alone.
        Deletes run in batches; a failure halts with earlier batches applied.
        """
        rows = await self._sanity.query(IMPORTED_GAMES_QUERY) or []
        summary = DeleteSummary(dry_run=dry_run, games=rows)
        logger.info("Found %d imported games", len(rows))
        if dry_run:
            return summary

        for start in range(0, len(rows), self._batch_size):
            batch = rows[start : start + self._batch_size]
            await self._sanity.delete([row["_id"] for row in batch])
            summary.deleted += len(batch)
            logger.info("Deleted %d/%d imported games", summary.deleted, len(rows))
        return summary


def build_clients(settings: Settings, *, dry_run: bool) -> tuple[MetaWinClient, SanityClient]:
    """Create the API clients for an import run.

    Raises:
        GameImportError: In live mode when ``SANITY_WRITE_TOKEN`` is not set.
    """
    token = settings.SANITY_WRITE_TOKEN.get_secret_value()
    if not dry_run and not token:
        raise GameImportError(
            "SANITY_WRITE_TOKEN environment variable is required for imports. "
            "Run with --dry-run to preview without a token."
        )
    metawin = MetaWinClient(
        base_url=settings.METAWIN_API_BASE,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    sanity = SanityClient(
        settings.SANITY_PROJECT_ID,
        settings.SANITY_DATASET,
        api_version=settings.SANITY_API_VERSION,
        token=token,
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )
    return metawin, sanity
