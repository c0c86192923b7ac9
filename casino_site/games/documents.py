"""Mapping from MetaWin API game records to Sanity ``game`` documents.

Imported games are placeholder entries: title, provider, artwork and the
outbound play link come from the API; descriptions and SEO are filled in
later by editors in the Studio.

Key design decisions:
- TypedDict (not dataclass) because records and documents are plain JSON.
- Document ``_id`` is derived from the MetaWin game id, so the same game
  always maps to the same document and re-imports cannot duplicate it.
"""

from __future__ import annotations

import hashlib
from typing import Any, TypedDict

# ---------------------------------------------------------------------------
# API record shape
# ---------------------------------------------------------------------------


class Studio(TypedDict, total=False):
    name: str
    displayName: str


class MetaWinGame(TypedDict, total=False):
    """A game as returned inside ``items[].game`` by the collection API."""

    id: int
    name: str
    type: str
    provider: str
    thumbnail: str
    slug: str
    volatility: int | None  # 1-5
    rtp: float | None
    studio: Studio | None


# ---------------------------------------------------------------------------
# Category mapping
# ---------------------------------------------------------------------------

# API collection slug -> Sanity category slug. Preferred over type mapping.
COLLECTION_TO_CATEGORY_SLUG: dict[str, str] = {
    "all-slots": "slots",
    "crash": "crash",
    "plinkos": "plinko",
    "blackjack": "blackjack",
    "baccarat": "baccarat",
    "roulette": "roulette",
    "table-games": "table-games",
    "live-casino": "live-casino",
    "live-dealer": "live-casino",
    "live-gameshows": "live-casino",
    "originals": "crash",  # MetaWin Originals are mini games
}

# Game type -> Sanity category slug, used for mixed collections like "popular".
TYPE_TO_CATEGORY_SLUG: dict[str, str] = {
    "slot": "slots",
    "slots": "slots",
    "blackjack": "blackjack",
    "baccarat": "baccarat",
    "roulette": "roulette",
    "keno": "keno",
    "table": "table-games",
    "table-game": "table-games",
    "tablegame": "table-games",
    "crash": "crash",
    "crashgame": "crash",
    "plinko": "plinko",
    "minigame": "crash",
    "mini-game": "crash",
    "original": "crash",
    "originals": "crash",
    "live": "live-casino",
    "live-casino": "live-casino",
    "livecasino": "live-casino",
}

EXTERNAL_GAME_URL = "https://metawin.com/casino/slots/{slug}"


def collection_category_slug(collection: str) -> str | None:
    return COLLECTION_TO_CATEGORY_SLUG.get(collection.lower())


def type_category_slug(game_type: str | None) -> str | None:
    if not game_type:
        return None
    return TYPE_TO_CATEGORY_SLUG.get(game_type.lower())


def map_volatility(volatility: int | float | None) -> str | None:
    """Map the API's 1-5 volatility scale to the Studio's low/medium/high."""
    if volatility is None:
        return None
    if volatility <= 2:
        return "low"
    if volatility <= 3:
        return "medium"
    return "high"


def game_document_id(metawin_id: int) -> str:
    """Stable Sanity document id for a MetaWin game."""
    return f"game-metawin-{metawin_id}"


def _reference_key(ref: str) -> str:
    # Array items need a _key unique within the array; derive it from the ref
    return hashlib.sha256(ref.encode("utf-8")).hexdigest()[:12]


def create_game_document(game: MetaWinGame, category_id: str | None = None) -> dict[str, Any]:
    """Build the Sanity document for an API game record.

    Args:
        game: MetaWin API game record.
        category_id: Sanity ``_id`` of the category to reference, if any.

    Returns:
        A document dict ready for a ``createIfNotExists`` mutation.
    """
    studio = game.get("studio") or {}
    doc: dict[str, Any] = {
        "_id": game_document_id(game["id"]),
        "_type": "game",
        "title": game["name"],
        "metawinId": game["id"],
        "slug": {"_type": "slug", "current": game["slug"]},
        "provider": studio.get("displayName") or game.get("provider"),
        "externalThumbnailUrl": game.get("thumbnail"),
        "externalGameUrl": EXTERNAL_GAME_URL.format(slug=game["slug"]),
        "isFeatured": False,
        "isNew": False,
    }

    if game.get("rtp") is not None:
        doc["rtp"] = game["rtp"]

    volatility = map_volatility(game.get("volatility"))
    if volatility:
        doc["volatility"] = volatility

    if category_id:
        doc["categories"] = [
            {"_type": "reference", "_ref": category_id, "_key": _reference_key(category_id)}
        ]

    return doc
