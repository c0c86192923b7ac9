"""MetaWin game catalogue: API client, document mapping and the Sanity importer."""

from .documents import create_game_document, game_document_id, map_volatility
from .importer import (
    DeleteSummary,
    GameImporter,
    GameImportError,
    ImportOptions,
    ImportSummary,
)
from .metawin_client import MetaWinClient

__all__ = [
    "DeleteSummary",
    "GameImportError",
    "GameImporter",
    "ImportOptions",
    "ImportSummary",
    "MetaWinClient",
    "create_game_document",
    "game_document_id",
    "map_volatility",
]
