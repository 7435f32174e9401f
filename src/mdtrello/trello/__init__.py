"""Trello API client and board export."""

from mdtrello.trello.client import RemoteList, TrelloAPIError, TrelloClient
from mdtrello.trello.exporter import BoardExporter, ExportResult, group_items

__all__ = [
    "BoardExporter",
    "ExportResult",
    "RemoteList",
    "TrelloAPIError",
    "TrelloClient",
    "group_items",
]
