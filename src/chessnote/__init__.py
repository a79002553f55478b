"""Chessnote — a personal chess study tool built around a move tree.

Quick start::

    from chessnote import MoveTreeStore, PgnImporter, export_pgn

    store = MoveTreeStore()
    store.make_move("e2", "e4")
    PgnImporter(store).import_merge(open("games.pgn").read())
    print(export_pgn(store))
"""

from chessnote.settings import StudySettings
from chessnote.tree import (
    ImportReport,
    MoveStats,
    MoveTreeStore,
    PgnImporter,
    PositionNode,
    export_pgn,
)

__all__ = [
    "ImportReport",
    "MoveStats",
    "MoveTreeStore",
    "PgnImporter",
    "PositionNode",
    "StudySettings",
    "export_pgn",
]

__version__ = "0.1.0"
