"""Move tree layer — store, PGN import and PGN export.

Quick start::

    from chessnote.tree import MoveTreeStore, PgnImporter, export_pgn

    store = MoveTreeStore()
    PgnImporter(store).import_merge(["1. e4 e5 2. Nf3 *", "1. e4 e5 2. Nc3 *"])
    print(export_pgn(store))  # 1. e4 e5 2. Nf3 ( 2. Nc3 )
"""

from chessnote.tree.exporter import export_pgn
from chessnote.tree.importer import ImportIssue, ImportReport, IssueKind, PgnImporter
from chessnote.tree.node import MoveStats, PositionNode
from chessnote.tree.store import ROOT_ID, MoveTreeStore, TreeEvents

__all__ = [
    # Data
    "MoveStats",
    "PositionNode",
    "ROOT_ID",
    # Store
    "MoveTreeStore",
    "TreeEvents",
    # PGN
    "ImportIssue",
    "ImportReport",
    "IssueKind",
    "PgnImporter",
    "export_pgn",
]
