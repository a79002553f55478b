"""Exception types raised by the core and tree layers."""

from __future__ import annotations


class ChessnoteError(Exception):
    """Base class for all chessnote errors."""


class InvalidPositionError(ChessnoteError, ValueError):
    """A FEN string could not be loaded by the rules engine."""


class PgnParseError(ChessnoteError, ValueError):
    """PGN text is structurally invalid (headers, brackets, variations)."""


class NodeNotFoundError(ChessnoteError, LookupError):
    """A node id does not exist in the move tree."""

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Unknown node id: {node_id!r}")
        self.node_id = node_id
