"""Position nodes and per-move outcome statistics."""

from __future__ import annotations

from dataclasses import dataclass, field

from chessnote.core.enums import GameResult
from chessnote.core.notation.models import MoveRecord


@dataclass(slots=True)
class MoveStats:
    """Outcome tally of imported games that passed through a node.

    ``total`` also counts unfinished games, so it may exceed
    ``white + black + draw``.
    """

    white: int = 0
    black: int = 0
    draw: int = 0
    total: int = 0

    def record(self, result: GameResult) -> None:
        self.total += 1
        if result == GameResult.WHITE_WINS:
            self.white += 1
        elif result == GameResult.BLACK_WINS:
            self.black += 1
        elif result == GameResult.DRAW:
            self.draw += 1

    @property
    def decided(self) -> int:
        """Games with a recorded outcome."""
        return self.white + self.black + self.draw


@dataclass(slots=True)
class PositionNode:
    """One visited board position in the move tree."""

    id: str
    fen: str
    move: MoveRecord | None = None
    parent_id: str | None = None
    children: list[str] = field(default_factory=list)
    comment: str | None = None
    stats: MoveStats | None = None

    @property
    def san(self) -> str | None:
        return self.move.san if self.move is not None else None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_leaf(self) -> bool:
        return not self.children
