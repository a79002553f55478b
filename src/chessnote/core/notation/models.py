"""Shared notation-layer data models."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class MoveRecord:
    """Library-independent description of one applied move.

    ``origin``/``destination`` are square names (``"e2"``), ``promotion`` a
    lowercase piece letter or ``None``.
    """

    san: str
    uci: str
    origin: str
    destination: str
    promotion: str | None = None
    captured: str | None = None
    is_check: bool = False
    is_mate: bool = False


@dataclass(slots=True)
class PgnMove:
    """A single move extracted from PGN movetext.

    ``variations`` holds alternative lines that replace this move, in the
    order they appear in the text.
    """

    san: str
    comment: str = ""
    variations: list[list[PgnMove]] = field(default_factory=list)


@dataclass(slots=True)
class ParsedPgn:
    """Structured PGN payload used by the tree import path."""

    headers: dict[str, str]
    moves: list[PgnMove]
    result_token: str

    @property
    def sans(self) -> list[str]:
        """Mainline SAN tokens."""
        return [move.san for move in self.moves]

    @property
    def start_fen(self) -> str | None:
        """Custom starting position declared by the ``FEN`` header, if any."""
        if self.headers.get("SetUp", "1") != "1":
            return None
        return self.headers.get("FEN") or None
