"""Rules engine adapter backed by python-chess.

Positions travel through the rest of the package as FEN strings; a
:class:`chess.Board` is only used as a short-lived handle, so no call here
ever touches shared state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

import chess

from chessnote.core.enums import Color
from chessnote.core.errors import InvalidPositionError
from chessnote.core.notation.models import MoveRecord

STARTING_FEN = chess.STARTING_FEN

PositionLike: TypeAlias = chess.Board | str

_PROMOTION_PIECES: dict[str, chess.PieceType] = {
    "n": chess.KNIGHT,
    "b": chess.BISHOP,
    "r": chess.ROOK,
    "q": chess.QUEEN,
}


@dataclass(frozen=True, slots=True)
class MoveRequest:
    """A coordinate move as produced by a board UI (``e7``→``e8``)."""

    origin: str
    destination: str
    promotion: str | None = None

    def __str__(self) -> str:
        return f"{self.origin}{self.destination}{self.promotion or ''}"


@dataclass(frozen=True, slots=True)
class MoveOutcome:
    """Result of :meth:`RulesEngine.apply_move`."""

    ok: bool
    fen: str = ""
    record: MoveRecord | None = None
    error: str = ""


class RulesEngine:
    """Stateless facade over :mod:`chess` move validation."""

    __slots__ = ("_default_promotion",)

    def __init__(self, default_promotion: str = "q") -> None:
        piece = _PROMOTION_PIECES.get(default_promotion.lower())
        if piece is None:
            raise ValueError(f"Invalid promotion piece: {default_promotion!r}")
        self._default_promotion = piece

    # ── Handles ──────────────────────────────────────────────────────────

    def new_from_position(self, fen: str) -> chess.Board:
        """Load *fen* into a fresh board handle."""
        try:
            board = chess.Board(fen)
        except ValueError as exc:
            raise InvalidPositionError(f"Invalid FEN: {fen!r}") from exc
        if not board.is_valid():
            raise InvalidPositionError(f"Impossible position: {fen!r}")
        return board

    def normalize_fen(self, fen: str) -> str:
        """Validate *fen* and return the engine's canonical spelling of it."""
        return self.new_from_position(fen).fen()

    # ── Queries ──────────────────────────────────────────────────────────

    def turn_to_move(self, position: PositionLike) -> Color:
        board = self._board(position)
        return Color.WHITE if board.turn == chess.WHITE else Color.BLACK

    def fullmove_number(self, position: PositionLike) -> int:
        return self._board(position).fullmove_number

    def legal_destinations(self, position: PositionLike) -> dict[str, set[str]]:
        """Map every origin square with a legal move to its target squares."""
        destinations: dict[str, set[str]] = {}
        for move in self._board(position).legal_moves:
            origin = chess.square_name(move.from_square)
            destinations.setdefault(origin, set()).add(
                chess.square_name(move.to_square)
            )
        return destinations

    # ── Move application ─────────────────────────────────────────────────

    def apply_move(
        self, position: PositionLike, move: MoveRequest | str
    ) -> MoveOutcome:
        """Play *move* (coordinates or SAN) on a copy of *position*."""
        board = self._board(position)

        if isinstance(move, str):
            try:
                parsed = board.parse_san(move.strip())
            except ValueError as exc:
                return MoveOutcome(ok=False, error=str(exc) or f"Illegal move: {move}")
            if not parsed:
                return MoveOutcome(ok=False, error=f"Null move not allowed: {move}")
        else:
            try:
                parsed = self._resolve_request(board, move)
            except ValueError:
                return MoveOutcome(ok=False, error=f"Illegal move: {move}")

        return _push(board, parsed)

    # ── Internal ─────────────────────────────────────────────────────────

    def _board(self, position: PositionLike) -> chess.Board:
        if isinstance(position, chess.Board):
            return position.copy(stack=False)
        return self.new_from_position(position)

    def _resolve_request(self, board: chess.Board, request: MoveRequest) -> chess.Move:
        origin = chess.parse_square(request.origin)
        destination = chess.parse_square(request.destination)

        promotion: chess.PieceType | None = None
        if request.promotion:
            promotion = _PROMOTION_PIECES.get(request.promotion.lower())
            if promotion is None:
                raise ValueError(f"Invalid promotion piece: {request.promotion!r}")
        elif _is_promotion_push(board, origin, destination):
            promotion = self._default_promotion

        # find_move also normalizes king-takes-rook castling input.
        return board.find_move(origin, destination, promotion)


def _is_promotion_push(
    board: chess.Board, origin: chess.Square, destination: chess.Square
) -> bool:
    piece = board.piece_at(origin)
    return (
        piece is not None
        and piece.piece_type == chess.PAWN
        and chess.square_rank(destination) in (0, 7)
    )


def _push(board: chess.Board, move: chess.Move) -> MoveOutcome:
    san = board.san(move)
    if board.is_en_passant(move):
        captured: str | None = "p"
    else:
        victim = board.piece_at(move.to_square)
        captured = None
        if victim is not None and not board.is_castling(move):
            captured = victim.symbol().lower()

    board.push(move)
    record = MoveRecord(
        san=san,
        uci=move.uci(),
        origin=chess.square_name(move.from_square),
        destination=chess.square_name(move.to_square),
        promotion=chess.piece_symbol(move.promotion) if move.promotion else None,
        captured=captured,
        is_check=board.is_check(),
        is_mate=board.is_checkmate(),
    )
    return MoveOutcome(ok=True, fen=board.fen(), record=record)
