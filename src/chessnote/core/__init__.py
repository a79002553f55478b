"""Core domain layer — rules adapter, notation and error types.

Quick start::

    from chessnote.core import RulesEngine, MoveRequest, STARTING_FEN

    rules = RulesEngine()
    outcome = rules.apply_move(STARTING_FEN, MoveRequest("e2", "e4"))
    print(outcome.record.san, outcome.fen)
"""

from chessnote.core.enums import Color, GameResult
from chessnote.core.errors import (
    ChessnoteError,
    InvalidPositionError,
    NodeNotFoundError,
    PgnParseError,
)
from chessnote.core.notation import (
    MoveRecord,
    ParsedPgn,
    PgnMove,
    build_pgn,
    game_result_from_pgn,
    parse_pgn_game,
    parse_pgn_games,
    pgn_result_token,
)
from chessnote.core.rules import STARTING_FEN, MoveOutcome, MoveRequest, RulesEngine

__all__ = [
    # Enums
    "Color",
    "GameResult",
    # Errors
    "ChessnoteError",
    "InvalidPositionError",
    "NodeNotFoundError",
    "PgnParseError",
    # Rules
    "STARTING_FEN",
    "MoveOutcome",
    "MoveRequest",
    "RulesEngine",
    # Notation
    "MoveRecord",
    "ParsedPgn",
    "PgnMove",
    "build_pgn",
    "game_result_from_pgn",
    "parse_pgn_game",
    "parse_pgn_games",
    "pgn_result_token",
]
