"""Notation package: PGN parsing and serialization."""

from chessnote.core.notation.models import MoveRecord, ParsedPgn, PgnMove
from chessnote.core.notation.pgn import (
    build_pgn,
    game_result_from_pgn,
    parse_pgn,
    parse_pgn_game,
    parse_pgn_games,
    pgn_result_token,
    split_pgn_games,
)

__all__ = [
    "MoveRecord",
    "PgnMove",
    "ParsedPgn",
    "pgn_result_token",
    "game_result_from_pgn",
    "build_pgn",
    "split_pgn_games",
    "parse_pgn_games",
    "parse_pgn_game",
    "parse_pgn",
]
