"""User-configurable study settings."""

from __future__ import annotations

from dataclasses import dataclass

import chess


@dataclass
class StudySettings:
    """All user-configurable settings."""

    # Tree
    starting_fen: str = chess.STARTING_FEN
    default_promotion: str = "q"

    # Import
    import_variations: bool = True

    # Logging
    log_level: str = "WARNING"
