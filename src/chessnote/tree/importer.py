"""Fold parsed PGN games into a :class:`MoveTreeStore`.

Every game starts at the root and walks down the tree move by move,
reusing children with the same SAN and tallying the game result on each
main-line node it passes through.  A move the rules engine rejects ends
that line only; everything folded before it stays.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import StrEnum

from chessnote.core.errors import InvalidPositionError, PgnParseError
from chessnote.core.notation import (
    ParsedPgn,
    PgnMove,
    game_result_from_pgn,
    parse_pgn_games,
    split_pgn_games,
)
from chessnote.tree.node import MoveStats
from chessnote.tree.store import MoveTreeStore

_LOGGER = logging.getLogger(__name__)


class IssueKind(StrEnum):
    """Why part of an import was not folded."""

    PARSE_ERROR = "parse_error"
    ILLEGAL_MOVE = "illegal_move"
    START_MISMATCH = "start_mismatch"


@dataclass(slots=True, frozen=True)
class ImportIssue:
    """A recoverable problem met while importing.

    ``game_index`` counts parsed games across the whole batch; ``ply`` is
    the 1-based half-move at which folding stopped.
    """

    kind: IssueKind
    message: str
    game_index: int | None = None
    ply: int | None = None
    san: str | None = None


@dataclass(slots=True)
class ImportReport:
    """Summary of one :meth:`PgnImporter.import_pgn` call."""

    games_parsed: int = 0
    games_folded: int = 0
    nodes_created: int = 0
    issues: list[ImportIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.issues


@dataclass(slots=True)
class _LineFrame:
    parent_id: str
    fen: str
    moves: list[PgnMove]
    start: int = 0
    ply: int = 0
    mainline: bool = True


class PgnImporter:
    """Imports PGN text (single or concatenated games) into a store."""

    __slots__ = ("_store", "_include_variations")

    def __init__(
        self, store: MoveTreeStore, *, include_variations: bool | None = None
    ) -> None:
        self._store = store
        if include_variations is None:
            include_variations = store.settings.import_variations
        self._include_variations = include_variations

    # ── Public API ───────────────────────────────────────────────────────

    def import_pgn(
        self, pgn_texts: Iterable[str] | str, *, replace: bool = False
    ) -> ImportReport:
        """Parse *pgn_texts* and fold every game into the tree.

        With ``replace=True`` the tree is cleared first (re-rooted at the
        first game's ``FEN`` header when it has one).  Nothing is cleared
        when no game could be parsed.
        """
        if isinstance(pgn_texts, str):
            pgn_texts = [pgn_texts]

        report = ImportReport()
        games = self._parse_all(pgn_texts, report)
        report.games_parsed = len(games)
        if not games:
            self._log_summary(report)
            return report

        with self._store.batch():
            if replace:
                self._clear_for(games[0], report)
            for index, game in enumerate(games):
                self._fold_game(index, game, report)

        self._log_summary(report)
        return report

    def import_replace(self, pgn_text: str) -> ImportReport:
        """Replace the whole study with the game(s) in *pgn_text*."""
        return self.import_pgn(pgn_text, replace=True)

    def import_merge(self, pgn_texts: Iterable[str] | str) -> ImportReport:
        """Merge many games into the existing tree (bulk analysis)."""
        return self.import_pgn(pgn_texts, replace=False)

    # ── Parsing ──────────────────────────────────────────────────────────

    def _parse_all(self, pgn_texts: Iterable[str], report: ImportReport) -> list[ParsedPgn]:
        games: list[ParsedPgn] = []
        for text in pgn_texts:
            # Each game chunk is parsed on its own so one broken game
            # does not hide the rest of the text.
            for chunk in split_pgn_games(text):
                try:
                    games.extend(parse_pgn_games(chunk))
                except PgnParseError as exc:
                    self._add_issue(report, ImportIssue(IssueKind.PARSE_ERROR, str(exc)))
        return games

    # ── Folding ──────────────────────────────────────────────────────────

    def _clear_for(self, game: ParsedPgn, report: ImportReport) -> None:
        try:
            self._store.clear(game.start_fen)
        except InvalidPositionError as exc:
            self._add_issue(
                report, ImportIssue(IssueKind.PARSE_ERROR, str(exc), game_index=0)
            )
            self._store.clear()

    def _fold_game(self, index: int, game: ParsedPgn, report: ImportReport) -> None:
        store = self._store
        root = store.root
        if game.start_fen is not None and not self._starts_at(game.start_fen, root.fen):
            self._add_issue(
                report,
                ImportIssue(
                    IssueKind.START_MISMATCH,
                    f"Game starts from {game.start_fen!r}, study root is {root.fen!r}",
                    game_index=index,
                ),
            )
            return

        result = game_result_from_pgn(game.result_token)
        report.games_folded += 1

        stack = [_LineFrame(parent_id=root.id, fen=root.fen, moves=game.moves)]
        while stack:
            frame = stack.pop()
            parent_id, fen, ply = frame.parent_id, frame.fen, frame.ply

            for position in range(frame.start, len(frame.moves)):
                pgn_move = frame.moves[position]
                ply += 1
                outcome = store.rules.apply_move(fen, pgn_move.san)
                if not outcome.ok or outcome.record is None:
                    where = "main line" if frame.mainline else "variation"
                    self._add_issue(
                        report,
                        ImportIssue(
                            IssueKind.ILLEGAL_MOVE,
                            f"Illegal move {pgn_move.san!r} at ply {ply} ({where}): "
                            f"{outcome.error}",
                            game_index=index,
                            ply=ply,
                            san=pgn_move.san,
                        ),
                    )
                    break

                node, created = store.attach_move(parent_id, outcome.record, outcome.fen)
                if created:
                    report.nodes_created += 1
                if frame.mainline:
                    if node.stats is None:
                        node.stats = MoveStats()
                    node.stats.record(result)
                    store.mark_changed()
                if pgn_move.comment and node.comment is None:
                    node.comment = pgn_move.comment
                    store.mark_changed()

                if self._include_variations and pgn_move.variations:
                    # Resume this line after its alternatives, in text order.
                    stack.append(
                        _LineFrame(
                            parent_id=node.id,
                            fen=outcome.fen,
                            moves=frame.moves,
                            start=position + 1,
                            ply=ply,
                            mainline=frame.mainline,
                        )
                    )
                    for variation in reversed(pgn_move.variations):
                        stack.append(
                            _LineFrame(
                                parent_id=parent_id,
                                fen=fen,
                                moves=variation,
                                ply=ply - 1,
                                mainline=False,
                            )
                        )
                    break

                parent_id, fen = node.id, outcome.fen

    # ── Internal ─────────────────────────────────────────────────────────

    def _starts_at(self, game_fen: str, root_fen: str) -> bool:
        try:
            normalized = self._store.rules.normalize_fen(game_fen)
        except InvalidPositionError:
            return False
        return _position_key(normalized) == _position_key(root_fen)

    @staticmethod
    def _add_issue(report: ImportReport, issue: ImportIssue) -> None:
        report.issues.append(issue)
        _LOGGER.warning("PGN import: %s", issue.message)

    @staticmethod
    def _log_summary(report: ImportReport) -> None:
        _LOGGER.info(
            "PGN import: %d game(s) parsed, %d folded, %d node(s) created, %d issue(s)",
            report.games_parsed,
            report.games_folded,
            report.nodes_created,
            len(report.issues),
        )


def _position_key(fen: str) -> str:
    # Placement, side to move, castling and en passant; clocks are ignored.
    return " ".join(fen.split()[:4])
