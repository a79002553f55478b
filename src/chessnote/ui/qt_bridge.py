"""Qt bridge exposing the move tree to board and graph widgets."""

from __future__ import annotations

import logging

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from chessnote.core.errors import ChessnoteError
from chessnote.tree import MoveTreeStore, PgnImporter, export_pgn

_LOGGER = logging.getLogger(__name__)


class MoveTreeBridge(QObject):
    """Main-thread adapter that owns the store and serializes every write.

    Widgets (or workers via queued connections) call the slots; the store
    only ever runs on the thread this object lives on.
    """

    tree_changed = pyqtSignal()
    active_changed = pyqtSignal(str)
    move_rejected = pyqtSignal(str, str)
    import_finished = pyqtSignal(object)
    error = pyqtSignal(str)

    def __init__(
        self, store: MoveTreeStore | None = None, parent: QObject | None = None
    ) -> None:
        super().__init__(parent)
        self._store = store or MoveTreeStore()
        self._importer = PgnImporter(self._store)
        self._store.events.on_tree_changed.append(self.tree_changed.emit)
        self._store.events.on_active_changed.append(self.active_changed.emit)

    @property
    def store(self) -> MoveTreeStore:
        return self._store

    # ── Play / navigation ────────────────────────────────────────────────

    @pyqtSlot(str, str, result=bool)
    def make_move(self, origin: str, destination: str) -> bool:
        ok = self._store.make_move(origin, destination)
        if not ok:
            self.move_rejected.emit(origin, destination)
        return ok

    @pyqtSlot(str)
    def navigate_to(self, node_id: str) -> None:
        try:
            self._store.navigate_to(node_id)
        except ChessnoteError as exc:
            self._report(exc)

    @pyqtSlot()
    def navigate_back(self) -> None:
        self._store.navigate_back()

    @pyqtSlot()
    def navigate_forward(self) -> None:
        self._store.navigate_forward()

    @pyqtSlot()
    def reset(self) -> None:
        self._store.reset()

    # ── Editing ──────────────────────────────────────────────────────────

    @pyqtSlot(str)
    def delete_node(self, node_id: str) -> None:
        try:
            self._store.delete_subtree(node_id)
        except ChessnoteError as exc:
            self._report(exc)

    @pyqtSlot(str, str)
    def set_comment(self, node_id: str, comment: str) -> None:
        try:
            self._store.set_comment(node_id, comment)
        except ChessnoteError as exc:
            self._report(exc)

    @pyqtSlot()
    def clear(self) -> None:
        self._store.clear()

    # ── PGN ──────────────────────────────────────────────────────────────

    @pyqtSlot(str)
    def import_pgn(self, pgn_text: str) -> None:
        """Replace the study with a pasted or loaded PGN."""
        self.import_finished.emit(self._importer.import_replace(pgn_text))

    @pyqtSlot(list)
    def analyze_games(self, pgn_texts: list[str]) -> None:
        """Merge fetched games into the current tree."""
        self.import_finished.emit(self._importer.import_merge(pgn_texts))

    def export_pgn(self) -> str:
        return export_pgn(self._store)

    # ── Internal ─────────────────────────────────────────────────────────

    def _report(self, exc: ChessnoteError) -> None:
        _LOGGER.warning("Tree operation failed: %s", exc)
        self.error.emit(str(exc))
