"""MoveTreeStore — the in-memory repertoire of positions and moves.

Owns every :class:`PositionNode`, the notion of the active node and the
single find-or-create primitive that both interactive play and PGN import
go through.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType

from chessnote.core.errors import NodeNotFoundError
from chessnote.core.notation.models import MoveRecord
from chessnote.core.rules import MoveOutcome, MoveRequest, RulesEngine
from chessnote.settings import StudySettings
from chessnote.tree.node import PositionNode

_LOGGER = logging.getLogger(__name__)

ROOT_ID = "root"

# ── Event definitions ────────────────────────────────────────────────────────

TreeChangedCallback = Callable[[], None]
ActiveChangedCallback = Callable[[str], None]  # new active node id


@dataclass
class TreeEvents:
    """Observable callbacks. Multiple handlers per event."""

    on_tree_changed: list[TreeChangedCallback] = field(default_factory=list)
    on_active_changed: list[ActiveChangedCallback] = field(default_factory=list)


# ── Store ────────────────────────────────────────────────────────────────────


class MoveTreeStore:
    """Rooted tree of positions connected by moves.

    Thread-safety: none.  The owner must serialize every call (the Qt
    bridge does so by living on the main thread).
    """

    __slots__ = (
        "_nodes",
        "_active_id",
        "_rules",
        "_settings",
        "_batch_depth",
        "_dirty",
        "events",
    )

    def __init__(
        self,
        settings: StudySettings | None = None,
        rules: RulesEngine | None = None,
    ) -> None:
        self._settings = settings or StudySettings()
        self._rules = rules or RulesEngine(self._settings.default_promotion)
        self._nodes: dict[str, PositionNode] = {}
        self._active_id = ROOT_ID
        self._batch_depth = 0
        self._dirty = False
        self.events = TreeEvents()
        self._init_root(self._rules.normalize_fen(self._settings.starting_fen))

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def rules(self) -> RulesEngine:
        return self._rules

    @property
    def settings(self) -> StudySettings:
        return self._settings

    @property
    def root_id(self) -> str:
        return ROOT_ID

    @property
    def active_id(self) -> str:
        return self._active_id

    @property
    def root(self) -> PositionNode:
        return self._nodes[ROOT_ID]

    @property
    def active_node(self) -> PositionNode:
        return self._nodes[self._active_id]

    @property
    def nodes(self) -> Mapping[str, PositionNode]:
        """Read-only view of all nodes keyed by id."""
        return MappingProxyType(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    # ── Queries ──────────────────────────────────────────────────────────

    def node(self, node_id: str) -> PositionNode:
        try:
            return self._nodes[node_id]
        except KeyError:
            raise NodeNotFoundError(node_id) from None

    def children_of(self, node_id: str) -> list[PositionNode]:
        return [self._nodes[child_id] for child_id in self.node(node_id).children]

    def path_to(self, node_id: str) -> list[PositionNode]:
        """Nodes from the root down to *node_id*, both included."""
        path = [self.node(node_id)]
        while path[-1].parent_id is not None:
            path.append(self._nodes[path[-1].parent_id])
        path.reverse()
        return path

    def mainline(self, node_id: str | None = None) -> list[PositionNode]:
        """Main-line continuation below *node_id* (default: root)."""
        current = self.node(ROOT_ID if node_id is None else node_id)
        line: list[PositionNode] = []
        while current.children:
            current = self._nodes[current.children[0]]
            line.append(current)
        return line

    def iter_subtree(self, node_id: str) -> Iterator[PositionNode]:
        """Pre-order walk of *node_id* and all its descendants."""
        stack = [self.node(node_id)]
        while stack:
            current = stack.pop()
            yield current
            stack.extend(self._nodes[child_id] for child_id in reversed(current.children))

    def legal_destinations(self) -> dict[str, set[str]]:
        """Legal origin → destinations map from the active position."""
        return self._rules.legal_destinations(self.active_node.fen)

    # ── Mutation: moves ──────────────────────────────────────────────────

    def make_move(
        self, origin: str, destination: str, promotion: str | None = None
    ) -> bool:
        """Play a coordinate move from the active node. Returns True if legal."""
        request = MoveRequest(origin, destination, promotion)
        return self._play(self._rules.apply_move(self.active_node.fen, request))

    def make_san_move(self, san: str) -> bool:
        """Play a SAN move from the active node. Returns True if legal."""
        return self._play(self._rules.apply_move(self.active_node.fen, san))

    def attach_move(
        self, parent_id: str, record: MoveRecord, fen: str
    ) -> tuple[PositionNode, bool]:
        """Return the child of *parent_id* reached by *record*, creating it if needed.

        A sibling with the same SAN is reused instead of duplicated.  The
        second element of the result tells whether a node was created.
        """
        parent = self.node(parent_id)
        for child_id in parent.children:
            child = self._nodes[child_id]
            if child.san == record.san:
                return child, False

        child = PositionNode(
            id=uuid.uuid4().hex,
            fen=fen,
            move=record,
            parent_id=parent_id,
        )
        self._nodes[child.id] = child
        parent.children.append(child.id)
        self._emit_tree_changed()
        return child, True

    def set_comment(self, node_id: str, comment: str | None) -> None:
        """Set or (with empty text) remove the comment of *node_id*."""
        node = self.node(node_id)
        node.comment = (comment or "").strip() or None
        self._emit_tree_changed()

    def mark_changed(self) -> None:
        """Announce node data (stats, comments) edited in place by a collaborator."""
        self._emit_tree_changed()

    # ── Mutation: navigation ─────────────────────────────────────────────

    def navigate_to(self, node_id: str) -> None:
        self.node(node_id)
        self._set_active(node_id)

    def navigate_back(self) -> bool:
        parent_id = self.active_node.parent_id
        if parent_id is None:
            return False
        self._set_active(parent_id)
        return True

    def navigate_forward(self) -> bool:
        children = self.active_node.children
        if not children:
            return False
        self._set_active(children[0])
        return True

    def reset(self) -> None:
        """Select the root again; the tree itself is untouched."""
        self._set_active(ROOT_ID)

    # ── Mutation: structure ──────────────────────────────────────────────

    def delete_subtree(self, node_id: str) -> bool:
        """Remove *node_id* and all its descendants.

        The root cannot be deleted (returns False).  If the active node is
        removed, its nearest surviving ancestor becomes active.
        """
        if node_id == ROOT_ID:
            return False
        node = self.node(node_id)
        assert node.parent_id is not None

        removed = [descendant.id for descendant in self.iter_subtree(node_id)]
        for removed_id in removed:
            del self._nodes[removed_id]
        self._nodes[node.parent_id].children.remove(node_id)
        _LOGGER.debug("Deleted %d node(s) under %s", len(removed), node_id)

        if self._active_id in removed:
            self._set_active(node.parent_id)
        self._emit_tree_changed()
        return True

    def clear(self, start_fen: str | None = None) -> None:
        """Discard every node and re-root at *start_fen* (default: settings)."""
        fen = self._rules.normalize_fen(start_fen or self._settings.starting_fen)
        self._nodes.clear()
        self._init_root(fen)
        self._set_active(ROOT_ID, force=True)
        self._emit_tree_changed()

    @contextmanager
    def batch(self) -> Iterator[MoveTreeStore]:
        """Coalesce tree-changed notifications until the block exits."""
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._emit_tree_changed()

    # ── Internal ─────────────────────────────────────────────────────────

    def _init_root(self, fen: str) -> None:
        self._nodes[ROOT_ID] = PositionNode(id=ROOT_ID, fen=fen)
        self._active_id = ROOT_ID

    def _play(self, outcome: MoveOutcome) -> bool:
        if not outcome.ok or outcome.record is None:
            _LOGGER.debug("Rejected move at %s: %s", self._active_id, outcome.error)
            return False
        node, _created = self.attach_move(self._active_id, outcome.record, outcome.fen)
        self._set_active(node.id)
        return True

    def _set_active(self, node_id: str, *, force: bool = False) -> None:
        if node_id == self._active_id and not force:
            return
        self._active_id = node_id
        for cb in self.events.on_active_changed:
            cb(node_id)

    def _emit_tree_changed(self) -> None:
        if self._batch_depth:
            self._dirty = True
            return
        for cb in self.events.on_tree_changed:
            cb()
