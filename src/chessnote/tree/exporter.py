"""Render a :class:`MoveTreeStore` as PGN movetext with nested variations."""

from __future__ import annotations

from chessnote.core.enums import Color
from chessnote.core.rules import RulesEngine
from chessnote.tree.node import PositionNode
from chessnote.tree.store import MoveTreeStore

_EXPAND = "expand"
_MOVE = "move"
_COMMENT = "comment"
_OPEN = "("
_CLOSE = ")"
_START = "start"

# A Black move is re-numbered ("12...") right after any of these.
_NUMBERING_BREAKS = frozenset({_START, _OPEN, _CLOSE})


def export_pgn(store: MoveTreeStore) -> str:
    """Return the whole tree as one PGN movetext string.

    ``children[0]`` of every node is the main line; the other children are
    emitted as parenthesized variations right after the main move.  No
    headers and no result token are written.
    """
    rules = store.rules
    tokens: list[str] = []
    last = _START
    work: list[tuple[str, str]] = [(_EXPAND, store.root_id)]

    while work:
        kind, value = work.pop()

        if kind == _EXPAND:
            node = store.node(value)
            if not node.children:
                continue
            main_id, *variation_ids = node.children
            pending = [(_MOVE, main_id), *_comment_items(store.node(main_id))]
            for variation_id in variation_ids:
                pending.append((_OPEN, ""))
                pending.append((_MOVE, variation_id))
                pending.extend(_comment_items(store.node(variation_id)))
                pending.append((_EXPAND, variation_id))
                pending.append((_CLOSE, ""))
            pending.append((_EXPAND, main_id))
            work.extend(reversed(pending))
            continue

        if kind == _MOVE:
            node = store.node(value)
            assert node.parent_id is not None
            parent = store.node(node.parent_id)
            tokens.append(_move_text(rules, parent, node, last in _NUMBERING_BREAKS))
        elif kind == _COMMENT:
            # PGN comments cannot contain a closing brace.
            tokens.append(f"{{ {value.replace('}', ']')} }}")
        else:
            tokens.append(kind)
        last = kind

    return " ".join(tokens).strip()


def _comment_items(node: PositionNode) -> list[tuple[str, str]]:
    if not node.comment:
        return []
    return [(_COMMENT, node.comment)]


def _move_text(
    rules: RulesEngine, parent: PositionNode, node: PositionNode, after_break: bool
) -> str:
    number = rules.fullmove_number(parent.fen)
    if rules.turn_to_move(parent.fen) == Color.WHITE:
        return f"{number}. {node.san}"
    if after_break:
        return f"{number}... {node.san}"
    return node.san or ""
