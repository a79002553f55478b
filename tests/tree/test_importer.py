"""Tests for folding PGN games into the move tree."""

from __future__ import annotations

import logging

import pytest

from chessnote.core.rules import STARTING_FEN
from chessnote.settings import StudySettings
from chessnote.tree.importer import IssueKind, PgnImporter
from chessnote.tree.node import MoveStats
from chessnote.tree.store import ROOT_ID, MoveTreeStore


def _sans(store: MoveTreeStore, node_id: str) -> list[str | None]:
    return [child.san for child in store.children_of(node_id)]


def _walk(store: MoveTreeStore, *sans: str) -> str:
    node_id = ROOT_ID
    for san in sans:
        matches = [child for child in store.children_of(node_id) if child.san == san]
        assert len(matches) == 1, f"{san} not found under {node_id}"
        node_id = matches[0].id
    return node_id


@pytest.fixture
def store() -> MoveTreeStore:
    return MoveTreeStore()


@pytest.fixture
def importer(store: MoveTreeStore) -> PgnImporter:
    return PgnImporter(store)


class TestTranspositionMerge:
    def test_shared_prefix_becomes_one_path(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge(["1. e4 e5 2. Nf3", "1. e4 e5 2. Nc3"])

        assert report.ok
        assert report.games_parsed == 2
        assert report.nodes_created == 4
        assert len(store) == 5
        e5 = _walk(store, "e4", "e5")
        assert _sans(store, ROOT_ID) == ["e4"]
        assert _sans(store, e5) == ["Nf3", "Nc3"]

    def test_merges_with_interactive_moves(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        store.make_move("e2", "e4")
        interactive = store.active_id
        importer.import_merge("1. e4 c5 *")
        assert _walk(store, "e4") == interactive
        assert _sans(store, interactive) == ["c5"]

    def test_single_text_with_many_games(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        text = (
            '[Event "A"]\n[Result "1-0"]\n\n1. d4 d5 1-0\n\n'
            '[Event "B"]\n[Result "0-1"]\n\n1. d4 Nf6 0-1\n'
        )
        report = importer.import_merge(text)
        assert report.games_parsed == 2
        assert _sans(store, _walk(store, "d4")) == ["d5", "Nf6"]


class TestStats:
    def test_results_accumulate_per_move(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge(
            ['[Result "1-0"]\n\n1. e4 *', '[Result "0-1"]\n\n1. e4 *']
        )
        e4 = store.node(_walk(store, "e4"))
        assert e4.stats == MoveStats(white=1, black=1, draw=0, total=2)

    def test_draws_and_unfinished_games(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge(["1. e4 e5 1/2-1/2", "1. e4 *"])
        e4 = store.node(_walk(store, "e4"))
        e5 = store.node(_walk(store, "e4", "e5"))
        assert e4.stats == MoveStats(white=0, black=0, draw=1, total=2)
        assert e4.stats.decided == 1
        assert e5.stats == MoveStats(draw=1, total=1)

    def test_root_gets_no_stats(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge(['[Result "1-0"]\n\n*', "1. e4 1-0"])
        assert store.root.stats is None

    def test_stats_only_merge_notifies_once(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge("1. e4 e5 *")
        calls: list[None] = []
        store.events.on_tree_changed.append(lambda: calls.append(None))

        report = importer.import_merge(["1. e4 e5 1-0", "1. e4 {Best} 0-1"])

        assert report.nodes_created == 0
        assert len(calls) == 1
        assert store.node(_walk(store, "e4")).stats == MoveStats(
            white=1, black=1, total=3
        )

    def test_empty_input_is_noop(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge(["", "   "])
        assert report.ok
        assert report.games_parsed == 0
        assert len(store) == 1


class TestPartialGames:
    def test_illegal_move_keeps_prefix(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge(["1. e4 e5 2. Nf3 Nc6 3. Ke3 Nf6 1-0"])

        assert len(store) == 5
        assert store.mainline()[-1].san == "Nc6"
        [issue] = report.issues
        assert issue.kind == IssueKind.ILLEGAL_MOVE
        assert issue.ply == 5
        assert issue.san == "Ke3"
        assert issue.game_index == 0
        nc6 = store.node(_walk(store, "e4", "e5", "Nf3", "Nc6"))
        assert nc6.stats == MoveStats(white=1, total=1)

    def test_later_games_still_fold(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge(["1. e4 Ke7 Qh5", "1. d4 d5"])
        assert report.games_folded == 2
        assert _sans(store, ROOT_ID) == ["e4", "d4"]
        assert store.node(_walk(store, "e4")).children == []
        assert _walk(store, "d4", "d5")

    def test_parse_error_does_not_abort_batch(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge(["1. e4 ) e5", "1. c4 e5"])
        assert [issue.kind for issue in report.issues] == [IssueKind.PARSE_ERROR]
        assert report.games_parsed == 1
        assert _sans(store, ROOT_ID) == ["c4"]

    def test_broken_game_inside_multi_game_text(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        text = '[Event "Bad"]\n\n1. e4 (1. d4\n\n[Event "Good"]\n\n1. Nf3 *\n'
        report = importer.import_merge(text)
        assert report.issues[0].kind == IssueKind.PARSE_ERROR
        assert _sans(store, ROOT_ID) == ["Nf3"]

    def test_broken_game_in_headerless_text(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge("1. e4 e5 1-0\n1. d4 d5 ) 0-1\n1. c4 *")
        assert [issue.kind for issue in report.issues] == [IssueKind.PARSE_ERROR]
        assert report.games_parsed == 2
        assert _sans(store, ROOT_ID) == ["e4", "c4"]
        assert store.node(_walk(store, "e4", "e5")).stats == MoveStats(
            white=1, total=1
        )

    def test_issues_are_logged(
        self, importer: PgnImporter, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING, logger="chessnote.tree.importer"):
            importer.import_merge("1. e4 Ke7 Qh5 Kd6 Qd5")
        assert any("Illegal move" in message for message in caplog.messages)


class TestVariationsAndComments:
    def test_variations_are_folded_without_stats(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge("1. e4 e5 (1... c5 2. Nf3) 2. Nf3 1-0")

        e4 = _walk(store, "e4")
        assert _sans(store, e4) == ["e5", "c5"]
        c5 = store.node(_walk(store, "e4", "c5"))
        assert c5.stats is None
        assert _sans(store, c5.id) == ["Nf3"]
        assert store.node(_walk(store, "e4", "e5", "Nf3")).stats == MoveStats(
            white=1, total=1
        )

    def test_variations_can_be_disabled(self, store: MoveTreeStore) -> None:
        PgnImporter(store, include_variations=False).import_merge(
            "1. e4 e5 (1... c5) 2. Nf3 *"
        )
        assert _sans(store, _walk(store, "e4")) == ["e5"]

    def test_variations_setting_is_default(self) -> None:
        store = MoveTreeStore(StudySettings(import_variations=False))
        PgnImporter(store).import_merge("1. e4 (1. d4) *")
        assert _sans(store, ROOT_ID) == ["e4"]

    def test_illegal_variation_move_keeps_main_line(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        report = importer.import_merge("1. e4 e5 (1... Ke6) 2. Nf3 *")
        assert [issue.kind for issue in report.issues] == [IssueKind.ILLEGAL_MOVE]
        assert [node.san for node in store.mainline()] == ["e4", "e5", "Nf3"]

    def test_first_comment_wins(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge(["1. e4 {King's pawn} *", "1. e4 {Other} *"])
        assert store.node(_walk(store, "e4")).comment == "King's pawn"


class TestReplaceImport:
    def test_replace_clears_existing_tree(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge("1. d4 d5 *")
        importer.import_replace("1. e4 e5 *")
        assert [node.san for node in store.mainline()] == ["e4", "e5"]
        assert _sans(store, ROOT_ID) == ["e4"]
        assert store.active_id == ROOT_ID

    def test_replace_with_nothing_parsed_keeps_tree(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        importer.import_merge("1. d4 d5 *")
        report = importer.import_replace("1. e4 (")
        assert not report.ok
        assert _sans(store, ROOT_ID) == ["d4"]

    def test_replace_uses_fen_header(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        report = importer.import_replace(f'[SetUp "1"]\n[FEN "{fen}"]\n\n1. e4 Kd7 *')
        assert report.ok
        assert store.root.fen == fen
        assert [node.san for node in store.mainline()] == ["e4", "Kd7"]

    def test_merge_skips_game_from_other_position(
        self, store: MoveTreeStore, importer: PgnImporter
    ) -> None:
        fen = "4k3/8/8/8/8/8/4P3/4K3 w - - 0 1"
        report = importer.import_merge(
            [f'[FEN "{fen}"]\n\n1. e4 *', f'[FEN "{STARTING_FEN}"]\n\n1. e4 *']
        )
        assert [issue.kind for issue in report.issues] == [IssueKind.START_MISMATCH]
        assert report.games_folded == 1
        assert _sans(store, ROOT_ID) == ["e4"]
