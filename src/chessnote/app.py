"""Command-line entry point: fold PGN files into one study and print it."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from chessnote.core.errors import InvalidPositionError
from chessnote.core.notation import build_pgn
from chessnote.core.rules import STARTING_FEN
from chessnote.settings import StudySettings
from chessnote.tree import MoveTreeStore, PgnImporter, export_pgn

_LOGGER = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="chessnote",
        description="Merge PGN games into a move tree and print it as one PGN.",
    )
    p.add_argument("files", nargs="*", help="PGN files to import ('-' or none: stdin)")
    p.add_argument(
        "--replace",
        action="store_true",
        help="start from the first game's position instead of merging",
    )
    p.add_argument("--fen", default=None, help="custom starting position")
    p.add_argument(
        "--no-variations",
        action="store_true",
        help="ignore parenthesized variations in the input",
    )
    p.add_argument("--headers", action="store_true", help="emit a PGN header block")
    p.add_argument("-o", "--output", default=None, help="write to a file instead of stdout")
    p.add_argument("--log-level", default="WARNING", help="logging level (default: WARNING)")
    return p


def _read_inputs(files: list[str]) -> list[str]:
    if not files or files == ["-"]:
        return [sys.stdin.read()]
    return [Path(name).read_text(encoding="utf-8") for name in files]


def _study_headers(store: MoveTreeStore) -> dict[str, str]:
    headers = {
        "Event": "Study",
        "Site": "Chessnote",
        "Date": datetime.now().strftime("%Y.%m.%d"),
        "Result": "*",
    }
    if store.root.fen != STARTING_FEN:
        headers["SetUp"] = "1"
        headers["FEN"] = store.root.fen
    return headers


def run(argv: list[str] | None = None) -> int:
    """Run the CLI and return the process exit status."""
    args = _build_parser().parse_args(argv)
    settings = StudySettings(
        import_variations=not args.no_variations,
        log_level=args.log_level.upper(),
    )
    if args.fen:
        settings.starting_fen = args.fen
    logging.basicConfig(
        level=settings.log_level,
        format="%(levelname)s %(name)s: %(message)s",
        force=True,
    )

    try:
        store = MoveTreeStore(settings)
        texts = _read_inputs(args.files)
    except (InvalidPositionError, OSError) as exc:
        _LOGGER.error("%s", exc)
        return 2

    report = PgnImporter(store).import_pgn(texts, replace=args.replace)

    movetext = export_pgn(store)
    if args.headers:
        output = build_pgn(_study_headers(store), movetext)
    else:
        output = f"{movetext}\n"

    if args.output:
        Path(args.output).write_text(output, encoding="utf-8")
    else:
        sys.stdout.write(output)
    return 0 if report.ok else 1


def main() -> None:
    """Launch the Chessnote command line."""
    sys.exit(run())


if __name__ == "__main__":
    main()
