"""PGN parsing and serialization helpers."""

from __future__ import annotations

import re

from chessnote.core.enums import GameResult
from chessnote.core.errors import PgnParseError
from chessnote.core.notation.models import ParsedPgn, PgnMove

_PGN_HEADER_RE = re.compile(r'\[\s*(\w+)\s+"((?:[^"\\]|\\.)*)"\s*\]')
_PGN_RESULT_TOKENS = {"1-0", "0-1", "1/2-1/2", "*"}
_MOVE_NUMBER_RE = re.compile(r"^\d+\.(?:\.\.)?$")
_MOVE_NUMBER_PREFIX_RE = re.compile(r"^\d+\.+")
_GLYPH_SUFFIX_RE = re.compile(r"[!?]+$")


def pgn_result_token(result: GameResult) -> str:
    """Convert :class:`GameResult` to a PGN result token."""
    if result == GameResult.WHITE_WINS:
        return "1-0"
    if result == GameResult.BLACK_WINS:
        return "0-1"
    if result == GameResult.DRAW:
        return "1/2-1/2"
    return "*"


def game_result_from_pgn(token: str | None) -> GameResult:
    """Convert PGN result token to :class:`GameResult`."""
    if token == "1-0":
        return GameResult.WHITE_WINS
    if token == "0-1":
        return GameResult.BLACK_WINS
    if token == "1/2-1/2":
        return GameResult.DRAW
    return GameResult.IN_PROGRESS


def build_pgn(headers: dict[str, str], movetext: str, result_token: str = "*") -> str:
    """Build a single-game PGN document around already rendered movetext."""
    lines: list[str] = []
    for key, value in headers.items():
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        lines.append(f'[{key} "{escaped}"]')
    if lines:
        lines.append("")
    lines.append(" ".join(part for part in (movetext.strip(), result_token) if part))
    lines.append("")
    return "\n".join(lines)


def split_pgn_games(pgn_text: str) -> list[str]:
    """Split concatenated PGN text into one chunk per game.

    A new chunk starts at a header block that follows movetext, and after
    every termination marker outside comments and variations.  Each chunk
    can then be parsed on its own, so a broken game does not take its
    neighbours down with it.
    """
    chunks: list[str] = []
    current: list[str] = []
    seen_movetext = False
    in_comment = False

    for raw_line in pgn_text.splitlines():
        line = raw_line.strip()
        is_header = not in_comment and line.startswith("[")
        if is_header and seen_movetext:
            chunks.append("\n".join(current))
            current = []
            seen_movetext = False
        current.append(raw_line)

        if not line or line.startswith("%"):
            continue
        body = line
        if is_header:
            # Movetext may follow headers on the same line.
            body = _PGN_HEADER_RE.sub("", line).strip()
        if body:
            seen_movetext = True
        in_comment = _comment_open_after(body, in_comment)

    if any(line.strip() for line in current):
        chunks.append("\n".join(current))

    games: list[str] = []
    for chunk in chunks:
        games.extend(_split_at_terminations(chunk))
    return games


def parse_pgn_games(pgn_text: str) -> list[ParsedPgn]:
    """Parse every game contained in *pgn_text*.

    Raises :class:`PgnParseError` on the first structurally invalid game.
    Callers that must keep going past a broken game should iterate over
    :func:`split_pgn_games` and parse each chunk on its own.
    """
    games: list[ParsedPgn] = []
    for chunk in split_pgn_games(pgn_text):
        games.extend(_parse_chunk(chunk))
    return games


def parse_pgn_game(pgn_text: str) -> ParsedPgn:
    """Parse a single PGN game into structured headers/moves/result.

    Only the first game is returned when the text holds several.
    """
    games = parse_pgn_games(pgn_text)
    if not games:
        raise PgnParseError("PGN text contains no game")
    return games[0]


def parse_pgn(pgn_text: str) -> tuple[dict[str, str], list[str], str]:
    """Shortcut returning headers + SAN mainline + result of the first game."""
    parsed = parse_pgn_game(pgn_text)
    return parsed.headers, parsed.sans, parsed.result_token


def _parse_chunk(chunk: str) -> list[ParsedPgn]:
    headers, movetext = _split_headers(chunk)
    segments = _parse_movetext(movetext)

    games: list[ParsedPgn] = []
    for index, (moves, termination) in enumerate(segments):
        # Only the first game of a chunk owns the header block.
        game_headers = dict(headers) if index == 0 else {}
        header_result = game_headers.get("Result")
        if header_result in _PGN_RESULT_TOKENS:
            result_token = header_result
        else:
            result_token = termination or "*"
        games.append(
            ParsedPgn(headers=game_headers, moves=moves, result_token=result_token)
        )
    return games


def _split_headers(chunk: str) -> tuple[dict[str, str], str]:
    headers: dict[str, str] = {}
    pos = 0
    total = len(chunk)

    while True:
        while pos < total and chunk[pos].isspace():
            pos += 1
        if pos >= total or chunk[pos] != "[":
            break
        match = _PGN_HEADER_RE.match(chunk, pos)
        if match is None:
            line_end = chunk.find("\n", pos)
            line = chunk[pos:] if line_end < 0 else chunk[pos:line_end]
            raise PgnParseError(f"Invalid PGN header line: {line.strip()}")
        key, raw_value = match.groups()
        headers[key] = raw_value.replace('\\"', '"').replace("\\\\", "\\")
        pos = match.end()

    move_lines = [
        line for line in chunk[pos:].splitlines() if not line.lstrip().startswith("%")
    ]
    return headers, "\n".join(move_lines)


def _parse_movetext(movetext: str) -> list[tuple[list[PgnMove], str | None]]:
    """Tokenize movetext into ``(moves, termination)`` segments.

    A termination marker closes the current game; movetext that follows it
    opens a new one.
    """
    segments: list[tuple[list[PgnMove], str | None]] = []
    mainline: list[PgnMove] = []
    lines: list[list[PgnMove]] = [mainline]
    idx = 0
    total = len(movetext)

    while idx < total:
        ch = movetext[idx]

        if ch.isspace():
            idx += 1
            continue

        if ch == "{":
            end = movetext.find("}", idx + 1)
            if end < 0:
                comment = movetext[idx + 1 :]
                idx = total
            else:
                comment = movetext[idx + 1 : end]
                idx = end + 1
            _append_comment(lines[-1], comment)
            continue

        if ch == ";":
            end = movetext.find("\n", idx + 1)
            if end < 0:
                end = total
            _append_comment(lines[-1], movetext[idx + 1 : end])
            idx = end
            continue

        if ch == "(":
            current = lines[-1]
            if not current:
                raise PgnParseError("Variation opens before any move")
            variation: list[PgnMove] = []
            current[-1].variations.append(variation)
            lines.append(variation)
            idx += 1
            continue

        if ch == ")":
            if len(lines) == 1:
                raise PgnParseError("Unbalanced ')' in PGN movetext")
            lines.pop()
            idx += 1
            continue

        if ch == "}":
            raise PgnParseError("Unbalanced '}' in PGN movetext")

        token_end = idx
        while (
            token_end < total
            and not movetext[token_end].isspace()
            and movetext[token_end] not in "{}();"
        ):
            token_end += 1
        token = movetext[idx:token_end]
        idx = token_end

        if token in _PGN_RESULT_TOKENS:
            if len(lines) > 1:
                raise PgnParseError(f"Game termination {token!r} inside a variation")
            segments.append((mainline, token))
            mainline = []
            lines = [mainline]
            continue

        if _MOVE_NUMBER_RE.match(token):
            continue

        if token.startswith("$") and token[1:].isdigit():
            continue

        san = _clean_san(token)
        if san:
            lines[-1].append(PgnMove(san=san))

    if len(lines) > 1:
        raise PgnParseError("Unterminated variation in PGN movetext")
    if mainline or not segments:
        segments.append((mainline, None))
    return segments


def _clean_san(token: str) -> str:
    san = _MOVE_NUMBER_PREFIX_RE.sub("", token)
    san = san.lstrip(".")
    return _GLYPH_SUFFIX_RE.sub("", san)


def _append_comment(line: list[PgnMove], comment: str) -> None:
    if not line:
        return
    move = line[-1]
    clean = " ".join(comment.split())
    if not clean:
        return
    if move.comment:
        move.comment = f"{move.comment} {clean}"
    else:
        move.comment = clean


def _split_at_terminations(chunk: str) -> list[str]:
    pieces: list[str] = []
    start = 0
    depth = 0
    has_game = False
    idx = 0
    total = len(chunk)

    while idx < total:
        ch = chunk[idx]

        if ch.isspace():
            idx += 1
            continue

        if ch == "{":
            end = chunk.find("}", idx + 1)
            idx = total if end < 0 else end + 1
            continue

        line_start = idx == 0 or chunk[idx - 1] == "\n"
        if ch == ";" or (ch == "%" and line_start):
            end = chunk.find("\n", idx + 1)
            idx = total if end < 0 else end
            continue

        if ch == "[":
            match = _PGN_HEADER_RE.match(chunk, idx)
            if match is not None:
                idx = match.end()
            else:
                end = chunk.find("\n", idx + 1)
                idx = total if end < 0 else end
            has_game = True
            continue

        has_game = True
        if ch == "(":
            depth += 1
            idx += 1
            continue

        if ch == ")":
            # Unbalanced closers are reported by the movetext parser.
            depth = max(depth - 1, 0)
            idx += 1
            continue

        token_end = idx
        while (
            token_end < total
            and not chunk[token_end].isspace()
            and chunk[token_end] not in "{}();["
        ):
            token_end += 1
        if token_end == idx:
            idx += 1
            continue
        token = chunk[idx:token_end]
        idx = token_end

        if depth == 0 and token in _PGN_RESULT_TOKENS:
            pieces.append(chunk[start:idx])
            start = idx
            has_game = False

    # A comment-only tail after the last termination is not a game.
    if has_game or not pieces:
        pieces.append(chunk[start:])
    return [piece for piece in pieces if piece.strip()]


def _comment_open_after(line: str, in_comment: bool) -> bool:
    for ch in line:
        if in_comment:
            if ch == "}":
                in_comment = False
        elif ch == "{":
            in_comment = True
        elif ch == ";":
            break
    return in_comment
