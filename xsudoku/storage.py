from __future__ import annotations

import io
import json
import logging
import os
from typing import IO, Optional, Union

import pandas as pd

from .models import Board, PuzzleLibrary
from .solver import InvalidBoardError

log = logging.getLogger(__name__)


def default_library_path() -> str:
    # saved puzzles live next to the app unless XSUDOKU_LIBRARY says otherwise
    return os.path.join(".", "data", "xsudoku.json")


def resolve_library_path() -> str:
    return os.environ.get("XSUDOKU_LIBRARY", default_library_path())


def ensure_parent_dir(path: str) -> None:
    os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)


def load_library(path: Optional[str] = None) -> PuzzleLibrary:
    p = path or resolve_library_path()
    if not os.path.exists(p):
        log.debug("No puzzle library at %s, starting empty", p)
        return PuzzleLibrary()
    with open(p, "r", encoding="utf-8") as f:
        raw = json.load(f)
    log.debug("Loaded puzzle library from %s", p)
    return PuzzleLibrary.from_jsonable(raw)


def save_library(library: PuzzleLibrary, path: Optional[str] = None) -> None:
    p = path or resolve_library_path()
    ensure_parent_dir(p)
    with open(p, "w", encoding="utf-8") as f:
        json.dump(library.to_jsonable(), f, ensure_ascii=False, indent=2)
    log.debug("Saved %d puzzle(s) to %s", len(library.puzzles), p)


def board_to_csv(board: Board) -> bytes:
    lines = [",".join(str(v) for v in row) for row in board]
    return ("\n".join(lines) + "\n").encode("utf-8")


def board_from_csv(data: Union[bytes, str, IO]) -> Board:
    """
    Parse a board from CSV (no header, one row per line).
    Blank cells read as 0. Short or blank lines are rejected here; size
    and range are left to check_board().
    """
    if isinstance(data, bytes):
        data = io.BytesIO(data)
    elif isinstance(data, str):
        # pandas would treat a plain str as a path
        data = io.StringIO(data)

    try:
        df = pd.read_csv(data, header=None, dtype=str, keep_default_na=False, skip_blank_lines=False)
    except pd.errors.EmptyDataError as e:
        raise InvalidBoardError("CSV contains no board.") from e
    except pd.errors.ParserError as e:
        raise InvalidBoardError(f"CSV is not a grid: {e}") from e

    width = df.shape[1]
    board: Board = []
    for r, row in enumerate(df.itertuples(index=False)):
        # pandas pads short lines (and blank lines) with NaN; explicit blanks stay ""
        present = sum(1 for raw in row if not pd.isna(raw))
        if present != width:
            raise InvalidBoardError(f"CSV row {r+1} has {present} cells, expected {width}.")
        out = []
        for c, raw in enumerate(row):
            s = str(raw).strip()
            if s == "":
                out.append(0)
                continue
            try:
                out.append(int(s))
            except ValueError as e:
                raise InvalidBoardError(f"Cell ({r+1},{c+1}) is not a number: '{s}'") from e
        board.append(out)
    return board
