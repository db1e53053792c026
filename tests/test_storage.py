import io
import json

import pytest

from xsudoku.models import Puzzle, PuzzleLibrary
from xsudoku.solver import InvalidBoardError, check_board, solve
from xsudoku.storage import (
    board_from_csv,
    board_to_csv,
    default_library_path,
    load_library,
    resolve_library_path,
    save_library,
)

BOARD = [
    [1, 0, 0, 4],
    [0, 4, 1, 0],
    [4, 0, 2, 0],
    [0, 1, 0, 3],
]


def test_board_to_csv():
    assert board_to_csv([[1, 0], [0, 2]]) == b"1,0\n0,2\n"


def test_csv_round_trip():
    assert board_from_csv(board_to_csv(BOARD)) == BOARD


def test_board_from_csv_accepts_text_and_file_objects():
    text = "1,0,0,4\n0,4,1,0\n4,0,2,0\n0,1,0,3\n"
    assert board_from_csv(text) == BOARD
    assert board_from_csv(io.StringIO(text)) == BOARD


def test_board_from_csv_blank_cells_are_empty():
    assert board_from_csv(b"1,,,4\n,4,1,\n4, ,2,\n,1,,3\n") == BOARD


def test_board_from_csv_values_are_plain_ints():
    board = board_from_csv(b"0\n")
    assert board == [[0]]
    assert type(board[0][0]) is int
    check_board(board)


def test_board_from_csv_rejects_non_numbers():
    with pytest.raises(InvalidBoardError, match=r"\(2,3\)"):
        board_from_csv(b"1,2,3,4\n1,2,x,4\n1,2,3,4\n1,2,3,4\n")


def test_board_from_csv_rejects_empty_input():
    with pytest.raises(InvalidBoardError):
        board_from_csv(b"")


def test_board_from_csv_rejects_long_rows():
    with pytest.raises(InvalidBoardError):
        board_from_csv(b"1,2\n1,2,3,4,5\n")


def test_resolve_library_path(monkeypatch, tmp_path):
    monkeypatch.delenv("XSUDOKU_LIBRARY", raising=False)
    assert resolve_library_path() == default_library_path()

    target = str(tmp_path / "lib.json")
    monkeypatch.setenv("XSUDOKU_LIBRARY", target)
    assert resolve_library_path() == target


def test_load_missing_library_is_empty(tmp_path):
    lib = load_library(str(tmp_path / "missing.json"))
    assert lib.puzzles == {}


def test_save_and_load_library(tmp_path):
    path = str(tmp_path / "nested" / "dir" / "lib.json")
    lib = PuzzleLibrary()
    lib.add(Puzzle(name="easy", board=BOARD, note="first try"))
    lib.add(Puzzle(name="tiny", board=[[0]]))
    save_library(lib, path)

    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    assert [p["name"] for p in raw["puzzles"]] == ["easy", "tiny"]

    loaded = load_library(path)
    assert loaded.names() == ["easy", "tiny"]
    assert loaded.puzzles["easy"].board == BOARD
    assert loaded.puzzles["easy"].note == "first try"
    assert loaded.puzzles["tiny"].note is None


def test_library_uses_environment_path(monkeypatch, tmp_path):
    path = tmp_path / "env.json"
    monkeypatch.setenv("XSUDOKU_LIBRARY", str(path))

    lib = PuzzleLibrary()
    lib.add(Puzzle(name="p", board=[[1]]))
    save_library(lib)

    assert path.exists()
    assert load_library().puzzles["p"].board == [[1]]


def test_corrupted_library_raises(tmp_path):
    path = tmp_path / "bad.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(json.JSONDecodeError):
        load_library(str(path))


def test_board_from_csv_rejects_short_rows():
    with pytest.raises(InvalidBoardError, match=r"CSV row 2 has 2 cells, expected 4"):
        board_from_csv(b"1,2,3,4\n3,4\n0,0,0,0\n0,0,0,0\n")


def test_board_from_csv_rejects_blank_lines():
    with pytest.raises(InvalidBoardError, match=r"CSV row 2 has 0 cells"):
        board_from_csv(b"1,0,0,0\n\n0,0,0,0\n0,0,0,0\n0,0,0,0\n")


def test_board_from_csv_short_row_never_reaches_solver():
    with pytest.raises(InvalidBoardError):
        solve(board_from_csv("1,2,3,4\n3,4,,\n0,0,0\n0,0,0,0\n"))
