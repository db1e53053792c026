import dataclasses

import pytest

from xsudoku.models import Position, Puzzle, PuzzleLibrary


def test_position_is_a_frozen_value():
    p = Position(1, 2)
    assert p == Position(1, 2)
    assert hash(p) == hash(Position(1, 2))
    assert p != Position(2, 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        p.row = 3


def test_library_add_copies_board():
    board = [[0, 0], [0, 0]]
    lib = PuzzleLibrary()
    lib.add(Puzzle(name="a", board=board))
    board[0][0] = 1
    assert lib.puzzles["a"].board == [[0, 0], [0, 0]]


def test_library_add_replaces_same_name():
    lib = PuzzleLibrary()
    lib.add(Puzzle(name="a", board=[[0]]))
    lib.add(Puzzle(name="a", board=[[1]], note="solved"))
    assert lib.names() == ["a"]
    assert lib.puzzles["a"].board == [[1]]
    assert lib.puzzles["a"].note == "solved"


def test_library_remove():
    lib = PuzzleLibrary()
    lib.add(Puzzle(name="a", board=[[0]]))
    lib.remove("a")
    lib.remove("missing")
    assert lib.names() == []


def test_library_jsonable():
    lib = PuzzleLibrary()
    lib.add(Puzzle(name="a", board=[[1]], note="n"))
    raw = lib.to_jsonable()
    assert raw == {"puzzles": [{"name": "a", "board": [[1]], "note": "n"}]}
    assert PuzzleLibrary.from_jsonable(raw).puzzles == lib.puzzles
    assert PuzzleLibrary.from_jsonable({}).puzzles == {}
