from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

Board = List[List[int]]  # 0 = empty, values 1..N


@dataclass(frozen=True)
class Position:
    row: int
    column: int


@dataclass(frozen=True)
class BoardSpec:
    n: int          # board size: N x N (e.g., 9)
    base: int       # subgrid size: base x base (e.g., 3)
    full_mask: int  # bits 1..N set


@dataclass(frozen=True)
class Conflict:
    unit: str                       # "row" | "column" | "box" | "diagonal" | "anti-diagonal"
    index: int                      # which row/column/box; 0 for the diagonals
    value: int
    cells: Tuple[Position, ...]     # every cell in the unit holding value


@dataclass
class Puzzle:
    name: str
    board: Board
    note: Optional[str] = None


@dataclass
class PuzzleLibrary:
    puzzles: Dict[str, Puzzle] = field(default_factory=dict)

    def add(self, puzzle: Puzzle) -> None:
        # same name replaces the stored board
        self.puzzles[puzzle.name] = Puzzle(
            name=puzzle.name,
            board=[list(row) for row in puzzle.board],
            note=puzzle.note,
        )

    def remove(self, name: str) -> None:
        self.puzzles.pop(name, None)

    def names(self) -> List[str]:
        return list(self.puzzles.keys())

    def to_jsonable(self) -> dict:
        return {
            "puzzles": [
                {"name": p.name, "board": [list(row) for row in p.board], "note": p.note}
                for p in self.puzzles.values()
            ],
        }

    @staticmethod
    def from_jsonable(raw: dict) -> "PuzzleLibrary":
        lib = PuzzleLibrary()
        for p in raw.get("puzzles", []):
            lib.add(Puzzle(name=p["name"], board=p["board"], note=p.get("note")))
        return lib
