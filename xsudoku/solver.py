from __future__ import annotations

import logging
import math
from typing import Dict, List, Optional, Tuple

from .models import Board, BoardSpec, Conflict, Position

log = logging.getLogger(__name__)


class InvalidBoardError(ValueError):
    """Board is not N x N, N is not a perfect square, or a cell is outside 0..N."""


def board_spec(n: int) -> BoardSpec:
    """Validate N and build basic constants."""
    base = math.isqrt(n)
    if base * base != n:
        raise InvalidBoardError(f"Invalid size: {n}. Only perfect squares are supported (1, 4, 9, 16, ...).")
    # bits 1..N set => (1<<(N+1)) - 2
    full_mask = (1 << (n + 1)) - 2
    return BoardSpec(n=n, base=base, full_mask=full_mask)


def _box_index(r: int, c: int, base: int) -> int:
    return (r // base) * base + (c // base)


def check_board(board: Board) -> BoardSpec:
    """
    Structural checks only:
      - N is a perfect square
      - board is N x N
      - values are integers in 0..N
    Duplicate givens are not checked here; see find_conflicts().
    """
    n = len(board)
    spec = board_spec(n)

    for r, row in enumerate(board):
        if not isinstance(row, list):
            raise InvalidBoardError(f"Row {r+1} is not a list (got {type(row).__name__}).")
        if len(row) != n:
            raise InvalidBoardError(f"Board must be square (N x N): row {r+1} does not have {n} cells.")

    for r in range(n):
        for c in range(n):
            v = board[r][c]
            if isinstance(v, bool) or not isinstance(v, int):
                raise InvalidBoardError(f"Invalid value at ({r+1},{c+1}): {v!r} (not an integer).")
            if v < 0 or v > n:
                raise InvalidBoardError(f"Invalid value at ({r+1},{c+1}): {v} (allowed: 0..{n}).")

    return spec


def empty_cells(board: Board) -> List[Position]:
    """Empty positions in row-major order."""
    return [
        Position(r, c)
        for r, row in enumerate(board)
        for c, v in enumerate(row)
        if v == 0
    ]


def _units(spec: BoardSpec) -> List[Tuple[str, int, List[Position]]]:
    n, base = spec.n, spec.base
    units: List[Tuple[str, int, List[Position]]] = []
    for i in range(n):
        units.append(("row", i, [Position(i, c) for c in range(n)]))
    for i in range(n):
        units.append(("column", i, [Position(r, i) for r in range(n)]))
    for b in range(n):
        r0 = (b // base) * base
        c0 = (b % base) * base
        units.append(("box", b, [Position(r0 + i, c0 + j) for i in range(base) for j in range(base)]))
    units.append(("diagonal", 0, [Position(i, i) for i in range(n)]))
    units.append(("anti-diagonal", 0, [Position(i, n - 1 - i) for i in range(n)]))
    return units


def find_conflicts(board: Board) -> List[Conflict]:
    """Every value that appears more than once in a row, column, box or diagonal (0 ignored)."""
    spec = check_board(board)

    conflicts: List[Conflict] = []
    for unit, index, cells in _units(spec):
        seen: Dict[int, List[Position]] = {}
        for p in cells:
            v = board[p.row][p.column]
            if v:
                seen.setdefault(v, []).append(p)
        for v in sorted(seen):
            if len(seen[v]) > 1:
                conflicts.append(Conflict(unit=unit, index=index, value=v, cells=tuple(seen[v])))
    return conflicts


def validate_board(board: Board) -> Tuple[bool, str]:
    """
    Checks:
      - board is N x N with N a perfect square
      - values in 0..N
      - no duplicate values in any row/col/box/diagonal (ignoring 0)
    """
    try:
        conflicts = find_conflicts(board)
    except InvalidBoardError as e:
        return False, str(e)

    if conflicts:
        first = conflicts[0]
        cell = first.cells[1]
        where = first.unit if first.unit.endswith("diagonal") else f"{first.unit} {first.index+1}"
        return False, (
            f"Conflict: value {first.value} appears twice in {where} "
            f"(cell {cell.row+1},{cell.column+1})."
        )

    return True, "OK"


def is_solved(board: Board) -> bool:
    """Full board with every unit holding 1..N exactly once."""
    check_board(board)
    return not empty_cells(board) and not find_conflicts(board)


def solve(board: Optional[Board]) -> Optional[Board]:
    """
    Solve an X-Sudoku board in place with depth-first backtracking.

    Empty cells are taken in row-major order and candidates are tried in
    ascending order, so the first solution in that order is returned.

    Returns the same board object once solved, or None when there is no board
    or no solution. On no solution every placement is undone and the board is
    left exactly as it was passed in.

    A board with no empty cell is returned as-is without checking its
    constraints; use is_solved() to verify a full board.

    Raises InvalidBoardError for malformed boards (see check_board()).
    Duplicate givens are not an error: such boards are just unsolvable.
    """
    if board is None:
        return None

    spec = check_board(board)
    n = spec.n
    base = spec.base
    full = spec.full_mask

    empties = empty_cells(board)
    if not empties:
        log.debug("Board %dx%d has no empty cell, returning it unchanged", n, n)
        return board

    log.debug("Solving %dx%d board with %d empty cell(s)", n, n, len(empties))

    row_used = [0] * n
    col_used = [0] * n
    box_used = [0] * n
    diag_used = [0, 0]  # main, anti

    # Initialize masks from the givens
    for r in range(n):
        for c in range(n):
            v = board[r][c]
            if v == 0:
                continue
            bit = 1 << v
            row_used[r] |= bit
            col_used[c] |= bit
            box_used[_box_index(r, c, base)] |= bit
            if r == c:
                diag_used[0] |= bit
            if r + c == n - 1:
                diag_used[1] |= bit

    placements = 0

    def candidates_mask(r: int, c: int) -> int:
        used = row_used[r] | col_used[c] | box_used[_box_index(r, c, base)]
        if r == c:
            used |= diag_used[0]
        if r + c == n - 1:
            used |= diag_used[1]
        return full & ~used

    def dfs(k: int) -> bool:
        nonlocal placements
        # empties[:k] are all filled, so empties[k] is the first empty cell in row-major order
        if k == len(empties):
            return True

        r, c = empties[k].row, empties[k].column
        b = _box_index(r, c, base)
        on_main = r == c
        on_anti = r + c == n - 1

        cm = candidates_mask(r, c)
        while cm:
            lsb = cm & -cm
            v = lsb.bit_length() - 1  # because bit is (1<<v)
            cm ^= lsb

            # place
            board[r][c] = v
            row_used[r] |= lsb
            col_used[c] |= lsb
            box_used[b] |= lsb
            if on_main:
                diag_used[0] |= lsb
            if on_anti:
                diag_used[1] |= lsb
            placements += 1

            if dfs(k + 1):
                return True

            # undo
            board[r][c] = 0
            row_used[r] ^= lsb
            col_used[c] ^= lsb
            box_used[b] ^= lsb
            if on_main:
                diag_used[0] ^= lsb
            if on_anti:
                diag_used[1] ^= lsb

        return False

    if dfs(0):
        log.info("Solved %dx%d board after %d placement(s)", n, n, placements)
        return board

    log.info("No solution for %dx%d board after %d placement(s)", n, n, placements)
    return None
