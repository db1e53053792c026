from __future__ import annotations

from typing import List, Optional, Tuple

import pandas as pd
import streamlit as st

from xsudoku.models import Board, Conflict, Puzzle, PuzzleLibrary
from xsudoku.solver import (
    InvalidBoardError,
    board_spec,
    check_board,
    empty_cells,
    find_conflicts,
    is_solved,
    solve,
    validate_board,
)
from xsudoku.storage import (
    board_from_csv,
    board_to_csv,
    load_library,
    resolve_library_path,
    save_library,
)

SUPPORTED_SIZES = [1, 4, 9, 16]
DEFAULT_SIZE = 9

LIBRARY_PATH = resolve_library_path()


@st.cache_data(show_spinner=False)
def _load_library_cached(path: str) -> PuzzleLibrary:
    return load_library(path)


def load() -> PuzzleLibrary:
    return _load_library_cached(LIBRARY_PATH)


def save(library: PuzzleLibrary) -> None:
    save_library(library, LIBRARY_PATH)
    _load_library_cached.clear()  # force reload on next read


def cell_key(n: int, r: int, c: int) -> str:
    # include N so changing size doesn't collide with old widget state
    return f"cell_{n}_{r}_{c}"


def base_of(n: int) -> int:
    return board_spec(n).base


def reset_board(n: int) -> None:
    for r in range(n):
        for c in range(n):
            st.session_state[cell_key(n, r, c)] = ""


def fill_board(board: Board) -> None:
    """Push a board into the input widgets (must run before the grid is drawn)."""
    check_board(board)
    n = len(board)
    if n not in SUPPORTED_SIZES:
        raise InvalidBoardError(f"Unsupported size: {n} (supported: {SUPPORTED_SIZES}).")
    st.session_state.size = n
    for r in range(n):
        for c in range(n):
            v = board[r][c]
            st.session_state[cell_key(n, r, c)] = "" if v == 0 else str(v)


def parse_board(n: int) -> Tuple[List[List[int]], List[str]]:
    """
    Read cell widget values from session_state and build an int board.
    Returns (board, errors). Empty string or '0' => 0.
    """
    errors: List[str] = []
    board: List[List[int]] = [[0] * n for _ in range(n)]

    for r in range(n):
        for c in range(n):
            raw = str(st.session_state.get(cell_key(n, r, c), "")).strip()
            if raw == "":
                board[r][c] = 0
                continue

            if not raw.isdigit():
                errors.append(f"Cell ({r+1},{c+1}) is not a number: '{raw}'")
                continue

            v = int(raw)
            if v == 0:
                board[r][c] = 0
            elif 1 <= v <= n:
                board[r][c] = v
            else:
                errors.append(f"Cell ({r+1},{c+1}) out of range: {v} (allowed 1..{n}, or blank/0).")

    return board, errors


def conflicts_df(conflicts: List[Conflict]) -> pd.DataFrame:
    rows = []
    for cf in conflicts:
        rows.append(
            {
                "unit": cf.unit,
                "index": "" if cf.unit.endswith("diagonal") else cf.index + 1,
                "value": cf.value,
                "cells": " ".join(f"({p.row+1},{p.column+1})" for p in cf.cells),
            }
        )
    return pd.DataFrame(rows) if rows else pd.DataFrame(columns=["unit", "index", "value", "cells"])


def render_board_html(board: List[List[int]], n: int, title: str, givens: Optional[Board] = None) -> None:
    """
    Render the grid with thick subgrid borders, shaded diagonals and,
    when givens are passed, solved cells in a different color.
    """
    base = base_of(n)

    html = [f"<div class='sudoku-wrap'><div class='sudoku-title'>{title}</div>"]
    html.append("<table class='sudoku'>")
    for r in range(n):
        html.append("<tr>")
        for c in range(n):
            v = board[r][c]
            cls = []
            if r % base == 0:
                cls.append("top")
            if c % base == 0:
                cls.append("left")
            if (r + 1) % base == 0:
                cls.append("bottom")
            if (c + 1) % base == 0:
                cls.append("right")
            if r == c or r + c == n - 1:
                cls.append("diag")
            if givens is not None and givens[r][c] == 0 and v != 0:
                cls.append("filled")
            cls_attr = f" class='{' '.join(cls)}'" if cls else ""
            disp = "" if v == 0 else str(v)
            html.append(f"<td{cls_attr}>{disp}</td>")
        html.append("</tr>")
    html.append("</table></div>")

    st.markdown("".join(html), unsafe_allow_html=True)


st.set_page_config(page_title="X-Sudoku Solver", layout="wide")

st.markdown(
    """
<style>
/* Make inputs larger and centered */
div[data-testid="stTextInput"] input {
    text-align: center;
    font-size: 22px !important;
    height: 2.8rem;
    padding: 0.25rem 0.25rem;
}
div[data-testid="stTextInput"] { margin-bottom: 0rem; }

/* Sudoku HTML output */
.sudoku-wrap { margin-top: 0.5rem; }
.sudoku-title { font-size: 1.05rem; font-weight: 600; margin: 0.5rem 0 0.35rem 0; }
table.sudoku { border-collapse: collapse; }
table.sudoku td {
    width: 2.8rem;
    height: 2.8rem;
    text-align: center;
    vertical-align: middle;
    font-size: 22px;
    border: 1px solid rgba(49, 51, 63, 0.25);
}
table.sudoku td.top { border-top: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.left { border-left: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.bottom { border-bottom: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.right { border-right: 3px solid rgba(49, 51, 63, 0.65); }
table.sudoku td.diag { background: rgba(255, 193, 7, 0.15); }
table.sudoku td.filled { color: #1f77b4; }

/* Spacer columns (visual separation) */
.sudoku-spacer { height: 0.25rem; }
</style>
""",
    unsafe_allow_html=True,
)

st.title("X-Sudoku Solver")
st.caption(
    "Rows, columns, boxes and both diagonals must hold 1..N exactly once. "
    "Leave cells blank (or enter 0). Click **Solve** to get the solution."
)

if "size" not in st.session_state:
    st.session_state.size = DEFAULT_SIZE

# ---- Sidebar controls ----
# Everything that rewrites cell state runs here, before the grid widgets exist.
with st.sidebar:
    st.header("Settings")

    size = st.selectbox("Grid size", SUPPORTED_SIZES, index=SUPPORTED_SIZES.index(st.session_state.size))

    if size != st.session_state.size:
        st.session_state.size = size
        reset_board(size)

    st.divider()
    if st.button("Reset board", use_container_width=True):
        reset_board(st.session_state.size)

    st.divider()
    st.subheader("Import CSV")
    uploaded = st.file_uploader("Board CSV (blank or 0 = empty)", type=["csv", "txt"])
    if uploaded is not None and st.button("Load uploaded board", use_container_width=True):
        try:
            fill_board(board_from_csv(uploaded.getvalue()))
            st.rerun()
        except InvalidBoardError as e:
            st.error(str(e))

    st.divider()
    st.subheader("Saved puzzles")
    st.caption(f"Library: `{LIBRARY_PATH}`")
    library = load()
    if library.puzzles:
        pick = st.selectbox("Puzzle", library.names())
        note = library.puzzles[pick].note
        if note:
            st.caption(note)
        c1, c2 = st.columns(2)
        if c1.button("Load", use_container_width=True):
            try:
                fill_board(library.puzzles[pick].board)
                st.rerun()
            except InvalidBoardError as e:
                st.error(str(e))
        if c2.button("Delete", use_container_width=True):
            library.remove(pick)
            save(library)
            st.rerun()
    else:
        st.info("No saved puzzles yet.")

    with st.form("save_puzzle", clear_on_submit=True):
        save_name = st.text_input("Save current board as", value="")
        save_note = st.text_input("Note (optional)", value="")
        save_clicked = st.form_submit_button("Save", use_container_width=True)

    if save_clicked:
        cur, errs = parse_board(int(st.session_state.size))
        if not save_name.strip():
            st.error("Name is required.")
        elif errs:
            st.error("Fix the board before saving.")
        else:
            library.add(Puzzle(name=save_name.strip(), board=cur, note=save_note.strip() or None))
            save(library)
            st.success(f"Saved '{save_name.strip()}'.")

n = int(st.session_state.size)
base = base_of(n)

# ---- Input grid in a form (prevents rerun on every keystroke) ----
st.subheader("Input")

with st.form("sudoku_form", clear_on_submit=False):
    # Build column widths with spacer columns between subgrids
    spacer_w = 0.18
    widths = []
    for g in range(base):
        widths.extend([1.0] * base)
        if g != base - 1:
            widths.append(spacer_w)

    for r in range(n):
        cols = st.columns(widths, gap="small")
        col_idx = 0
        for c in range(n):
            # insert a spacer column after each subgrid block
            if c > 0 and c % base == 0:
                col_idx += 1  # skip spacer column
            with cols[col_idx]:
                key = cell_key(n, r, c)
                if key not in st.session_state:
                    st.session_state[key] = ""
                st.text_input(
                    label=f"r{r+1}c{c+1}",
                    key=key,
                    label_visibility="collapsed",
                    placeholder="",
                )
            col_idx += 1

        # horizontal spacer between subgrid blocks of rows
        if (r + 1) % base == 0 and (r + 1) != n:
            st.markdown("<div class='sudoku-spacer'></div>", unsafe_allow_html=True)

    colA, colB, _ = st.columns([1, 1, 2])
    validate_clicked = colA.form_submit_button("Validate", use_container_width=True)
    solve_clicked = colB.form_submit_button("Solve", use_container_width=True)

# ---- Actions ----
if validate_clicked or solve_clicked:
    board, parse_errors = parse_board(n)
    if parse_errors:
        st.error("Please fix these input issues:")
        st.write("\n".join([f"- {e}" for e in parse_errors]))
    else:
        givens = [row[:] for row in board]
        render_board_html(givens, n, "Current board (preview)")

        if validate_clicked:
            ok, msg = validate_board(board)
            if ok:
                st.success("Board looks valid.")
            else:
                st.error(msg)
                conflicts = find_conflicts(board)
                if conflicts:
                    st.dataframe(conflicts_df(conflicts), use_container_width=True, hide_index=True)

        if solve_clicked:
            was_full = not empty_cells(board)
            try:
                solution = solve(board)
            except InvalidBoardError as e:
                st.error(str(e))
            else:
                if solution is None:
                    st.error("No solution found (the puzzle may be unsolvable).")
                elif was_full and not is_solved(solution):
                    st.warning("The board is already full but breaks the X-Sudoku rules; nothing to solve.")
                else:
                    st.success("Solution found ✅")
                    render_board_html(solution, n, "Solution", givens=givens)

                    st.download_button(
                        "Download solution as CSV",
                        data=board_to_csv(solution),
                        file_name=f"xsudoku_solution_{n}x{n}.csv",
                        mime="text/csv",
                        use_container_width=False,
                    )
else:
    # Always show a preview (readable) even before submitting
    board, _ = parse_board(n)
    render_board_html(board, n, "Current board (preview)")
