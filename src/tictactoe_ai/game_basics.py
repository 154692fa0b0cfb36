"""
Game basics: board representation, move application, winner/draw checks, validity.
Notes:
- State is a 9-character string: '-' empty, 'X' the human player, 'O' the agent.
- X always starts. States are immutable; placing a mark returns a new string.
- A "ply" is a half-move (one player's turn).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Optional, Tuple

EMPTY = '-'
PLAYER_MARK = 'X'
AGENT_MARK = 'O'
MARKS = (PLAYER_MARK, AGENT_MARK)
DRAW = 'draw'

WIN_PATTERNS = [
    [0, 1, 2], [3, 4, 5], [6, 7, 8],
    [0, 3, 6], [1, 4, 7], [2, 5, 8],
    [0, 4, 8], [2, 4, 6]
]


class Outcome(enum.Enum):
    AGENT_WINS = 'agent_wins'
    OPPONENT_WINS = 'opponent_wins'
    DRAW = 'draw'
    IN_PROGRESS = 'in_progress'


@dataclass(frozen=True)
class WinResult:
    winner: str  # 'X', 'O' or 'draw'
    line: Optional[Tuple[int, int, int]] = None


def empty_board() -> str:
    return EMPTY * 9


def is_well_formed(state: object) -> bool:
    return isinstance(state, str) and len(state) == 9 and all(c in (EMPTY,) + MARKS for c in state)


def opponent_of(mark: str) -> str:
    if mark == PLAYER_MARK:
        return AGENT_MARK
    if mark == AGENT_MARK:
        return PLAYER_MARK
    raise ValueError(f"Unknown mark: {mark!r}")


def available_cells(state: str) -> List[int]:
    return [i for i, c in enumerate(state) if c == EMPTY]


def place(state: str, idx: int, mark: str) -> str:
    """Return a new state with ``mark`` at ``idx``; the cell must be empty."""
    if mark not in MARKS:
        raise ValueError(f"Unknown mark: {mark!r}")
    if not 0 <= idx < 9:
        raise ValueError(f"Cell index out of range: {idx}")
    if state[idx] != EMPTY:
        raise ValueError(f"Cell {idx} is already occupied in {state!r}")
    return state[:idx] + mark + state[idx + 1:]


def check_winner(state: str) -> Optional[WinResult]:
    for pattern in WIN_PATTERNS:
        a, b, c = pattern
        v = state[a]
        if v != EMPTY and v == state[b] and v == state[c]:
            return WinResult(v, (a, b, c))
    if EMPTY in state:
        return None
    return WinResult(DRAW, None)


def outcome(state: str) -> Outcome:
    res = check_winner(state)
    if res is None:
        return Outcome.IN_PROGRESS
    if res.winner == AGENT_MARK:
        return Outcome.AGENT_WINS
    if res.winner == PLAYER_MARK:
        return Outcome.OPPONENT_WINS
    return Outcome.DRAW


def is_terminal(state: str) -> bool:
    return check_winner(state) is not None


def get_piece_counts(state: str) -> Tuple[int, int]:
    return state.count(PLAYER_MARK), state.count(AGENT_MARK)


def mark_to_move(state: str) -> str:
    x, o = get_piece_counts(state)
    return PLAYER_MARK if x == o else AGENT_MARK


def is_valid_state(state: object) -> bool:
    """Reachable-looking board: well formed, X moved first, at most one winner."""
    if not is_well_formed(state):
        return False
    x_count, o_count = get_piece_counts(state)
    if not (x_count == o_count or x_count == o_count + 1):
        return False

    def count_wins(mark: str) -> int:
        return sum(1 for pat in WIN_PATTERNS if all(state[i] == mark for i in pat))
    x_wins, o_wins = count_wins(PLAYER_MARK), count_wins(AGENT_MARK)
    if x_wins and o_wins:
        return False
    if x_wins and x_count != o_count + 1:
        return False
    if o_wins and x_count != o_count:
        return False
    return True


def render_board(state: str) -> str:
    rows = []
    for r in range(3):
        cells = [state[3 * r + c] if state[3 * r + c] != EMPTY else str(3 * r + c) for c in range(3)]
        rows.append(' ' + ' | '.join(cells))
    return '\n---+---+---\n'.join(rows)
