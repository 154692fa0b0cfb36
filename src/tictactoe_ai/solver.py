"""
Exact adversarial search (plain minimax, no pruning) over the 3x3 board.
Scoring is from the perspective of ``me`` (the agent's mark by default):
- win for ``me``: 10 - depth, so faster wins score higher;
- win for the other side: depth - 10, so slower losses score higher;
- draw: 0.
Depth is only used for score shaping. The tree is small enough to search
exhaustively; results are memoised since the search is pure in its arguments.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Dict, List, Optional, Sequence

from .game_basics import AGENT_MARK, DRAW, MARKS, available_cells, check_winner, is_well_formed, opponent_of, place


@lru_cache(maxsize=None)
def _minimax(state: str, depth: int, maximizing: bool, me: str) -> int:
    res = check_winner(state)
    if res is not None:
        if res.winner == DRAW:
            return 0
        if res.winner == me:
            return 10 - depth
        return depth - 10

    mark = me if maximizing else opponent_of(me)
    scores = [_minimax(place(state, mv, mark), depth + 1, not maximizing, me)
              for mv in available_cells(state)]
    return max(scores) if maximizing else min(scores)


def minimax_value(state: str, depth: int = 0, maximizing: bool = True, me: str = AGENT_MARK) -> int:
    """Minimax score of ``state`` with ``depth`` plies already explored from the root."""
    if not is_well_formed(state):
        raise ValueError(f"Malformed board state: {state!r}")
    if me not in MARKS:
        raise ValueError(f"Unknown mark: {me!r}")
    return _minimax(state, depth, maximizing, me)


def best_action(state: str, available: Sequence[int], me: str = AGENT_MARK) -> int:
    """Cell with the strictly greatest minimax score; ties go to the earliest candidate."""
    if not available:
        raise ValueError("best_action requires at least one available cell")
    if not is_well_formed(state):
        raise ValueError(f"Malformed board state: {state!r}")
    if check_winner(state) is not None:
        raise ValueError(f"Cannot search a finished game: {state!r}")
    best_move = available[0]
    best_score: Optional[int] = None
    for mv in available:
        score = _minimax(place(state, mv, me), 1, False, me)
        if best_score is None or score > best_score:
            best_score = score
            best_move = mv
    return best_move


def solve_state(state: str, me: str = AGENT_MARK) -> Dict:
    """Per-cell minimax scores for ``me`` to move, plus the chosen move and value."""
    moves = available_cells(state)
    mv = best_action(state, moves, me=me)
    scores: List[Optional[int]] = [None] * 9
    for i in moves:
        scores[i] = _minimax(place(state, i, me), 1, False, me)
    return {
        'value': scores[mv],
        'best_action': mv,
        'scores': tuple(scores),
    }
