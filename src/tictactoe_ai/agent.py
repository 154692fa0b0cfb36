"""
Tabular Q-learning opponent with difficulty-conditioned action selection.

The table maps a board state to a row of 9 action values (one per cell index).
Rows are created lazily: any read or write of an unseen state inserts a
zero-filled row, and later reads return that same row object.

Difficulty levels:
- beginner: 70% uniformly random moves, otherwise the intermediate rule;
- intermediate: epsilon-greedy over the table;
- expert: exact minimax via ``tictactoe_ai.solver``.
"""
from __future__ import annotations

import enum
import logging
import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from . import solver
from .game_basics import AGENT_MARK, is_well_formed

DEFAULT_LEARNING_RATE = 0.1
DEFAULT_DISCOUNT_FACTOR = 0.9
DEFAULT_EXPLORATION_RATE = 0.1
EXPLORATION_FLOOR = 0.01
EXPLORATION_DECAY = 0.995
BEGINNER_RANDOM_RATE = 0.7


class Difficulty(str, enum.Enum):
    BEGINNER = 'beginner'
    INTERMEDIATE = 'intermediate'
    EXPERT = 'expert'


def _is_number(v: Any) -> bool:
    if not isinstance(v, (int, float)) or isinstance(v, bool):
        return False
    try:
        return math.isfinite(v)
    except OverflowError:
        # ints too large for a float
        return False


def _check_rate(name: str, value: float, low: float, high: float, low_open: bool = False) -> float:
    if not _is_number(value):
        raise ValueError(f"{name} must be a number, got {value!r}")
    value = float(value)
    if value > high or value < low or (low_open and value == low):
        lo = '(' if low_open else '['
        raise ValueError(f"{name} out of range {lo}{low},{high}]: {value}")
    return value


class QLearningAgent:
    def __init__(
        self,
        learning_rate: float = DEFAULT_LEARNING_RATE,
        discount_factor: float = DEFAULT_DISCOUNT_FACTOR,
        exploration_rate: float = DEFAULT_EXPLORATION_RATE,
        difficulty: Difficulty = Difficulty.INTERMEDIATE,
        rng: Optional[np.random.Generator] = None,
    ):
        self.q: Dict[str, List[float]] = {}
        self.learning_rate = _check_rate("learning_rate", learning_rate, 0.0, 1.0, low_open=True)
        self.discount_factor = _check_rate("discount_factor", discount_factor, 0.0, 1.0)
        self.exploration_rate = _check_rate("exploration_rate", exploration_rate, 0.0, 1.0)
        self.difficulty = Difficulty(difficulty)
        self.rng = rng if rng is not None else np.random.default_rng()
        # mark searched for by the expert policy
        self.mark = AGENT_MARK

    @property
    def states_learned(self) -> int:
        return len(self.q)

    def get_q(self, state: str) -> List[float]:
        row = self.q.get(state)
        if row is None:
            row = [0.0] * 9
            self.q[state] = row
        return row

    def _random_choice(self, available: Sequence[int]) -> int:
        return available[int(self.rng.integers(len(available)))]

    def select_action(self, state: str, available: Sequence[int]) -> int:
        if not available:
            raise ValueError("select_action requires at least one available cell")

        if self.difficulty is Difficulty.BEGINNER:
            if self.rng.random() < BEGINNER_RANDOM_RATE:
                return self._random_choice(available)
        elif self.difficulty is Difficulty.EXPERT:
            return solver.best_action(state, available, me=self.mark)

        if self.rng.random() < self.exploration_rate:
            return self._random_choice(available)
        q = self.get_q(state)
        best = available[0]
        for a in available:
            if q[a] > q[best]:
                best = a
        return best

    def record_transition(
        self,
        state: str,
        action: int,
        reward: float,
        next_state: str,
        next_available: Sequence[int],
    ) -> None:
        """Temporal-difference update of Q[state][action].

        ``next_available`` empty marks a terminal transition (no bootstrap term).
        """
        q = self.get_q(state)
        if next_available:
            q_next = self.get_q(next_state)
            max_next = max(q_next[a] for a in next_available)
        else:
            max_next = 0.0
        q[action] += self.learning_rate * (reward + self.discount_factor * max_next - q[action])

    def decay_exploration(self) -> None:
        self.exploration_rate = max(EXPLORATION_FLOOR, self.exploration_rate * EXPLORATION_DECAY)

    def reset(self) -> None:
        self.q.clear()
        self.exploration_rate = DEFAULT_EXPLORATION_RATE

    def set_parameters(
        self,
        learning_rate: Optional[float] = None,
        discount_factor: Optional[float] = None,
        exploration_rate: Optional[float] = None,
        difficulty: Optional[str] = None,
    ) -> None:
        # validate everything before touching any field
        lr = self.learning_rate if learning_rate is None else _check_rate(
            "learning_rate", learning_rate, 0.0, 1.0, low_open=True)
        gamma = self.discount_factor if discount_factor is None else _check_rate(
            "discount_factor", discount_factor, 0.0, 1.0)
        eps = self.exploration_rate if exploration_rate is None else _check_rate(
            "exploration_rate", exploration_rate, 0.0, 1.0)
        diff = self.difficulty if difficulty is None else Difficulty(difficulty)
        self.learning_rate, self.discount_factor, self.exploration_rate = lr, gamma, eps
        self.difficulty = diff

    def to_dict(self) -> Dict[str, Any]:
        return {
            'entries': [[state, list(row)] for state, row in self.q.items()],
            'learningRate': self.learning_rate,
            'discountFactor': self.discount_factor,
            'explorationRate': self.exploration_rate,
            'difficulty': self.difficulty.value,
        }

    def load_dict(self, data: Any) -> bool:
        """Replace the agent's state from a persisted blob.

        Returns False, leaving the agent untouched, if the blob has the wrong shape.
        """
        try:
            if not isinstance(data, dict):
                raise ValueError("agent blob must be an object")
            entries = data['entries']
            if not isinstance(entries, list):
                raise ValueError("entries must be a list")
            table: Dict[str, List[float]] = {}
            for item in entries:
                if not isinstance(item, (list, tuple)) or len(item) != 2:
                    raise ValueError(f"bad entry: {item!r}")
                state, row = item
                if not is_well_formed(state):
                    raise ValueError(f"bad state key: {state!r}")
                if not isinstance(row, list) or len(row) != 9 or not all(_is_number(v) for v in row):
                    raise ValueError(f"bad value row for {state!r}")
                table[state] = [float(v) for v in row]
            lr = _check_rate("learningRate", data['learningRate'], 0.0, 1.0, low_open=True)
            gamma = _check_rate("discountFactor", data['discountFactor'], 0.0, 1.0)
            eps = _check_rate("explorationRate", data['explorationRate'], 0.0, 1.0)
            difficulty = Difficulty(data.get('difficulty') or Difficulty.INTERMEDIATE.value)
        except (KeyError, TypeError, ValueError, OverflowError) as e:
            logging.error("Failed to load AI state: %s", e)
            return False

        self.q = table
        self.learning_rate = lr
        self.discount_factor = gamma
        self.exploration_rate = eps
        self.difficulty = difficulty
        return True
