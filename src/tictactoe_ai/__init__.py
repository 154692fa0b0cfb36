"""tictactoe_ai package.

A tic-tac-toe opponent that learns: a tabular Q-learning agent with three
difficulty levels, an exact minimax evaluator, self-play training,
persistence, and a simple CLI.

Convenience imports are exposed for common workflows.
"""

from .agent import Difficulty, QLearningAgent
from .game_basics import Outcome, check_winner, outcome
from .session import GameSession
from .solver import best_action, minimax_value
from .training import TrainArgs, evaluate_vs_random, run_training, train_iter

__all__ = [
    "Difficulty",
    "QLearningAgent",
    "Outcome",
    "check_winner",
    "outcome",
    "GameSession",
    "best_action",
    "minimax_value",
    "TrainArgs",
    "train_iter",
    "run_training",
    "evaluate_vs_random",
]
