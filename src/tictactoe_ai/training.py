"""
Self-play training and evaluation for the Q-learning agent.

Training is a cooperative loop: ``train_iter`` is a generator that hands
control back to its driver every ``yield_every`` games, so an interactive
host can stay responsive (and optionally stop at a yield point).
Given a seeded agent rng the sequence of games is fully deterministic.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from .agent import QLearningAgent
from .game_basics import (
    AGENT_MARK,
    PLAYER_MARK,
    WinResult,
    available_cells,
    check_winner,
    empty_board,
    opponent_of,
    place,
)
from .session import GameSession, reward_for
from .tracking import log_metrics, log_params, maybe_mlflow_run


@dataclass
class TrainArgs:
    games: int = 1000
    yield_every: int = 50
    training_exploration: float = 0.3
    seed: Optional[int] = None
    tracking: str = "none"  # one of: "none", "mlflow"
    log_dir: Path = field(default_factory=lambda: Path("runs"))
    verbose: bool = False


@dataclass
class TrainProgress:
    completed: int
    total: int


def self_play_reward(result: Optional[WinResult], mark: str) -> float:
    """Terminal reward used in self-play: only a win for ``mark`` is positive.

    A draw counts as -1 for both sides here, unlike live play.
    """
    if result is None:
        return 0.0
    return 1.0 if result.winner == mark else -1.0


def play_self_play_game(session: GameSession) -> Optional[WinResult]:
    """Play one game where the agent picks moves for both sides, then learn from it.

    Every move is updated with its mover's self-play reward and an empty set
    of next actions, i.e. the update target is the final reward alone.
    """
    agent = session.agent
    session.new_game()
    moves: List[Tuple[str, int, str]] = []
    while not session.game_over and len(moves) < 9:
        state = session.board
        action = agent.select_action(state, available_cells(state))
        mark = PLAYER_MARK if len(moves) % 2 == 0 else AGENT_MARK
        moves.append((state, action, mark))
        session.move(action, mark)

    for state, action, mark in moves:
        agent.record_transition(state, action, self_play_reward(session.result, mark), session.board, [])
    return session.result


def train_iter(
    session: GameSession,
    args: TrainArgs,
    should_stop: Optional[Callable[[], bool]] = None,
) -> Iterator[TrainProgress]:
    if args.games < 0:
        raise ValueError(f"games must be non-negative: {args.games}")
    if args.yield_every < 1:
        raise ValueError(f"yield_every must be positive: {args.yield_every}")
    if not 0.0 <= args.training_exploration <= 1.0:
        raise ValueError(f"training_exploration out of range [0,1]: {args.training_exploration}")

    agent = session.agent
    original_exploration = agent.exploration_rate
    agent.exploration_rate = args.training_exploration
    session.training = True
    try:
        for i in range(args.games):
            play_self_play_game(session)
            agent.decay_exploration()
            if i % args.yield_every == 0:
                yield TrainProgress(i + 1, args.games)
                if should_stop is not None and should_stop():
                    logging.info("Training stopped after %d/%d games", i + 1, args.games)
                    break
    finally:
        agent.exploration_rate = original_exploration
        session.training = False
        session.new_game()
        session.save()


def run_training(session: GameSession, args: TrainArgs) -> Dict[str, float]:
    if args.seed is not None:
        session.agent.rng = np.random.default_rng(args.seed)
    with maybe_mlflow_run(args.tracking == "mlflow", run_name="self_play_training", log_dir=args.log_dir):
        log_params({
            "games": args.games,
            "training_exploration": args.training_exploration,
            "learning_rate": session.agent.learning_rate,
            "discount_factor": session.agent.discount_factor,
            "difficulty": session.agent.difficulty.value,
            "seed": args.seed,
        })
        played_before = session.stats.played
        t0 = time.perf_counter()
        for progress in train_iter(session, args):
            logging.info("Training %d/%d", progress.completed, progress.total)
            log_metrics({"states_learned": float(session.agent.states_learned)}, step=progress.completed)
        elapsed = time.perf_counter() - t0
        summary = {
            "games": float(session.stats.played - played_before),
            "states_learned": float(session.agent.states_learned),
            "elapsed_s": elapsed,
        }
        log_metrics(summary)
    logging.info("Training complete: %d games in %.2fs, %d states learned",
                 summary["games"], elapsed, session.agent.states_learned)
    return summary


def evaluate_vs_random(
    agent: QLearningAgent,
    games: int = 200,
    seed: Optional[int] = None,
    agent_first: bool = False,
) -> Dict[str, float]:
    """Play the agent greedily (no exploration, no learning) against a uniformly random opponent."""
    rng = np.random.default_rng(seed)
    agent_mark = PLAYER_MARK if agent_first else AGENT_MARK
    saved_exploration, saved_mark = agent.exploration_rate, agent.mark
    agent.exploration_rate = 0.0
    agent.mark = agent_mark
    wins = losses = draws = 0
    total = 0.0
    try:
        for _ in range(games):
            state = empty_board()
            to_move = PLAYER_MARK
            while check_winner(state) is None:
                available = available_cells(state)
                if to_move == agent_mark:
                    action = agent.select_action(state, available)
                else:
                    action = available[int(rng.integers(len(available)))]
                state = place(state, action, to_move)
                to_move = opponent_of(to_move)
            r = reward_for(check_winner(state), agent_mark)
            total += r
            if r > 0:
                wins += 1
            elif r < 0:
                losses += 1
            else:
                draws += 1
    finally:
        agent.exploration_rate = saved_exploration
        agent.mark = saved_mark
    return {
        "games": games,
        "wins": wins,
        "losses": losses,
        "draws": draws,
        "mean_reward": total / games if games else 0.0,
    }
