#!/usr/bin/env python3
"""
Benchmark self-play training across seeds.

For each seed a fresh agent is trained, then played greedily against a
uniformly random opponent from both seats. Reports mean +/- 95% CI.
"""
from __future__ import annotations

import argparse
import logging
import math
import statistics as stats
import time
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np

from tictactoe_ai.agent import QLearningAgent
from tictactoe_ai.session import GameSession
from tictactoe_ai.tracking import log_metrics, log_params, maybe_mlflow_run
from tictactoe_ai.training import TrainArgs, evaluate_vs_random, train_iter


def ci95(values: List[float]) -> Tuple[float, float]:
    if not values:
        return (float("nan"), float("nan"))
    m = stats.fmean(values)
    s = stats.pstdev(values) if len(values) > 1 else 0.0
    z = 1.96
    half = z * (s / math.sqrt(len(values)))
    return m, half


@dataclass
class Config:
    seeds: int = 10
    games: int = 1000
    eval_games: int = 500
    tracking: str = "none"  # or "mlflow"
    log_dir: Path = Path("runs")


def main() -> int:
    p = argparse.ArgumentParser(description=__doc__)
    p.add_argument("--seeds", type=int, default=Config.seeds)
    p.add_argument("--games", type=int, default=Config.games)
    p.add_argument("--eval-games", type=int, default=Config.eval_games)
    p.add_argument("--tracking", choices=["none", "mlflow"], default="none")
    ns = p.parse_args()
    cfg = Config(seeds=ns.seeds, games=ns.games, eval_games=ns.eval_games, tracking=ns.tracking)
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

    with maybe_mlflow_run(cfg.tracking == "mlflow", run_name="benchmarks", log_dir=cfg.log_dir):
        log_params({"seeds": cfg.seeds, "games": cfg.games, "eval_games": cfg.eval_games})
        train_times: List[float] = []
        first: List[float] = []
        second: List[float] = []
        for seed in range(cfg.seeds):
            session = GameSession(QLearningAgent(rng=np.random.default_rng(seed)))
            t0 = time.perf_counter()
            for _ in train_iter(session, TrainArgs(games=cfg.games)):
                pass
            train_times.append(time.perf_counter() - t0)
            first.append(evaluate_vs_random(session.agent, cfg.eval_games, seed=seed, agent_first=True)["mean_reward"])
            second.append(evaluate_vs_random(session.agent, cfg.eval_games, seed=seed)["mean_reward"])
        m_train, h_train = ci95(train_times)
        m_first, h_first = ci95(first)
        m_second, h_second = ci95(second)
        log_metrics({
            "train_mean_s": m_train,
            "train_ci95_half_s": h_train,
            "reward_first_mean": m_first,
            "reward_first_ci95_half": h_first,
            "reward_second_mean": m_second,
            "reward_second_ci95_half": h_second,
        })
    logging.info("training (%d games): mean=%.3fs ± %.3fs (95%% CI)", cfg.games, m_train, h_train)
    logging.info("reward vs random, agent first:  %.3f ± %.3f", m_first, h_first)
    logging.info("reward vs random, agent second: %.3f ± %.3f", m_second, h_second)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
