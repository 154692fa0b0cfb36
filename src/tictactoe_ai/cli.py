from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from .agent import Difficulty, QLearningAgent
from .game_basics import is_terminal, is_valid_state, mark_to_move, render_board
from .paths import ensure_state_dir
from .session import GameSession
from .solver import solve_state
from .storage import JsonDirectoryStore
from .training import TrainArgs, evaluate_vs_random, run_training

BOARD_CHARS = "-XO"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="ttt-ai", description="Tic-tac-toe against a learning AI")
    sub = p.add_subparsers(dest="cmd")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    p.add_argument("--version", action="store_true", help="Print version and exit")
    p.add_argument("--seed", type=int, default=None, help="Seed for the agent's random number generator")
    p.add_argument(
        "--state-dir",
        type=Path,
        default=None,
        help="Directory holding the saved AI state (default: $TTT_STATE_DIR or <repo>/.tictactoe)",
    )

    p_play = sub.add_parser("play", help="Play a game in the terminal (you are X and move first)")
    p_play.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=None)

    p_train = sub.add_parser("train", help="Train the AI through self-play")
    p_train.add_argument("--games", type=int, default=1000, help="Number of self-play games (default: 1000)")
    p_train.add_argument("--yield-every", type=int, default=50, help="Report progress every N games")
    p_train.add_argument(
        "--tracking",
        choices=["none", "mlflow"],
        default="none",
        help="Experiment tracking backend",
    )
    p_train.add_argument(
        "--log-dir",
        type=Path,
        default=Path("runs"),
        help="Directory for tracking logs (for mlflow local backend)",
    )

    p_eval = sub.add_parser("evaluate", help="Play the AI greedily against a random opponent")
    p_eval.add_argument("--games", type=int, default=200)
    p_eval.add_argument("--agent-first", action="store_true", help="Let the AI move first (as X)")

    p_sol = sub.add_parser("solve", help="Minimax value and best move for the side to move")
    p_sol.add_argument("--board", required=True, help="Board string of -/X/O, e.g. X---O----")

    sub.add_parser("stats", help="Show game statistics and learning parameters")

    p_set = sub.add_parser("set", help="Override learning parameters")
    p_set.add_argument("--learning-rate", type=float, default=None)
    p_set.add_argument("--discount-factor", type=float, default=None)
    p_set.add_argument("--exploration-rate", type=float, default=None)
    p_set.add_argument("--difficulty", choices=[d.value for d in Difficulty], default=None)

    sub.add_parser("reset", help="Forget everything the AI learned and clear statistics")

    return p


def _open_session(ns: argparse.Namespace) -> GameSession:
    root = ns.state_dir if ns.state_dir is not None else ensure_state_dir()
    agent = QLearningAgent(rng=np.random.default_rng(ns.seed))
    session = GameSession(agent, JsonDirectoryStore(root))
    session.load()
    return session


def _parse_board(raw: str) -> Optional[str]:
    raw = raw.strip().upper()
    if len(raw) != 9 or any(c not in BOARD_CHARS for c in raw):
        logging.error("Invalid board string. Must be 9 chars of -/X/O.")
        return None
    if not is_valid_state(raw):
        logging.error("Board is not a valid reachable state.")
        return None
    return raw


def _play(session: GameSession) -> int:
    session.new_game()
    print(render_board(session.board))
    while not session.game_over:
        try:
            line = input("Your move (0-8, q to quit): ").strip()
        except EOFError:
            return 0
        if line.lower() == "q":
            return 0
        if not line.isdigit() or not session.human_move(int(line)):
            print("Invalid move! Try again.")
            continue
        if not session.game_over:
            action = session.agent_move()
            print(f"AI plays: {action}")
        print(render_board(session.board))
    winner = session.result.winner if session.result else "draw"
    if winner == "X":
        print("You win!")
    elif winner == "O":
        print("AI wins!")
    else:
        print("Draw!")
    return 0


def _log_stats(session: GameSession) -> None:
    s, a = session.stats, session.agent
    logging.info(
        "played=%d ai_wins=%d player_wins=%d draws=%d win_rate=%.1f%% states_learned=%d",
        s.played, s.ai_wins, s.player_wins, s.draws, s.win_rate, a.states_learned,
    )
    logging.info(
        "learning_rate=%.2f discount_factor=%.2f exploration_rate=%.2f difficulty=%s",
        a.learning_rate, a.discount_factor, a.exploration_rate, a.difficulty.value,
    )


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    ns = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if getattr(ns, "verbose", False) else logging.INFO,
                        format="[%(levelname)s] %(message)s")

    if getattr(ns, "version", False):
        try:
            from importlib.metadata import version as _ver

            print(_ver("tictactoe-ai"))
        except Exception:
            print("unknown")
        return 0

    if ns.cmd == "solve":
        board = _parse_board(ns.board)
        if board is None:
            return 2
        if is_terminal(board):
            logging.error("Board is already finished.")
            return 2
        res = solve_state(board, me=mark_to_move(board))
        logging.info(
            "to_move=%s value=%s best=%s scores=%s",
            mark_to_move(board),
            res['value'],
            res['best_action'],
            list(res['scores']),
        )
        return 0

    if ns.cmd is None:
        parser.print_help()
        return 0

    session = _open_session(ns)

    if ns.cmd == "play":
        if ns.difficulty is not None:
            session.agent.set_parameters(difficulty=ns.difficulty)
        return _play(session)

    if ns.cmd == "train":
        if ns.games < 0 or ns.yield_every < 1:
            logging.error("--games must be >= 0 and --yield-every >= 1")
            return 2
        summary = run_training(session, TrainArgs(
            games=ns.games,
            yield_every=ns.yield_every,
            seed=ns.seed,
            tracking=ns.tracking,
            log_dir=ns.log_dir,
            verbose=ns.verbose,
        ))
        logging.info("states_learned=%d", summary["states_learned"])
        return 0

    if ns.cmd == "evaluate":
        res = evaluate_vs_random(session.agent, games=ns.games, seed=ns.seed, agent_first=ns.agent_first)
        logging.info(
            "games=%d wins=%d losses=%d draws=%d mean_reward=%.3f",
            res["games"], res["wins"], res["losses"], res["draws"], res["mean_reward"],
        )
        return 0

    if ns.cmd == "stats":
        _log_stats(session)
        return 0

    if ns.cmd == "set":
        try:
            session.agent.set_parameters(
                learning_rate=ns.learning_rate,
                discount_factor=ns.discount_factor,
                exploration_rate=ns.exploration_rate,
                difficulty=ns.difficulty,
            )
        except ValueError as e:
            logging.error("%s", e)
            return 2
        session.save()
        _log_stats(session)
        return 0

    if ns.cmd == "reset":
        session.reset_agent()
        logging.info("AI memory reset!")
        return 0

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
