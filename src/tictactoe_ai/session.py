"""
Game session: the board, statistics and flags of one human-vs-agent table.

The session is owned by the caller (CLI, tests, training loop) and drives the
agent; the agent itself never sees the session.
"""
from __future__ import annotations

import logging
from typing import Optional

from .agent import QLearningAgent
from .game_basics import (
    AGENT_MARK,
    EMPTY,
    PLAYER_MARK,
    WinResult,
    available_cells,
    check_winner,
    empty_board,
    place,
)
from .storage import (
    EpisodeStats,
    KeyValueStore,
    clear_storage,
    load_agent,
    load_stats,
    save_agent,
    save_stats,
)


def reward_for(result: Optional[WinResult], mark: str) -> float:
    """+1 if ``mark`` won, -1 if the other side won, 0 for a draw or an unfinished game."""
    if result is None or result.line is None:
        return 0.0
    return 1.0 if result.winner == mark else -1.0


class GameSession:
    def __init__(self, agent: Optional[QLearningAgent] = None, store: Optional[KeyValueStore] = None):
        self.agent = agent if agent is not None else QLearningAgent()
        self.store = store
        self.stats = EpisodeStats()
        self.board = empty_board()
        self.result: Optional[WinResult] = None
        self.game_over = False
        self.training = False

    def new_game(self) -> None:
        self.board = empty_board()
        self.result = None
        self.game_over = False

    def move(self, idx: int, mark: str) -> bool:
        if self.game_over or not 0 <= idx < 9 or self.board[idx] != EMPTY:
            return False
        self.board = place(self.board, idx, mark)
        self._check_game_over()
        return True

    def _check_game_over(self) -> None:
        result = check_winner(self.board)
        if result is None:
            return
        self.result = result
        self.game_over = True
        self.stats.played += 1
        if result.winner == PLAYER_MARK:
            self.stats.player_wins += 1
        elif result.winner == AGENT_MARK:
            self.stats.ai_wins += 1
        else:
            self.stats.draws += 1
        if not self.training:
            logging.info("Game over: %s", result.winner)

    def human_move(self, idx: int) -> bool:
        """Place the human's mark; refused while training, after game over or on a taken cell."""
        if self.training:
            return False
        ok = self.move(idx, PLAYER_MARK)
        if ok and self.game_over:
            self.save()
        return ok

    def agent_move(self) -> Optional[int]:
        if self.game_over:
            return None
        state = self.board
        action = self.agent.select_action(state, available_cells(state))
        self.move(action, AGENT_MARK)
        reward = reward_for(self.result, AGENT_MARK)
        self.agent.record_transition(state, action, reward, self.board, available_cells(self.board))
        logging.debug("agent played %d in %s (reward=%s)", action, state, reward)
        if not self.training:
            self.save()
        return action

    def play_turn(self, idx: int) -> Optional[int]:
        """Human move followed by the agent's reply; returns the reply cell if any."""
        if not self.human_move(idx):
            return None
        return self.agent_move()

    def reset_agent(self) -> None:
        self.agent.reset()
        self.stats = EpisodeStats()
        if self.store is not None:
            clear_storage(self.store)
        self.new_game()

    def save(self) -> None:
        if self.store is None:
            return
        save_agent(self.store, self.agent)
        save_stats(self.store, self.stats)

    def load(self) -> bool:
        if self.store is None or not load_agent(self.store, self.agent):
            return False
        stats = load_stats(self.store)
        if stats is not None:
            self.stats = stats
        logging.info("Loaded AI state (%d states learned)", self.agent.states_learned)
        return True
