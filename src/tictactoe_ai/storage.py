"""
Key-value persistence for the agent and the session statistics.

Two independent keys are used, one JSON blob each:
- ``tictactoe_ai``: value table entries, learning parameters and difficulty;
- ``tictactoe_stats``: games played and win/draw counters.
Loading validates the blob shape first; any failure is logged and reported
to the caller without modifying in-memory state.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from .agent import QLearningAgent

AGENT_KEY = "tictactoe_ai"
STATS_KEY = "tictactoe_stats"


@dataclass
class EpisodeStats:
    played: int = 0
    ai_wins: int = 0
    player_wins: int = 0
    draws: int = 0

    @property
    def win_rate(self) -> float:
        """Percentage of played games won by the agent."""
        return self.ai_wins / self.played * 100 if self.played else 0.0

    def to_dict(self) -> Dict[str, int]:
        return {
            "played": self.played,
            "aiWins": self.ai_wins,
            "playerWins": self.player_wins,
            "draws": self.draws,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "EpisodeStats":
        if not isinstance(data, dict):
            raise ValueError("stats blob must be an object")
        values = {}
        for field, key in (("played", "played"), ("ai_wins", "aiWins"),
                           ("player_wins", "playerWins"), ("draws", "draws")):
            v = data[key]
            if not isinstance(v, int) or isinstance(v, bool) or v < 0:
                raise ValueError(f"{key} must be a non-negative integer, got {v!r}")
            values[field] = v
        return cls(**values)


class KeyValueStore:
    """Minimal string key-value store interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def put(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    def __init__(self) -> None:
        self.data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def put(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonDirectoryStore(KeyValueStore):
    """One ``<key>.json`` file per key under ``root``."""

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def put(self, key: str, value: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        try:
            tmp.write_text(value, encoding="utf-8")
            os.replace(tmp, path)
        except OSError:
            tmp.unlink(missing_ok=True)
            raise

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


def save_agent(store: KeyValueStore, agent: QLearningAgent) -> None:
    store.put(AGENT_KEY, json.dumps(agent.to_dict()))


def load_agent(store: KeyValueStore, agent: QLearningAgent) -> bool:
    try:
        raw = store.get(AGENT_KEY)
        if not raw:
            return False
        data = json.loads(raw)
    except (OSError, UnicodeDecodeError, ValueError) as e:
        logging.error("Failed to load AI state: %s", e)
        return False
    return agent.load_dict(data)


def save_stats(store: KeyValueStore, stats: EpisodeStats) -> None:
    store.put(STATS_KEY, json.dumps(stats.to_dict()))


def load_stats(store: KeyValueStore) -> Optional[EpisodeStats]:
    try:
        raw = store.get(STATS_KEY)
        if not raw:
            return None
        return EpisodeStats.from_dict(json.loads(raw))
    except (OSError, UnicodeDecodeError, KeyError, ValueError) as e:
        logging.error("Failed to load session stats: %s", e)
        return None


def clear_storage(store: KeyValueStore) -> None:
    store.delete(AGENT_KEY)
    store.delete(STATS_KEY)
