import json
from pathlib import Path

import numpy as np
import pytest

from tictactoe_ai.agent import Difficulty, QLearningAgent
from tictactoe_ai.storage import (
    AGENT_KEY,
    STATS_KEY,
    EpisodeStats,
    JsonDirectoryStore,
    MemoryStore,
    clear_storage,
    load_agent,
    load_stats,
    save_agent,
    save_stats,
)


@pytest.fixture(params=["memory", "directory"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        return MemoryStore()
    return JsonDirectoryStore(tmp_path / "state")


def _trained_agent() -> QLearningAgent:
    agent = QLearningAgent(learning_rate=0.25, discount_factor=0.75, exploration_rate=0.02,
                           difficulty=Difficulty.EXPERT, rng=np.random.default_rng(3))
    agent.get_q("---------")[4] = 0.125
    agent.get_q("X---O----")[8] = -0.375
    return agent


def test_agent_round_trip(store):
    agent = _trained_agent()
    save_agent(store, agent)
    restored = QLearningAgent()
    assert load_agent(store, restored) is True
    assert restored.q == agent.q
    assert (restored.learning_rate, restored.discount_factor, restored.exploration_rate) == (0.25, 0.75, 0.02)
    assert restored.difficulty is Difficulty.EXPERT


def test_blob_uses_documented_field_names(store):
    save_agent(store, _trained_agent())
    blob = json.loads(store.get(AGENT_KEY))
    assert set(blob) == {"entries", "learningRate", "discountFactor", "explorationRate", "difficulty"}
    assert ["---------", [0, 0, 0, 0, 0.125, 0, 0, 0, 0]] in blob["entries"]


def test_missing_agent_blob_reports_not_loaded(store):
    assert load_agent(store, QLearningAgent()) is False
    assert load_stats(store) is None


def test_corrupted_agent_blob_keeps_fresh_defaults(store):
    store.put(AGENT_KEY, "{not json")
    agent = QLearningAgent()
    assert load_agent(store, agent) is False
    assert agent.q == {} and agent.exploration_rate == 0.1 and agent.learning_rate == 0.1


def test_corrupted_blob_does_not_partially_overwrite(store):
    agent = _trained_agent()
    store.put(AGENT_KEY, json.dumps({"entries": [["---------", [1.0] * 9]], "learningRate": 0.9,
                                     "discountFactor": "x", "explorationRate": 0.5}))
    assert load_agent(store, agent) is False
    assert agent.get_q("---------")[0] == 0.0
    assert agent.learning_rate == 0.25


def test_stats_round_trip(store):
    stats = EpisodeStats(played=10, ai_wins=4, player_wins=3, draws=3)
    save_stats(store, stats)
    assert json.loads(store.get(STATS_KEY)) == {"played": 10, "aiWins": 4, "playerWins": 3, "draws": 3}
    assert load_stats(store) == stats


@pytest.mark.parametrize("raw", ["[]", "{}", '{"played": 1, "aiWins": 0, "playerWins": 0}',
                                 '{"played": -1, "aiWins": 0, "playerWins": 0, "draws": 0}',
                                 '{"played": 1.5, "aiWins": 0, "playerWins": 0, "draws": 0}',
                                 "garbage"])
def test_corrupted_stats_blob(store, raw):
    store.put(STATS_KEY, raw)
    assert load_stats(store) is None


def test_clear_storage_removes_both_keys(store):
    save_agent(store, _trained_agent())
    save_stats(store, EpisodeStats(played=1, draws=1))
    clear_storage(store)
    assert store.get(AGENT_KEY) is None
    assert store.get(STATS_KEY) is None
    clear_storage(store)  # idempotent


def test_directory_store_writes_one_file_per_key(tmp_path: Path):
    store = JsonDirectoryStore(tmp_path / "nested" / "dir")
    save_stats(store, EpisodeStats())
    assert (tmp_path / "nested" / "dir" / "tictactoe_stats.json").exists()
    assert not list((tmp_path / "nested" / "dir").glob("*.tmp"))


def test_win_rate():
    assert EpisodeStats().win_rate == 0.0
    assert EpisodeStats(played=4, ai_wins=1, draws=3).win_rate == pytest.approx(25.0)


@pytest.mark.parametrize("key", [AGENT_KEY, STATS_KEY])
def test_undecodable_file_is_reported_not_raised(tmp_path: Path, key):
    (tmp_path / f"{key}.json").write_bytes(b"\xff\xfe garbage")
    store = JsonDirectoryStore(tmp_path)
    agent = QLearningAgent()
    assert load_agent(store, agent) is False
    assert load_stats(store) is None
    assert agent.q == {} and agent.learning_rate == 0.1


def test_session_load_survives_undecodable_agent_file(tmp_path: Path):
    from tictactoe_ai.session import GameSession

    (tmp_path / "tictactoe_ai.json").write_bytes(b"\xff\xfe garbage")
    s = GameSession(QLearningAgent(), JsonDirectoryStore(tmp_path))
    assert s.load() is False
    assert s.agent.q == {} and s.stats == EpisodeStats()


@pytest.mark.parametrize("blob", [
    {"entries": [["---------", [10 ** 400] + [0] * 8]], "learningRate": 0.1,
     "discountFactor": 0.9, "explorationRate": 0.1},
    {"entries": [], "learningRate": 10 ** 400, "discountFactor": 0.9, "explorationRate": 0.1},
])
def test_oversized_integers_are_rejected(store, blob):
    store.put(AGENT_KEY, json.dumps(blob))
    agent = QLearningAgent()
    assert load_agent(store, agent) is False
    assert agent.q == {} and agent.learning_rate == 0.1


def test_failed_replace_leaves_no_temp_file(tmp_path: Path, monkeypatch):
    import tictactoe_ai.storage as S

    def boom(src, dst):
        raise OSError("disk full")

    store = JsonDirectoryStore(tmp_path)
    monkeypatch.setattr(S.os, "replace", boom)
    with pytest.raises(OSError):
        save_stats(store, EpisodeStats(played=1, draws=1))
    assert not list(tmp_path.glob("*.tmp"))
    assert not (tmp_path / "tictactoe_stats.json").exists()
