"""Where the agent and session statistics are persisted.

``TTT_STATE_DIR`` names the directory directly; without it the state lives
in ``.tictactoe/`` under the repository root (see ``repo_root``).
"""

from __future__ import annotations

import os
from pathlib import Path


def _find_git_root(start: Path) -> Path | None:
    """Closest of ``start`` and its first four ancestors holding a ``.git`` entry."""
    for candidate in (start, *start.parents[:4]):
        if (candidate / ".git").exists():
            return candidate
    return None


def repo_root() -> Path:
    """Directory the default state dir hangs off.

    ``TTT_REPO_ROOT`` wins; otherwise the checkout this package was loaded
    from, so an editable install keeps its state beside the sources. An
    installed copy has no checkout above it and falls back to the CWD.
    """
    override = os.getenv("TTT_REPO_ROOT")
    if override:
        return Path(override)
    return _find_git_root(Path(__file__).resolve()) or Path.cwd()


def state_dir() -> Path:
    p = os.getenv("TTT_STATE_DIR")
    return Path(p) if p else repo_root() / ".tictactoe"


def ensure_state_dir() -> Path:
    d = state_dir()
    d.mkdir(parents=True, exist_ok=True)
    return d
