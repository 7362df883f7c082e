"""
Shared pytest fixtures for kzmap tests.

Game state fixtures are function-scoped; playout helpers are deterministic
(seeded) so every property test sees the same reachable positions.
"""

from pathlib import Path
import random
import sys
from typing import Callable, List

import pytest

# Ensure the repository root is on sys.path so `import kzmap` works when
# running pytest without installing the package.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from kzmap import config as kzmap_config
from kzmap.games import Game
from kzmap.games.base import GameState
from kzmap.games.trictrac import TrictracState


def play_random(state: GameState, action, rng: random.Random) -> GameState:
    """Apply ``action``, drawing dice from ``rng`` for Trictrac rolls."""
    if isinstance(state, TrictracState) and action.kind == "roll":
        return state.play(action, dice=(rng.randint(1, 6), rng.randint(1, 6)))
    return state.play(action)


def random_playout(game: str, seed: int = 0, max_plies: int = 40) -> List[GameState]:
    """States visited by a seeded random game, start position included."""
    rng = random.Random(seed)
    state = Game.parse(game).start_state()
    states = [state]
    for _ in range(max_plies):
        actions = state.legal_actions()
        if not actions:
            break
        state = play_random(state, rng.choice(actions), rng)
        states.append(state)
    return states


@pytest.fixture(autouse=True)
def _reset_process_config():
    """Every test starts without a process-wide mapping configuration."""
    kzmap_config.reset_config()
    yield
    kzmap_config.reset_config()


@pytest.fixture
def playout_factory() -> Callable[..., List[GameState]]:
    """Factory returning the states of a seeded random playout."""
    return random_playout


@pytest.fixture
def reachable_states() -> Callable[[str], List[GameState]]:
    """Non-terminal states from several seeded playouts of one game."""

    def _collect(game: str, seeds=(0, 1, 2), max_plies: int = 40) -> List[GameState]:
        states = []
        for seed in seeds:
            states.extend(
                s for s in random_playout(game, seed=seed, max_plies=max_plies)
                if not s.is_terminal()
            )
        assert states, f"no non-terminal {game} states reached"
        return states

    return _collect
