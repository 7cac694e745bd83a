"""
Kitchen Defense - Test Configuration and Fixtures
Shared test utilities and fixtures for pytest.
"""
import pytest
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from kitchen_defense.core.combatant import ActorState
from kitchen_defense.core.game_engine import GameEngine, TurnPhase
from kitchen_defense.core.rules_config import GameRules, reset_rules_config


# Deployment used by deployed_engine: Potato next to Pork on the west side
# of the base, Chili next to Tomato on the east side.
DEPLOYMENT = {
    "h1": (4, 5),  # Potato
    "h2": (4, 6),  # Pork Scrap
    "h3": (7, 5),  # Chili Pepper
    "h4": (7, 6),  # Tomato
}


# ==================== Rules Fixtures ====================

@pytest.fixture(autouse=True)
def standard_rules():
    """Every test starts from the default rules."""
    reset_rules_config()
    yield
    reset_rules_config()


@pytest.fixture
def rules() -> GameRules:
    return GameRules()


# ==================== Engine Fixtures ====================

@pytest.fixture
def engine(rules) -> GameEngine:
    """Fresh level with the real wave schedule."""
    return GameEngine(rules=rules)


@pytest.fixture
def quiet_engine(rules) -> GameEngine:
    """Fresh level with no scheduled spawns."""
    return GameEngine(rules=rules, wave_schedule={})


@pytest.fixture
def deployed_engine(quiet_engine) -> GameEngine:
    """Quiet level after a regular deployment, on turn 1 in PLAYER_MAIN."""
    for unit_id, point in DEPLOYMENT.items():
        result = quiet_engine.place_unit(unit_id, point)
        assert result.success, result.description
    assert quiet_engine.phase == TurnPhase.PLAYER_MAIN
    return quiet_engine


@pytest.fixture
def battle_engine(quiet_engine) -> GameEngine:
    """Quiet level forced into PLAYER_MAIN with nothing deployed."""
    quiet_engine.turn_counter = 1
    quiet_engine.phase = TurnPhase.PLAYER_MAIN
    return quiet_engine


# ==================== Board Helpers ====================

@pytest.fixture
def put_unit():
    """Put a roster unit straight onto the board, bypassing placement rules."""
    def _put(engine, unit_id, point, state=ActorState.IDLE):
        unit = engine.entities[unit_id]
        engine.board.set_occupant(point, unit_id)
        unit.position = point
        unit.state = state
        return unit
    return _put


@pytest.fixture
def spawn_enemy():
    """Spawn an enemy through the level's spawner."""
    def _spawn(engine, archetype, point):
        mob = engine.spawner.spawn(archetype, point)
        assert mob is not None
        return mob
    return _spawn


def assert_board_consistent(engine):
    """Every occupied cell and every positioned combatant agree."""
    for cell in engine.board.iter_cells():
        if cell.occupied_by is None:
            continue
        occupant = engine.entities.get(cell.occupied_by)
        assert occupant is not None, f"ghost occupant at {cell.position}"
        if occupant.is_base:
            assert cell.is_base
        else:
            assert occupant.position == cell.position

    for combatant in engine.entities.values():
        if combatant.is_base:
            continue
        if combatant.position is not None:
            assert combatant.state in (ActorState.IDLE, ActorState.MOVED, ActorState.ACTIONED)
            assert engine.board.get_occupant(combatant.position) == combatant.id
        else:
            assert combatant.state in (ActorState.BENCHED, ActorState.DEAD)


@pytest.fixture
def check_board():
    return assert_board_consistent


# ==================== Pytest Configuration ====================

def pytest_configure(config):
    """Configure custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")
    config.addinivalue_line("markers", "combat: Combat system tests")
    config.addinivalue_line("markers", "recipes: Recipe system tests")
