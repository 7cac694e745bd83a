"""Tests for reachability and targeting queries."""
from kitchen_defense.core.combatant import Faction
from kitchen_defense.core.grid import BASE_POINTS, manhattan_distance


class TestValidMovePoints:
    """Breadth-first move reachability."""

    def test_open_field(self, battle_engine):
        """Range 1 on open ground reaches the four neighbours."""
        points = battle_engine.pathfinder.get_valid_move_points((2, 2), 1, Faction.PLAYER)
        assert points == [(2, 3), (3, 2), (2, 1), (1, 2)]

    def test_start_excluded(self, battle_engine):
        points = battle_engine.pathfinder.get_valid_move_points((2, 2), 2, Faction.PLAYER)
        assert (2, 2) not in points
        assert all(manhattan_distance((2, 2), p) <= 2 for p in points)

    def test_base_blocks(self, battle_engine):
        """Base cells are never destinations and cannot be crossed."""
        points = battle_engine.pathfinder.get_valid_move_points((4, 5), 3, Faction.PLAYER)
        assert not set(points) & set(BASE_POINTS)
        # (7, 5) is 3 steps away only straight through the base
        assert (7, 5) not in points

    def test_ally_passable_not_endable(self, battle_engine, put_unit):
        """Allies can be walked through but not stood on."""
        put_unit(battle_engine, "h1", (0, 0))
        put_unit(battle_engine, "h2", (0, 1))

        points = battle_engine.pathfinder.get_valid_move_points((0, 0), 2, Faction.PLAYER)

        assert (0, 1) not in points
        assert (0, 2) in points

    def test_hostile_blocks(self, battle_engine, put_unit, spawn_enemy):
        """Enemies cannot be walked through."""
        put_unit(battle_engine, "h1", (0, 0))
        spawn_enemy(battle_engine, "Slime", (0, 1))

        points = battle_engine.pathfinder.get_valid_move_points((0, 0), 2, Faction.PLAYER)

        assert (0, 1) not in points
        assert (0, 2) not in points
        assert (1, 1) in points


class TestAttackTargets:
    """Attack target queries."""

    def test_enemy_in_range(self, battle_engine, put_unit, spawn_enemy):
        potato = put_unit(battle_engine, "h1", (2, 2))
        near = spawn_enemy(battle_engine, "Slime", (2, 1))
        spawn_enemy(battle_engine, "Slime", (2, 0))

        targets = battle_engine.pathfinder.get_valid_attack_targets(potato)

        assert [t.id for t in targets] == [near.id]

    def test_allies_not_targets(self, battle_engine, put_unit):
        potato = put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        assert battle_engine.pathfinder.get_valid_attack_targets(potato) == []

    def test_base_is_target_for_enemies(self, battle_engine, spawn_enemy):
        """An enemy next to any base cell can hit the base, listed once."""
        slime = spawn_enemy(battle_engine, "Slime", (5, 4))

        targets = battle_engine.pathfinder.get_valid_attack_targets(slime)

        assert [t.id for t in targets] == ["base_01"]

    def test_fallen_base_not_target(self, battle_engine, spawn_enemy):
        slime = spawn_enemy(battle_engine, "Slime", (5, 4))
        battle_engine.base.stats.hp = 0
        assert battle_engine.pathfinder.get_valid_attack_targets(slime) == []

    def test_base_attacks_from_anchor(self, battle_engine, spawn_enemy):
        """The base measures its range from its anchor cell (5,5) only."""
        near = spawn_enemy(battle_engine, "Slime", (7, 5))
        spawn_enemy(battle_engine, "Slime", (7, 7))
        spawn_enemy(battle_engine, "Slime", (8, 6))
        targets = battle_engine.pathfinder.get_valid_attack_targets(battle_engine.base)
        assert [t.id for t in targets] == [near.id]


class TestDistanceToTarget:

    def test_base_nearest_cell(self, battle_engine):
        """Distance to the base is to its closest cell."""
        distance = battle_engine.pathfinder.distance_to_target((5, 10), battle_engine.base)
        assert distance == 4

    def test_unit_distance(self, battle_engine, put_unit):
        potato = put_unit(battle_engine, "h1", (1, 1))
        assert battle_engine.pathfinder.distance_to_target((4, 5), potato) == 7
