"""Tests for recipe discovery, validation and execution."""
import pytest

from kitchen_defense.core.combatant import ActorState
from kitchen_defense.core.errors import ErrorCode, UnknownRecipeError
from kitchen_defense.core.game_engine import GameEngine, TurnPhase
from kitchen_defense.core.recipes import get_recipe, load_recipes
from kitchen_defense.core.status_effects import StatusEffectType

pytestmark = pytest.mark.recipes


def match_for(matches, recipe_id):
    return next(m for m in matches if m.recipe.id == recipe_id)


class TestCatalog:

    def test_three_recipes(self):
        assert [r.id for r in load_recipes()] == ["RECIPE_01", "RECIPE_02", "RECIPE_03"]

    def test_get_recipe(self):
        stew = get_recipe("RECIPE_01")
        assert stew.name == "Potato Stew"
        assert stew.heat_cost == 40
        assert stew.effect.kind == "area_damage"

    def test_unknown_recipe(self):
        with pytest.raises(UnknownRecipeError):
            get_recipe("RECIPE_99")


class TestDiscovery:
    """get_available_recipes."""

    def test_available_pair(self, battle_engine, put_unit):
        """Adjacent Potato and Pork with enough heat can cook a stew."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        battle_engine.heat = 40

        stew = match_for(battle_engine.recipe_engine.get_available_recipes(potato), "RECIPE_01")

        assert stew.is_available
        assert [p.id for p in stew.participants] == ["h1", "h2"]
        assert stew.missing == []

    def test_not_enough_heat(self, battle_engine, put_unit):
        """Heat 35 against cost 40 only adds the heat reason."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        battle_engine.heat = 35

        stew = match_for(battle_engine.recipe_engine.get_available_recipes(potato), "RECIPE_01")

        assert not stew.is_available
        assert stew.missing == ["Not enough heat (requires 40)"]
        assert [p.id for p in stew.participants] == ["h1", "h2"]

    def test_missing_ingredient(self, battle_engine, put_unit):
        potato = put_unit(battle_engine, "h1", (2, 2))
        battle_engine.heat = 100

        stew = match_for(battle_engine.recipe_engine.get_available_recipes(potato), "RECIPE_01")

        assert stew.missing == ["Missing adjacent: Pork Scrap"]
        assert [p.id for p in stew.participants] == ["h1"]

    def test_only_recipes_with_initiator_archetype(self, battle_engine, put_unit):
        pork = put_unit(battle_engine, "h2", (2, 2))
        potato = put_unit(battle_engine, "h1", (8, 8))

        pork_ids = [m.recipe.id for m in battle_engine.recipe_engine.get_available_recipes(pork)]
        potato_ids = [m.recipe.id for m in battle_engine.recipe_engine.get_available_recipes(potato)]

        assert pork_ids == ["RECIPE_01", "RECIPE_02"]
        assert potato_ids == ["RECIPE_01", "RECIPE_03"]

    def test_benched_initiator(self, battle_engine):
        """A unit off the board has no recipes."""
        potato = battle_engine.entities["h1"]
        assert battle_engine.recipe_engine.get_available_recipes(potato) == []

    def test_base_cannot_initiate(self, battle_engine):
        assert battle_engine.recipe_engine.get_available_recipes(battle_engine.base) == []

    def test_chain_discovered_through_middle(self, battle_engine, put_unit):
        """Tomato finds Potato through Chili in a straight chain."""
        tomato = put_unit(battle_engine, "h4", (2, 2))
        put_unit(battle_engine, "h3", (2, 3))
        put_unit(battle_engine, "h1", (2, 4))
        battle_engine.heat = 100

        hotpot = match_for(battle_engine.recipe_engine.get_available_recipes(tomato), "RECIPE_03")

        assert hotpot.is_available
        assert [p.id for p in hotpot.participants] == ["h4", "h3", "h1"]

    def test_enemy_breaks_the_chain(self, battle_engine, put_unit, spawn_enemy):
        """A unit reachable only through an enemy is not a candidate."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        spawn_enemy(battle_engine, "Slime", (2, 3))
        put_unit(battle_engine, "h2", (2, 4))
        battle_engine.heat = 100

        stew = match_for(battle_engine.recipe_engine.get_available_recipes(potato), "RECIPE_01")

        assert stew.missing == ["Missing adjacent: Pork Scrap"]

    def test_bystander_does_not_connect(self, battle_engine, put_unit):
        """Participants separated by a non-participant fail strict connectivity."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h4", (2, 3))
        put_unit(battle_engine, "h2", (2, 4))
        battle_engine.heat = 100

        stew = match_for(battle_engine.recipe_engine.get_available_recipes(potato), "RECIPE_01")

        assert not stew.is_available
        assert stew.missing == ["Participants are not orthogonally connected"]

    def test_idempotent(self, battle_engine, put_unit):
        """Asking twice without changes gives the same answer."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        put_unit(battle_engine, "h4", (3, 2))
        battle_engine.heat = 45

        first = [m.to_dict() for m in battle_engine.recipe_engine.get_available_recipes(potato)]
        second = [m.to_dict() for m in battle_engine.recipe_engine.get_available_recipes(potato)]

        assert first == second
        assert battle_engine.heat == 45


class TestTargetingPreview:

    def test_square_area(self, battle_engine):
        stew = get_recipe("RECIPE_01")
        area = battle_engine.recipe_engine.get_area_points(stew, (0, 0))
        assert sorted(area) == [(0, 0), (0, 1), (1, 0), (1, 1)]

    def test_diamond_area(self, battle_engine):
        hotpot = get_recipe("RECIPE_03")
        area = battle_engine.recipe_engine.get_area_points(hotpot, (2, 2))
        assert len(area) == 13
        assert (4, 2) in area
        assert (3, 3) in area
        assert (4, 3) not in area

    def test_single_target_area(self, battle_engine):
        chili_pork = get_recipe("RECIPE_02")
        assert battle_engine.recipe_engine.get_area_points(chili_pork, (3, 3)) == [(3, 3)]

    def test_valid_target_points_range_zero(self, battle_engine, put_unit):
        """A zero cast range can only aim at a participant's own cell."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        pork = put_unit(battle_engine, "h2", (2, 3))

        points = battle_engine.recipe_engine.get_valid_target_points(get_recipe("RECIPE_01"), [potato, pork])

        assert points == [(2, 2), (2, 3)]


class TestExecution:
    """execute_recipe and trigger_recipe."""

    def test_potato_stew(self, battle_engine, put_unit, spawn_enemy):
        """Pooled physical damage kills the slime and slows the siege."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        pork = put_unit(battle_engine, "h2", (2, 3))
        slime = spawn_enemy(battle_engine, "Slime", (3, 1))
        siege = spawn_enemy(battle_engine, "Siege", (1, 3))
        battle_engine.heat = 100

        result = battle_engine.trigger_recipe("h1", "RECIPE_01", (2, 2))

        assert result.success
        assert result.extra_data["damage_by_target"] == {slime.id: 84, siege.id: 24}
        assert slime.id not in battle_engine.entities
        assert siege.stats.hp == 176
        assert siege.get_status_effect(StatusEffectType.SLOW) is not None
        # 100 - 40 + 15 for the kill
        assert battle_engine.heat == 75

        for unit, point in ((potato, (2, 2)), (pork, (2, 3))):
            assert unit.state == ActorState.DEAD
            assert unit.cooldown == 2
            assert unit.position is None
            cell = battle_engine.board.get_cell(point)
            assert cell.occupied_by is None
            assert cell.residual_heat_turns == 1

    def test_out_of_range_still_costs(self, battle_engine, put_unit, spawn_enemy):
        """Aiming outside cast range wastes the heat and the participants."""
        put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        slime = spawn_enemy(battle_engine, "Slime", (9, 9))
        battle_engine.heat = 40

        result = battle_engine.trigger_recipe("h1", "RECIPE_01", (9, 9))

        assert result.success
        assert result.damage_dealt == 0
        assert slime.stats.hp == 30
        assert battle_engine.heat == 0
        assert battle_engine.entities["h1"].state == ActorState.DEAD

    def test_chili_pork_double_hit(self, battle_engine, put_unit, spawn_enemy):
        """Physical and magic hits are summed and the survivor burns."""
        put_unit(battle_engine, "h3", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        siege = spawn_enemy(battle_engine, "Siege", (3, 2))
        battle_engine.heat = 60

        result = battle_engine.trigger_recipe("h3", "RECIPE_02", (3, 2))

        # Pork 45*2 - 60 = 30, Chili 30*2 - 10 = 50
        assert result.damage_dealt == 80
        assert siege.stats.hp == 120
        burn = siege.get_status_effect(StatusEffectType.BURN)
        assert (burn.duration, burn.magnitude) == (3, 30)

    def test_hotpot_stuns(self, battle_engine, put_unit, spawn_enemy):
        put_unit(battle_engine, "h4", (2, 2))
        put_unit(battle_engine, "h3", (2, 3))
        put_unit(battle_engine, "h1", (2, 4))
        slime = spawn_enemy(battle_engine, "Slime", (4, 3))
        battle_engine.heat = 100

        result = battle_engine.trigger_recipe("h4", "RECIPE_03", (3, 3))

        # (20 + 30 + 0) * 0.5 = 25
        assert result.damage_dealt == 25
        assert slime.stats.hp == 5
        assert slime.effective_stats.move_range == 0
        assert battle_engine.heat == 0

    def test_hotpot_kill_clears_cell(self, battle_engine, put_unit, spawn_enemy):
        """Recipe kills go through the death handler."""
        put_unit(battle_engine, "h4", (2, 2))
        put_unit(battle_engine, "h3", (2, 3))
        put_unit(battle_engine, "h1", (2, 4))
        slime = spawn_enemy(battle_engine, "Slime", (4, 3))
        slime.stats.hp = 10
        battle_engine.heat = 100

        battle_engine.trigger_recipe("h4", "RECIPE_03", (3, 3))

        assert slime.id not in battle_engine.entities
        assert battle_engine.board.get_occupant((4, 3)) is None
        assert battle_engine.heat == 15

    def test_target_required(self, battle_engine, put_unit):
        put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        battle_engine.heat = 40

        result = battle_engine.trigger_recipe("h1", "RECIPE_01")

        assert not result.success
        assert result.error_code == ErrorCode.TARGET_REQUIRED
        assert battle_engine.heat == 40

    def test_unavailable(self, battle_engine, put_unit):
        put_unit(battle_engine, "h1", (2, 2))
        put_unit(battle_engine, "h2", (2, 3))
        battle_engine.heat = 35

        result = battle_engine.trigger_recipe("h1", "RECIPE_01", (2, 2))

        assert result.error_code == ErrorCode.RECIPE_UNAVAILABLE
        assert result.extra_data["missing"] == ["Not enough heat (requires 40)"]
        assert battle_engine.entities["h1"].position == (2, 2)

    def test_unknown_id(self, battle_engine, put_unit):
        put_unit(battle_engine, "h1", (2, 2))
        result = battle_engine.trigger_recipe("h1", "RECIPE_99", (2, 2))
        assert result.error_code == ErrorCode.UNKNOWN_RECIPE
        assert result.extra_data == {"recipe_id": "RECIPE_99"}

    def test_known_recipe_not_for_this_unit(self, battle_engine, put_unit):
        """A Potato cannot start Chili Pork even though the recipe exists."""
        put_unit(battle_engine, "h1", (2, 2))
        result = battle_engine.trigger_recipe("h1", "RECIPE_02", (2, 3))
        assert result.error_code == ErrorCode.RECIPE_UNAVAILABLE

    def test_unknown_id_checked_against_engine_catalog(self, put_unit):
        """Ids resolve against the catalog the engine was built with."""
        engine = GameEngine(recipes=[get_recipe("RECIPE_01")], wave_schedule={})
        engine.turn_counter = 1
        engine.phase = TurnPhase.PLAYER_MAIN
        put_unit(engine, "h1", (2, 2))

        result = engine.trigger_recipe("h1", "RECIPE_03", (2, 2))

        assert result.error_code == ErrorCode.UNKNOWN_RECIPE

    def test_insufficient_heat_aborts_execute(self, battle_engine, put_unit):
        """execute_recipe spends nothing and sacrifices nobody without heat."""
        potato = put_unit(battle_engine, "h1", (2, 2))
        pork = put_unit(battle_engine, "h2", (2, 3))
        battle_engine.heat = 10

        outcome = battle_engine.recipe_engine.execute_recipe(get_recipe("RECIPE_01"), [potato, pork], (2, 2))

        assert outcome.executed is False
        assert battle_engine.heat == 10
        assert potato.position == (2, 2)
