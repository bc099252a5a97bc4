"""Integration tests for combat flow.

Tests complete encounters through the GameMaster, from initiative to
resolution, with every die scripted.
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

from dnd_rules.core.config import RulesSettings
from dnd_rules.dm.game_master import GameMaster
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.engine.turn_manager import PlayerCombatAction
from dnd_rules.models.enums import CombatActionType, CombatPhase, Condition, MessageType
from dnd_rules.models.game_state import GameState
from dnd_rules.models.monster import Monster


@pytest.fixture
def make_gm(scripted_dice: Callable[..., DiceRoller], rules: RulesSettings) -> Callable[..., GameMaster]:
    """Factory for a game master with scripted dice."""

    def factory(*values: int) -> GameMaster:
        return GameMaster(scripted_dice(*values), rules=rules)

    return factory


def _attack(target: Monster) -> PlayerCombatAction:
    return PlayerCombatAction(type=CombatActionType.MELEE_ATTACK, target_id=target.id, attack_bonus=5)


class TestCombatFlow:
    """Test complete combat scenarios."""

    def test_one_hit_victory_with_level_up(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        weak_goblin: Monster,
    ) -> None:
        """Start, win in one blow, collect XP and level up."""
        veteran = sample_state.character.model_copy(update={"experience_points": 290})
        state = sample_state.with_character(veteran)
        # Initiative 15 vs 5, attack 10 (+5 vs AC 10), damage 3
        gm = make_gm(15, 5, 10, 3)

        start = gm.start_combat(state, [weak_goblin])
        assert start.state.current_scene.is_in_combat
        assert start.combat_state.phase == CombatPhase.PLAYER_TURN

        result = gm.process_combat_action(start.state, start.combat_state, _attack(weak_goblin))

        assert result.combat_ended
        assert result.player_victory
        assert result.xp_earned == 50
        assert result.combat_state.phase == CombatPhase.VICTORY
        character = result.state.character
        assert character.experience_points == 340
        assert character.level == 2
        assert not result.state.current_scene.is_in_combat

        contents = [m.content for m in result.messages]
        assert "🎉 Victory! All enemies defeated! Earned 50 XP!" in contents
        assert contents[-1] == "Level Up! You are now level 2!"
        assert not any(c.startswith("Gained") for c in contents)

    def test_two_round_fight(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        goblin: Monster,
    ) -> None:
        """Trade blows over two rounds before winning."""
        # Initiative 15 vs 5; round 1: player hits for 4, goblin misses;
        # round 2: player hits for 5.
        gm = make_gm(15, 5, 12, 4, 2, 15, 5)

        start = gm.start_combat(sample_state, [goblin])
        first = gm.process_combat_action(start.state, start.combat_state, _attack(goblin))

        assert not first.combat_ended
        assert first.combat_state.enemies[0].current_hit_points == 3
        assert first.combat_state.round_number == 2
        assert first.combat_state.is_player_turn
        assert first.messages[-1].content.startswith("🛡️ Goblin's Scimitar misses!")

        second = gm.process_combat_action(first.state, first.combat_state, _attack(goblin))

        assert second.player_victory
        assert second.state.character.current_hit_points == 10
        assert second.state.character.experience_points == 50

    def test_story_log_accumulates(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        weak_goblin: Monster,
    ) -> None:
        """Every combat message lands in the story log in order."""
        gm = make_gm(15, 5, 10, 3)

        start = gm.start_combat(sample_state, [weak_goblin])
        result = gm.process_combat_action(start.state, start.combat_state, _attack(weak_goblin))

        log = result.state.story_log
        assert log == tuple(start.messages) + tuple(result.messages)
        assert all(event.type == MessageType.COMBAT for event in log)

    def test_flee(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        goblin: Monster,
    ) -> None:
        """A successful escape ends combat without XP."""
        gm = make_gm(15, 5, 15)

        start = gm.start_combat(sample_state, [goblin])
        result = gm.process_combat_action(
            start.state, start.combat_state, PlayerCombatAction(type=CombatActionType.FLEE)
        )

        assert result.player_fled
        assert result.combat_ended
        assert result.xp_earned is None
        assert result.combat_state.phase == CombatPhase.RESOLUTION
        assert not result.state.current_scene.is_in_combat
        assert result.state.character.experience_points == 0

    def test_defeat(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        goblin: Monster,
    ) -> None:
        """A miss followed by a goblin hit drops a wounded player."""
        frail = sample_state.with_character(
            sample_state.character.model_copy(update={"current_hit_points": 3})
        )
        gm = make_gm(15, 5, 2, 10, 3)

        start = gm.start_combat(frail, [goblin])
        result = gm.process_combat_action(start.state, start.combat_state, _attack(goblin))

        assert result.player_defeated
        assert result.combat_ended
        assert result.combat_state.phase == CombatPhase.DEFEAT
        assert result.state.character.current_hit_points == 0
        assert Condition.UNCONSCIOUS in result.state.character.conditions
        assert not result.state.current_scene.is_in_combat

    def test_actions_after_the_end_are_ignored(
        self,
        make_gm: Callable[..., GameMaster],
        sample_state: GameState,
        weak_goblin: Monster,
    ) -> None:
        """Once combat is over, further actions change nothing."""
        gm = make_gm(15, 5, 10, 3)
        start = gm.start_combat(sample_state, [weak_goblin])
        won = gm.process_combat_action(start.state, start.combat_state, _attack(weak_goblin))

        again = gm.process_combat_action(won.state, won.combat_state, _attack(weak_goblin))

        assert again.state is won.state
        assert again.combat_state is won.combat_state
        assert again.messages == []
        assert again.combat_ended
