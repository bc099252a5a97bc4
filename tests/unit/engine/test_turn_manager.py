"""Tests for the combat encounter state machine."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from dnd_rules.core.config import RulesSettings
from dnd_rules.core.exceptions import CombatError
from dnd_rules.engine.combat import CombatEngine, InitiativeEntry
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.engine.turn_manager import CombatManager, CombatState, PlayerCombatAction
from dnd_rules.models.character import Character
from dnd_rules.models.enums import CombatActionType, CombatPhase
from dnd_rules.models.monster import Monster


@pytest.fixture
def make_manager(
    scripted_dice: Callable[..., DiceRoller], rules: RulesSettings
) -> Callable[..., CombatManager]:
    """Factory for a combat manager with scripted dice."""

    def factory(*values: int) -> CombatManager:
        return CombatManager(CombatEngine(scripted_dice(*values), rules))

    return factory


def _attack(target: Monster, bonus: int = 5) -> PlayerCombatAction:
    return PlayerCombatAction(type=CombatActionType.MELEE_ATTACK, target_id=target.id, attack_bonus=bonus)


class TestStartCombat:
    """Tests for opening an encounter."""

    def test_requires_enemies(
        self, make_manager: Callable[..., CombatManager], sample_character: Character
    ) -> None:
        """Test an empty roster is an error."""
        with pytest.raises(CombatError):
            make_manager().start_combat(sample_character, [])

    def test_player_leads(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test the phase follows the initiative leader."""
        start = make_manager(15, 5).start_combat(sample_character, [goblin])

        assert start.combat_state.phase == CombatPhase.PLAYER_TURN
        assert start.combat_state.round_number == 1
        assert start.combat_state.is_player_turn
        assert start.initiative_message.content.startswith("⚔️ COMBAT BEGINS!")
        assert "Thorin acts first!" in start.initiative_message.content

    def test_enemy_leads(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test an enemy winning initiative starts on its turn."""
        start = make_manager(5, 15).start_combat(sample_character, [goblin])

        assert start.combat_state.phase == CombatPhase.ENEMY_TURN
        assert not start.combat_state.is_player_turn


class TestPlayerTurn:
    """Tests for the player's actions."""

    def test_victory(
        self,
        make_manager: Callable[..., CombatManager],
        sample_character: Character,
        weak_goblin: Monster,
    ) -> None:
        """Test killing the last enemy ends the encounter in victory."""
        manager = make_manager(15, 5, 10, 3)
        start = manager.start_combat(sample_character, [weak_goblin])

        result = manager.process_player_action(start.combat_state, sample_character, _attack(weak_goblin))

        assert result.combat_ended
        assert result.player_victory
        assert result.xp_earned == 50
        assert result.combat_state.phase == CombatPhase.VICTORY
        assert not result.combat_state.active
        assert result.messages[-1].content == "🎉 Victory! All enemies defeated! Earned 50 XP!"

    def test_miss_passes_turn(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test a miss advances to the enemy."""
        manager = make_manager(15, 5, 2)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_player_action(start.combat_state, sample_character, _attack(goblin))

        assert not result.combat_ended
        assert result.combat_state.phase == CombatPhase.ENEMY_TURN
        assert result.combat_state.enemies[0].current_hit_points == 7
        assert "misses" in result.messages[0].content

    def test_flee_success_does_not_advance(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test a successful escape ends combat without moving the turn."""
        manager = make_manager(15, 5, 15)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_player_action(
            start.combat_state, sample_character, PlayerCombatAction(type=CombatActionType.FLEE)
        )

        assert result.player_fled
        assert result.combat_ended
        assert result.combat_state.phase == CombatPhase.RESOLUTION
        assert result.combat_state.current_turn_index == start.combat_state.current_turn_index

    def test_flee_failure(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test a failed escape costs the turn."""
        manager = make_manager(15, 5, 5)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_player_action(
            start.combat_state, sample_character, PlayerCombatAction(type=CombatActionType.FLEE)
        )

        assert not result.player_fled
        assert result.messages[0].content == "❌ Thorin fails to escape! (Rolled 7 vs DC 10)"
        assert result.combat_state.phase == CombatPhase.ENEMY_TURN

    def test_out_of_turn_is_noop(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test acting on an enemy's turn changes nothing."""
        manager = make_manager(5, 15)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_player_action(start.combat_state, sample_character, _attack(goblin))

        assert result.combat_state is start.combat_state
        assert result.messages == []

    def test_unknown_target_is_noop(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test attacking a missing enemy changes nothing."""
        manager = make_manager(15, 5)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_player_action(
            start.combat_state,
            sample_character,
            PlayerCombatAction(type=CombatActionType.MELEE_ATTACK, target_id="nobody"),
        )

        assert result.combat_state is start.combat_state

    def test_healing(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test in-combat healing is clamped to max HP."""
        hurt = sample_character.model_copy(update={"current_hit_points": 4})
        manager = make_manager(15, 5, 4, 4)
        start = manager.start_combat(hurt, [goblin])

        result = manager.process_player_action(
            start.combat_state,
            hurt,
            PlayerCombatAction(type=CombatActionType.HEALING, healing_notation="2d4+2"),
        )

        assert result.player.current_hit_points == 10
        assert result.messages[0].content == "💚 Thorin heals for 6 HP! (Now at 10/10)"


class TestEnemyTurn:
    """Tests for enemy turns."""

    def test_enemy_hit(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test an enemy hit damages the player and passes the turn."""
        manager = make_manager(5, 15, 10, 3)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_enemy_turn(start.combat_state, sample_character)

        assert result.player.current_hit_points == 5
        assert result.messages[0].content == "🔴 Goblin uses Scimitar dealing 5 damage!"
        assert result.combat_state.phase == CombatPhase.PLAYER_TURN
        assert result.combat_state.round_number == 1

    def test_enemy_miss(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test a miss rolls no damage."""
        manager = make_manager(5, 15, 3)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_enemy_turn(start.combat_state, sample_character)

        assert result.player.current_hit_points == 10
        assert result.messages[0].content.startswith("🛡️ Goblin's Scimitar misses!")

    def test_player_defeated(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test dropping the player to 0 HP ends the encounter in defeat."""
        frail = sample_character.model_copy(update={"current_hit_points": 3})
        manager = make_manager(5, 15, 10, 3)
        start = manager.start_combat(frail, [goblin])

        result = manager.process_enemy_turn(start.combat_state, frail)

        assert result.player_defeated
        assert result.player.current_hit_points == 0
        assert result.combat_state.phase == CombatPhase.DEFEAT
        assert not result.combat_state.active
        assert result.messages[-1].content.startswith("💀 Thorin has fallen!")

    def test_dead_enemy_skipped(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test a dead enemy's turn passes without a roll."""
        dead = goblin.model_copy(update={"id": "dead", "current_hit_points": 0})
        state = CombatState(
            enemies=(dead, goblin),
            initiative_order=(
                InitiativeEntry(id="dead", name="Goblin", initiative=18, is_player=False, dexterity=14),
                InitiativeEntry(
                    id=sample_character.id, name="Thorin", initiative=12, is_player=True, dexterity=14
                ),
                InitiativeEntry(id=goblin.id, name="Goblin", initiative=5, is_player=False, dexterity=14),
            ),
            phase=CombatPhase.ENEMY_TURN,
        )

        result = make_manager().process_enemy_turn(state, sample_character)

        assert result.messages == []
        assert result.combat_state.current_turn_index == 1
        assert result.combat_state.is_player_turn

    def test_player_turn_is_not_enemy_turn(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test enemy processing on the player's turn is a no-op."""
        manager = make_manager(15, 5)
        start = manager.start_combat(sample_character, [goblin])

        result = manager.process_enemy_turn(start.combat_state, sample_character)

        assert result.combat_state is start.combat_state


class TestCombatStateSnapshot:
    """Tests for restoring saved encounter snapshots."""

    def test_turn_index_out_of_range(self, goblin: Monster) -> None:
        """Test a snapshot pointing past the initiative order is rejected."""
        entry = InitiativeEntry(id=goblin.id, name="Goblin", initiative=12, is_player=False, dexterity=14)

        with pytest.raises(ValueError, match="current_turn_index"):
            CombatState(enemies=(goblin,), initiative_order=(entry,), current_turn_index=3)

    def test_last_index_accepted(self, goblin: Monster) -> None:
        """Test the last entry is a valid turn."""
        entries = (
            InitiativeEntry(id="hero", name="Thorin", initiative=15, is_player=True, dexterity=12),
            InitiativeEntry(id=goblin.id, name="Goblin", initiative=12, is_player=False, dexterity=14),
        )

        state = CombatState(enemies=(goblin,), initiative_order=entries, current_turn_index=1)

        assert state.current_turn == entries[1]

    def test_empty_order(self, goblin: Monster) -> None:
        """Test an empty order only allows index 0 and never advances."""
        with pytest.raises(ValueError, match="current_turn_index"):
            CombatState(enemies=(goblin,), initiative_order=(), current_turn_index=1)

        state = CombatState(enemies=(goblin,), initiative_order=())

        assert state.current_turn is None
        assert state.advanced() is state


class TestRounds:
    """Tests for turn order and round counting."""

    def test_round_increments_on_wrap(
        self, make_manager: Callable[..., CombatManager], sample_character: Character, goblin: Monster
    ) -> None:
        """Test the round goes up when the order wraps to the first slot."""
        manager = make_manager(15, 5, 3)
        start = manager.start_combat(sample_character, [goblin])

        after_player = manager.process_player_action(
            start.combat_state, sample_character, PlayerCombatAction(type=CombatActionType.DODGE)
        )
        after_enemy = manager.process_enemy_turn(after_player.combat_state, after_player.player)

        assert after_player.combat_state.round_number == 1
        assert after_enemy.combat_state.current_turn_index == 0
        assert after_enemy.combat_state.round_number == 2
        assert after_enemy.combat_state.phase == CombatPhase.PLAYER_TURN

    def test_suggestions(self, sample_character: Character, goblin: Monster) -> None:
        """Test a fighter is offered attack, dodge and flee."""
        state = CombatState(
            enemies=(goblin,),
            initiative_order=(
                InitiativeEntry(
                    id=sample_character.id, name="Thorin", initiative=12, is_player=True, dexterity=14
                ),
            ),
        )

        assert CombatManager.combat_suggestions(state, sample_character) == [
            "Attack Goblin",
            "Dodge",
            "Attempt to flee",
        ]
