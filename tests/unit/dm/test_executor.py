"""Tests for applying validated actions to the game state."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from dnd_rules.core.config import RulesSettings
from dnd_rules.dm.executor import ActionExecutor, apply_quest_progress
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.models.actions import (
    AddGoldAction,
    AddItemAction,
    AddXPAction,
    ApplyStatusAction,
    ChangeLocationAction,
    CompleteQuestAction,
    DamageAction,
    EquipItemAction,
    HealAction,
    QuestObjectiveSpec,
    RemoveItemAction,
    RemoveStatusAction,
    RestAction,
    SpendGoldAction,
    StartQuestAction,
    UnequipItemAction,
    UpdateQuestAction,
    UseItemAction,
)
from dnd_rules.models.enums import (
    Condition,
    DamageType,
    EquipmentSlot,
    MessageType,
    QuestStatus,
    RestType,
    SceneType,
)
from dnd_rules.models.game_state import GameState, Scene
from dnd_rules.models.items import Inventory, Item
from dnd_rules.models.quest import Quest, QuestObjective


@pytest.fixture
def make_executor(
    scripted_dice: Callable[..., DiceRoller], rules: RulesSettings
) -> Callable[..., ActionExecutor]:
    """Factory for an executor with scripted dice."""

    def factory(*values: int) -> ActionExecutor:
        return ActionExecutor(scripted_dice(*values), rules=rules)

    return factory


@pytest.fixture
def quest_state(sample_state: GameState) -> GameState:
    """State with one active quest."""
    quest = Quest(
        id="rats",
        title="Rat Problem",
        objectives=(QuestObjective(id="kill", description="Kill rats", target_progress=5),),
    )
    return sample_state.with_quest(quest)


class TestInventoryActions:
    """Tests for inventory handlers."""

    def test_add_known_item_stack(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test several copies become separate items with one message."""
        outcome = make_executor().execute(
            AddItemAction(item_name="Healing Potion", quantity=3), sample_state
        )

        assert outcome.state.inventory.count("Healing Potion") == 3
        assert outcome.message is not None
        assert outcome.message.type == MessageType.ITEM_RECEIVED
        assert outcome.message.content == "Received: Healing Potion x3"
        assert outcome.message.items_received == ("Healing Potion",) * 3
        assert sample_state.inventory.items == ()

    def test_add_item_quantity_capped(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test one action never creates more than the configured maximum."""
        outcome = make_executor().execute(AddItemAction(item_name="Arrow", quantity=50), sample_state)

        assert outcome.state.inventory.count("Arrow") == 10

    def test_add_item_limited_by_room(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test only the free slots are filled."""
        state = sample_state.model_copy(
            update={"inventory": Inventory(items=(Item(name="Rope"),), max_slots=2)}
        )

        outcome = make_executor().execute(AddItemAction(item_name="Torch", quantity=3), state)

        assert outcome.state.inventory.count("Torch") == 1
        assert outcome.message.content == "Received: Torch"

    def test_add_item_full_pack(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a full inventory leaves the state untouched."""
        state = sample_state.model_copy(
            update={"inventory": Inventory(items=(Item(name="Rope"),), max_slots=1)}
        )

        outcome = make_executor().execute(AddItemAction(item_name="Torch"), state)

        assert outcome.state is state
        assert outcome.message.content == "No room in your pack for Torch."

    def test_remove_several(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test removing more than one copy."""
        state = sample_state.model_copy(
            update={"inventory": Inventory().with_items(*(Item(name="Torch") for _ in range(3)))}
        )

        outcome = make_executor().execute(RemoveItemAction(item_name="torch", quantity=2), state)

        assert outcome.state.inventory.count("Torch") == 1
        assert outcome.message.content == "Removed: Torch x2"

    def test_use_healing_potion(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a potion heals, is clamped to max HP and is consumed."""
        executor = make_executor(3, 3)
        hurt = sample_state.with_character(
            sample_state.character.model_copy(update={"current_hit_points": 4})
        )
        state = hurt.model_copy(
            update={"inventory": Inventory().with_items(executor.catalog.create_item("Healing Potion"))}
        )

        outcome = executor.execute(UseItemAction(item_name="Healing Potion"), state)

        assert outcome.state.character.current_hit_points == 10
        assert outcome.state.inventory.items == ()
        assert outcome.message.content == "Used Healing Potion. 💚 Recovered 6 HP! (HP: 10/10)"

    def test_use_antidote_cures(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a cure property removes the condition."""
        executor = make_executor()
        poisoned = sample_state.character.model_copy(update={"conditions": (Condition.POISONED,)})
        state = sample_state.with_character(poisoned).model_copy(
            update={"inventory": Inventory().with_items(executor.catalog.create_item("Antidote"))}
        )

        outcome = executor.execute(UseItemAction(item_name="Antidote"), state)

        assert outcome.state.character.conditions == ()

    def test_use_keeps_non_consumables(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test using a non-consumable keeps it."""
        state = sample_state.model_copy(update={"inventory": Inventory().with_items(Item(name="Rope"))})

        outcome = make_executor().execute(UseItemAction(item_name="Rope"), state)

        assert outcome.state.inventory.count("Rope") == 1
        assert outcome.message.content == "Used Rope."

    def test_equip_and_unequip(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test equipping uses the item's slot and unequipping frees it."""
        executor = make_executor()
        sword = executor.catalog.create_item("Longsword")
        state = sample_state.model_copy(update={"inventory": Inventory().with_items(sword)})

        equipped = executor.execute(EquipItemAction(item_name="Longsword"), state)
        unequipped = executor.execute(UnequipItemAction(slot=EquipmentSlot.MAIN_HAND), equipped.state)

        assert equipped.state.inventory.equipped == {EquipmentSlot.MAIN_HAND: sword.id}
        assert equipped.message.content == "Equipped Longsword."
        assert unequipped.state.inventory.equipped == {}
        assert unequipped.message.content == "Unequipped Longsword."


class TestHitPointActions:
    """Tests for heal and damage."""

    def test_heal_revives(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test healing from 0 HP clears unconscious and death saves."""
        down = sample_state.character.model_copy(
            update={
                "current_hit_points": 0,
                "conditions": (Condition.UNCONSCIOUS,),
                "death_save_failures": 2,
            }
        )

        outcome = make_executor().execute(HealAction(amount="5"), sample_state.with_character(down))

        character = outcome.state.character
        assert character.current_hit_points == 5
        assert character.conditions == ()
        assert character.death_save_failures == 0
        assert outcome.message.content == "💚 Thorin heals 5 HP! (HP: 5/10)"

    def test_damage_with_type(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test rolled damage names its type."""
        outcome = make_executor(4).execute(
            DamageAction(amount="1d6", damage_type=DamageType.FIRE), sample_state
        )

        assert outcome.state.character.current_hit_points == 6
        assert outcome.message.content == "💔 Thorin takes 4 fire damage! (HP: 6/10)"

    def test_damage_knocks_out(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test reaching 0 HP adds unconscious and an important message."""
        outcome = make_executor().execute(DamageAction(amount="15"), sample_state)

        assert outcome.state.character.current_hit_points == 0
        assert Condition.UNCONSCIOUS in outcome.state.character.conditions
        assert outcome.messages[0].content == "💔 Thorin takes 15 damage! (HP: 0/10)"
        assert outcome.messages[1].content == "💀 Thorin falls unconscious!"
        assert outcome.messages[1].is_important


class TestCurrencyActions:
    """Tests for gold and XP."""

    def test_add_gold_capped(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a level 1 character receives at most 75 gold per action."""
        outcome = make_executor().execute(AddGoldAction(amount=500), sample_state)

        assert outcome.state.gold == 90
        assert outcome.message.content == "Found 75 gold!"

    def test_spend_gold(self, make_executor: Callable[..., ActionExecutor], sample_state: GameState) -> None:
        """Test spending with a reason."""
        outcome = make_executor().execute(SpendGoldAction(amount=5, reason="a room"), sample_state)

        assert outcome.state.gold == 10
        assert outcome.message.content == "Spent 5 gold on a room."

    def test_add_xp_capped(self, make_executor: Callable[..., ActionExecutor], sample_state: GameState) -> None:
        """Test a level 1 character receives at most 150 XP per action."""
        outcome = make_executor().execute(AddXPAction(amount=1000), sample_state)

        assert outcome.state.character.experience_points == 150
        assert outcome.message.content == "Gained 150 experience points!"
        assert outcome.message.experience_gained == 150
        assert len(outcome.messages) == 1

    def test_award_experience_levels_up(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test crossing a threshold announces the new level."""
        state, messages = make_executor().award_experience(sample_state, 300)

        assert state.character.level == 2
        assert [m.type for m in messages] == [MessageType.SYSTEM, MessageType.LEVEL_UP]
        assert messages[1].content == "Level Up! You are now level 2!"

    def test_award_experience_silent(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test announce=False only reports level-ups."""
        state, messages = make_executor().award_experience(sample_state, 50, announce=False)

        assert state.character.experience_points == 50
        assert messages == []


class TestQuestActions:
    """Tests for quest handlers."""

    def test_update_progress(
        self, make_executor: Callable[..., ActionExecutor], quest_state: GameState
    ) -> None:
        """Test objective progress is reported."""
        outcome = make_executor().execute(
            UpdateQuestAction(quest_id="rats", objective_id="kill", progress=2), quest_state
        )

        assert outcome.state.quest("rats").objective("kill").current_progress == 2
        assert outcome.message.type == MessageType.QUEST_UPDATE
        assert outcome.message.content == "Quest updated: Rat Problem - Kill rats (2/5)"

    def test_update_completes_quest(
        self, make_executor: Callable[..., ActionExecutor], quest_state: GameState
    ) -> None:
        """Test progress is clamped and the quest completes."""
        outcome = make_executor().execute(
            UpdateQuestAction(quest_id="rats", objective_id="kill", progress=10), quest_state
        )

        assert outcome.state.quest("rats").status == QuestStatus.COMPLETED
        assert outcome.messages[0].content == "Quest updated: Rat Problem - Kill rats (5/5)"
        assert outcome.messages[1].content == "Quest completed: Rat Problem!"

    def test_progress_never_negative(self, quest_state: GameState) -> None:
        """Test negative deltas clamp at zero."""
        state, quest = apply_quest_progress(quest_state, "rats", "kill", -3)

        assert quest is not None
        assert quest.objective("kill").current_progress == 0

    def test_progress_unknown_ids(self, quest_state: GameState) -> None:
        """Test unknown ids leave the state unchanged."""
        state, quest = apply_quest_progress(quest_state, "rats", "missing", 1)

        assert quest is None
        assert state is quest_state

    def test_start_quest(self, make_executor: Callable[..., ActionExecutor], sample_state: GameState) -> None:
        """Test objectives without ids are numbered from one."""
        action = StartQuestAction(
            quest_id="cat",
            title="Find the Cat",
            objectives=(
                QuestObjectiveSpec(description="Search the alley"),
                QuestObjectiveSpec(description="Ask the baker"),
            ),
        )

        outcome = make_executor().execute(action, sample_state)

        quest = outcome.state.quest("cat")
        assert quest is not None
        assert [o.id for o in quest.objectives] == ["1", "2"]
        assert outcome.message.content == "New quest: Find the Cat"
        assert outcome.message.is_important

    def test_complete_quest(
        self, make_executor: Callable[..., ActionExecutor], quest_state: GameState
    ) -> None:
        """Test completing a quest directly."""
        outcome = make_executor().execute(CompleteQuestAction(quest_id="rats"), quest_state)

        assert outcome.state.completed_quests[0].id == "rats"
        assert outcome.message.content == "Quest completed: Rat Problem!"


class TestWorldActions:
    """Tests for location, status and rest."""

    def test_change_location_keeps_scene_type(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test an unspecified scene type carries over."""
        state = sample_state.model_copy(update={"current_scene": Scene(scene_type=SceneType.DUNGEON)})

        outcome = make_executor().execute(ChangeLocationAction(location_name="Deep Vault"), state)

        assert outcome.state.current_scene.name == "Deep Vault"
        assert outcome.state.current_scene.scene_type == SceneType.DUNGEON
        assert outcome.message.content == "Arrived at Deep Vault."

    def test_status_round_trip(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test applying and removing a condition."""
        executor = make_executor()

        applied = executor.execute(ApplyStatusAction(condition=Condition.PRONE), sample_state)
        removed = executor.execute(RemoveStatusAction(condition=Condition.PRONE), applied.state)

        assert applied.state.character.conditions == (Condition.PRONE,)
        assert applied.message.content == "Thorin is now prone."
        assert removed.state.character.conditions == ()
        assert removed.message.content == "Thorin is no longer prone."

    def test_long_rest(self, make_executor: Callable[..., ActionExecutor], sample_state: GameState) -> None:
        """Test a long rest restores everything and drops temporary HP."""
        tired = sample_state.character.model_copy(
            update={"current_hit_points": 2, "temporary_hit_points": 5, "hit_dice_remaining": 0}
        )

        outcome = make_executor().execute(
            RestAction(rest_type=RestType.LONG), sample_state.with_character(tired)
        )

        character = outcome.state.character
        assert character.current_hit_points == 10
        assert character.temporary_hit_points == 0
        assert character.hit_dice_remaining == 1
        assert outcome.message.content == "🌙 Long Rest: Thorin is fully restored (HP: 10/10)."

    def test_short_rest_spends_half_the_dice(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a short rest spends half the remaining hit dice, rounded up."""
        veteran = sample_state.character.model_copy(
            update={"level": 3, "max_hit_points": 28, "current_hit_points": 5, "hit_dice_remaining": 3}
        )

        outcome = make_executor(5, 6).execute(RestAction(), sample_state.with_character(veteran))

        character = outcome.state.character
        assert character.current_hit_points == 18
        assert character.hit_dice_remaining == 1
        assert outcome.message.content == (
            "☕ Short Rest: spent 2 hit dice and recovered 13 HP (HP: 18/28)."
        )

    def test_short_rest_without_dice(
        self, make_executor: Callable[..., ActionExecutor], sample_state: GameState
    ) -> None:
        """Test a short rest with no hit dice heals nothing."""
        spent = sample_state.character.model_copy(update={"hit_dice_remaining": 0})

        outcome = make_executor().execute(RestAction(), sample_state.with_character(spent))

        assert outcome.message.content == "☕ Short Rest: Thorin has no hit dice left to spend."
