"""Execution of validated game actions.

The executor assumes its input already passed ``ActionValidator``. Each
handler takes the typed action and the current state and returns the new
state plus the story entries describing what happened. Rolls go through
the injected dice so a scripted RNG reproduces every outcome.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass, field

from dnd_rules.core.config import RulesSettings, get_settings
from dnd_rules.core.logging import get_logger
from dnd_rules.engine.combat import CombatEngine
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.engine.items import ItemCatalog
from dnd_rules.models.actions import (
    AddGoldAction,
    AddItemAction,
    AddXPAction,
    ApplyStatusAction,
    ChangeLocationAction,
    CompleteQuestAction,
    DamageAction,
    EquipItemAction,
    GameAction,
    HealAction,
    RemoveItemAction,
    RemoveStatusAction,
    RestAction,
    SpendGoldAction,
    StartQuestAction,
    UnequipItemAction,
    UpdateQuestAction,
    UseItemAction,
)
from dnd_rules.models.character import Character
from dnd_rules.models.enums import Ability, Condition, MessageType, QuestStatus, RestType
from dnd_rules.models.game_state import GameState, Scene
from dnd_rules.models.items import Item
from dnd_rules.models.quest import Quest, QuestObjective
from dnd_rules.models.story import StoryEvent, system_event


logger = get_logger(__name__)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of executing one action.

    Attributes:
        state: The state after the action.
        messages: Story entries produced, in order.
    """

    state: GameState
    messages: tuple[StoryEvent, ...] = field(default_factory=tuple)

    @property
    def message(self) -> StoryEvent | None:
        """The primary story entry, if any."""
        return self.messages[0] if self.messages else None


# =============================================================================
# State Helpers
# =============================================================================


def with_condition(character: Character, condition: Condition) -> Character:
    """Return a copy with a condition added (idempotent)."""
    if condition in character.conditions:
        return character
    return character.model_copy(update={"conditions": character.conditions + (condition,)})


def without_condition(character: Character, condition: Condition) -> Character:
    """Return a copy with a condition removed."""
    if condition not in character.conditions:
        return character
    return character.model_copy(
        update={"conditions": tuple(c for c in character.conditions if c != condition)}
    )


def revived(character: Character) -> Character:
    """Clear dying bookkeeping once a character is back above 0 HP."""
    if character.current_hit_points <= 0:
        return character
    character = without_condition(character, Condition.UNCONSCIOUS)
    return character.model_copy(update={"death_save_successes": 0, "death_save_failures": 0})


def apply_quest_progress(
    state: GameState, quest_id: str, objective_id: str, progress_delta: int
) -> tuple[GameState, Quest | None]:
    """Advance one objective by a delta, clamped to [0, target].

    The quest is marked completed once every required objective is
    complete. Unknown quest or objective ids leave the state unchanged.

    Returns:
        The new state and the updated quest (None if nothing matched).
    """
    quest = state.quest(quest_id)
    if quest is None or quest.objective(objective_id) is None:
        return state, None

    objectives = tuple(
        o.model_copy(
            update={
                "current_progress": min(
                    o.target_progress, max(0, o.current_progress + progress_delta)
                )
            }
        )
        if o.id == objective_id
        else o
        for o in quest.objectives
    )
    updated = quest.model_copy(update={"objectives": objectives})
    if updated.is_complete and updated.status == QuestStatus.ACTIVE:
        updated = updated.model_copy(update={"status": QuestStatus.COMPLETED})
    return state.with_quest(updated), updated


# =============================================================================
# Action Executor
# =============================================================================


class ActionExecutor:
    """Applies validated actions to a game state.

    Args:
        dice: Dice roller used for healing, damage and hit dice.
        combat_engine: Engine used for HP arithmetic and level-ups.
        catalog: Item catalog used to turn names into items.
        rules: Rule tunables. Defaults to the process settings.
    """

    def __init__(
        self,
        dice: DiceRoller,
        combat_engine: CombatEngine | None = None,
        catalog: ItemCatalog | None = None,
        rules: RulesSettings | None = None,
    ) -> None:
        self._rules = rules or get_settings().rules
        self._dice = dice
        self._combat = combat_engine or CombatEngine(dice, self._rules)
        self._catalog = catalog or ItemCatalog()
        self._handlers: dict[type, Callable[..., ActionOutcome]] = {
            AddItemAction: self._add_item,
            RemoveItemAction: self._remove_item,
            UseItemAction: self._use_item,
            EquipItemAction: self._equip_item,
            UnequipItemAction: self._unequip_item,
            HealAction: self._heal,
            DamageAction: self._damage,
            AddGoldAction: self._add_gold,
            SpendGoldAction: self._spend_gold,
            AddXPAction: self._add_xp,
            UpdateQuestAction: self._update_quest,
            StartQuestAction: self._start_quest,
            CompleteQuestAction: self._complete_quest,
            ChangeLocationAction: self._change_location,
            ApplyStatusAction: self._apply_status,
            RemoveStatusAction: self._remove_status,
            RestAction: self._rest,
        }

    @property
    def catalog(self) -> ItemCatalog:
        return self._catalog

    def execute(self, action: GameAction, state: GameState) -> ActionOutcome:
        """Apply one validated action.

        Args:
            action: The typed action.
            state: The current state.

        Returns:
            The new state and the story entries describing the change.
        """
        handler = self._handlers[type(action)]
        outcome = handler(action, state)
        logger.debug("Action executed", action_type=action.type, messages=len(outcome.messages))
        return outcome

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def _add_item(self, action: AddItemAction, state: GameState) -> ActionOutcome:
        name = (action.item_name or "").strip()
        quantity = min(max(1, action.quantity), self._rules.max_item_quantity)
        count = min(quantity, state.inventory.free_slots)
        if count == 0:
            return ActionOutcome(state, (system_event(f"No room in your pack for {name}."),))

        items = tuple(
            self._catalog.create_item(name, rarity=action.rarity, description=action.description)
            for _ in range(count)
        )
        state = state.model_copy(update={"inventory": state.inventory.with_items(*items)})
        label = items[0].name if count == 1 else f"{items[0].name} x{count}"
        message = StoryEvent(
            type=MessageType.ITEM_RECEIVED,
            content=f"Received: {label}",
            items_received=tuple(item.name for item in items),
        )
        return ActionOutcome(state, (message,))

    def _remove_item(self, action: RemoveItemAction, state: GameState) -> ActionOutcome:
        inventory = state.inventory
        removed = 0
        display_name = action.item_name or ""
        while removed < action.quantity:
            item = inventory.find(action.item_name or "")
            if item is None:
                break
            display_name = item.name
            inventory = inventory.without(item.id)
            removed += 1
        state = state.model_copy(update={"inventory": inventory})
        label = display_name if removed == 1 else f"{display_name} x{removed}"
        return ActionOutcome(state, (system_event(f"Removed: {label}"),))

    def _use_item(self, action: UseItemAction, state: GameState) -> ActionOutcome:
        item = state.inventory.find(action.item_name or "")
        if item is None:
            return ActionOutcome(state)

        character = state.character
        parts = [f"Used {item.name}."]
        heal = item.properties.get("heal")
        if heal:
            result = self._combat.apply_healing(character, heal)
            character = revived(character.model_copy(update={"current_hit_points": result.new_hp}))
            parts.append(
                f"💚 Recovered {result.actual_healing} HP! "
                f"(HP: {character.current_hit_points}/{character.max_hit_points})"
            )
        cure = item.properties.get("cure")
        if cure:
            for condition in Condition:
                if condition.value == cure:
                    character = without_condition(character, condition)

        inventory = state.inventory.without(item.id) if item.is_consumable else state.inventory
        state = state.model_copy(update={"character": character, "inventory": inventory})
        return ActionOutcome(state, (system_event(" ".join(parts)),))

    def _equip_item(self, action: EquipItemAction, state: GameState) -> ActionOutcome:
        item = state.inventory.find(action.item_name or "")
        slot = action.slot or (item.slot if item is not None else None)
        if item is None or slot is None:
            return ActionOutcome(state)
        equipped = dict(state.inventory.equipped)
        equipped[slot] = item.id
        inventory = state.inventory.model_copy(update={"equipped": equipped})
        state = state.model_copy(update={"inventory": inventory})
        return ActionOutcome(state, (system_event(f"Equipped {item.name}."),))

    def _unequip_item(self, action: UnequipItemAction, state: GameState) -> ActionOutcome:
        inventory = state.inventory
        equipped = dict(inventory.equipped)
        item_id: str | None = None
        if action.slot is not None:
            item_id = equipped.pop(action.slot, None)
        else:
            item = inventory.find(action.item_name or "")
            if item is not None:
                item_id = item.id
                equipped = {slot: i for slot, i in equipped.items() if i != item.id}
        if item_id is None:
            return ActionOutcome(state)

        item = inventory.get(item_id)
        inventory = inventory.model_copy(update={"equipped": equipped})
        state = state.model_copy(update={"inventory": inventory})
        name = item.name if item is not None else "item"
        return ActionOutcome(state, (system_event(f"Unequipped {name}."),))

    # -------------------------------------------------------------------------
    # Hit points
    # -------------------------------------------------------------------------

    def _heal(self, action: HealAction, state: GameState) -> ActionOutcome:
        character = state.character
        result = self._combat.apply_healing(character, action.amount or "0")
        character = revived(character.model_copy(update={"current_hit_points": result.new_hp}))
        content = (
            f"💚 {character.name} heals {result.actual_healing} HP! "
            f"(HP: {character.current_hit_points}/{character.max_hit_points})"
        )
        return ActionOutcome(state.with_character(character), (system_event(content),))

    def _damage(self, action: DamageAction, state: GameState) -> ActionOutcome:
        amount = self._dice.roll_amount(action.amount or "0")
        character, hp_lost = self._combat.apply_damage(state.character, amount)
        if character.current_hit_points == 0:
            character = with_condition(character, Condition.UNCONSCIOUS)

        damage_label = f"{action.damage_type} damage" if action.damage_type else "damage"
        content = (
            f"💔 {character.name} takes {amount} {damage_label}! "
            f"(HP: {character.current_hit_points}/{character.max_hit_points})"
        )
        messages = [system_event(content)]
        if character.current_hit_points == 0 and hp_lost > 0:
            messages.append(system_event(f"💀 {character.name} falls unconscious!", is_important=True))
            logger.info("Player knocked out", character=character.name, source=action.source)
        return ActionOutcome(state.with_character(character), tuple(messages))

    # -------------------------------------------------------------------------
    # Currency & experience
    # -------------------------------------------------------------------------

    def _add_gold(self, action: AddGoldAction, state: GameState) -> ActionOutcome:
        cap = self._rules.max_gold_reward(state.character.level)
        applied = min(max(0, action.amount), cap)
        if applied < action.amount:
            logger.warning("Reward capped", reward_type="gold", proposed=action.amount, applied=applied)
        state = state.model_copy(update={"gold": state.gold + applied})
        return ActionOutcome(state, (system_event(f"Found {applied} gold!"),))

    def _spend_gold(self, action: SpendGoldAction, state: GameState) -> ActionOutcome:
        spent = min(max(0, action.amount), state.gold)
        state = state.model_copy(update={"gold": state.gold - spent})
        suffix = f" on {action.reason}" if action.reason else ""
        return ActionOutcome(state, (system_event(f"Spent {spent} gold{suffix}."),))

    def _add_xp(self, action: AddXPAction, state: GameState) -> ActionOutcome:
        cap = self._rules.max_xp_reward(state.character.level)
        applied = min(max(0, action.amount), cap)
        if applied < action.amount:
            logger.warning("Reward capped", reward_type="experience", proposed=action.amount, applied=applied)
        state, messages = self.award_experience(state, applied)
        return ActionOutcome(state, tuple(messages))

    def award_experience(
        self, state: GameState, amount: int, *, announce: bool = True
    ) -> tuple[GameState, list[StoryEvent]]:
        """Add already-capped experience and apply any level-up.

        Args:
            state: The current state.
            amount: Experience to add.
            announce: Whether to emit the "Gained N experience points!"
                entry. Combat victories announce XP themselves.

        Returns:
            The new state and the experience (plus level-up) messages.
        """
        result = self._combat.check_level_up(state.character, amount)
        character = self._combat.apply_level_up(state.character, result)
        messages: list[StoryEvent] = []
        if announce:
            messages.append(
                system_event(f"Gained {amount} experience points!", experience_gained=amount)
            )
        if result.did_level_up:
            messages.append(
                StoryEvent(
                    type=MessageType.LEVEL_UP,
                    content=f"Level Up! You are now level {result.new_level}!",
                    is_important=True,
                )
            )
            logger.info(
                "Level up",
                character=character.name,
                old_level=result.old_level,
                new_level=result.new_level,
                hp_increase=result.hp_increase,
            )
        return state.with_character(character), messages

    # -------------------------------------------------------------------------
    # Quests
    # -------------------------------------------------------------------------

    def _update_quest(self, action: UpdateQuestAction, state: GameState) -> ActionOutcome:
        previous = state.quest(action.quest_id or "")
        was_completed = previous is not None and previous.status == QuestStatus.COMPLETED
        state, quest = apply_quest_progress(
            state, action.quest_id or "", action.objective_id or "", action.progress
        )
        if quest is None:
            return ActionOutcome(state)

        objective = quest.objective(action.objective_id or "")
        messages = []
        if objective is not None:
            messages.append(
                StoryEvent(
                    type=MessageType.QUEST_UPDATE,
                    content=(
                        f"Quest updated: {quest.title} - {objective.description or objective.id} "
                        f"({objective.current_progress}/{objective.target_progress})"
                    ),
                )
            )
        if quest.status == QuestStatus.COMPLETED and not was_completed:
            messages.append(self._quest_completed_event(quest))
        return ActionOutcome(state, tuple(messages))

    def _start_quest(self, action: StartQuestAction, state: GameState) -> ActionOutcome:
        objectives = tuple(
            QuestObjective(
                id=spec.id or str(index),
                description=spec.description,
                target_progress=spec.target_progress,
            )
            for index, spec in enumerate(action.objectives, start=1)
        )
        fields: dict[str, object] = {
            "title": (action.title or "").strip(),
            "description": action.description,
            "objectives": objectives,
        }
        if action.quest_id:
            fields["id"] = action.quest_id
        quest = Quest(**fields)
        message = StoryEvent(
            type=MessageType.QUEST_UPDATE,
            content=f"New quest: {quest.title}",
            is_important=True,
        )
        return ActionOutcome(state.with_quest(quest), (message,))

    def _complete_quest(self, action: CompleteQuestAction, state: GameState) -> ActionOutcome:
        quest = state.quest(action.quest_id or "")
        if quest is None:
            return ActionOutcome(state)
        quest = quest.model_copy(update={"status": QuestStatus.COMPLETED})
        return ActionOutcome(state.with_quest(quest), (self._quest_completed_event(quest),))

    @staticmethod
    def _quest_completed_event(quest: Quest) -> StoryEvent:
        return StoryEvent(
            type=MessageType.QUEST_UPDATE,
            content=f"Quest completed: {quest.title}!",
            is_important=True,
        )

    # -------------------------------------------------------------------------
    # World & status
    # -------------------------------------------------------------------------

    def _change_location(self, action: ChangeLocationAction, state: GameState) -> ActionOutcome:
        scene = Scene(
            name=(action.location_name or "").strip(),
            description=action.description,
            scene_type=action.scene_type or state.current_scene.scene_type,
        )
        state = state.model_copy(update={"current_scene": scene})
        return ActionOutcome(state, (system_event(f"Arrived at {scene.name}."),))

    def _apply_status(self, action: ApplyStatusAction, state: GameState) -> ActionOutcome:
        if action.condition is None:
            return ActionOutcome(state)
        character = with_condition(state.character, action.condition)
        content = f"{character.name} is now {action.condition}."
        return ActionOutcome(state.with_character(character), (system_event(content),))

    def _remove_status(self, action: RemoveStatusAction, state: GameState) -> ActionOutcome:
        if action.condition is None:
            return ActionOutcome(state)
        character = without_condition(state.character, action.condition)
        content = f"{character.name} is no longer {action.condition}."
        return ActionOutcome(state.with_character(character), (system_event(content),))

    def _rest(self, action: RestAction, state: GameState) -> ActionOutcome:
        character = state.character
        if action.rest_type == RestType.LONG:
            character = character.model_copy(
                update={
                    "current_hit_points": character.max_hit_points,
                    "temporary_hit_points": 0,
                    "hit_dice_remaining": character.level,
                    "death_save_successes": 0,
                    "death_save_failures": 0,
                }
            )
            character = without_condition(character, Condition.UNCONSCIOUS)
            content = (
                f"🌙 Long Rest: {character.name} is fully restored "
                f"(HP: {character.current_hit_points}/{character.max_hit_points})."
            )
            return ActionOutcome(state.with_character(character), (system_event(content),))

        spent = math.ceil(character.hit_dice_remaining / 2)
        con = character.ability_modifier(Ability.CON)
        rolled = sum(self._dice.roll_hit_die(character.hit_die, con) for _ in range(spent))
        new_hp = min(character.max_hit_points, character.current_hit_points + rolled)
        healed = new_hp - character.current_hit_points
        character = revived(
            character.model_copy(
                update={
                    "current_hit_points": new_hp,
                    "hit_dice_remaining": character.hit_dice_remaining - spent,
                }
            )
        )
        if spent == 0:
            content = f"☕ Short Rest: {character.name} has no hit dice left to spend."
        else:
            content = (
                f"☕ Short Rest: spent {spent} hit dice and recovered {healed} HP "
                f"(HP: {character.current_hit_points}/{character.max_hit_points})."
            )
        return ActionOutcome(state.with_character(character), (system_event(content),))


__all__ = [
    "ActionOutcome",
    "ActionExecutor",
    "apply_quest_progress",
    "with_condition",
    "without_condition",
    "revived",
]
