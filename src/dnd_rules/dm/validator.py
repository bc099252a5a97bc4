"""Validation of proposed game actions against the current state.

Validation is a pure function of (action, state): nothing is rolled and
nothing is mutated. Every rejection carries a human-readable reason, and
where a smaller value would have been acceptable it is offered as
``suggested_value``.
"""

from __future__ import annotations

import re
from collections.abc import Callable

from dnd_rules.core.config import RulesSettings, get_settings
from dnd_rules.core.constants import MAX_NAME_LENGTH, MAX_QUEST_TITLE_LENGTH
from dnd_rules.core.exceptions import InvalidNotationError
from dnd_rules.core.logging import get_logger
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
    GameAction,
    HealAction,
    RemoveItemAction,
    RemoveStatusAction,
    SpendGoldAction,
    StartQuestAction,
    UnequipItemAction,
    UpdateQuestAction,
    UseItemAction,
    ValidationResult,
)
from dnd_rules.models.enums import QuestStatus
from dnd_rules.models.game_state import GameState


logger = get_logger(__name__)

_FLAT_AMOUNT = re.compile(r"^[+-]?\d+$")


def _check_amount(amount: str | None, label: str, rules: RulesSettings) -> ValidationResult:
    """Accept a flat non-negative number or dice notation within the dice limits."""
    if amount is None:
        return ValidationResult.invalid(f"{label} amount is required")
    invalid = ValidationResult.invalid(f'Invalid {label.lower()} amount "{amount}"')
    if _FLAT_AMOUNT.match(amount.strip()):
        try:
            value = int(amount)
        except ValueError:
            return invalid
        if value < 0:
            return ValidationResult.invalid(f"{label} amount cannot be negative", suggested_value=0)
        return ValidationResult.valid()
    try:
        count, sides, _ = DiceRoller.parse_notation(amount)
    except (InvalidNotationError, ValueError):
        return invalid
    if not rules.allows_dice(count, sides):
        return ValidationResult.invalid(
            f"{label} amount rolls too many dice "
            f"(max {rules.max_dice_count}d{rules.max_dice_sides})"
        )
    return ValidationResult.valid()


class ActionValidator:
    """Checks proposed actions before they are executed.

    Args:
        rules: Rule tunables. Defaults to the process settings.

    Example:
        >>> validator = ActionValidator()
        >>> validator.validate(SpendGoldAction(amount=50), state).reason
        'Not enough gold (need 50, have 10)'
    """

    def __init__(self, rules: RulesSettings | None = None) -> None:
        self._rules = rules or get_settings().rules
        self._checks: dict[type, Callable[..., ValidationResult]] = {
            AddItemAction: self._validate_add_item,
            RemoveItemAction: self._validate_remove_item,
            UseItemAction: self._validate_use_item,
            EquipItemAction: self._validate_equip_item,
            UnequipItemAction: self._validate_unequip_item,
            HealAction: self._validate_heal,
            DamageAction: self._validate_damage,
            AddGoldAction: self._validate_add_gold,
            SpendGoldAction: self._validate_spend_gold,
            AddXPAction: self._validate_add_xp,
            UpdateQuestAction: self._validate_update_quest,
            StartQuestAction: self._validate_start_quest,
            CompleteQuestAction: self._validate_complete_quest,
            ChangeLocationAction: self._validate_change_location,
            ApplyStatusAction: self._validate_apply_status,
            RemoveStatusAction: self._validate_remove_status,
        }

    @property
    def rules(self) -> RulesSettings:
        return self._rules

    def max_gold_reward(self, level: int) -> int:
        """Largest single gold award allowed at a level."""
        return self._rules.max_gold_reward(level)

    def max_xp_reward(self, level: int) -> int:
        """Largest single XP award allowed at a level."""
        return self._rules.max_xp_reward(level)

    def validate(self, action: GameAction, state: GameState) -> ValidationResult:
        """Decide whether an action may be executed against a state.

        Args:
            action: The typed action.
            state: The state it would apply to.

        Returns:
            The verdict. Action types with nothing to check are always valid.
        """
        check = self._checks.get(type(action))
        if check is None:
            return ValidationResult.valid()
        result = check(action, state)
        if not result.is_valid:
            logger.debug("Action failed validation", action_type=action.type, reason=result.reason)
        return result

    # -------------------------------------------------------------------------
    # Inventory
    # -------------------------------------------------------------------------

    def _validate_add_item(self, action: AddItemAction, state: GameState) -> ValidationResult:
        if not action.item_name or not action.item_name.strip():
            return ValidationResult.invalid("Item name is required")
        if len(action.item_name.strip()) > MAX_NAME_LENGTH:
            return ValidationResult.invalid(f"Item name is too long (max {MAX_NAME_LENGTH} characters)")
        if action.quantity < 1:
            return ValidationResult.invalid("Quantity must be at least 1", suggested_value=1)
        return ValidationResult.valid()

    def _validate_remove_item(self, action: RemoveItemAction, state: GameState) -> ValidationResult:
        if not action.item_name:
            return ValidationResult.invalid("Item name is required")
        if state.inventory.find(action.item_name) is None:
            return ValidationResult.invalid(f'Item "{action.item_name}" not found in inventory')
        if action.quantity < 1:
            return ValidationResult.invalid("Quantity must be at least 1", suggested_value=1)
        return ValidationResult.valid()

    def _validate_use_item(self, action: UseItemAction, state: GameState) -> ValidationResult:
        if not action.item_name:
            return ValidationResult.invalid("Item name is required")
        if state.inventory.find(action.item_name) is None:
            return ValidationResult.invalid(f'Item "{action.item_name}" not found in inventory')
        return ValidationResult.valid()

    def _validate_equip_item(self, action: EquipItemAction, state: GameState) -> ValidationResult:
        if not action.item_name:
            return ValidationResult.invalid("Item name is required")
        item = state.inventory.find(action.item_name)
        if item is None:
            return ValidationResult.invalid(f'Item "{action.item_name}" not found in inventory')
        if action.slot is None and not item.is_equippable:
            return ValidationResult.invalid(f'Item "{item.name}" cannot be equipped')
        return ValidationResult.valid()

    def _validate_unequip_item(self, action: UnequipItemAction, state: GameState) -> ValidationResult:
        inventory = state.inventory
        if action.slot is not None:
            if action.slot not in inventory.equipped:
                return ValidationResult.invalid(f"Nothing is equipped in the {action.slot} slot")
            return ValidationResult.valid()
        if not action.item_name:
            return ValidationResult.invalid("A slot or item name is required")
        item = inventory.find(action.item_name)
        if item is None or not inventory.is_equipped(item.id):
            return ValidationResult.invalid(f'Item "{action.item_name}" is not equipped')
        return ValidationResult.valid()

    # -------------------------------------------------------------------------
    # Hit points
    # -------------------------------------------------------------------------

    def _validate_heal(self, action: HealAction, state: GameState) -> ValidationResult:
        return _check_amount(action.amount, "Heal", self._rules)

    def _validate_damage(self, action: DamageAction, state: GameState) -> ValidationResult:
        return _check_amount(action.amount, "Damage", self._rules)

    # -------------------------------------------------------------------------
    # Currency & experience
    # -------------------------------------------------------------------------

    def _validate_add_gold(self, action: AddGoldAction, state: GameState) -> ValidationResult:
        if action.amount < 0:
            return ValidationResult.invalid("Gold amount cannot be negative", suggested_value=0)
        return ValidationResult.valid()

    def _validate_spend_gold(self, action: SpendGoldAction, state: GameState) -> ValidationResult:
        if action.amount < 0:
            return ValidationResult.invalid("Gold amount cannot be negative", suggested_value=0)
        if action.amount > state.gold:
            return ValidationResult.invalid(
                f"Not enough gold (need {action.amount}, have {state.gold})",
                suggested_value=state.gold,
            )
        return ValidationResult.valid()

    def _validate_add_xp(self, action: AddXPAction, state: GameState) -> ValidationResult:
        if action.amount < 0:
            return ValidationResult.invalid("XP amount cannot be negative", suggested_value=0)
        return ValidationResult.valid()

    # -------------------------------------------------------------------------
    # Quests
    # -------------------------------------------------------------------------

    def _validate_update_quest(self, action: UpdateQuestAction, state: GameState) -> ValidationResult:
        if not action.quest_id:
            return ValidationResult.invalid("Quest id is required")
        quest = state.quest(action.quest_id)
        if quest is None:
            return ValidationResult.invalid(f'Quest "{action.quest_id}" not found')
        if not action.objective_id:
            return ValidationResult.invalid("Objective id is required")
        if quest.objective(action.objective_id) is None:
            return ValidationResult.invalid(
                f'Objective "{action.objective_id}" not found in quest "{quest.title}"'
            )
        return ValidationResult.valid()

    def _validate_start_quest(self, action: StartQuestAction, state: GameState) -> ValidationResult:
        if not action.title or not action.title.strip():
            return ValidationResult.invalid("Quest title is required")
        if len(action.title.strip()) > MAX_QUEST_TITLE_LENGTH:
            return ValidationResult.invalid(
                f"Quest title is too long (max {MAX_QUEST_TITLE_LENGTH} characters)"
            )
        if action.quest_id and state.quest(action.quest_id) is not None:
            return ValidationResult.invalid(f'Quest "{action.quest_id}" already exists')
        return ValidationResult.valid()

    def _validate_complete_quest(
        self, action: CompleteQuestAction, state: GameState
    ) -> ValidationResult:
        if not action.quest_id:
            return ValidationResult.invalid("Quest id is required")
        quest = state.quest(action.quest_id)
        if quest is None:
            return ValidationResult.invalid(f'Quest "{action.quest_id}" not found')
        if quest.status == QuestStatus.COMPLETED:
            return ValidationResult.invalid(f'Quest "{quest.title}" is already completed')
        return ValidationResult.valid()

    # -------------------------------------------------------------------------
    # World & status
    # -------------------------------------------------------------------------

    def _validate_change_location(
        self, action: ChangeLocationAction, state: GameState
    ) -> ValidationResult:
        if not action.location_name or not action.location_name.strip():
            return ValidationResult.invalid("Location name is required")
        return ValidationResult.valid()

    def _validate_apply_status(self, action: ApplyStatusAction, state: GameState) -> ValidationResult:
        if action.condition is None:
            return ValidationResult.invalid("Unknown condition")
        return ValidationResult.valid()

    def _validate_remove_status(self, action: RemoveStatusAction, state: GameState) -> ValidationResult:
        if action.condition is None:
            return ValidationResult.invalid("Unknown condition")
        if action.condition not in state.character.conditions:
            return ValidationResult.invalid(f'Condition "{action.condition}" is not active')
        return ValidationResult.valid()


__all__ = [
    "ActionValidator",
]
