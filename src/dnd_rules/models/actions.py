"""Typed game actions proposed by the narrative layer.

On the wire an action is ``{type, params, narration}``, with ``params`` an
untyped bag. Inside the engine each action type is its own frozen model, and
``GameAction`` is the discriminated union over them, so the executor
dispatches on concrete classes rather than dictionary keys.

Example:
    >>> action = parse_game_action({"type": "addGold", "params": {"amount": 500}})
    >>> isinstance(action, AddGoldAction)
    True
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from enum import StrEnum
from typing import Annotated, Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from dnd_rules.core.exceptions import UnknownActionTypeError, ValidationError
from dnd_rules.models.enums import (
    Condition,
    DamageType,
    EquipmentSlot,
    ItemRarity,
    RestType,
    SceneType,
)
from dnd_rules.models.proposals import lenient_int


class GameActionType(StrEnum):
    """Every action type the engine knows how to validate and execute."""

    ADD_ITEM = "addItem"
    REMOVE_ITEM = "removeItem"
    USE_ITEM = "useItem"
    EQUIP_ITEM = "equipItem"
    UNEQUIP_ITEM = "unequipItem"
    HEAL = "heal"
    DAMAGE = "damage"
    ADD_GOLD = "addGold"
    SPEND_GOLD = "spendGold"
    ADD_XP = "addXP"
    UPDATE_QUEST = "updateQuest"
    START_QUEST = "startQuest"
    COMPLETE_QUEST = "completeQuest"
    CHANGE_LOCATION = "changeLocation"
    APPLY_STATUS = "applyStatus"
    REMOVE_STATUS = "removeStatus"
    REST = "rest"


def _optional_enum(enum_cls: type[StrEnum], value: Any) -> Any:
    if value is None or isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        for member in enum_cls:
            if value.lower() in (member.value.lower(), member.name.lower()):
                return member
    return None


class BaseAction(BaseModel):
    """Fields shared by every action."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    narration: str | None = None


# =============================================================================
# Inventory Actions
# =============================================================================


class AddItemAction(BaseAction):
    """Grant one or more copies of an item."""

    type: Literal[GameActionType.ADD_ITEM] = GameActionType.ADD_ITEM
    item_name: str | None = None
    quantity: int = 1
    rarity: ItemRarity | None = None
    description: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def parse_quantity(cls, value: Any) -> int:
        return lenient_int(value, default=1)

    @field_validator("rarity", mode="before")
    @classmethod
    def parse_rarity(cls, value: Any) -> Any:
        return _optional_enum(ItemRarity, value)


class RemoveItemAction(BaseAction):
    """Remove copies of an item."""

    type: Literal[GameActionType.REMOVE_ITEM] = GameActionType.REMOVE_ITEM
    item_name: str | None = None
    quantity: int = 1

    @field_validator("quantity", mode="before")
    @classmethod
    def parse_quantity(cls, value: Any) -> int:
        return lenient_int(value, default=1)


class UseItemAction(BaseAction):
    """Use an item, consuming it if it is consumable."""

    type: Literal[GameActionType.USE_ITEM] = GameActionType.USE_ITEM
    item_name: str | None = None


class EquipItemAction(BaseAction):
    """Equip an inventory item."""

    type: Literal[GameActionType.EQUIP_ITEM] = GameActionType.EQUIP_ITEM
    item_name: str | None = None
    slot: EquipmentSlot | None = None

    @field_validator("slot", mode="before")
    @classmethod
    def parse_slot(cls, value: Any) -> Any:
        return _optional_enum(EquipmentSlot, value)


class UnequipItemAction(BaseAction):
    """Unequip by slot or by item name."""

    type: Literal[GameActionType.UNEQUIP_ITEM] = GameActionType.UNEQUIP_ITEM
    item_name: str | None = None
    slot: EquipmentSlot | None = None

    @field_validator("slot", mode="before")
    @classmethod
    def parse_slot(cls, value: Any) -> Any:
        return _optional_enum(EquipmentSlot, value)


# =============================================================================
# Hit Point Actions
# =============================================================================


class _AmountNotationAction(BaseAction):
    """An action whose amount is dice notation or a flat number."""

    amount: str | None = None
    source: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> str | None:
        if isinstance(value, bool) or value is None:
            return None
        if isinstance(value, int):
            return str(value)
        if isinstance(value, float):
            return str(round(value)) if math.isfinite(value) else None
        if isinstance(value, str):
            return value.strip() or None
        return None


class HealAction(_AmountNotationAction):
    """Restore hit points."""

    type: Literal[GameActionType.HEAL] = GameActionType.HEAL


class DamageAction(_AmountNotationAction):
    """Deal damage to the player."""

    type: Literal[GameActionType.DAMAGE] = GameActionType.DAMAGE
    damage_type: DamageType | None = None

    @field_validator("damage_type", mode="before")
    @classmethod
    def parse_damage_type(cls, value: Any) -> Any:
        return _optional_enum(DamageType, value)


# =============================================================================
# Currency & Experience Actions
# =============================================================================


class _AmountAction(BaseAction):
    amount: int = 0

    @field_validator("amount", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> int:
        return lenient_int(value, default=0)


class AddGoldAction(_AmountAction):
    """Grant gold (capped by level)."""

    type: Literal[GameActionType.ADD_GOLD] = GameActionType.ADD_GOLD
    source: str | None = None


class SpendGoldAction(_AmountAction):
    """Spend gold the character has."""

    type: Literal[GameActionType.SPEND_GOLD] = GameActionType.SPEND_GOLD
    reason: str | None = None


class AddXPAction(_AmountAction):
    """Grant experience (capped by level)."""

    type: Literal[GameActionType.ADD_XP] = GameActionType.ADD_XP
    reason: str | None = None


# =============================================================================
# Quest Actions
# =============================================================================


class UpdateQuestAction(BaseAction):
    """Advance a quest objective by a progress delta."""

    type: Literal[GameActionType.UPDATE_QUEST] = GameActionType.UPDATE_QUEST
    quest_id: str | None = None
    objective_id: str | None = None
    progress: int = 1

    @field_validator("progress", mode="before")
    @classmethod
    def parse_progress(cls, value: Any) -> int:
        return lenient_int(value, default=0)


class QuestObjectiveSpec(BaseModel):
    """Objective definition inside a startQuest action."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str | None = None
    description: str = ""
    target_progress: int = Field(
        default=1,
        validation_alias=AliasChoices("target", "targetProgress", "target_progress"),
    )

    @field_validator("target_progress", mode="before")
    @classmethod
    def parse_target(cls, value: Any) -> int:
        return max(1, lenient_int(value, default=1))


class StartQuestAction(BaseAction):
    """Begin tracking a new quest."""

    type: Literal[GameActionType.START_QUEST] = GameActionType.START_QUEST
    quest_id: str | None = None
    title: str | None = None
    description: str = ""
    objectives: tuple[QuestObjectiveSpec, ...] = ()


class CompleteQuestAction(BaseAction):
    """Mark a quest completed."""

    type: Literal[GameActionType.COMPLETE_QUEST] = GameActionType.COMPLETE_QUEST
    quest_id: str | None = None


# =============================================================================
# World & Status Actions
# =============================================================================


class ChangeLocationAction(BaseAction):
    """Move to a new scene."""

    type: Literal[GameActionType.CHANGE_LOCATION] = GameActionType.CHANGE_LOCATION
    location_name: str | None = None
    description: str = ""
    scene_type: SceneType | None = None

    @field_validator("scene_type", mode="before")
    @classmethod
    def parse_scene_type(cls, value: Any) -> Any:
        return _optional_enum(SceneType, value)


class ApplyStatusAction(BaseAction):
    """Apply a condition to the player."""

    type: Literal[GameActionType.APPLY_STATUS] = GameActionType.APPLY_STATUS
    condition: Condition | None = None

    @field_validator("condition", mode="before")
    @classmethod
    def parse_condition(cls, value: Any) -> Any:
        return _optional_enum(Condition, value)


class RemoveStatusAction(BaseAction):
    """Remove a condition from the player."""

    type: Literal[GameActionType.REMOVE_STATUS] = GameActionType.REMOVE_STATUS
    condition: Condition | None = None

    @field_validator("condition", mode="before")
    @classmethod
    def parse_condition(cls, value: Any) -> Any:
        return _optional_enum(Condition, value)


class RestAction(BaseAction):
    """Take a short or long rest."""

    type: Literal[GameActionType.REST] = GameActionType.REST
    rest_type: RestType = RestType.SHORT

    @field_validator("rest_type", mode="before")
    @classmethod
    def parse_rest_type(cls, value: Any) -> Any:
        return _optional_enum(RestType, value) or RestType.SHORT


# =============================================================================
# Discriminated Union: GameAction
# =============================================================================

GameAction = Annotated[
    AddItemAction
    | RemoveItemAction
    | UseItemAction
    | EquipItemAction
    | UnequipItemAction
    | HealAction
    | DamageAction
    | AddGoldAction
    | SpendGoldAction
    | AddXPAction
    | UpdateQuestAction
    | StartQuestAction
    | CompleteQuestAction
    | ChangeLocationAction
    | ApplyStatusAction
    | RemoveStatusAction
    | RestAction,
    Field(discriminator="type"),
]
"""Discriminated union of every action; ``type`` selects the variant."""

_GAME_ACTION_ADAPTER: TypeAdapter[GameAction] = TypeAdapter(GameAction)


def parse_game_action(payload: Mapping[str, Any]) -> GameAction:
    """Convert a wire-format action into its typed variant.

    Args:
        payload: Mapping with ``type``, ``params`` and optional ``narration``.

    Returns:
        The typed action.

    Raises:
        UnknownActionTypeError: If ``type`` is not a known action tag.
        ValidationError: If the parameters cannot be read at all.
    """
    tag = payload.get("type")
    known = {action_type.value for action_type in GameActionType}
    if tag not in known:
        raise UnknownActionTypeError(f"Unknown action type: {tag!r}", action_type=str(tag))

    params = payload.get("params")
    data: dict[str, Any] = dict(params) if isinstance(params, Mapping) else {}
    data["type"] = GameActionType(tag)
    if payload.get("narration") is not None:
        data["narration"] = payload["narration"]

    try:
        return _GAME_ACTION_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise ValidationError(
            f"Malformed parameters for {tag} action",
            field_name="params",
            details={"errors": exc.errors(include_url=False)},
        ) from exc


# =============================================================================
# Validation Result
# =============================================================================


class ValidationResult(BaseModel):
    """Outcome of validating one action against the current state.

    Attributes:
        is_valid: Whether the action may be executed.
        reason: Human-readable rejection reason.
        suggested_value: A corrected value the caller may retry with.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    is_valid: bool
    reason: str | None = None
    suggested_value: Any | None = None

    @classmethod
    def valid(cls) -> ValidationResult:
        """An accepting result."""
        return cls(is_valid=True)

    @classmethod
    def invalid(cls, reason: str, suggested_value: Any | None = None) -> ValidationResult:
        """A rejecting result with a reason."""
        return cls(is_valid=False, reason=reason, suggested_value=suggested_value)


__all__ = [
    "GameActionType",
    "BaseAction",
    "AddItemAction",
    "RemoveItemAction",
    "UseItemAction",
    "EquipItemAction",
    "UnequipItemAction",
    "HealAction",
    "DamageAction",
    "AddGoldAction",
    "SpendGoldAction",
    "AddXPAction",
    "UpdateQuestAction",
    "QuestObjectiveSpec",
    "StartQuestAction",
    "CompleteQuestAction",
    "ChangeLocationAction",
    "ApplyStatusAction",
    "RemoveStatusAction",
    "RestAction",
    "GameAction",
    "parse_game_action",
    "ValidationResult",
]
