"""Tests for typed game actions and wire-format parsing."""

from __future__ import annotations

import json

import pytest

from dnd_rules.core.exceptions import UnknownActionTypeError, ValidationError
from dnd_rules.models.actions import (
    AddGoldAction,
    AddItemAction,
    ApplyStatusAction,
    DamageAction,
    EquipItemAction,
    GameActionType,
    HealAction,
    RestAction,
    StartQuestAction,
    UpdateQuestAction,
    ValidationResult,
    parse_game_action,
)
from dnd_rules.models.enums import (
    Condition,
    DamageType,
    EquipmentSlot,
    ItemRarity,
    RestType,
)


class TestParseGameAction:
    """Tests for parse_game_action."""

    def test_add_gold(self) -> None:
        """Test the basic envelope."""
        action = parse_game_action(
            {"type": "addGold", "params": {"amount": 500}, "narration": "Coins spill out."}
        )

        assert isinstance(action, AddGoldAction)
        assert action.type == GameActionType.ADD_GOLD
        assert action.amount == 500
        assert action.narration == "Coins spill out."

    def test_unknown_type_raises(self) -> None:
        """Test an unknown tag raises with the tag recorded."""
        with pytest.raises(UnknownActionTypeError) as exc_info:
            parse_game_action({"type": "teleport", "params": {}})

        assert exc_info.value.details["action_type"] == "teleport"

    def test_missing_type_raises(self) -> None:
        """Test a payload without a type is unknown."""
        with pytest.raises(UnknownActionTypeError):
            parse_game_action({"params": {"amount": 1}})

    def test_missing_params_defaults(self) -> None:
        """Test params may be absent."""
        action = parse_game_action({"type": "rest"})

        assert isinstance(action, RestAction)
        assert action.rest_type == RestType.SHORT

    def test_malformed_params_wrapped(self) -> None:
        """Test structurally broken params raise the engine ValidationError."""
        with pytest.raises(ValidationError) as exc_info:
            parse_game_action(
                {"type": "startQuest", "params": {"title": "Q", "objectives": "not a list"}}
            )

        assert exc_info.value.details["field_name"] == "params"

    def test_add_item_camel_case(self) -> None:
        """Test camelCase params and lenient enums."""
        action = parse_game_action(
            {
                "type": "addItem",
                "params": {"itemName": "Flame Tongue", "quantity": "2", "rarity": "RARE"},
            }
        )

        assert isinstance(action, AddItemAction)
        assert action.item_name == "Flame Tongue"
        assert action.quantity == 2
        assert action.rarity == ItemRarity.RARE

    def test_unknown_enum_values_become_none(self) -> None:
        """Test unknown slot and condition values degrade to None."""
        equip = parse_game_action({"type": "equipItem", "params": {"itemName": "Hat", "slot": "tail"}})
        status = parse_game_action({"type": "applyStatus", "params": {"condition": "sleepy"}})

        assert isinstance(equip, EquipItemAction)
        assert equip.slot is None
        assert isinstance(status, ApplyStatusAction)
        assert status.condition is None

    def test_enum_lookup_by_name(self) -> None:
        """Test enum members resolve by value or name, ignoring case."""
        equip = parse_game_action({"type": "equipItem", "params": {"slot": "main_hand"}})
        status = parse_game_action({"type": "applyStatus", "params": {"condition": "Poisoned"}})

        assert equip.slot == EquipmentSlot.MAIN_HAND
        assert status.condition == Condition.POISONED


class TestAmountParsing:
    """Tests for amount coercion on action variants."""

    def test_heal_notation_kept(self) -> None:
        """Test dice notation stays a string."""
        action = parse_game_action({"type": "heal", "params": {"amount": "2d4+2"}})

        assert isinstance(action, HealAction)
        assert action.amount == "2d4+2"

    def test_heal_number_becomes_string(self) -> None:
        """Test flat numbers are stored as text."""
        assert HealAction.model_validate({"amount": 7}).amount == "7"

    def test_heal_garbage_becomes_none(self) -> None:
        """Test booleans and blanks read as no amount."""
        assert HealAction.model_validate({"amount": True}).amount is None
        assert HealAction.model_validate({"amount": "  "}).amount is None

    def test_damage_type_lenient(self) -> None:
        """Test damage type resolves leniently."""
        action = DamageAction.model_validate({"amount": "1d6", "damageType": "FIRE"})

        assert action.damage_type == DamageType.FIRE

    def test_gold_malformed_amount(self) -> None:
        """Test an unreadable gold amount reads as zero."""
        assert AddGoldAction.model_validate({"amount": "a lot"}).amount == 0

    def test_quest_progress_default(self) -> None:
        """Test progress defaults to one and malformed progress reads as zero."""
        assert UpdateQuestAction.model_validate({"questId": "q1"}).progress == 1
        assert UpdateQuestAction.model_validate({"questId": "q1", "progress": "?"}).progress == 0

    @pytest.mark.parametrize("literal", ["Infinity", "-Infinity", "NaN"])
    def test_non_finite_heal_amount(self, literal: str) -> None:
        """Test infinite or NaN heal amounts read as no amount."""
        action = parse_game_action(json.loads(f'{{"type": "heal", "params": {{"amount": {literal}}}}}'))

        assert isinstance(action, HealAction)
        assert action.amount is None

    def test_non_finite_gold_amount(self) -> None:
        """Test infinite and overflowing gold amounts read as zero."""
        infinite = parse_game_action(json.loads('{"type": "addGold", "params": {"amount": Infinity}}'))
        overflowing = parse_game_action({"type": "addGold", "params": {"amount": "1e400"}})

        assert infinite.amount == 0
        assert overflowing.amount == 0


class TestStartQuestAction:
    """Tests for quest definitions inside actions."""

    def test_objective_target_aliases(self) -> None:
        """Test target, targetProgress and target_progress are accepted."""
        action = StartQuestAction.model_validate(
            {
                "questId": "rats",
                "title": "Rat Problem",
                "objectives": [
                    {"id": "kill", "description": "Kill rats", "target": 5},
                    {"id": "report", "targetProgress": "1"},
                    {"id": "bonus", "target_progress": 0},
                ],
            }
        )

        assert [o.target_progress for o in action.objectives] == [5, 1, 1]


class TestValidationResult:
    """Tests for ValidationResult constructors."""

    def test_valid(self) -> None:
        """Test the accepting result."""
        result = ValidationResult.valid()

        assert result.is_valid
        assert result.reason is None

    def test_invalid_with_suggestion(self) -> None:
        """Test the rejecting result carries reason and suggestion."""
        result = ValidationResult.invalid("Not enough gold (need 50, have 10)", suggested_value=10)

        assert not result.is_valid
        assert result.reason == "Not enough gold (need 50, have 10)"
        assert result.suggested_value == 10
