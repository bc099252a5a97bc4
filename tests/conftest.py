"""Pytest configuration and shared fixtures.

This module provides common fixtures and configuration for all tests
in the rules engine test suite.
"""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING

import pytest

from dnd_rules.core.config import RulesSettings
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.models.character import AbilityScores, Character
from dnd_rules.models.enums import Skill
from dnd_rules.models.game_state import GameState
from dnd_rules.models.monster import Monster, MonsterAction


if TYPE_CHECKING:
    from collections.abc import Generator


# =============================================================================
# Scripted Randomness
# =============================================================================


class ScriptedRandom(random.Random):
    """Random source that returns queued ``randint`` results in order.

    Each queued value must lie within the requested range, so a test that
    scripts a 7 for a d6 fails loudly instead of silently passing.
    """

    def __init__(self, values: Iterable[int]) -> None:
        super().__init__(0)
        self._values = list(values)
        self.calls: list[tuple[int, int]] = []

    @property
    def remaining(self) -> int:
        return len(self._values)

    def randint(self, a: int, b: int) -> int:
        self.calls.append((a, b))
        if not self._values:
            raise AssertionError(f"ScriptedRandom exhausted on randint({a}, {b})")
        value = self._values.pop(0)
        if not a <= value <= b:
            raise AssertionError(f"Scripted value {value} outside randint({a}, {b})")
        return value


@pytest.fixture
def scripted_dice() -> Callable[..., DiceRoller]:
    """Factory for a DiceRoller that rolls the given values in order."""

    def factory(*values: int) -> DiceRoller:
        return DiceRoller(rng=ScriptedRandom(values))

    return factory


@pytest.fixture
def dice_roller() -> DiceRoller:
    """Seeded dice roller for statistical tests."""
    return DiceRoller(seed=42)


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Reset the settings cache before and after each test."""
    from dnd_rules.core.config import clear_settings_cache

    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def rules() -> RulesSettings:
    """Default rule settings, independent of the environment."""
    return RulesSettings(_env_file=None)


# =============================================================================
# Model Fixtures
# =============================================================================


@pytest.fixture
def sample_ability_scores() -> AbilityScores:
    """Provide a standard-array fighter spread.

    Returns:
        STR 15, DEX 14, CON 13, INT 12, WIS 10, CHA 8.
    """
    return AbilityScores(
        strength=15,
        dexterity=14,
        constitution=13,
        intelligence=12,
        wisdom=10,
        charisma=8,
    )


@pytest.fixture
def sample_character(sample_ability_scores: AbilityScores) -> Character:
    """Provide a level 1 fighter at full health.

    Returns:
        Character with 10/10 HP, AC 14 and proficiency in Athletics.
    """
    return Character(
        name="Thorin",
        race="Dwarf",
        level=1,
        ability_scores=sample_ability_scores,
        current_hit_points=10,
        max_hit_points=10,
        armor_class=14,
        proficient_skills=frozenset({Skill.ATHLETICS}),
        hit_dice_remaining=1,
    )


@pytest.fixture
def sample_state(sample_character: Character) -> GameState:
    """Provide a fresh game state with 15 gold."""
    return GameState(save_name="Test Save", character=sample_character, gold=15)


@pytest.fixture
def goblin() -> Monster:
    """Provide a goblin with a scimitar attack."""
    return Monster(
        name="Goblin",
        armor_class=15,
        current_hit_points=7,
        max_hit_points=7,
        ability_scores=AbilityScores(strength=8, dexterity=14, constitution=10),
        experience_value=50,
        actions=(MonsterAction(name="Scimitar", attack_bonus=4, damage="1d6+2"),),
    )


@pytest.fixture
def weak_goblin(goblin: Monster) -> Monster:
    """Provide a goblin with 1 HP and AC 10."""
    return goblin.model_copy(update={"current_hit_points": 1, "armor_class": 10})
