"""D&D 5E Level Progression Data.

This module contains the static tables the resolution engines consult:
- XP thresholds for each level
- Proficiency bonus by level
- Hit dice by class
- Experience and baseline statistics by challenge rating

These values come from the 5E rules. The narrative layer may reference them
but can never supply its own.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from dnd_rules.core.constants import DEFAULT_HIT_DIE, MAX_CHARACTER_LEVEL
from dnd_rules.models.enums import CharacterClass


# =============================================================================
# Ability Modifiers
# =============================================================================


def ability_modifier(score: int) -> int:
    """Ability modifier for a score: floor((score - 10) / 2)."""
    return (score - 10) // 2


# =============================================================================
# XP Thresholds (PHB p.15)
# =============================================================================

XP_THRESHOLDS: dict[int, int] = {
    1: 0,
    2: 300,
    3: 900,
    4: 2700,
    5: 6500,
    6: 14000,
    7: 23000,
    8: 34000,
    9: 48000,
    10: 64000,
    11: 85000,
    12: 100000,
    13: 120000,
    14: 140000,
    15: 165000,
    16: 195000,
    17: 225000,
    18: 265000,
    19: 305000,
    20: 355000,
}


def get_level_for_xp(xp: int) -> int:
    """Determine character level based on XP."""
    for level in range(MAX_CHARACTER_LEVEL, 0, -1):
        if xp >= XP_THRESHOLDS[level]:
            return level
    return 1


def get_xp_for_next_level(current_level: int) -> int | None:
    """Get XP needed for the next level. Returns None at level 20."""
    if current_level >= MAX_CHARACTER_LEVEL:
        return None
    return XP_THRESHOLDS[current_level + 1]


# =============================================================================
# Proficiency Bonus by Level (PHB p.15)
# =============================================================================


def get_proficiency_bonus(level: int) -> int:
    """Get proficiency bonus for a given level."""
    if level <= 4:
        return 2
    if level <= 8:
        return 3
    if level <= 12:
        return 4
    if level <= 16:
        return 5
    return 6  # Levels 17-20


# =============================================================================
# Hit Dice by Class
# =============================================================================

CLASS_HIT_DIE: dict[CharacterClass, int] = {
    CharacterClass.BARBARIAN: 12,
    CharacterClass.FIGHTER: 10,
    CharacterClass.PALADIN: 10,
    CharacterClass.RANGER: 10,
    CharacterClass.BARD: 8,
    CharacterClass.CLERIC: 8,
    CharacterClass.DRUID: 8,
    CharacterClass.MONK: 8,
    CharacterClass.ROGUE: 8,
    CharacterClass.WARLOCK: 8,
    CharacterClass.SORCERER: 6,
    CharacterClass.WIZARD: 6,
}


def get_hit_die(character_class: CharacterClass) -> int:
    """Get hit die size for a class."""
    return CLASS_HIT_DIE.get(character_class, DEFAULT_HIT_DIE)


def calculate_hp_increase(hit_die: int, con_mod: int) -> int:
    """Calculate fixed HP gained for one level.

    Uses half the hit die rounded up, plus one, plus the CON modifier. A
    level always grants at least 1 HP.

    Args:
        hit_die: Size of the class hit die.
        con_mod: Constitution modifier.

    Returns:
        HP gained this level.
    """
    return max(1, math.ceil(hit_die / 2) + 1 + con_mod)


# =============================================================================
# Challenge Rating (DMG p.274)
# =============================================================================

CR_EXPERIENCE: dict[float, int] = {
    0: 10,
    0.125: 25,
    0.25: 50,
    0.5: 100,
    1: 200,
    2: 450,
    3: 700,
    4: 1100,
    5: 1800,
    6: 2300,
    7: 2900,
    8: 3900,
    9: 5000,
    10: 5900,
    11: 7200,
    12: 8400,
    13: 10000,
    14: 11500,
    15: 13000,
    16: 15000,
    17: 18000,
    18: 20000,
    19: 22000,
    20: 25000,
    21: 33000,
    22: 41000,
    23: 50000,
    24: 62000,
    25: 75000,
    26: 90000,
    27: 105000,
    28: 120000,
    29: 135000,
    30: 155000,
}


def _nearest_cr(cr: float) -> float:
    """Snap an arbitrary CR to the closest tabulated value not above it."""
    candidates = [value for value in CR_EXPERIENCE if value <= cr]
    return max(candidates) if candidates else 0


def cr_to_experience(cr: float) -> int:
    """Experience awarded for defeating a creature of the given CR."""
    return CR_EXPERIENCE[_nearest_cr(cr)]


def cr_to_proficiency_bonus(cr: float) -> int:
    """Calculate proficiency bonus from challenge rating.

    Args:
        cr: Challenge rating.

    Returns:
        Proficiency bonus (2-9 based on CR).
    """
    if cr < 5:
        return 2
    elif cr < 9:
        return 3
    elif cr < 13:
        return 4
    elif cr < 17:
        return 5
    elif cr < 21:
        return 6
    elif cr < 25:
        return 7
    elif cr < 29:
        return 8
    return 9


class MonsterBaseline(NamedTuple):
    """Baseline statistics for a creature of a given CR."""

    armor_class: int
    hit_points: int
    attack_bonus: int
    damage: str


# Condensed from the DMG "Monster Statistics by Challenge Rating" table.
CR_BASELINES: dict[float, MonsterBaseline] = {
    0: MonsterBaseline(12, 4, 3, "1d4"),
    0.125: MonsterBaseline(12, 7, 3, "1d4+1"),
    0.25: MonsterBaseline(13, 11, 3, "1d6+1"),
    0.5: MonsterBaseline(13, 18, 3, "1d6+2"),
    1: MonsterBaseline(13, 25, 3, "1d8+2"),
    2: MonsterBaseline(13, 45, 3, "2d6+2"),
    3: MonsterBaseline(13, 60, 4, "2d8+2"),
    4: MonsterBaseline(14, 75, 5, "2d8+3"),
    5: MonsterBaseline(15, 90, 6, "2d10+3"),
    8: MonsterBaseline(16, 130, 7, "3d10+4"),
    11: MonsterBaseline(17, 180, 8, "4d10+5"),
    14: MonsterBaseline(18, 230, 8, "4d12+6"),
    17: MonsterBaseline(18, 280, 10, "5d12+7"),
    20: MonsterBaseline(19, 340, 10, "6d12+8"),
    24: MonsterBaseline(19, 440, 12, "8d12+9"),
    30: MonsterBaseline(19, 600, 14, "10d12+10"),
}


def cr_baseline(cr: float) -> MonsterBaseline:
    """Baseline stat block for the closest tabulated CR not above ``cr``."""
    candidates = [value for value in CR_BASELINES if value <= cr]
    return CR_BASELINES[max(candidates) if candidates else 0]


__all__ = [
    "ability_modifier",
    "XP_THRESHOLDS",
    "get_level_for_xp",
    "get_xp_for_next_level",
    "get_proficiency_bonus",
    "CLASS_HIT_DIE",
    "get_hit_die",
    "calculate_hp_increase",
    "CR_EXPERIENCE",
    "cr_to_experience",
    "cr_to_proficiency_bonus",
    "MonsterBaseline",
    "CR_BASELINES",
    "cr_baseline",
]
