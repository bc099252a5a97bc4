"""Rule constants for the D&D 5E rules engine.

Values here are fixed by the 5E rules rather than tuned per deployment;
tunable limits live in dnd_rules.core.config.
"""

from __future__ import annotations

# =============================================================================
# Ability Scores
# =============================================================================

MIN_ABILITY_SCORE = 1
"""Minimum ability score (1 is barely functioning)."""

MAX_ABILITY_SCORE = 30
"""Maximum ability score for any creature (RAW D&D 5E)."""

DEFAULT_ABILITY_SCORE = 10
"""Ability score of an unremarkable creature (+0 modifier)."""

ABILITY_SCORE_DICE = 4
"""Number of d6 rolled when generating an ability score (keep the top 3)."""

ABILITY_SCORE_KEPT = 3
"""Number of dice kept when generating an ability score."""

# =============================================================================
# d20 Rules
# =============================================================================

NATURAL_CRITICAL = 20
"""Natural d20 result that always hits and doubles damage dice."""

NATURAL_FUMBLE = 1
"""Natural d20 result that always misses."""

DEATH_SAVE_DC = 10
"""Death saving throws succeed on 10 or higher."""

MAX_DEATH_SAVES = 3
"""Three successes stabilise, three failures kill."""

PASSIVE_CHECK_BASE = 10
"""Passive score is 10 plus the relevant modifier."""

# =============================================================================
# Character Progression
# =============================================================================

MAX_CHARACTER_LEVEL = 20
"""Maximum character level in D&D 5E."""

MIN_CHARACTER_LEVEL = 1
"""Minimum character level."""

DEFAULT_HIT_DIE = 8
"""Hit die used for classes without an explicit entry."""

DEFAULT_SPEED = 30
"""Default walking speed in feet (most medium creatures)."""

# =============================================================================
# Inventory & Reputation
# =============================================================================

DEFAULT_INVENTORY_SLOTS = 30
"""Default number of inventory slots."""

MIN_REPUTATION = -100
"""Lowest faction reputation."""

MAX_REPUTATION = 100
"""Highest faction reputation."""

# =============================================================================
# Text Limits
# =============================================================================

MAX_NAME_LENGTH = 100
"""Longest character, monster or item name."""

MAX_QUEST_TITLE_LENGTH = 200
"""Longest quest title."""


__all__ = [
    # Ability Scores
    "MIN_ABILITY_SCORE",
    "MAX_ABILITY_SCORE",
    "DEFAULT_ABILITY_SCORE",
    "ABILITY_SCORE_DICE",
    "ABILITY_SCORE_KEPT",
    # d20 Rules
    "NATURAL_CRITICAL",
    "NATURAL_FUMBLE",
    "DEATH_SAVE_DC",
    "MAX_DEATH_SAVES",
    "PASSIVE_CHECK_BASE",
    # Progression
    "MAX_CHARACTER_LEVEL",
    "MIN_CHARACTER_LEVEL",
    "DEFAULT_HIT_DIE",
    "DEFAULT_SPEED",
    # Inventory & Reputation
    "DEFAULT_INVENTORY_SLOTS",
    "MIN_REPUTATION",
    "MAX_REPUTATION",
    # Text Limits
    "MAX_NAME_LENGTH",
    "MAX_QUEST_TITLE_LENGTH",
]
