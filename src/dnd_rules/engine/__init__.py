"""Resolution engines for the D&D 5E rules engine.

Submodules:
    dice: Dice rolling on an injectable random source
    skill_checks: Skill, ability, saving throw and contested checks
    combat: Single combat events (initiative, attacks, healing, level-up)
    turn_manager: The encounter state machine
    items: Known-item catalog and keyword inference for free-text items

Example:
    >>> from dnd_rules.engine import CombatEngine, CombatManager, DiceRoller
    >>> dice = DiceRoller(seed=42)
    >>> manager = CombatManager(CombatEngine(dice))
    >>> start = manager.start_combat(hero, [goblin])
"""

from __future__ import annotations

# =============================================================================
# Dice Rolling
# =============================================================================
from dnd_rules.engine.dice import (
    AbilityScoreRoll,
    AttackRoll,
    CheckRoll,
    D20Roll,
    DeathSaveRoll,
    DiceRoll,
    DiceRoller,
    NotationRoll,
    RollType,
    SaveRoll,
)

# =============================================================================
# Checks
# =============================================================================
from dnd_rules.engine.skill_checks import (
    ContestedCheckOutcome,
    SkillCheckEngine,
    SkillCheckOutcome,
)

# =============================================================================
# Combat
# =============================================================================
from dnd_rules.engine.combat import (
    CombatEngine,
    DeathSaveResult,
    HealingResult,
    InitiativeEntry,
    LevelUpResult,
    MonsterAttackResult,
    PlayerAttackResult,
)
from dnd_rules.engine.turn_manager import (
    CombatManager,
    CombatStartResult,
    CombatState,
    EnemyCombatResult,
    PlayerCombatAction,
    PlayerCombatResult,
)

# =============================================================================
# Items
# =============================================================================
from dnd_rules.engine.items import ItemCatalog, ItemTemplate, infer_item_template


__all__ = [
    # Dice
    "AbilityScoreRoll",
    "AttackRoll",
    "CheckRoll",
    "D20Roll",
    "DeathSaveRoll",
    "DiceRoll",
    "DiceRoller",
    "NotationRoll",
    "RollType",
    "SaveRoll",
    # Checks
    "ContestedCheckOutcome",
    "SkillCheckEngine",
    "SkillCheckOutcome",
    # Combat
    "CombatEngine",
    "DeathSaveResult",
    "HealingResult",
    "InitiativeEntry",
    "LevelUpResult",
    "MonsterAttackResult",
    "PlayerAttackResult",
    "CombatManager",
    "CombatStartResult",
    "CombatState",
    "EnemyCombatResult",
    "PlayerCombatAction",
    "PlayerCombatResult",
    # Items
    "ItemCatalog",
    "ItemTemplate",
    "infer_item_template",
]
