"""Pydantic V2 schemas for the D&D 5E rules engine.

Every model is frozen. State changes are expressed as new instances built
with ``model_copy(update=...)``, so a resolution step never mutates the
state it was given.

Submodules:
    enums: Enumeration types (Ability, Skill, CombatPhase, MessageType, etc.)
    progression: XP, proficiency, hit die and challenge rating tables
    character: The player character and its ability scores
    monster: Enemy stat blocks
    items: Items and the inventory
    quest: Quests and objectives
    story: Story log entries and resolution records
    game_state: Scene and the complete save state
    proposals: Structured proposals from the narrative layer
    actions: Typed game actions and validation results

Example:
    >>> from dnd_rules.models import Character, GameState
    >>> hero = Character(name="Aria", current_hit_points=10, max_hit_points=10)
    >>> state = GameState(character=hero, gold=15)
"""

from __future__ import annotations

# =============================================================================
# Enumerations
# =============================================================================
from dnd_rules.models.enums import (
    Ability,
    CharacterClass,
    CheckType,
    CombatActionType,
    CombatPhase,
    Condition,
    DamageType,
    EquipmentSlot,
    GameDifficulty,
    ItemRarity,
    ItemType,
    MessageType,
    QuestStatus,
    RestType,
    RewardType,
    RollType,
    SceneType,
    Skill,
)

# =============================================================================
# Progression Tables
# =============================================================================
from dnd_rules.models.progression import (
    XP_THRESHOLDS,
    ability_modifier,
    calculate_hp_increase,
    cr_to_experience,
    get_level_for_xp,
    get_proficiency_bonus,
)

# =============================================================================
# Entities
# =============================================================================
from dnd_rules.models.character import AbilityScores, Character
from dnd_rules.models.monster import Monster, MonsterAction, create_monster
from dnd_rules.models.items import Inventory, Item
from dnd_rules.models.quest import Quest, QuestObjective

# =============================================================================
# Story & State
# =============================================================================
from dnd_rules.models.story import CombatResult, SkillCheckResult, StoryEvent
from dnd_rules.models.game_state import GameState, Scene

# =============================================================================
# Narrative Layer Input
# =============================================================================
from dnd_rules.models.proposals import (
    CombatTrigger,
    EnemyInfo,
    NPCDialogue,
    ParsedAIProposal,
    PlayerChoice,
    ProposedCheck,
    ProposedReward,
    SceneChange,
)
from dnd_rules.models.actions import (
    GameAction,
    GameActionType,
    ValidationResult,
    parse_game_action,
)


__all__ = [
    # Enumerations
    "Ability",
    "CharacterClass",
    "CheckType",
    "CombatActionType",
    "CombatPhase",
    "Condition",
    "DamageType",
    "EquipmentSlot",
    "GameDifficulty",
    "ItemRarity",
    "ItemType",
    "MessageType",
    "QuestStatus",
    "RestType",
    "RollType",
    "RewardType",
    "SceneType",
    "Skill",
    # Progression
    "XP_THRESHOLDS",
    "ability_modifier",
    "calculate_hp_increase",
    "cr_to_experience",
    "get_level_for_xp",
    "get_proficiency_bonus",
    # Entities
    "AbilityScores",
    "Character",
    "Monster",
    "MonsterAction",
    "create_monster",
    "Inventory",
    "Item",
    "Quest",
    "QuestObjective",
    # Story & State
    "CombatResult",
    "SkillCheckResult",
    "StoryEvent",
    "GameState",
    "Scene",
    # Narrative layer
    "CombatTrigger",
    "EnemyInfo",
    "NPCDialogue",
    "ParsedAIProposal",
    "PlayerChoice",
    "ProposedCheck",
    "ProposedReward",
    "SceneChange",
    "GameAction",
    "GameActionType",
    "ValidationResult",
    "parse_game_action",
]
