"""Enumeration types for the D&D 5E rules engine.

Every enum is a StrEnum so values serialize as stable string tags. Enums
that appear in payloads exchanged with the narrative layer (check types,
reward types, message types, combat phases) use the camelCase tags of that
wire format.

Ability and Skill expose a lenient ``parse`` that maps free-text AI output
("Sleight of Hand", "DEX", "sleightOfHand") to a member, or None when the
text is not recognised.
"""

from __future__ import annotations

import re
from enum import StrEnum


def _normalize(text: str) -> str:
    return re.sub(r"[^a-z]", "", text.lower())


class Ability(StrEnum):
    """D&D 5E ability scores."""

    STR = "strength"
    DEX = "dexterity"
    CON = "constitution"
    INT = "intelligence"
    WIS = "wisdom"
    CHA = "charisma"

    @property
    def full_name(self) -> str:
        """Get the full name of the ability.

        Returns:
            Full ability name (e.g., 'Strength' for STR).
        """
        return self.value.capitalize()

    @property
    def abbreviation(self) -> str:
        """Get the three-letter abbreviation.

        Returns:
            Three-letter abbreviation (e.g., 'STR').
        """
        return self.name

    @classmethod
    def parse(cls, text: str | None) -> Ability | None:
        """Resolve free text to an ability.

        Args:
            text: Ability name or abbreviation in any case.

        Returns:
            The matching Ability, or None if unrecognised.
        """
        if not text:
            return None
        key = _normalize(text)
        for ability in cls:
            if key in (ability.value, ability.name.lower()):
                return ability
        return None


class Skill(StrEnum):
    """D&D 5E skills and their associated abilities."""

    # Strength skills
    ATHLETICS = "athletics"

    # Dexterity skills
    ACROBATICS = "acrobatics"
    SLEIGHT_OF_HAND = "sleight_of_hand"
    STEALTH = "stealth"

    # Intelligence skills
    ARCANA = "arcana"
    HISTORY = "history"
    INVESTIGATION = "investigation"
    NATURE = "nature"
    RELIGION = "religion"

    # Wisdom skills
    ANIMAL_HANDLING = "animal_handling"
    INSIGHT = "insight"
    MEDICINE = "medicine"
    PERCEPTION = "perception"
    SURVIVAL = "survival"

    # Charisma skills
    DECEPTION = "deception"
    INTIMIDATION = "intimidation"
    PERFORMANCE = "performance"
    PERSUASION = "persuasion"

    @property
    def ability(self) -> Ability:
        """Get the primary ability score for this skill.

        Returns:
            The Ability enum value associated with this skill.
        """
        return _SKILL_ABILITIES[self]

    @property
    def display_name(self) -> str:
        """Human-readable skill name (e.g., 'Sleight Of Hand')."""
        return self.value.replace("_", " ").title()

    @classmethod
    def parse(cls, text: str | None) -> Skill | None:
        """Resolve free text to a skill.

        Args:
            text: Skill name in snake_case, camelCase or plain words.

        Returns:
            The matching Skill, or None if unrecognised.
        """
        if not text:
            return None
        key = _normalize(text)
        for skill in cls:
            if key == _normalize(skill.value):
                return skill
        return None


_SKILL_ABILITIES: dict[Skill, Ability] = {
    Skill.ATHLETICS: Ability.STR,
    Skill.ACROBATICS: Ability.DEX,
    Skill.SLEIGHT_OF_HAND: Ability.DEX,
    Skill.STEALTH: Ability.DEX,
    Skill.ARCANA: Ability.INT,
    Skill.HISTORY: Ability.INT,
    Skill.INVESTIGATION: Ability.INT,
    Skill.NATURE: Ability.INT,
    Skill.RELIGION: Ability.INT,
    Skill.ANIMAL_HANDLING: Ability.WIS,
    Skill.INSIGHT: Ability.WIS,
    Skill.MEDICINE: Ability.WIS,
    Skill.PERCEPTION: Ability.WIS,
    Skill.SURVIVAL: Ability.WIS,
    Skill.DECEPTION: Ability.CHA,
    Skill.INTIMIDATION: Ability.CHA,
    Skill.PERFORMANCE: Ability.CHA,
    Skill.PERSUASION: Ability.CHA,
}


class CharacterClass(StrEnum):
    """D&D 5E character classes."""

    BARBARIAN = "barbarian"
    BARD = "bard"
    CLERIC = "cleric"
    DRUID = "druid"
    FIGHTER = "fighter"
    MONK = "monk"
    PALADIN = "paladin"
    RANGER = "ranger"
    ROGUE = "rogue"
    SORCERER = "sorcerer"
    WARLOCK = "warlock"
    WIZARD = "wizard"


class DamageType(StrEnum):
    """D&D 5E damage types."""

    ACID = "acid"
    BLUDGEONING = "bludgeoning"
    COLD = "cold"
    FIRE = "fire"
    FORCE = "force"
    LIGHTNING = "lightning"
    NECROTIC = "necrotic"
    PIERCING = "piercing"
    POISON = "poison"
    PSYCHIC = "psychic"
    RADIANT = "radiant"
    SLASHING = "slashing"
    THUNDER = "thunder"

    @property
    def display_name(self) -> str:
        """Capitalised damage type name."""
        return self.value.capitalize()


class Condition(StrEnum):
    """D&D 5E conditions that can affect creatures."""

    BLINDED = "blinded"
    CHARMED = "charmed"
    DEAFENED = "deafened"
    EXHAUSTION = "exhaustion"
    FRIGHTENED = "frightened"
    GRAPPLED = "grappled"
    INCAPACITATED = "incapacitated"
    INVISIBLE = "invisible"
    PARALYZED = "paralyzed"
    PETRIFIED = "petrified"
    POISONED = "poisoned"
    PRONE = "prone"
    RESTRAINED = "restrained"
    STUNNED = "stunned"
    UNCONSCIOUS = "unconscious"


class ItemType(StrEnum):
    """Broad item categories used for inventory and inference."""

    WEAPON = "weapon"
    ARMOR = "armor"
    POTION = "potion"
    SCROLL = "scroll"
    ACCESSORY = "accessory"
    QUEST_ITEM = "questItem"
    MISC = "misc"


class ItemRarity(StrEnum):
    """Item rarity with its value multiplier over the base price."""

    COMMON = "common"
    UNCOMMON = "uncommon"
    RARE = "rare"
    VERY_RARE = "veryRare"
    LEGENDARY = "legendary"

    @property
    def value_multiplier(self) -> int:
        """Factor applied to an item's base value."""
        return _RARITY_MULTIPLIERS[self]


_RARITY_MULTIPLIERS: dict[ItemRarity, int] = {
    ItemRarity.COMMON: 1,
    ItemRarity.UNCOMMON: 5,
    ItemRarity.RARE: 20,
    ItemRarity.VERY_RARE: 50,
    ItemRarity.LEGENDARY: 100,
}


class EquipmentSlot(StrEnum):
    """Equipment slots on a character."""

    MAIN_HAND = "mainHand"
    OFF_HAND = "offHand"
    ARMOR = "armor"
    HEAD = "head"
    HANDS = "hands"
    FEET = "feet"
    NECK = "neck"
    RING = "ring"


class CheckType(StrEnum):
    """Kinds of d20 checks the narrative layer may propose."""

    SKILL = "skill"
    ABILITY = "ability"
    SAVING_THROW = "savingThrow"
    ATTACK = "attack"
    CONTEST = "contest"


class RewardType(StrEnum):
    """Kinds of reward the narrative layer may propose."""

    EXPERIENCE = "experience"
    GOLD = "gold"
    ITEM = "item"
    REPUTATION = "reputation"


class MessageType(StrEnum):
    """Story log entry types."""

    NARRATION = "narration"
    PLAYER_ACTION = "playerAction"
    DIALOGUE = "dialogue"
    SKILL_CHECK = "skillCheck"
    COMBAT = "combat"
    SYSTEM = "system"
    ITEM_RECEIVED = "itemReceived"
    QUEST_UPDATE = "questUpdate"
    LEVEL_UP = "levelUp"


class CombatPhase(StrEnum):
    """Combat encounter phases.

    ``initiative`` is transient: an encounter leaves it as soon as the order
    is rolled. ``victory``, ``defeat`` and ``resolution`` (fled) are terminal.
    """

    INITIATIVE = "initiative"
    PLAYER_TURN = "playerTurn"
    ENEMY_TURN = "enemyTurn"
    RESOLUTION = "resolution"
    VICTORY = "victory"
    DEFEAT = "defeat"

    @property
    def is_terminal(self) -> bool:
        """Whether no further actions are processed in this phase."""
        return self in (CombatPhase.RESOLUTION, CombatPhase.VICTORY, CombatPhase.DEFEAT)


class CombatActionType(StrEnum):
    """Actions a player may take on their combat turn."""

    MELEE_ATTACK = "meleeAttack"
    RANGED_ATTACK = "rangedAttack"
    SPELL_ATTACK = "spellAttack"
    DODGE = "dodge"
    DASH = "dash"
    DISENGAGE = "disengage"
    HELP = "help"
    HIDE = "hide"
    READY = "ready"
    HEALING = "healing"
    FLEE = "flee"

    @property
    def is_attack(self) -> bool:
        """Whether this action resolves an attack roll."""
        return self in (
            CombatActionType.MELEE_ATTACK,
            CombatActionType.RANGED_ATTACK,
            CombatActionType.SPELL_ATTACK,
        )


class GameDifficulty(StrEnum):
    """Campaign difficulty, scaling incoming monster damage."""

    EASY = "easy"
    NORMAL = "normal"
    HARD = "hard"
    NIGHTMARE = "nightmare"

    @property
    def damage_multiplier(self) -> float:
        """Multiplier applied to damage dealt to the player."""
        return _DIFFICULTY_MULTIPLIERS[self]


_DIFFICULTY_MULTIPLIERS: dict[GameDifficulty, float] = {
    GameDifficulty.EASY: 0.75,
    GameDifficulty.NORMAL: 1.0,
    GameDifficulty.HARD: 1.25,
    GameDifficulty.NIGHTMARE: 1.5,
}


class SceneType(StrEnum):
    """Kinds of scene."""

    EXPLORATION = "exploration"
    COMBAT = "combat"
    DIALOGUE = "dialogue"
    TOWN = "town"
    DUNGEON = "dungeon"
    REST = "rest"


class QuestStatus(StrEnum):
    """Quest lifecycle states."""

    AVAILABLE = "available"
    ACTIVE = "active"
    COMPLETED = "completed"
    FAILED = "failed"


class RestType(StrEnum):
    """Types of rest in D&D 5E."""

    SHORT = "short"
    LONG = "long"


class RollType(StrEnum):
    """How a d20 was rolled."""

    NORMAL = "normal"
    ADVANTAGE = "advantage"
    DISADVANTAGE = "disadvantage"


__all__ = [
    "Ability",
    "Skill",
    "CharacterClass",
    "DamageType",
    "Condition",
    "ItemType",
    "ItemRarity",
    "EquipmentSlot",
    "CheckType",
    "RewardType",
    "MessageType",
    "CombatPhase",
    "CombatActionType",
    "GameDifficulty",
    "SceneType",
    "QuestStatus",
    "RestType",
    "RollType",
]
