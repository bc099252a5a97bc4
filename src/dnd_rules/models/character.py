"""Pydantic V2 schemas for the player character.

The character is an immutable value: every executor operation returns a
new instance built with ``model_copy(update=...)``. Derived values
(modifiers, proficiency, passive scores) are properties so they are never
serialized and always agree with the underlying fields.
"""

from __future__ import annotations

from typing import Annotated
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dnd_rules.core.constants import (
    DEFAULT_ABILITY_SCORE,
    DEFAULT_SPEED,
    MAX_ABILITY_SCORE,
    MAX_CHARACTER_LEVEL,
    MAX_DEATH_SAVES,
    MAX_NAME_LENGTH,
    MIN_ABILITY_SCORE,
    MIN_CHARACTER_LEVEL,
    PASSIVE_CHECK_BASE,
)
from dnd_rules.models.enums import Ability, CharacterClass, Condition, Skill
from dnd_rules.models.progression import (
    ability_modifier,
    get_hit_die,
    get_proficiency_bonus,
    get_xp_for_next_level,
)


AbilityScore = Annotated[
    int,
    Field(ge=MIN_ABILITY_SCORE, le=MAX_ABILITY_SCORE, description="Ability score (1-30)"),
]


class AbilityScores(BaseModel):
    """The six ability scores.

    Attributes:
        strength: Physical power.
        dexterity: Agility and reflexes.
        constitution: Endurance and health.
        intelligence: Reasoning and memory.
        wisdom: Perception and insight.
        charisma: Force of personality.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    strength: AbilityScore = DEFAULT_ABILITY_SCORE
    dexterity: AbilityScore = DEFAULT_ABILITY_SCORE
    constitution: AbilityScore = DEFAULT_ABILITY_SCORE
    intelligence: AbilityScore = DEFAULT_ABILITY_SCORE
    wisdom: AbilityScore = DEFAULT_ABILITY_SCORE
    charisma: AbilityScore = DEFAULT_ABILITY_SCORE

    def score(self, ability: Ability) -> int:
        """Get the raw score for an ability."""
        return getattr(self, ability.value)

    def modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability."""
        return ability_modifier(self.score(ability))


class Character(BaseModel):
    """A player character as seen by the rules engine.

    Attributes:
        id: Unique character identifier.
        name: Character name.
        race: Character race.
        character_class: Class, which determines the hit die.
        level: Character level (1-20).
        experience_points: Total XP earned.
        ability_scores: The six ability scores.
        current_hit_points: Current HP, never above max.
        max_hit_points: Maximum HP.
        temporary_hit_points: Temporary HP, spent before current HP.
        armor_class: Armor class.
        speed: Walking speed in feet.
        proficient_skills: Skills the character is proficient in.
        expertise_skills: Skills with doubled proficiency.
        saving_throw_proficiencies: Abilities with proficient saves.
        conditions: Active conditions.
        hit_dice_remaining: Unspent hit dice (at most one per level).
        death_save_successes: Successful death saves so far.
        death_save_failures: Failed death saves so far.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()), description="Character ID")
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH, description="Character name")
    race: str = Field(default="Human", description="Character race")
    character_class: CharacterClass = Field(default=CharacterClass.FIGHTER)
    level: int = Field(default=1, ge=MIN_CHARACTER_LEVEL, le=MAX_CHARACTER_LEVEL)
    experience_points: int = Field(default=0, ge=0)
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    current_hit_points: int = Field(ge=0, description="Current HP")
    max_hit_points: int = Field(ge=1, description="Maximum HP")
    temporary_hit_points: int = Field(default=0, ge=0, description="Temporary HP")
    armor_class: int = Field(default=10, ge=1, le=30, description="Armor class")
    speed: int = Field(default=DEFAULT_SPEED, ge=0)
    proficient_skills: frozenset[Skill] = Field(default_factory=frozenset)
    expertise_skills: frozenset[Skill] = Field(default_factory=frozenset)
    saving_throw_proficiencies: frozenset[Ability] = Field(default_factory=frozenset)
    conditions: tuple[Condition, ...] = ()
    hit_dice_remaining: int = Field(default=1, ge=0)
    death_save_successes: int = Field(default=0, ge=0, le=MAX_DEATH_SAVES)
    death_save_failures: int = Field(default=0, ge=0, le=MAX_DEATH_SAVES)

    @model_validator(mode="after")
    def validate_hit_points(self) -> "Character":
        """Ensure current HP does not exceed maximum HP."""
        if self.current_hit_points > self.max_hit_points:
            raise ValueError(
                f"current_hit_points ({self.current_hit_points}) exceeds "
                f"max_hit_points ({self.max_hit_points})"
            )
        return self

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    @property
    def proficiency_bonus(self) -> int:
        """Proficiency bonus for the current level."""
        return get_proficiency_bonus(self.level)

    @property
    def hit_die(self) -> int:
        """Size of the class hit die."""
        return get_hit_die(self.character_class)

    def ability_modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability."""
        return self.ability_scores.modifier(ability)

    def skill_modifier(self, skill: Skill) -> int:
        """Get the total modifier for a skill check.

        Expertise doubles the proficiency bonus and supersedes plain
        proficiency.

        Args:
            skill: The skill being checked.

        Returns:
            Ability modifier plus any proficiency.
        """
        modifier = self.ability_modifier(skill.ability)
        if skill in self.expertise_skills:
            modifier += self.proficiency_bonus * 2
        elif skill in self.proficient_skills:
            modifier += self.proficiency_bonus
        return modifier

    def saving_throw_modifier(self, ability: Ability) -> int:
        """Get the total modifier for a saving throw."""
        modifier = self.ability_modifier(ability)
        if ability in self.saving_throw_proficiencies:
            modifier += self.proficiency_bonus
        return modifier

    @property
    def initiative_modifier(self) -> int:
        """Initiative modifier (DEX)."""
        return self.ability_modifier(Ability.DEX)

    def passive_score(self, skill: Skill) -> int:
        """Passive score for a skill (10 + skill modifier)."""
        return PASSIVE_CHECK_BASE + self.skill_modifier(skill)

    @property
    def passive_perception(self) -> int:
        """Passive Wisdom (Perception)."""
        return self.passive_score(Skill.PERCEPTION)

    @property
    def is_alive(self) -> bool:
        """Alive while HP remains or fewer than three death saves have failed."""
        return self.current_hit_points > 0 or self.death_save_failures < MAX_DEATH_SAVES

    @property
    def is_unconscious(self) -> bool:
        """Dropped to 0 HP but not yet dead."""
        return self.current_hit_points <= 0 and self.is_alive

    @property
    def xp_to_next_level(self) -> int:
        """XP still needed for the next level (0 at max level)."""
        threshold = get_xp_for_next_level(self.level)
        if threshold is None:
            return 0
        return max(0, threshold - self.experience_points)


__all__ = [
    "AbilityScores",
    "Character",
]
