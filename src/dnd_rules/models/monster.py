"""Pydantic V2 schemas for monsters and enemy actions."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.core.constants import MAX_NAME_LENGTH
from dnd_rules.models.character import AbilityScores
from dnd_rules.models.enums import Ability, DamageType
from dnd_rules.models.progression import (
    cr_baseline,
    cr_to_experience,
    cr_to_proficiency_bonus,
)


class MonsterAction(BaseModel):
    """An action available to a monster on its turn.

    Attributes:
        name: Action name (e.g., 'Scimitar').
        description: Flavour text.
        attack_bonus: Fixed to-hit bonus; derived from CR and STR when absent.
        damage: Damage notation; the engine default applies when absent.
        damage_type: Type of damage dealt.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    name: str = Field(min_length=1, description="Action name")
    description: str = Field(default="", description="Action description")
    attack_bonus: int | None = Field(default=None, description="To-hit bonus")
    damage: str | None = Field(default=None, description="Damage notation")
    damage_type: DamageType = Field(default=DamageType.BLUDGEONING)


class Monster(BaseModel):
    """An enemy creature in an encounter.

    Attributes:
        id: Unique monster identifier.
        name: Display name.
        monster_type: Creature type (humanoid, beast, ...).
        armor_class: Armor class.
        current_hit_points: Current HP; the monster is alive while above 0.
        max_hit_points: Maximum HP.
        ability_scores: The six ability scores.
        challenge_rating: Challenge rating (fractional below 1).
        experience_value: XP awarded when defeated.
        actions: Available actions, first one preferred.
        resistances: Damage types dealt half damage.
        immunities: Damage types dealt no damage.
        vulnerabilities: Damage types dealt double damage.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()), description="Monster ID")
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH, description="Display name")
    monster_type: str = Field(default="humanoid", description="Creature type")
    armor_class: int = Field(default=12, ge=1, le=30, description="Armor class")
    current_hit_points: int = Field(ge=0, description="Current HP")
    max_hit_points: int = Field(ge=1, description="Maximum HP")
    ability_scores: AbilityScores = Field(default_factory=AbilityScores)
    challenge_rating: float = Field(default=0.25, ge=0, le=30)
    experience_value: int = Field(default=50, ge=0, description="XP when defeated")
    actions: tuple[MonsterAction, ...] = ()
    resistances: frozenset[DamageType] = Field(default_factory=frozenset)
    immunities: frozenset[DamageType] = Field(default_factory=frozenset)
    vulnerabilities: frozenset[DamageType] = Field(default_factory=frozenset)

    @property
    def is_alive(self) -> bool:
        """A monster is alive while it has hit points."""
        return self.current_hit_points > 0

    @property
    def proficiency_bonus(self) -> int:
        """Proficiency bonus derived from challenge rating."""
        return cr_to_proficiency_bonus(self.challenge_rating)

    def ability_modifier(self, ability: Ability) -> int:
        """Get the modifier for an ability."""
        return self.ability_scores.modifier(ability)

    @property
    def initiative_modifier(self) -> int:
        """Initiative modifier (DEX)."""
        return self.ability_modifier(Ability.DEX)


# =============================================================================
# Factory Functions
# =============================================================================


def create_monster(
    name: str,
    *,
    challenge_rating: float = 0.25,
    monster_type: str = "humanoid",
    ability_scores: AbilityScores | None = None,
    actions: tuple[MonsterAction, ...] | None = None,
) -> Monster:
    """Factory function to create a monster with a baseline stat block.

    Armor class, hit points, to-hit and damage are taken from the CR
    baseline table, so free-text enemies proposed by the narrative layer
    get sane numbers without a monster manual lookup.

    Args:
        name: Monster name.
        challenge_rating: Challenge rating.
        monster_type: Creature type.
        ability_scores: Ability scores (defaults to all 10s).
        actions: Actions (defaults to one baseline attack).

    Returns:
        Configured Monster instance.
    """
    baseline = cr_baseline(challenge_rating)
    if actions is None:
        actions = (
            MonsterAction(
                name="Attack",
                description="Basic attack",
                attack_bonus=baseline.attack_bonus,
                damage=baseline.damage,
            ),
        )
    return Monster(
        name=name,
        monster_type=monster_type,
        armor_class=baseline.armor_class,
        current_hit_points=baseline.hit_points,
        max_hit_points=baseline.hit_points,
        ability_scores=ability_scores or AbilityScores(),
        challenge_rating=challenge_rating,
        experience_value=cr_to_experience(challenge_rating),
        actions=actions,
    )


__all__ = [
    "MonsterAction",
    "Monster",
    "create_monster",
]
