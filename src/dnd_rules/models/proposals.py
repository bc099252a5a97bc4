"""Pydantic V2 schemas for structured proposals from the narrative layer.

The AI integration layer parses model output into these shapes before the
engine sees it. The schemas are deliberately forgiving: they accept
camelCase or snake_case keys, and they degrade unknown or malformed content
instead of rejecting the whole proposal.
- An unknown ability or skill becomes None.
- A malformed number becomes 0 or None.
- A reward of an unknown type is dropped.

Nothing here is trusted. DCs are clamped and rewards are capped by the game
master before they touch the game state.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from dnd_rules.core.constants import MAX_NAME_LENGTH
from dnd_rules.core.logging import get_logger
from dnd_rules.models.enums import Ability, CheckType, RewardType, SceneType, Skill


logger = get_logger(__name__)


def lenient_int(value: Any, default: int | None = 0) -> int | None:
    """Coerce loosely typed numeric input.

    Infinite and NaN values, which lenient JSON parsers accept, read as
    malformed.

    Args:
        value: Raw value from the parsed payload.
        default: Returned when the value cannot be read as a number.

    Returns:
        The integer value, or ``default``.
    """
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if isinstance(value, float):
        return round(value) if math.isfinite(value) else default
    return default


class ProposalModel(BaseModel):
    """Base configuration shared by every proposal schema."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class ProposedCheck(ProposalModel):
    """A d20 check the narrative layer wants resolved.

    Attributes:
        check_type: Kind of check; falls back to a skill or ability check.
        ability: Ability to use, if named.
        skill: Skill to use, if named.
        difficulty_class: Proposed DC (clamped by the game master).
        description: What the check is for.
        can_use_advantage: Roll with advantage.
        has_disadvantage: Roll with disadvantage.
    """

    check_type: CheckType = CheckType.SKILL
    ability: Ability | None = None
    skill: Skill | None = None
    difficulty_class: int = Field(
        default=10,
        validation_alias=AliasChoices("difficultyClass", "difficulty_class", "dc"),
    )
    description: str | None = None
    can_use_advantage: bool = False
    has_disadvantage: bool = False

    @field_validator("check_type", mode="before")
    @classmethod
    def parse_check_type(cls, value: Any) -> CheckType:
        """Map an unknown check type to a plain skill check."""
        try:
            return CheckType(value)
        except ValueError:
            logger.warning("Unknown check type, treating as skill check", check_type=value)
            return CheckType.SKILL

    @field_validator("ability", mode="before")
    @classmethod
    def parse_ability(cls, value: Any) -> Ability | None:
        """Resolve free-text ability names."""
        return Ability.parse(value) if isinstance(value, str) else None

    @field_validator("skill", mode="before")
    @classmethod
    def parse_skill(cls, value: Any) -> Skill | None:
        """Resolve free-text skill names."""
        return Skill.parse(value) if isinstance(value, str) else None

    @field_validator("difficulty_class", mode="before")
    @classmethod
    def parse_dc(cls, value: Any) -> int:
        """Read a malformed DC as the default of 10."""
        return lenient_int(value, default=10)


class ProposedReward(ProposalModel):
    """A reward the narrative layer wants granted.

    Attributes:
        type: Reward kind.
        item_name: Item to grant, for item rewards.
        quantity: Number of items.
        gold_amount: Gold to grant.
        experience_points: XP to grant.
        faction: Faction affected, for reputation rewards.
        reputation_change: Reputation delta.
        description: Flavour text.
    """

    type: RewardType
    item_name: str | None = None
    quantity: int = 1
    gold_amount: int | None = None
    experience_points: int | None = None
    faction: str | None = None
    reputation_change: int | None = None
    description: str | None = None

    @field_validator("quantity", mode="before")
    @classmethod
    def parse_quantity(cls, value: Any) -> int:
        """Read a malformed quantity as 1."""
        return lenient_int(value, default=1)

    @field_validator("gold_amount", "experience_points", "reputation_change", mode="before")
    @classmethod
    def parse_amount(cls, value: Any) -> int | None:
        """Read a malformed amount as 0."""
        if value is None:
            return None
        return lenient_int(value, default=0)


class NPCDialogue(ProposalModel):
    """A line spoken by an NPC."""

    npc_name: str = "Stranger"
    dialogue: str = ""
    emotion: str | None = None


class SceneChange(ProposalModel):
    """A move to a new location."""

    new_scene_name: str = Field(min_length=1)
    new_scene_description: str = ""
    transition_description: str | None = None
    scene_type: SceneType | None = None

    @field_validator("scene_type", mode="before")
    @classmethod
    def parse_scene_type(cls, value: Any) -> SceneType | None:
        """Drop unknown scene types."""
        try:
            return SceneType(value) if value is not None else None
        except ValueError:
            return None


class EnemyInfo(ProposalModel):
    """An enemy named by a combat trigger.

    Attributes:
        name: Enemy name.
        type: Creature type.
        challenge_rating: Challenge rating.
        count: Number of identical enemies.
    """

    name: str = "Unknown Enemy"
    type: str | None = None
    challenge_rating: float = Field(
        default=0.25,
        ge=0,
        le=30,
        validation_alias=AliasChoices("cr", "challengeRating", "challenge_rating"),
    )
    count: int = Field(default=1, ge=1, le=10)

    @field_validator("name", mode="before")
    @classmethod
    def parse_name(cls, value: Any) -> str:
        """Trim the name so a numbered copy ("Bandit 10") still fits a monster name."""
        if not isinstance(value, str):
            return "Unknown Enemy"
        return value.strip()[: MAX_NAME_LENGTH - 3].rstrip() or "Unknown Enemy"

    @field_validator("challenge_rating", mode="before")
    @classmethod
    def parse_cr(cls, value: Any) -> float:
        """Accept fractional strings like '1/4' and clamp to the CR range."""
        if isinstance(value, str) and "/" in value:
            num, _, denom = value.partition("/")
            try:
                value = int(num) / int(denom)
            except (ValueError, ZeroDivisionError, OverflowError):
                return 0.25
        try:
            rating = float(value)
        except (TypeError, ValueError, OverflowError):
            return 0.25
        if math.isnan(rating):
            return 0.25
        return min(30.0, max(0.0, rating))

    @field_validator("count", mode="before")
    @classmethod
    def parse_count(cls, value: Any) -> int:
        """Clamp the enemy count to 1-10."""
        return min(10, max(1, lenient_int(value, default=1)))


class CombatTrigger(ProposalModel):
    """A request to start combat."""

    enemies: tuple[EnemyInfo, ...] = ()
    ambush: bool = Field(default=False, validation_alias=AliasChoices("ambush", "isAmbush"))
    reason: str | None = None


class PlayerChoice(ProposalModel):
    """A choice offered to the player."""

    id: str
    text: str
    consequence: str | None = None
    is_available: bool = True


class ParsedAIProposal(ProposalModel):
    """One structured response from the narrative layer.

    Attributes:
        narration: Story text.
        suggested_actions: Actions the UI may offer.
        proposed_check: Check to resolve before rewards apply.
        success_outcome: Text shown when the check succeeds.
        failure_outcome: Text shown when the check fails.
        npc_dialogues: NPC lines.
        proposed_rewards: Rewards to grant (capped).
        scene_change: New location.
        combat_trigger: Enemies to fight.
        ambient_description: Atmosphere text.
        requires_player_choice: Whether the UI must present choices.
        player_choices: Choices to present.
    """

    narration: str = ""
    suggested_actions: tuple[str, ...] = ()
    proposed_check: ProposedCheck | None = None
    success_outcome: str | None = None
    failure_outcome: str | None = None
    npc_dialogues: tuple[NPCDialogue, ...] = ()
    proposed_rewards: tuple[ProposedReward, ...] = ()
    scene_change: SceneChange | None = None
    combat_trigger: CombatTrigger | None = None
    ambient_description: str | None = None
    requires_player_choice: bool = False
    player_choices: tuple[PlayerChoice, ...] = ()

    @field_validator("proposed_rewards", mode="before")
    @classmethod
    def drop_unknown_rewards(cls, value: Any) -> Any:
        """Skip reward entries whose type is not recognised."""
        if not isinstance(value, (list, tuple)):
            return ()
        known = {reward_type.value for reward_type in RewardType}
        kept = []
        for entry in value:
            if isinstance(entry, dict) and entry.get("type") not in known:
                logger.warning("Dropping reward with unknown type", reward_type=entry.get("type"))
                continue
            kept.append(entry)
        return kept


__all__ = [
    "lenient_int",
    "ProposedCheck",
    "ProposedReward",
    "NPCDialogue",
    "SceneChange",
    "EnemyInfo",
    "CombatTrigger",
    "PlayerChoice",
    "ParsedAIProposal",
]
