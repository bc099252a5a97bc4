"""Pydantic V2 schemas for story log entries and resolution records.

StoryEvent is the only output shape the narrative/UI layer consumes. Each
entry optionally carries a structured payload (combat result, skill check
result, XP gained, items received) so every number shown to the player can
be traced back to an actual roll.
"""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.models.enums import (
    Ability,
    CheckType,
    CombatActionType,
    DamageType,
    MessageType,
    Skill,
)


def utc_now() -> datetime:
    """Timezone-aware current time used for log timestamps."""
    return datetime.now(timezone.utc)


class SkillCheckResult(BaseModel):
    """Serializable record of a resolved check.

    Attributes:
        check_type: Kind of check.
        ability: Ability used.
        skill: Skill used, if any.
        difficulty_class: DC the check was made against.
        roll: Kept natural d20.
        roll2: Second d20 under advantage/disadvantage.
        modifier: Total modifier applied.
        total: Roll plus modifier.
        success: Whether total met the DC.
        is_critical_success: Natural 20.
        is_critical_failure: Natural 1.
        description: Narrative tier text.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    check_type: CheckType
    ability: Ability
    skill: Skill | None = None
    difficulty_class: int
    roll: int = Field(ge=1, le=20)
    roll2: int | None = Field(default=None, ge=1, le=20)
    modifier: int
    total: int
    success: bool
    is_critical_success: bool = False
    is_critical_failure: bool = False
    description: str = ""


class CombatResult(BaseModel):
    """Serializable record of one attack or heal in combat.

    Attributes:
        attacker_name: Who acted.
        defender_name: Who was targeted.
        action_type: Combat action taken.
        attack_roll: Attack roll total.
        damage_roll: Damage roll total before adjustments.
        total_damage: Damage actually applied.
        damage_type: Damage type.
        is_hit: Whether the attack hit.
        is_critical_hit: Natural 20.
        is_miss: Whether the attack missed.
        is_critical_miss: Natural 1.
        healing_amount: HP restored, for healing actions.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    attacker_name: str
    defender_name: str
    action_type: CombatActionType
    attack_roll: int = 0
    damage_roll: int | None = None
    total_damage: int = 0
    damage_type: DamageType | None = None
    is_hit: bool = False
    is_critical_hit: bool = False
    is_miss: bool = False
    is_critical_miss: bool = False
    healing_amount: int | None = None


class StoryEvent(BaseModel):
    """A single entry in the story log.

    Attributes:
        id: Unique entry identifier.
        type: Entry type tag.
        content: Player-facing text.
        timestamp: When the entry was produced.
        speaker_name: NPC speaking, for dialogue entries.
        is_important: Highlight hint for the UI.
        combat_result: Combat payload.
        skill_check_result: Skill check payload.
        experience_gained: XP payload.
        items_received: Item names payload.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    type: MessageType
    content: str
    timestamp: datetime = Field(default_factory=utc_now)
    speaker_name: str | None = None
    is_important: bool = False
    combat_result: CombatResult | None = None
    skill_check_result: SkillCheckResult | None = None
    experience_gained: int | None = None
    items_received: tuple[str, ...] | None = None


def system_event(content: str, **payload: object) -> StoryEvent:
    """Shorthand for a system log entry."""
    return StoryEvent(type=MessageType.SYSTEM, content=content, **payload)


def combat_event(content: str, **payload: object) -> StoryEvent:
    """Shorthand for a combat log entry."""
    return StoryEvent(type=MessageType.COMBAT, content=content, **payload)


__all__ = [
    "utc_now",
    "SkillCheckResult",
    "CombatResult",
    "StoryEvent",
    "system_event",
    "combat_event",
]
