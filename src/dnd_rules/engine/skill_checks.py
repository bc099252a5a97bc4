"""Skill, ability and saving throw resolution.

Checks proposed by the narrative layer are resolved here against the
character's real modifiers, never against numbers the proposal supplies.
"""

from __future__ import annotations

from dataclasses import dataclass

from dnd_rules.core.constants import PASSIVE_CHECK_BASE
from dnd_rules.core.logging import get_logger
from dnd_rules.engine.dice import CheckRoll, D20Roll, DiceRoller
from dnd_rules.models.character import Character
from dnd_rules.models.enums import Ability, CheckType, Skill
from dnd_rules.models.proposals import ProposedCheck
from dnd_rules.models.story import SkillCheckResult


logger = get_logger(__name__)


@dataclass(frozen=True)
class SkillCheckOutcome:
    """A resolved check.

    Attributes:
        check_type: Kind of check that was rolled.
        ability: Ability the modifier came from.
        skill: Skill used, if any.
        roll: The underlying dice result.
        description: The proposal's description of what was attempted.
    """

    check_type: CheckType
    ability: Ability
    skill: Skill | None
    roll: CheckRoll
    description: str | None = None

    @property
    def success(self) -> bool:
        return self.roll.success

    @property
    def margin(self) -> int:
        """Total minus DC."""
        return self.roll.margin

    @property
    def check_name(self) -> str:
        """Display name such as 'Stealth Check' or 'Dexterity Check'."""
        if self.skill is not None:
            return f"{self.skill.display_name} Check"
        if self.check_type == CheckType.SAVING_THROW:
            return f"{self.ability.full_name} Saving Throw"
        return f"{self.ability.full_name} Check"

    @property
    def narrative_description(self) -> str:
        """Narrative tier text derived from the natural roll and margin."""
        if self.roll.is_critical_success:
            return "Critical Success! A perfect execution!"
        if self.roll.is_critical_failure:
            return "Critical Failure! Everything that could go wrong, did."
        if self.success:
            if self.margin >= 10:
                return "Exceptional Success! You exceeded expectations."
            if self.margin >= 5:
                return "Success! You accomplished your goal with skill."
            return "Success! You barely managed to pull it off."
        if self.margin <= -10:
            return "Catastrophic Failure! This went very badly."
        if self.margin <= -5:
            return "Failure. You were clearly outmatched."
        return "Failure. So close, yet not quite enough."


@dataclass(frozen=True)
class ContestedCheckOutcome:
    """A contested check between the player and an opponent."""

    skill: Skill
    player_roll: D20Roll
    player_modifier: int
    player_total: int
    opponent_name: str
    opponent_roll: D20Roll
    opponent_modifier: int
    opponent_total: int

    @property
    def player_wins(self) -> bool:
        """The player wins ties."""
        return self.player_total >= self.opponent_total

    @property
    def margin(self) -> int:
        return abs(self.player_total - self.opponent_total)

    @property
    def result_description(self) -> str:
        if self.player_wins:
            if self.margin >= 10:
                return "Dominant victory!"
            if self.margin >= 5:
                return "Clear victory!"
            return "Narrow victory!"
        if self.margin >= 10:
            return "Overwhelming defeat."
        if self.margin >= 5:
            return "Clear defeat."
        return "Narrow defeat."


class SkillCheckEngine:
    """Resolves d20 checks for a character.

    Example:
        >>> engine = SkillCheckEngine(DiceRoller(seed=1))
        >>> outcome = engine.perform_ability_check(hero, Ability.DEX, 10)
    """

    def __init__(self, dice: DiceRoller) -> None:
        self._dice = dice

    def perform_skill_check(self, character: Character, proposal: ProposedCheck) -> SkillCheckOutcome:
        """Resolve a check proposed by the narrative layer.

        Args:
            character: The character making the check.
            proposal: The proposed check. Its DC is used as given; callers
                clamp it beforehand.

        Returns:
            The resolved outcome.
        """
        skill: Skill | None = None
        ability = proposal.ability or Ability.STR

        if proposal.check_type == CheckType.SKILL and proposal.skill is not None:
            skill = proposal.skill
            ability = skill.ability
            modifier = character.skill_modifier(skill)
        elif proposal.check_type == CheckType.SAVING_THROW:
            modifier = character.saving_throw_modifier(ability)
        elif proposal.check_type in (CheckType.ATTACK, CheckType.CONTEST):
            modifier = character.ability_modifier(ability) + character.proficiency_bonus
        else:
            # Skill checks without a recognised skill fall back to the ability.
            modifier = character.ability_modifier(ability)

        roll = self._dice.roll_skill_check(
            modifier,
            proposal.difficulty_class,
            advantage=proposal.can_use_advantage,
            disadvantage=proposal.has_disadvantage,
        )
        outcome = SkillCheckOutcome(
            check_type=proposal.check_type,
            ability=ability,
            skill=skill,
            roll=roll,
            description=proposal.description,
        )
        logger.info(
            "Check resolved",
            check=outcome.check_name,
            dc=proposal.difficulty_class,
            total=roll.total,
            success=roll.success,
        )
        return outcome

    def perform_ability_check(
        self,
        character: Character,
        ability: Ability,
        dc: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckOutcome:
        """Roll a raw ability check."""
        roll = self._dice.roll_skill_check(
            character.ability_modifier(ability),
            dc,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        return SkillCheckOutcome(check_type=CheckType.ABILITY, ability=ability, skill=None, roll=roll)

    def perform_skill_check_by_type(
        self,
        character: Character,
        skill: Skill,
        dc: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckOutcome:
        """Roll a check for a named skill."""
        roll = self._dice.roll_skill_check(
            character.skill_modifier(skill),
            dc,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        return SkillCheckOutcome(check_type=CheckType.SKILL, ability=skill.ability, skill=skill, roll=roll)

    def perform_saving_throw(
        self,
        character: Character,
        ability: Ability,
        dc: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SkillCheckOutcome:
        """Roll a saving throw, adding proficiency when proficient."""
        roll = self._dice.roll_skill_check(
            character.saving_throw_modifier(ability),
            dc,
            advantage=advantage,
            disadvantage=disadvantage,
        )
        return SkillCheckOutcome(
            check_type=CheckType.SAVING_THROW, ability=ability, skill=None, roll=roll
        )

    def perform_contested_check(
        self,
        character: Character,
        skill: Skill,
        opponent_modifier: int,
        *,
        opponent_name: str = "Opponent",
        advantage: bool = False,
        disadvantage: bool = False,
        opponent_advantage: bool = False,
        opponent_disadvantage: bool = False,
    ) -> ContestedCheckOutcome:
        """Roll the player's skill against an opponent's modifier."""
        player_modifier = character.skill_modifier(skill)
        player_roll = self._dice.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        opponent_roll = self._dice.roll_d20_check(
            advantage=opponent_advantage, disadvantage=opponent_disadvantage
        )
        return ContestedCheckOutcome(
            skill=skill,
            player_roll=player_roll,
            player_modifier=player_modifier,
            player_total=player_roll.result + player_modifier,
            opponent_name=opponent_name,
            opponent_roll=opponent_roll,
            opponent_modifier=opponent_modifier,
            opponent_total=opponent_roll.result + opponent_modifier,
        )

    @staticmethod
    def passive_check(character: Character, skill: Skill) -> int:
        """Passive score: 10 plus the skill modifier, no roll."""
        return PASSIVE_CHECK_BASE + character.skill_modifier(skill)

    @staticmethod
    def difficulty_description(dc: int) -> str:
        """Describe a DC in words."""
        if dc <= 5:
            return "Very Easy"
        if dc <= 10:
            return "Easy"
        if dc <= 15:
            return "Medium"
        if dc <= 20:
            return "Hard"
        if dc <= 25:
            return "Very Hard"
        return "Nearly Impossible"

    @staticmethod
    def to_story_result(outcome: SkillCheckOutcome) -> SkillCheckResult:
        """Convert an outcome into its story log payload."""
        roll = outcome.roll
        return SkillCheckResult(
            check_type=outcome.check_type,
            ability=outcome.ability,
            skill=outcome.skill,
            difficulty_class=roll.dc,
            roll=roll.d20.result,
            roll2=roll.d20.roll2,
            modifier=roll.modifier,
            total=roll.total,
            success=roll.success,
            is_critical_success=roll.is_critical_success,
            is_critical_failure=roll.is_critical_failure,
            description=outcome.narrative_description,
        )


__all__ = [
    "SkillCheckOutcome",
    "ContestedCheckOutcome",
    "SkillCheckEngine",
]
