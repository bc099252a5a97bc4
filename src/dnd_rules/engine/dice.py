"""Dice rolling mechanics for D&D 5E.

All randomness in the engine flows through a single ``random.Random``
instance owned by a DiceRoller. Only ``randint`` is ever called on it, so a
seeded generator (or a scripted stand-in in tests) fully determines every
roll the engine makes.
"""

from __future__ import annotations

import random
import re
from dataclasses import dataclass

from dnd_rules.core.constants import (
    ABILITY_SCORE_DICE,
    ABILITY_SCORE_KEPT,
    DEATH_SAVE_DC,
    MAX_DEATH_SAVES,
    NATURAL_CRITICAL,
    NATURAL_FUMBLE,
)
from dnd_rules.core.exceptions import DiceRollError, InvalidNotationError
from dnd_rules.core.logging import get_logger
from dnd_rules.models.enums import RollType


logger = get_logger(__name__)

_NOTATION_PATTERN = re.compile(r"^(\d+)d(\d+)([+-]\d+)?$")
_FLAT_PATTERN = re.compile(r"^[+-]?\d+$")


# =============================================================================
# Roll Results
# =============================================================================


@dataclass(frozen=True)
class DiceRoll:
    """Result of rolling a pool of identical dice.

    Attributes:
        rolls: Individual die results in roll order.
        total: Sum of the rolls.
    """

    rolls: tuple[int, ...]
    total: int


@dataclass(frozen=True)
class D20Roll:
    """Result of a d20 roll, possibly with advantage or disadvantage.

    Attributes:
        result: The kept die.
        roll1: First die rolled.
        roll2: Second die, only under advantage or disadvantage.
        roll_type: How the kept die was chosen.
    """

    result: int
    roll1: int
    roll2: int | None
    roll_type: RollType

    @property
    def is_natural_20(self) -> bool:
        return self.result == NATURAL_CRITICAL

    @property
    def is_natural_1(self) -> bool:
        return self.result == NATURAL_FUMBLE


@dataclass(frozen=True)
class NotationRoll:
    """Result of rolling ``NdS[+/-M]`` notation.

    Attributes:
        notation: Normalised notation actually rolled.
        rolls: Individual die results.
        modifier: Flat modifier.
        total: Sum of the dice plus the modifier.
    """

    notation: str
    rolls: tuple[int, ...]
    modifier: int
    total: int

    @property
    def dice_count(self) -> int:
        return len(self.rolls)


@dataclass(frozen=True)
class AttackRoll:
    """Result of an attack roll against an armor class."""

    d20: D20Roll
    attack_bonus: int
    target_ac: int
    total: int
    is_hit: bool
    is_critical_hit: bool
    is_critical_miss: bool


@dataclass(frozen=True)
class CheckRoll:
    """Result of a d20 check against a DC."""

    d20: D20Roll
    modifier: int
    dc: int
    total: int
    success: bool
    is_critical_success: bool
    is_critical_failure: bool

    @property
    def margin(self) -> int:
        """How far the total landed above (or below) the DC."""
        return self.total - self.dc


@dataclass(frozen=True)
class SaveRoll:
    """Result of a saving throw.

    A natural 20 or 1 is flagged, but success is still decided by the total.
    """

    d20: D20Roll
    modifier: int
    dc: int
    total: int
    success: bool
    is_auto_success: bool
    is_auto_failure: bool


@dataclass(frozen=True)
class AbilityScoreRoll:
    """Result of rolling 4d6 and dropping the lowest die."""

    rolls: tuple[int, ...]
    kept: tuple[int, ...]
    dropped: tuple[int, ...]
    total: int


@dataclass(frozen=True)
class DeathSaveRoll:
    """Result of a death saving throw and the updated counters.

    Attributes:
        roll: Natural d20.
        successes: Success count after this save.
        failures: Failure count after this save.
        regained_consciousness: Natural 20, the creature wakes with 1 HP.
        is_stable: Third success reached.
        is_dead: Third failure reached.
    """

    roll: int
    successes: int
    failures: int
    regained_consciousness: bool
    is_stable: bool
    is_dead: bool


# =============================================================================
# Dice Roller
# =============================================================================


class DiceRoller:
    """Dice rolling with D&D 5E mechanics.

    Example:
        >>> roller = DiceRoller(seed=42)
        >>> result = roller.roll_notation("2d6+3")
        >>> 5 <= result.total <= 15
        True
    """

    def __init__(self, *, rng: random.Random | None = None, seed: int | None = None) -> None:
        """Initialize the dice roller.

        Args:
            rng: Random source to draw from. Takes precedence over ``seed``.
            seed: Seed for a private random source when ``rng`` is not given.
        """
        self._rng = rng if rng is not None else random.Random(seed)
        logger.debug("DiceRoller initialized", seed=seed, injected=rng is not None)

    # -------------------------------------------------------------------------
    # Primitive rolls
    # -------------------------------------------------------------------------

    def roll_die(self, sides: int) -> int:
        """Roll one die uniformly in ``[1, sides]``.

        Raises:
            DiceRollError: If ``sides`` is less than 1.
        """
        if sides < 1:
            raise DiceRollError(f"A die needs at least one side, got {sides}")
        return self._rng.randint(1, sides)

    def roll_dice(self, count: int, sides: int) -> DiceRoll:
        """Roll ``count`` dice of ``sides`` sides."""
        if count < 0:
            raise DiceRollError(f"Cannot roll a negative number of dice ({count})")
        rolls = tuple(self.roll_die(sides) for _ in range(count))
        return DiceRoll(rolls=rolls, total=sum(rolls))

    def roll_d20(self) -> int:
        """Roll a single d20."""
        return self.roll_die(20)

    def roll_d20_with_advantage(self) -> D20Roll:
        """Roll two d20s and keep the higher."""
        roll1, roll2 = self.roll_d20(), self.roll_d20()
        return D20Roll(result=max(roll1, roll2), roll1=roll1, roll2=roll2, roll_type=RollType.ADVANTAGE)

    def roll_d20_with_disadvantage(self) -> D20Roll:
        """Roll two d20s and keep the lower."""
        roll1, roll2 = self.roll_d20(), self.roll_d20()
        return D20Roll(
            result=min(roll1, roll2), roll1=roll1, roll2=roll2, roll_type=RollType.DISADVANTAGE
        )

    def roll_d20_check(self, *, advantage: bool = False, disadvantage: bool = False) -> D20Roll:
        """Roll a d20 honouring advantage and disadvantage.

        When both apply they cancel, and exactly one untagged die is rolled.
        """
        if advantage and not disadvantage:
            return self.roll_d20_with_advantage()
        if disadvantage and not advantage:
            return self.roll_d20_with_disadvantage()
        roll = self.roll_d20()
        return D20Roll(result=roll, roll1=roll, roll2=None, roll_type=RollType.NORMAL)

    # -------------------------------------------------------------------------
    # Notation
    # -------------------------------------------------------------------------

    @staticmethod
    def parse_notation(text: str) -> tuple[int, int, int]:
        """Parse ``NdS[+/-M]`` into ``(count, sides, modifier)``.

        Matching is case-insensitive and ignores whitespace.

        Raises:
            InvalidNotationError: If the text is not valid notation.
        """
        normalized = re.sub(r"\s+", "", text or "").lower()
        match = _NOTATION_PATTERN.match(normalized)
        if match is None:
            raise InvalidNotationError(f"Invalid dice notation: {text!r}", expression=text)
        count, sides = int(match.group(1)), int(match.group(2))
        if count < 1 or sides < 1:
            raise InvalidNotationError(f"Invalid dice notation: {text!r}", expression=text)
        modifier = int(match.group(3)) if match.group(3) else 0
        return count, sides, modifier

    def roll_notation(self, text: str) -> NotationRoll:
        """Roll dice notation such as ``2d6+3``.

        Raises:
            InvalidNotationError: If the text is not valid notation.
        """
        count, sides, modifier = self.parse_notation(text)
        pool = self.roll_dice(count, sides)
        result = NotationRoll(
            notation=_format_notation(count, sides, modifier),
            rolls=pool.rolls,
            modifier=modifier,
            total=pool.total + modifier,
        )
        logger.debug("Dice rolled", notation=result.notation, total=result.total)
        return result

    def roll_amount(self, text: str) -> int:
        """Read a flat number or roll dice notation.

        Amounts proposed by the narrative layer are either ``"5"`` or
        ``"2d4+2"``; both are accepted here.

        Raises:
            InvalidNotationError: If the text is neither.
        """
        stripped = (text or "").strip()
        if _FLAT_PATTERN.match(stripped):
            return int(stripped)
        return self.roll_notation(stripped).total

    # -------------------------------------------------------------------------
    # Rule-aware rolls
    # -------------------------------------------------------------------------

    def roll_attack(
        self,
        attack_bonus: int,
        target_ac: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> AttackRoll:
        """Roll an attack against an armor class.

        A natural 20 always hits and a natural 1 always misses; otherwise
        the attack hits when the total meets the AC.
        """
        d20 = self.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        total = d20.result + attack_bonus
        is_critical_hit = d20.is_natural_20
        is_critical_miss = d20.is_natural_1
        if is_critical_hit:
            is_hit = True
        elif is_critical_miss:
            is_hit = False
        else:
            is_hit = total >= target_ac
        return AttackRoll(
            d20=d20,
            attack_bonus=attack_bonus,
            target_ac=target_ac,
            total=total,
            is_hit=is_hit,
            is_critical_hit=is_critical_hit,
            is_critical_miss=is_critical_miss,
        )

    def roll_damage(self, notation: str, *, is_critical: bool = False) -> NotationRoll:
        """Roll damage, doubling the dice count (not the modifier) on a critical."""
        if not is_critical:
            return self.roll_notation(notation)
        count, sides, modifier = self.parse_notation(notation)
        return self.roll_notation(_format_notation(count * 2, sides, modifier))

    def roll_skill_check(
        self,
        modifier: int,
        dc: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> CheckRoll:
        """Roll a skill or ability check against a DC."""
        d20 = self.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        total = d20.result + modifier
        return CheckRoll(
            d20=d20,
            modifier=modifier,
            dc=dc,
            total=total,
            success=total >= dc,
            is_critical_success=d20.is_natural_20,
            is_critical_failure=d20.is_natural_1,
        )

    def roll_saving_throw(
        self,
        modifier: int,
        dc: int,
        *,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> SaveRoll:
        """Roll a saving throw against a DC."""
        d20 = self.roll_d20_check(advantage=advantage, disadvantage=disadvantage)
        total = d20.result + modifier
        return SaveRoll(
            d20=d20,
            modifier=modifier,
            dc=dc,
            total=total,
            success=total >= dc,
            is_auto_success=d20.is_natural_20,
            is_auto_failure=d20.is_natural_1,
        )

    def roll_initiative(self, dex_modifier: int) -> int:
        """Roll initiative: d20 plus the DEX modifier."""
        return self.roll_d20() + dex_modifier

    def roll_hit_die(self, hit_die: int, con_modifier: int) -> int:
        """Roll one hit die for healing; never negative."""
        return max(0, self.roll_die(hit_die) + con_modifier)

    # -------------------------------------------------------------------------
    # Character generation
    # -------------------------------------------------------------------------

    def roll_ability_score(self) -> AbilityScoreRoll:
        """Roll 4d6 and keep the highest three."""
        rolls = tuple(sorted(self.roll_dice(ABILITY_SCORE_DICE, 6).rolls, reverse=True))
        kept = rolls[:ABILITY_SCORE_KEPT]
        return AbilityScoreRoll(
            rolls=rolls,
            kept=kept,
            dropped=rolls[ABILITY_SCORE_KEPT:],
            total=sum(kept),
        )

    def roll_ability_score_set(self) -> list[AbilityScoreRoll]:
        """Roll six ability scores."""
        return [self.roll_ability_score() for _ in range(6)]

    # -------------------------------------------------------------------------
    # Death saves
    # -------------------------------------------------------------------------

    def roll_death_save(self, successes: int, failures: int) -> DeathSaveRoll:
        """Roll a death saving throw.

        A natural 20 restores consciousness and clears both counters. A
        natural 1 counts as two failures. Three successes stabilise the
        creature (counters reset); three failures mean death.

        Args:
            successes: Successes accumulated so far.
            failures: Failures accumulated so far.

        Returns:
            The roll and the updated counters.
        """
        roll = self.roll_d20()
        if roll == NATURAL_CRITICAL:
            return DeathSaveRoll(
                roll=roll,
                successes=0,
                failures=0,
                regained_consciousness=True,
                is_stable=False,
                is_dead=False,
            )

        if roll == NATURAL_FUMBLE:
            failures += 2
        elif roll >= DEATH_SAVE_DC:
            successes += 1
        else:
            failures += 1

        if failures >= MAX_DEATH_SAVES:
            return DeathSaveRoll(
                roll=roll,
                successes=successes,
                failures=MAX_DEATH_SAVES,
                regained_consciousness=False,
                is_stable=False,
                is_dead=True,
            )
        if successes >= MAX_DEATH_SAVES:
            return DeathSaveRoll(
                roll=roll,
                successes=0,
                failures=0,
                regained_consciousness=False,
                is_stable=True,
                is_dead=False,
            )
        return DeathSaveRoll(
            roll=roll,
            successes=successes,
            failures=failures,
            regained_consciousness=False,
            is_stable=False,
            is_dead=False,
        )


def _format_notation(count: int, sides: int, modifier: int) -> str:
    if modifier == 0:
        return f"{count}d{sides}"
    return f"{count}d{sides}{modifier:+d}"


__all__ = [
    "RollType",
    "DiceRoll",
    "D20Roll",
    "NotationRoll",
    "AttackRoll",
    "CheckRoll",
    "SaveRoll",
    "AbilityScoreRoll",
    "DeathSaveRoll",
    "DiceRoller",
]
