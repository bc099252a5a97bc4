"""Combat resolution primitives for D&D 5E.

CombatEngine resolves single combat events (initiative, one attack, one
heal, one death save, a level-up check) and returns frozen result records.
It keeps no per-encounter state; sequencing belongs to the CombatManager in
``turn_manager``.
"""

from __future__ import annotations

from dataclasses import dataclass

from pydantic import BaseModel, ConfigDict

from dnd_rules.core.config import RulesSettings, get_settings
from dnd_rules.core.constants import MAX_CHARACTER_LEVEL
from dnd_rules.core.exceptions import InvalidGameStateError
from dnd_rules.core.logging import get_logger
from dnd_rules.engine.dice import AttackRoll, DeathSaveRoll, DiceRoller, NotationRoll
from dnd_rules.models.character import Character
from dnd_rules.models.enums import Ability, Condition, DamageType
from dnd_rules.models.monster import Monster, MonsterAction
from dnd_rules.models.progression import (
    calculate_hp_increase,
    get_level_for_xp,
    get_proficiency_bonus,
)


logger = get_logger(__name__)


# =============================================================================
# Result Records
# =============================================================================


class InitiativeEntry(BaseModel):
    """One slot in the initiative order.

    Attributes:
        id: Character or monster id.
        name: Display name.
        initiative: Rolled initiative.
        is_player: Whether this slot belongs to the player.
        dexterity: DEX score, used to break ties.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str
    name: str
    initiative: int
    is_player: bool
    dexterity: int


@dataclass(frozen=True)
class PlayerAttackResult:
    """Outcome of the player attacking a monster."""

    attack: AttackRoll
    damage: NotationRoll | None
    final_damage: int
    target: Monster
    damage_type: DamageType

    @property
    def is_hit(self) -> bool:
        return self.attack.is_hit

    @property
    def is_critical(self) -> bool:
        return self.attack.is_critical_hit

    @property
    def target_new_hp(self) -> int:
        return self.target.current_hit_points

    @property
    def target_killed(self) -> bool:
        return self.target.current_hit_points <= 0


@dataclass(frozen=True)
class MonsterAttackResult:
    """Outcome of a monster attacking the player.

    Attributes:
        attacker_name: Monster name.
        action_name: Action the monster used.
        attack: The attack roll.
        damage: The damage roll, on a hit.
        total_damage: Damage after the difficulty multiplier.
        hp_lost: Hit points actually lost once temporary HP absorbed its share.
        player: The player after the attack.
        damage_type: Damage type of the action.
    """

    attacker_name: str
    action_name: str
    attack: AttackRoll
    damage: NotationRoll | None
    total_damage: int
    hp_lost: int
    player: Character
    damage_type: DamageType

    @property
    def is_hit(self) -> bool:
        return self.attack.is_hit

    @property
    def is_critical(self) -> bool:
        return self.attack.is_critical_hit

    @property
    def player_new_hp(self) -> int:
        return self.player.current_hit_points

    @property
    def player_knocked(self) -> bool:
        return self.player.current_hit_points <= 0


@dataclass(frozen=True)
class HealingResult:
    """Outcome of healing a character.

    ``actual_healing`` can be lower than ``healing_roll`` when the target
    was already near its maximum.
    """

    healing_roll: int
    actual_healing: int
    new_hp: int
    was_at_full_hp: bool


@dataclass(frozen=True)
class LevelUpResult:
    """Outcome of awarding experience."""

    did_level_up: bool
    old_level: int
    new_level: int
    new_xp: int
    hp_increase: int
    new_proficiency_bonus: int

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.old_level


@dataclass(frozen=True)
class DeathSaveResult:
    """A death save and the character it leaves behind."""

    roll: DeathSaveRoll
    character: Character


# =============================================================================
# Combat Engine
# =============================================================================


class CombatEngine:
    """Resolves individual combat events.

    Example:
        >>> engine = CombatEngine(DiceRoller(seed=7))
        >>> order = engine.roll_initiative(hero, [goblin])
    """

    def __init__(self, dice: DiceRoller, rules: RulesSettings | None = None) -> None:
        """Initialize the combat engine.

        Args:
            dice: Source of every roll.
            rules: Rules configuration; defaults to the global settings.
        """
        self._dice = dice
        self._rules = rules or get_settings().rules

    @property
    def dice(self) -> DiceRoller:
        return self._dice

    @property
    def rules(self) -> RulesSettings:
        return self._rules

    # -------------------------------------------------------------------------
    # Initiative
    # -------------------------------------------------------------------------

    def roll_initiative(self, player: Character, enemies: list[Monster]) -> list[InitiativeEntry]:
        """Roll initiative for the player and every enemy.

        The order is by initiative, highest first. Ties go to the higher DEX
        score, and remaining ties keep roster order with the player first.
        """
        entries = [
            InitiativeEntry(
                id=player.id,
                name=player.name,
                initiative=self._dice.roll_initiative(player.initiative_modifier),
                is_player=True,
                dexterity=player.ability_scores.dexterity,
            )
        ]
        for enemy in enemies:
            entries.append(
                InitiativeEntry(
                    id=enemy.id,
                    name=enemy.name,
                    initiative=self._dice.roll_initiative(enemy.initiative_modifier),
                    is_player=False,
                    dexterity=enemy.ability_scores.dexterity,
                )
            )
        # list.sort is stable, so equal keys keep roster order.
        entries.sort(key=lambda e: (-e.initiative, -e.dexterity))
        logger.debug("Initiative rolled", order=[(e.name, e.initiative) for e in entries])
        return entries

    # -------------------------------------------------------------------------
    # Attacks
    # -------------------------------------------------------------------------

    def player_attack(
        self,
        player: Character,
        target: Monster,
        *,
        attack_bonus: int,
        damage_notation: str,
        damage_type: DamageType,
        advantage: bool = False,
        disadvantage: bool = False,
    ) -> PlayerAttackResult:
        """Resolve one player attack against a monster.

        Damage is only rolled on a hit. Immunity zeroes it, resistance halves
        it (rounded down) and vulnerability doubles it.
        """
        attack = self._dice.roll_attack(
            attack_bonus, target.armor_class, advantage=advantage, disadvantage=disadvantage
        )
        if not attack.is_hit:
            return PlayerAttackResult(
                attack=attack, damage=None, final_damage=0, target=target, damage_type=damage_type
            )

        damage = self._dice.roll_damage(damage_notation, is_critical=attack.is_critical_hit)
        final_damage = max(0, damage.total)
        if damage_type in target.immunities:
            final_damage = 0
        elif damage_type in target.resistances:
            final_damage //= 2
        elif damage_type in target.vulnerabilities:
            final_damage *= 2

        new_hp = min(target.max_hit_points, max(0, target.current_hit_points - final_damage))
        logger.info(
            "Player attack resolved",
            attacker=player.name,
            target=target.name,
            damage=final_damage,
            critical=attack.is_critical_hit,
            target_hp=new_hp,
        )
        return PlayerAttackResult(
            attack=attack,
            damage=damage,
            final_damage=final_damage,
            target=target.model_copy(update={"current_hit_points": new_hp}),
            damage_type=damage_type,
        )

    def monster_attack(
        self,
        attacker: Monster,
        player: Character,
        action: MonsterAction,
        *,
        difficulty_multiplier: float = 1.0,
    ) -> MonsterAttackResult:
        """Resolve one monster action against the player.

        Without an explicit bonus the monster attacks with proficiency plus
        its STR modifier. Damage is scaled by the difficulty multiplier and
        lands on temporary hit points first.
        """
        attack_bonus = (
            action.attack_bonus
            if action.attack_bonus is not None
            else attacker.proficiency_bonus + attacker.ability_modifier(Ability.STR)
        )
        attack = self._dice.roll_attack(attack_bonus, player.armor_class)
        if not attack.is_hit:
            return MonsterAttackResult(
                attacker_name=attacker.name,
                action_name=action.name,
                attack=attack,
                damage=None,
                total_damage=0,
                hp_lost=0,
                player=player,
                damage_type=action.damage_type,
            )

        damage = self._dice.roll_damage(
            action.damage or self._rules.default_monster_damage,
            is_critical=attack.is_critical_hit,
        )
        total_damage = max(0, round(damage.total * difficulty_multiplier))
        updated, hp_lost = self.apply_damage(player, total_damage)
        logger.info(
            "Monster attack resolved",
            attacker=attacker.name,
            action=action.name,
            damage=total_damage,
            player_hp=updated.current_hit_points,
        )
        return MonsterAttackResult(
            attacker_name=attacker.name,
            action_name=action.name,
            attack=attack,
            damage=damage,
            total_damage=total_damage,
            hp_lost=hp_lost,
            player=updated,
            damage_type=action.damage_type,
        )

    # -------------------------------------------------------------------------
    # Hit points
    # -------------------------------------------------------------------------

    @staticmethod
    def apply_damage(character: Character, amount: int) -> tuple[Character, int]:
        """Apply damage, draining temporary hit points first.

        Args:
            character: Character taking the damage.
            amount: Damage dealt; negative amounts count as zero.

        Returns:
            The updated character and the hit points actually lost.
        """
        remaining = max(0, amount)
        temp_hp = character.temporary_hit_points
        absorbed = min(temp_hp, remaining)
        remaining -= absorbed
        new_hp = min(character.max_hit_points, max(0, character.current_hit_points - remaining))
        updated = character.model_copy(
            update={"current_hit_points": new_hp, "temporary_hit_points": temp_hp - absorbed}
        )
        return updated, character.current_hit_points - new_hp

    def apply_healing(self, target: Character, healing: str) -> HealingResult:
        """Roll (or read) healing and clamp the result to maximum HP.

        Args:
            target: Character being healed.
            healing: Dice notation such as ``2d4+2`` or a flat number.

        Raises:
            InvalidNotationError: If ``healing`` is neither notation nor a number.
        """
        healing_roll = self._dice.roll_amount(healing)
        new_hp = min(target.max_hit_points, max(0, target.current_hit_points + max(0, healing_roll)))
        return HealingResult(
            healing_roll=healing_roll,
            actual_healing=new_hp - target.current_hit_points,
            new_hp=new_hp,
            was_at_full_hp=target.current_hit_points == target.max_hit_points,
        )

    # -------------------------------------------------------------------------
    # Death saves
    # -------------------------------------------------------------------------

    def roll_death_save(self, character: Character) -> DeathSaveResult:
        """Roll a death save for a character at 0 HP.

        A natural 20 brings the character back with 1 HP.

        Raises:
            InvalidGameStateError: If the character is not at 0 HP.
        """
        if character.current_hit_points > 0:
            raise InvalidGameStateError(
                f"{character.name} is conscious and does not make death saves",
                current_state="conscious",
                expected_states=["unconscious"],
            )
        roll = self._dice.roll_death_save(
            character.death_save_successes, character.death_save_failures
        )
        update: dict[str, object] = {
            "death_save_successes": roll.successes,
            "death_save_failures": roll.failures,
        }
        if roll.regained_consciousness:
            update["current_hit_points"] = 1
            update["conditions"] = tuple(c for c in character.conditions if c != Condition.UNCONSCIOUS)
        logger.info(
            "Death save rolled",
            character=character.name,
            roll=roll.roll,
            stable=roll.is_stable,
            dead=roll.is_dead,
        )
        return DeathSaveResult(roll=roll, character=character.model_copy(update=update))

    # -------------------------------------------------------------------------
    # Experience
    # -------------------------------------------------------------------------

    @staticmethod
    def calculate_experience_reward(enemies: list[Monster]) -> int:
        """Sum the XP value of every defeated enemy in the roster."""
        return sum(enemy.experience_value for enemy in enemies if not enemy.is_alive)

    @staticmethod
    def check_level_up(character: Character, xp_gained: int) -> LevelUpResult:
        """Add experience and work out the resulting level.

        The character jumps straight to the final level the new total
        reaches, gaining the fixed average hit points for every level
        crossed.
        """
        new_xp = character.experience_points + max(0, xp_gained)
        new_level = min(MAX_CHARACTER_LEVEL, max(character.level, get_level_for_xp(new_xp)))
        levels_gained = new_level - character.level
        if levels_gained <= 0:
            return LevelUpResult(
                did_level_up=False,
                old_level=character.level,
                new_level=character.level,
                new_xp=new_xp,
                hp_increase=0,
                new_proficiency_bonus=character.proficiency_bonus,
            )

        per_level = calculate_hp_increase(character.hit_die, character.ability_modifier(Ability.CON))
        return LevelUpResult(
            did_level_up=True,
            old_level=character.level,
            new_level=new_level,
            new_xp=new_xp,
            hp_increase=per_level * levels_gained,
            new_proficiency_bonus=get_proficiency_bonus(new_level),
        )

    @staticmethod
    def apply_level_up(character: Character, result: LevelUpResult) -> Character:
        """Apply an experience award to a character.

        On a level-up the character gains the hit points and one hit die per
        level crossed.
        """
        if not result.did_level_up:
            return character.model_copy(update={"experience_points": result.new_xp})
        return character.model_copy(
            update={
                "experience_points": result.new_xp,
                "level": result.new_level,
                "max_hit_points": character.max_hit_points + result.hp_increase,
                "current_hit_points": character.current_hit_points + result.hp_increase,
                "hit_dice_remaining": min(
                    result.new_level, character.hit_dice_remaining + result.levels_gained
                ),
            }
        )


__all__ = [
    "InitiativeEntry",
    "PlayerAttackResult",
    "MonsterAttackResult",
    "HealingResult",
    "LevelUpResult",
    "DeathSaveResult",
    "CombatEngine",
]
