"""Turn and initiative management for combat encounters.

This module holds the encounter state machine:

    initiative -> playerTurn <-> enemyTurn -> victory | defeat | resolution

CombatState is an immutable snapshot. CombatManager takes a snapshot and an
action and returns a new snapshot plus the story entries describing what
happened. Acting out of turn, or at a dead or unknown target, is a no-op:
the same snapshot comes back with no messages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from dnd_rules.core.config import RulesSettings
from dnd_rules.core.exceptions import CombatError
from dnd_rules.core.logging import get_logger
from dnd_rules.engine.combat import CombatEngine, InitiativeEntry, PlayerAttackResult
from dnd_rules.engine.skill_checks import SkillCheckEngine
from dnd_rules.models.character import Character
from dnd_rules.models.enums import (
    Ability,
    CharacterClass,
    CombatActionType,
    CombatPhase,
    DamageType,
)
from dnd_rules.models.monster import Monster, MonsterAction
from dnd_rules.models.story import CombatResult, StoryEvent, combat_event


logger = get_logger(__name__)


# =============================================================================
# Combat State
# =============================================================================


class CombatState(BaseModel):
    """Snapshot of one encounter.

    Attributes:
        id: Encounter identifier.
        enemies: Enemy roster, dead enemies included.
        initiative_order: Turn order, fixed for the whole encounter.
        current_turn_index: Index of the acting entry.
        round_number: Current round, starting at 1.
        phase: State machine phase.
        active: False once the encounter has ended.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    enemies: tuple[Monster, ...]
    initiative_order: tuple[InitiativeEntry, ...]
    current_turn_index: int = Field(default=0, ge=0)
    round_number: int = Field(default=1, ge=1)
    phase: CombatPhase = CombatPhase.INITIATIVE
    active: bool = True

    @model_validator(mode="after")
    def validate_turn_index(self) -> "CombatState":
        """Ensure the turn index points into the initiative order."""
        limit = max(1, len(self.initiative_order))
        if self.current_turn_index >= limit:
            raise ValueError(
                f"current_turn_index ({self.current_turn_index}) is outside an initiative "
                f"order of {len(self.initiative_order)} entries"
            )
        return self

    @property
    def alive_enemies(self) -> list[Monster]:
        return [e for e in self.enemies if e.is_alive]

    @property
    def is_combat_over(self) -> bool:
        """True when every enemy is down or the encounter was ended."""
        return not self.alive_enemies or not self.active

    @property
    def current_turn(self) -> InitiativeEntry | None:
        if not self.initiative_order:
            return None
        return self.initiative_order[self.current_turn_index]

    @property
    def is_player_turn(self) -> bool:
        current = self.current_turn
        return current is not None and current.is_player

    def enemy(self, enemy_id: str | None) -> Monster | None:
        """Look up an enemy by id."""
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                return enemy
        return None

    def with_enemy(self, enemy: Monster) -> CombatState:
        """Return a copy with one enemy replaced (matched by id)."""
        return self.model_copy(
            update={"enemies": tuple(enemy if e.id == enemy.id else e for e in self.enemies)}
        )

    def advanced(self) -> CombatState:
        """Return a copy moved to the next turn.

        The index wraps modulo the order length and the round number goes up
        whenever it wraps to 0. The phase follows whoever acts next.
        """
        if not self.initiative_order:
            return self
        next_index = (self.current_turn_index + 1) % len(self.initiative_order)
        next_turn = self.initiative_order[next_index]
        return self.model_copy(
            update={
                "current_turn_index": next_index,
                "round_number": self.round_number + 1 if next_index == 0 else self.round_number,
                "phase": CombatPhase.PLAYER_TURN if next_turn.is_player else CombatPhase.ENEMY_TURN,
            }
        )


class PlayerCombatAction(BaseModel):
    """What the player does on their turn.

    Attributes:
        type: Action taken.
        target_id: Enemy targeted by an attack.
        attack_bonus: Override for the attack bonus.
        damage_notation: Override for the damage dice.
        damage_type: Override for the damage type.
        healing_notation: Healing dice for a healing action.
        advantage: Attack with advantage.
        disadvantage: Attack with disadvantage.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: CombatActionType
    target_id: str | None = None
    attack_bonus: int | None = None
    damage_notation: str | None = None
    damage_type: DamageType | None = None
    healing_notation: str | None = None
    advantage: bool = False
    disadvantage: bool = False


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class CombatStartResult:
    """A freshly rolled encounter and its announcement."""

    combat_state: CombatState
    initiative_message: StoryEvent
    narrative_prompt: str = ""


@dataclass(frozen=True)
class PlayerCombatResult:
    """Outcome of the player's turn."""

    combat_state: CombatState
    player: Character
    messages: list[StoryEvent] = field(default_factory=list)
    narrative_prompt: str = ""
    combat_ended: bool = False
    player_victory: bool = False
    player_fled: bool = False
    xp_earned: int | None = None


@dataclass(frozen=True)
class EnemyCombatResult:
    """Outcome of one enemy turn."""

    combat_state: CombatState
    player: Character
    messages: list[StoryEvent] = field(default_factory=list)
    narrative_prompt: str = ""
    player_defeated: bool = False


# =============================================================================
# Combat Manager
# =============================================================================


class CombatManager:
    """Runs encounters turn by turn.

    Example:
        >>> manager = CombatManager(CombatEngine(DiceRoller(seed=3)))
        >>> start = manager.start_combat(hero, [goblin])
        >>> result = manager.process_player_action(
        ...     start.combat_state,
        ...     hero,
        ...     PlayerCombatAction(type=CombatActionType.MELEE_ATTACK, target_id=goblin.id),
        ... )
    """

    def __init__(
        self,
        combat_engine: CombatEngine,
        skill_checks: SkillCheckEngine | None = None,
        rules: RulesSettings | None = None,
    ) -> None:
        """Initialize the combat manager.

        Args:
            combat_engine: Resolves attacks and healing.
            skill_checks: Resolves flee checks; shares the engine's dice by default.
            rules: Rules configuration; defaults to the engine's.
        """
        self._engine = combat_engine
        self._checks = skill_checks or SkillCheckEngine(combat_engine.dice)
        self._rules = rules or combat_engine.rules

    # -------------------------------------------------------------------------
    # Encounter start
    # -------------------------------------------------------------------------

    def start_combat(self, player: Character, enemies: list[Monster]) -> CombatStartResult:
        """Roll initiative and open an encounter.

        The encounter passes through ``initiative`` and lands on whoever
        leads the order.

        Raises:
            CombatError: If there are no enemies.
        """
        if not enemies:
            raise CombatError("Cannot start combat without enemies")

        order = self._engine.roll_initiative(player, enemies)
        leader = order[0]
        state = CombatState(enemies=tuple(enemies), initiative_order=tuple(order))
        state = state.model_copy(
            update={"phase": CombatPhase.PLAYER_TURN if leader.is_player else CombatPhase.ENEMY_TURN}
        )

        order_text = ", ".join(f"{entry.name}: {entry.initiative}" for entry in order)
        message = combat_event(
            f"⚔️ COMBAT BEGINS!\n\nInitiative Order: {order_text}\n\n{leader.name} acts first!",
            is_important=True,
        )
        enemy_names = ", ".join(enemy.name for enemy in enemies)
        prompt = (
            f"COMBAT HAS STARTED!\nEnemies: {enemy_names}\n{leader.name} acts first!\n\n"
            "Describe the tense moment as combat begins. Set the scene for battle."
        )
        logger.info(
            "Combat started",
            combat_id=state.id,
            enemies=len(enemies),
            leader=leader.name,
            phase=state.phase,
        )
        return CombatStartResult(combat_state=state, initiative_message=message, narrative_prompt=prompt)

    # -------------------------------------------------------------------------
    # Player turn
    # -------------------------------------------------------------------------

    def process_player_action(
        self,
        combat_state: CombatState,
        player: Character,
        action: PlayerCombatAction,
    ) -> PlayerCombatResult:
        """Resolve the player's action and move the encounter on.

        Args:
            combat_state: Current encounter snapshot.
            player: The player character.
            action: What the player does.

        Returns:
            The new snapshot, the updated player and the story entries.
        """
        unchanged = PlayerCombatResult(combat_state=combat_state, player=player)
        if not combat_state.active or combat_state.phase.is_terminal or not combat_state.is_player_turn:
            logger.debug("Player action ignored out of turn", phase=combat_state.phase)
            return unchanged

        messages: list[StoryEvent] = []
        state = combat_state
        updated_player = player
        prompt = ""

        if action.type.is_attack:
            target = state.enemy(action.target_id)
            if target is None or not target.is_alive:
                logger.debug("Attack on missing or dead target ignored", target_id=action.target_id)
                return unchanged

            result = self._engine.player_attack(
                player,
                target,
                attack_bonus=(
                    action.attack_bonus
                    if action.attack_bonus is not None
                    else player.proficiency_bonus + player.ability_modifier(Ability.STR)
                ),
                damage_notation=action.damage_notation or self._rules.default_damage,
                damage_type=action.damage_type or DamageType.SLASHING,
                advantage=action.advantage,
                disadvantage=action.disadvantage,
            )
            state = state.with_enemy(result.target)
            messages.append(self._attack_message(player.name, target.name, action.type, result))
            if result.target_killed:
                messages.append(combat_event(f"💀 {target.name} has been defeated!", is_important=True))
            prompt = self._attack_prompt(player.name, target.name, result)

        elif action.type == CombatActionType.DODGE:
            messages.append(
                combat_event(f"🛡️ {player.name} takes the Dodge action, gaining advantage on DEX saves.")
            )
            prompt = f"{player.name} takes a defensive stance, ready to dodge incoming attacks."

        elif action.type == CombatActionType.FLEE:
            check = self._checks.perform_ability_check(player, Ability.DEX, self._rules.flee_dc)
            rolled = check.roll.total
            if check.success:
                messages.append(
                    combat_event(
                        f"🏃 {player.name} successfully flees from combat! "
                        f"(Rolled {rolled} vs DC {self._rules.flee_dc})"
                    )
                )
                logger.info("Player fled combat", combat_id=state.id, rolled=rolled)
                return PlayerCombatResult(
                    combat_state=state.model_copy(
                        update={"active": False, "phase": CombatPhase.RESOLUTION}
                    ),
                    player=player,
                    messages=messages,
                    narrative_prompt=f"{player.name} manages to escape from the battle!",
                    combat_ended=True,
                    player_fled=True,
                )
            messages.append(
                combat_event(
                    f"❌ {player.name} fails to escape! (Rolled {rolled} vs DC {self._rules.flee_dc})"
                )
            )
            prompt = f"{player.name} tries to flee but the enemies block the escape!"

        elif action.type == CombatActionType.HEALING and action.healing_notation:
            healing = self._engine.apply_healing(player, action.healing_notation)
            updated_player = player.model_copy(update={"current_hit_points": healing.new_hp})
            messages.append(
                combat_event(
                    f"💚 {player.name} heals for {healing.actual_healing} HP! "
                    f"(Now at {healing.new_hp}/{player.max_hit_points})",
                    combat_result=CombatResult(
                        attacker_name=player.name,
                        defender_name=player.name,
                        action_type=CombatActionType.HEALING,
                        healing_amount=healing.actual_healing,
                    ),
                )
            )
            prompt = (
                f"{player.name} channels healing energy, recovering "
                f"{healing.actual_healing} hit points."
            )

        else:
            messages.append(combat_event(f"{player.name} prepares for the next move."))

        if not state.alive_enemies:
            xp_reward = self._engine.calculate_experience_reward(list(state.enemies))
            messages.append(
                combat_event(
                    f"🎉 Victory! All enemies defeated! Earned {xp_reward} XP!",
                    is_important=True,
                    experience_gained=xp_reward,
                )
            )
            logger.info("Combat won", combat_id=state.id, xp=xp_reward, rounds=state.round_number)
            return PlayerCombatResult(
                combat_state=state.model_copy(update={"active": False, "phase": CombatPhase.VICTORY}),
                player=updated_player,
                messages=messages,
                narrative_prompt=f"Victory! {player.name} has defeated all enemies!",
                combat_ended=True,
                player_victory=True,
                xp_earned=xp_reward,
            )

        return PlayerCombatResult(
            combat_state=state.advanced(),
            player=updated_player,
            messages=messages,
            narrative_prompt=prompt,
        )

    # -------------------------------------------------------------------------
    # Enemy turn
    # -------------------------------------------------------------------------

    def process_enemy_turn(
        self,
        combat_state: CombatState,
        player: Character,
        *,
        difficulty_multiplier: float = 1.0,
    ) -> EnemyCombatResult:
        """Resolve the acting enemy's turn.

        Dead enemies are skipped without a roll. Living enemies use their
        first action, or a basic attack when they have none.
        """
        unchanged = EnemyCombatResult(combat_state=combat_state, player=player)
        current = combat_state.current_turn
        if (
            not combat_state.active
            or combat_state.phase.is_terminal
            or current is None
            or current.is_player
        ):
            return unchanged

        enemy = combat_state.enemy(current.id)
        if enemy is None or not enemy.is_alive:
            return EnemyCombatResult(combat_state=combat_state.advanced(), player=player)

        action = (
            enemy.actions[0]
            if enemy.actions
            else MonsterAction(
                name="Attack",
                description="Basic attack",
                damage=self._rules.default_monster_damage,
                damage_type=DamageType.BLUDGEONING,
            )
        )
        result = self._engine.monster_attack(
            enemy, player, action, difficulty_multiplier=difficulty_multiplier
        )

        if result.is_critical:
            content = f"💥 CRITICAL! {enemy.name} uses {action.name} and deals {result.total_damage} damage!"
        elif result.attack.is_critical_miss:
            content = f"😅 {enemy.name}'s {action.name} misses completely!"
        elif result.is_hit:
            content = f"🔴 {enemy.name} uses {action.name} dealing {result.total_damage} damage!"
        else:
            content = f"🛡️ {enemy.name}'s {action.name} misses! ({result.attack.total} vs AC)"
        messages = [
            combat_event(
                content,
                combat_result=CombatResult(
                    attacker_name=enemy.name,
                    defender_name=player.name,
                    action_type=CombatActionType.MELEE_ATTACK,
                    attack_roll=result.attack.total,
                    damage_roll=result.damage.total if result.damage else None,
                    total_damage=result.total_damage,
                    damage_type=result.damage_type,
                    is_hit=result.is_hit,
                    is_critical_hit=result.is_critical,
                    is_miss=not result.is_hit,
                    is_critical_miss=result.attack.is_critical_miss,
                ),
            )
        ]

        if result.player_knocked:
            messages.append(
                combat_event(f"💀 {player.name} has fallen! The world fades to black...", is_important=True)
            )
            logger.info("Player defeated", combat_id=combat_state.id, by=enemy.name)
            return EnemyCombatResult(
                combat_state=combat_state.model_copy(update={"active": False, "phase": CombatPhase.DEFEAT}),
                player=result.player,
                messages=messages,
                narrative_prompt=f"{player.name} falls unconscious as {enemy.name}'s attack lands!",
                player_defeated=True,
            )

        if result.is_critical:
            prompt = f"{enemy.name} lands a brutal {action.name}, dealing {result.total_damage} damage!"
        elif result.is_hit:
            prompt = f"{enemy.name}'s {action.name} connects, dealing {result.total_damage} damage."
        else:
            prompt = f"{enemy.name}'s {action.name} misses!"
        return EnemyCombatResult(
            combat_state=combat_state.advanced(),
            player=result.player,
            messages=messages,
            narrative_prompt=prompt,
        )

    # -------------------------------------------------------------------------
    # Suggestions
    # -------------------------------------------------------------------------

    @staticmethod
    def combat_suggestions(combat_state: CombatState, player: Character) -> list[str]:
        """Up to four actions the UI can offer the player."""
        alive = combat_state.alive_enemies
        if not alive:
            return ["Victory!"]

        suggestions = [f"Attack {enemy.name}" for enemy in alive[:2]]
        suggestions.append("Dodge")
        if player.character_class in (CharacterClass.CLERIC, CharacterClass.PALADIN):
            suggestions.append("Cast healing spell")
        if player.character_class == CharacterClass.ROGUE:
            suggestions.append("Hide and prepare sneak attack")
        suggestions.append("Attempt to flee")
        return suggestions[:4]

    # -------------------------------------------------------------------------
    # Message builders
    # -------------------------------------------------------------------------

    @staticmethod
    def _attack_message(
        attacker_name: str,
        target_name: str,
        action_type: CombatActionType,
        result: PlayerAttackResult,
    ) -> StoryEvent:
        if result.is_critical:
            content = f"💥 CRITICAL HIT! {attacker_name} strikes {target_name} for {result.final_damage} damage!"
        elif result.attack.is_critical_miss:
            content = f"❌ Critical Miss! {attacker_name}'s attack goes wild!"
        elif result.is_hit:
            content = (
                f"⚔️ {attacker_name} hits {target_name} for {result.final_damage} "
                f"{result.damage_type.display_name} damage!"
            )
        else:
            content = f"🛡️ {attacker_name}'s attack misses {target_name}! ({result.attack.total} vs AC)"

        return combat_event(
            content,
            combat_result=CombatResult(
                attacker_name=attacker_name,
                defender_name=target_name,
                action_type=action_type,
                attack_roll=result.attack.total,
                damage_roll=result.damage.total if result.damage else None,
                total_damage=result.final_damage,
                damage_type=result.damage_type,
                is_hit=result.is_hit,
                is_critical_hit=result.is_critical,
                is_miss=not result.is_hit,
                is_critical_miss=result.attack.is_critical_miss,
            ),
        )

    @staticmethod
    def _attack_prompt(attacker_name: str, target_name: str, result: PlayerAttackResult) -> str:
        if result.is_critical:
            return (
                f"{attacker_name} lands a devastating critical hit on {target_name} "
                f"for {result.final_damage} damage!"
            )
        if result.is_hit:
            return f"{attacker_name} strikes {target_name} for {result.final_damage} damage."
        return f"{attacker_name}'s attack misses {target_name}."


__all__ = [
    "CombatState",
    "PlayerCombatAction",
    "CombatStartResult",
    "PlayerCombatResult",
    "EnemyCombatResult",
    "CombatManager",
]
