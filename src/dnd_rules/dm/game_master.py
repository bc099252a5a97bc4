"""Game master: the integration point between the narrative layer and the rules.

The narrative layer proposes; the game master decides. A parsed AI proposal
or a batch of game actions goes in together with the current state, and a
new state plus the story entries to show come out. Every number in those
entries comes from the engines in this package, never from the proposal.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from dnd_rules.core.config import RulesSettings, get_settings
from dnd_rules.core.constants import MAX_REPUTATION, MIN_REPUTATION
from dnd_rules.core.exceptions import UnknownActionTypeError, ValidationError
from dnd_rules.core.logging import bind_context, clear_context, get_logger
from dnd_rules.dm.executor import (
    ActionExecutor,
    apply_quest_progress,
    revived,
    with_condition,
)
from dnd_rules.dm.validator import ActionValidator
from dnd_rules.engine.combat import CombatEngine
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.engine.items import ItemCatalog
from dnd_rules.engine.skill_checks import SkillCheckEngine, SkillCheckOutcome
from dnd_rules.engine.turn_manager import CombatManager, CombatState, PlayerCombatAction
from dnd_rules.models.actions import GameAction, ValidationResult, parse_game_action
from dnd_rules.models.character import Character
from dnd_rules.models.enums import Condition, MessageType, RewardType
from dnd_rules.models.game_state import GameState, Scene
from dnd_rules.models.items import Item
from dnd_rules.models.monster import Monster, create_monster
from dnd_rules.models.proposals import (
    CombatTrigger,
    EnemyInfo,
    ParsedAIProposal,
    PlayerChoice,
    ProposedReward,
    SceneChange,
)
from dnd_rules.models.story import StoryEvent, combat_event, system_event, utc_now


logger = get_logger(__name__)


# =============================================================================
# Results
# =============================================================================


@dataclass(frozen=True)
class ActionBatchResult:
    """Outcome of a batch of game actions.

    Attributes:
        state: State after every accepted action.
        messages: Story entries, rejections included, in order.
        results: One validation verdict per input action.
    """

    state: GameState
    messages: list[StoryEvent] = field(default_factory=list)
    results: list[ValidationResult] = field(default_factory=list)


@dataclass(frozen=True)
class GameMasterResponse:
    """Outcome of resolving one AI proposal.

    Attributes:
        updated_state: State after the proposal was resolved.
        messages: New story entries, in display order.
        skill_check_outcome: The resolved check, if one was proposed.
        requires_player_choice: Whether the UI should offer choices.
        player_choices: Choices to offer.
        suggested_actions: Free-text action suggestions.
        combat_trigger: Proposed encounter, passed through for the caller
            to hand to ``start_combat``.
    """

    updated_state: GameState
    messages: list[StoryEvent] = field(default_factory=list)
    skill_check_outcome: SkillCheckOutcome | None = None
    requires_player_choice: bool = False
    player_choices: tuple[PlayerChoice, ...] = ()
    suggested_actions: tuple[str, ...] = ()
    combat_trigger: CombatTrigger | None = None


@dataclass(frozen=True)
class CombatTurnResult:
    """Outcome of starting combat or of one player combat action.

    Attributes:
        state: Game state with the player's updated character.
        combat_state: Encounter state; control is back with the player
            unless ``combat_ended`` is set.
        messages: Combat entries from the player's and enemies' turns.
        narrative_prompt: Prompt describing the last notable event.
        combat_ended: Whether the encounter is over.
        player_victory: Every enemy was defeated.
        player_fled: The player escaped.
        player_defeated: The player was knocked unconscious.
        xp_earned: XP awarded on victory.
    """

    state: GameState
    combat_state: CombatState
    messages: list[StoryEvent] = field(default_factory=list)
    narrative_prompt: str = ""
    combat_ended: bool = False
    player_victory: bool = False
    player_fled: bool = False
    player_defeated: bool = False
    xp_earned: int | None = None


# =============================================================================
# Game Master
# =============================================================================


class GameMaster:
    """Validates and applies everything the narrative layer proposes.

    Args:
        dice: Dice roller shared by every engine. Inject a seeded or
            scripted roller for reproducible sessions.
        rules: Rule tunables. Defaults to the process settings.
        catalog: Item catalog. Defaults to the built-in one.

    Example:
        >>> gm = GameMaster(DiceRoller(seed=7))
        >>> response = gm.process_ai_response(state, proposal, "I pick the lock")
        >>> state = response.updated_state
    """

    def __init__(
        self,
        dice: DiceRoller | None = None,
        *,
        rules: RulesSettings | None = None,
        catalog: ItemCatalog | None = None,
    ) -> None:
        self._rules = rules or get_settings().rules
        self._dice = dice or DiceRoller()
        self._combat = CombatEngine(self._dice, self._rules)
        self._checks = SkillCheckEngine(self._dice)
        self._manager = CombatManager(self._combat, self._checks, self._rules)
        self._catalog = catalog or ItemCatalog()
        self._validator = ActionValidator(self._rules)
        self._executor = ActionExecutor(self._dice, self._combat, self._catalog, self._rules)

    @property
    def dice(self) -> DiceRoller:
        return self._dice

    @property
    def validator(self) -> ActionValidator:
        return self._validator

    @property
    def executor(self) -> ActionExecutor:
        return self._executor

    @property
    def combat_manager(self) -> CombatManager:
        return self._manager

    # -------------------------------------------------------------------------
    # Game actions
    # -------------------------------------------------------------------------

    def process_game_actions(
        self,
        state: GameState,
        actions: Iterable[GameAction | Mapping[str, Any]],
    ) -> ActionBatchResult:
        """Validate and execute a batch of actions in order.

        Raw wire payloads are parsed first. Anything that cannot be parsed or
        fails validation becomes a system message carrying the reason, and
        the rest of the batch still runs.

        Args:
            state: The current state.
            actions: Typed actions or ``{type, params, narration}`` mappings.

        Returns:
            The final state, all messages and one verdict per action.
        """
        bind_context(session_id=state.id)
        try:
            messages: list[StoryEvent] = []
            results: list[ValidationResult] = []
            for raw in actions:
                if isinstance(raw, Mapping):
                    try:
                        action = parse_game_action(raw)
                    except (UnknownActionTypeError, ValidationError) as exc:
                        logger.warning("Action rejected", action_type=raw.get("type"), reason=exc.message)
                        results.append(ValidationResult.invalid(exc.message))
                        messages.append(system_event(f"Action rejected: {exc.message}"))
                        continue
                else:
                    action = raw

                verdict = self._validator.validate(action, state)
                results.append(verdict)
                if not verdict.is_valid:
                    logger.warning("Action rejected", action_type=action.type, reason=verdict.reason)
                    messages.append(system_event(f"Action rejected: {verdict.reason}"))
                    continue

                if action.narration:
                    messages.append(StoryEvent(type=MessageType.NARRATION, content=action.narration))
                outcome = self._executor.execute(action, state)
                state = outcome.state
                messages.extend(outcome.messages)

            state = self._append_to_log(state, messages)
            return ActionBatchResult(state=state, messages=messages, results=results)
        finally:
            clear_context()

    # -------------------------------------------------------------------------
    # AI proposals
    # -------------------------------------------------------------------------

    def process_ai_response(
        self,
        state: GameState,
        proposal: ParsedAIProposal,
        player_action: str,
        *,
        skip_player_message: bool = False,
    ) -> GameMasterResponse:
        """Resolve one parsed AI response against the state.

        Messages are produced in this order: the player's action, the
        narration, NPC dialogue, the check result, rewards and the scene
        change. Rewards are granted only when there was no check or the
        check succeeded.

        Args:
            state: The current state.
            proposal: The parsed proposal.
            player_action: What the player typed.
            skip_player_message: Omit the player-action entry, for callers
                that already logged it.

        Returns:
            The resolved response.
        """
        bind_context(session_id=state.id)
        try:
            messages: list[StoryEvent] = []
            if not skip_player_message and player_action.strip():
                messages.append(StoryEvent(type=MessageType.PLAYER_ACTION, content=player_action))
            if proposal.narration.strip():
                messages.append(StoryEvent(type=MessageType.NARRATION, content=proposal.narration))
            for dialogue in proposal.npc_dialogues:
                messages.append(
                    StoryEvent(
                        type=MessageType.DIALOGUE,
                        content=dialogue.dialogue,
                        speaker_name=dialogue.npc_name,
                    )
                )

            outcome: SkillCheckOutcome | None = None
            if proposal.proposed_check is not None:
                check = proposal.proposed_check
                dc = self._rules.clamp_dc(check.difficulty_class)
                if dc != check.difficulty_class:
                    logger.warning("Check DC clamped", proposed=check.difficulty_class, applied=dc)
                    check = check.model_copy(update={"difficulty_class": dc})
                outcome = self._checks.perform_skill_check(state.character, check)
                if outcome.success:
                    text = proposal.success_outcome or "You succeed!"
                else:
                    text = proposal.failure_outcome or "You fail."
                messages.append(
                    StoryEvent(
                        type=MessageType.SKILL_CHECK,
                        content=text,
                        skill_check_result=SkillCheckEngine.to_story_result(outcome),
                    )
                )

            if outcome is None or outcome.success:
                state, reward_messages = self._process_rewards(state, proposal.proposed_rewards)
                messages.extend(reward_messages)

            if proposal.scene_change is not None:
                state, scene_messages = self._process_scene_change(state, proposal.scene_change)
                messages.extend(scene_messages)

            state = self._append_to_log(state, messages)
            return GameMasterResponse(
                updated_state=state,
                messages=messages,
                skill_check_outcome=outcome,
                requires_player_choice=proposal.requires_player_choice,
                player_choices=proposal.player_choices,
                suggested_actions=proposal.suggested_actions,
                combat_trigger=proposal.combat_trigger,
            )
        finally:
            clear_context()

    def _process_rewards(
        self, state: GameState, rewards: Sequence[ProposedReward]
    ) -> tuple[GameState, list[StoryEvent]]:
        """Apply proposed rewards, capping gold and XP by level."""
        messages: list[StoryEvent] = []
        for reward in rewards:
            if reward.type == RewardType.EXPERIENCE:
                proposed = reward.experience_points or 0
                if proposed <= 0:
                    continue
                applied = min(proposed, self._rules.max_xp_reward(state.character.level))
                if applied < proposed:
                    logger.warning("Reward capped", reward_type="experience", proposed=proposed, applied=applied)
                state, xp_messages = self._executor.award_experience(state, applied)
                messages.extend(xp_messages)

            elif reward.type == RewardType.GOLD:
                proposed = reward.gold_amount or 0
                if proposed <= 0:
                    continue
                applied = min(proposed, self._rules.max_gold_reward(state.character.level))
                if applied < proposed:
                    logger.warning("Reward capped", reward_type="gold", proposed=proposed, applied=applied)
                state = state.model_copy(update={"gold": state.gold + applied})
                messages.append(system_event(f"Found {applied} gold!"))

            elif reward.type == RewardType.ITEM:
                if not reward.item_name or not reward.item_name.strip():
                    continue
                quantity = min(max(1, reward.quantity), self._rules.max_item_quantity)
                items = [
                    self._catalog.create_item(reward.item_name, description=reward.description)
                    for _ in range(min(quantity, state.inventory.free_slots))
                ]
                if not items:
                    logger.warning("Inventory full", item=reward.item_name)
                    continue
                state = state.model_copy(update={"inventory": state.inventory.with_items(*items)})
                label = items[0].name if len(items) == 1 else f"{items[0].name} x{len(items)}"
                messages.append(
                    StoryEvent(
                        type=MessageType.ITEM_RECEIVED,
                        content=f"Found: {label}",
                        items_received=tuple(item.name for item in items),
                    )
                )

            elif reward.type == RewardType.REPUTATION:
                if not reward.faction or not reward.reputation_change:
                    continue
                current = state.faction_reputation.get(reward.faction, 0)
                updated = max(MIN_REPUTATION, min(MAX_REPUTATION, current + reward.reputation_change))
                reputation = {**state.faction_reputation, reward.faction: updated}
                state = state.model_copy(update={"faction_reputation": reputation})
                change = updated - current
                messages.append(
                    system_event(f"Reputation with {reward.faction} {'+' if change >= 0 else ''}{change}")
                )
        return state, messages

    @staticmethod
    def _process_scene_change(
        state: GameState, change: SceneChange
    ) -> tuple[GameState, list[StoryEvent]]:
        scene = Scene(
            name=change.new_scene_name,
            description=change.new_scene_description,
            scene_type=change.scene_type or state.current_scene.scene_type,
        )
        messages: list[StoryEvent] = []
        if change.transition_description:
            messages.append(StoryEvent(type=MessageType.NARRATION, content=change.transition_description))
        logger.info("Scene changed", scene=scene.name, scene_type=scene.scene_type)
        return state.model_copy(update={"current_scene": scene}), messages

    # -------------------------------------------------------------------------
    # Combat
    # -------------------------------------------------------------------------

    def start_combat(
        self,
        state: GameState,
        enemies: CombatTrigger | Sequence[EnemyInfo] | Sequence[Monster],
    ) -> CombatTurnResult:
        """Open an encounter from a trigger, enemy descriptions or monsters.

        Each ``EnemyInfo`` becomes ``count`` monsters with baseline stats for
        its challenge rating. If enemies win initiative, their turns are run
        until control reaches the player.

        Raises:
            CombatError: If no enemies are given.
        """
        ambush = False
        if isinstance(enemies, CombatTrigger):
            ambush = enemies.ambush
            enemies = enemies.enemies
        monsters = self._build_monsters(enemies)

        start = self._manager.start_combat(state.character, monsters)
        messages = [start.initiative_message]
        if ambush:
            messages.insert(0, combat_event("⚠️ Ambush! You are caught off guard!", is_important=True))

        scene = state.current_scene.model_copy(update={"is_in_combat": True})
        state = state.model_copy(update={"current_scene": scene})
        combat_state, character, enemy_messages, defeated = self._run_enemy_turns(
            state, start.combat_state, state.character
        )
        messages.extend(enemy_messages)
        state = self._finish_turn(state, character, combat_state, defeated)
        state = self._append_to_log(state, messages)
        return CombatTurnResult(
            state=state,
            combat_state=combat_state,
            messages=messages,
            narrative_prompt=start.narrative_prompt,
            combat_ended=defeated,
            player_defeated=defeated,
        )

    def process_combat_action(
        self,
        state: GameState,
        combat_state: CombatState,
        action: PlayerCombatAction,
    ) -> CombatTurnResult:
        """Resolve the player's combat action and the enemy turns after it.

        Victory XP is applied to the character, with level-ups. A defeated
        player is marked unconscious. Actions taken out of turn leave
        everything unchanged.
        """
        if not combat_state.active or not combat_state.is_player_turn:
            logger.warning("Combat action out of turn", combat_id=combat_state.id, phase=combat_state.phase)
            return CombatTurnResult(
                state=state,
                combat_state=combat_state,
                combat_ended=not combat_state.active,
            )

        result = self._manager.process_player_action(combat_state, state.character, action)
        messages = list(result.messages)
        combat_state = result.combat_state
        state = state.with_character(result.player)

        if result.player_victory and result.xp_earned:
            state, level_messages = self._executor.award_experience(
                state, result.xp_earned, announce=False
            )
            messages.extend(level_messages)

        defeated = False
        prompt = result.narrative_prompt
        character = state.character
        if not result.combat_ended:
            combat_state, character, enemy_messages, defeated = self._run_enemy_turns(
                state, combat_state, character
            )
            messages.extend(enemy_messages)

        state = self._finish_turn(state, character, combat_state, defeated)
        state = self._append_to_log(state, messages)
        return CombatTurnResult(
            state=state,
            combat_state=combat_state,
            messages=messages,
            narrative_prompt=prompt,
            combat_ended=result.combat_ended or defeated,
            player_victory=result.player_victory,
            player_fled=result.player_fled,
            player_defeated=defeated,
            xp_earned=result.xp_earned,
        )

    def _run_enemy_turns(
        self,
        state: GameState,
        combat_state: CombatState,
        character: Character,
    ) -> tuple[CombatState, Character, list[StoryEvent], bool]:
        """Run enemy turns until the player acts next or the fight ends."""
        messages: list[StoryEvent] = []
        multiplier = state.difficulty.damage_multiplier
        for _ in range(len(combat_state.initiative_order)):
            if not combat_state.active or combat_state.phase.is_terminal or combat_state.is_player_turn:
                break
            enemy_result = self._manager.process_enemy_turn(
                combat_state, character, difficulty_multiplier=multiplier
            )
            combat_state = enemy_result.combat_state
            character = enemy_result.player
            messages.extend(enemy_result.messages)
            if enemy_result.player_defeated:
                return combat_state, character, messages, True
        return combat_state, character, messages, False

    @staticmethod
    def _finish_turn(
        state: GameState,
        character: Character,
        combat_state: CombatState,
        defeated: bool,
    ) -> GameState:
        if defeated:
            character = with_condition(character, Condition.UNCONSCIOUS)
        state = state.with_character(character)
        if not combat_state.active:
            scene = state.current_scene.model_copy(update={"is_in_combat": False})
            state = state.model_copy(update={"current_scene": scene})
        return state

    @staticmethod
    def _build_monsters(enemies: Sequence[EnemyInfo] | Sequence[Monster]) -> list[Monster]:
        monsters: list[Monster] = []
        for enemy in enemies:
            if isinstance(enemy, Monster):
                monsters.append(enemy)
                continue
            for index in range(enemy.count):
                name = enemy.name if enemy.count == 1 else f"{enemy.name} {index + 1}"
                monsters.append(
                    create_monster(
                        name,
                        challenge_rating=enemy.challenge_rating,
                        monster_type=enemy.type or "humanoid",
                    )
                )
        return monsters

    # -------------------------------------------------------------------------
    # State helpers
    # -------------------------------------------------------------------------

    def apply_damage_to_player(self, state: GameState, amount: int) -> GameState:
        """Deal damage to the player, temporary hit points first."""
        character, _ = self._combat.apply_damage(state.character, amount)
        if character.current_hit_points == 0:
            character = with_condition(character, Condition.UNCONSCIOUS)
        return state.with_character(character)

    def heal_player(self, state: GameState, healing: str | int) -> GameState:
        """Heal the player by dice notation or a flat amount, capped at max HP."""
        result = self._combat.apply_healing(state.character, str(healing))
        character = state.character.model_copy(update={"current_hit_points": result.new_hp})
        return state.with_character(revived(character))

    @staticmethod
    def add_item_to_inventory(state: GameState, item: Item) -> GameState:
        """Add an item; a full inventory leaves the state unchanged."""
        if state.inventory.is_full:
            return state
        return state.model_copy(update={"inventory": state.inventory.with_items(item)})

    @staticmethod
    def remove_item_from_inventory(state: GameState, item_id: str) -> GameState:
        """Remove an item by id, unequipping it."""
        return state.model_copy(update={"inventory": state.inventory.without(item_id)})

    @staticmethod
    def update_quest_progress(
        state: GameState, quest_id: str, objective_id: str, progress_delta: int
    ) -> GameState:
        """Advance a quest objective; unknown ids leave the state unchanged."""
        updated, _ = apply_quest_progress(state, quest_id, objective_id, progress_delta)
        return updated

    @staticmethod
    def _append_to_log(state: GameState, messages: list[StoryEvent]) -> GameState:
        return state.model_copy(
            update={"story_log": state.story_log + tuple(messages), "last_played_at": utc_now()}
        )


__all__ = [
    "ActionBatchResult",
    "GameMasterResponse",
    "CombatTurnResult",
    "GameMaster",
]
