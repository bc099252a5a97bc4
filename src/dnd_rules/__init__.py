"""dnd-rules-engine - Deterministic D&D 5E rules for LLM-driven adventures.

A rules and validation engine that sits between a narrative model and the
game state.

NEURO-SYMBOLIC SPLIT:
- Python owns TRUTH (GameState, every dice roll, rule validation)
- The LLM only PROPOSES (narration, checks, rewards, actions, encounters)
- Proposals never mutate state or choose numbers directly

Example:
    >>> from dnd_rules import DiceRoller, GameMaster, ParsedAIProposal
    >>>
    >>> gm = GameMaster(DiceRoller(seed=42))
    >>> proposal = ParsedAIProposal.model_validate(ai_json)
    >>> response = gm.process_ai_response(state, proposal, "I search the room for traps")
    >>> state = response.updated_state

Modules:
    core: Configuration, logging, exceptions and rule constants.
    models: Frozen Pydantic V2 schemas for state, proposals and actions.
    engine: Dice, checks, combat resolution and the encounter state machine.
    dm: Action validation and execution, and the GameMaster entry point.
"""

from __future__ import annotations

# Core
from dnd_rules.core.config import RulesSettings, Settings, get_settings
from dnd_rules.core.exceptions import DndRulesError
from dnd_rules.core.logging import configure_logging, get_logger

# Models
from dnd_rules.models import (
    Character,
    GameAction,
    GameState,
    Monster,
    ParsedAIProposal,
    StoryEvent,
    create_monster,
    parse_game_action,
)

# Engines
from dnd_rules.engine import (
    CombatEngine,
    CombatManager,
    CombatState,
    DiceRoller,
    PlayerCombatAction,
    SkillCheckEngine,
)

# Game master
from dnd_rules.dm import (
    ActionExecutor,
    ActionValidator,
    CombatTurnResult,
    GameMaster,
    GameMasterResponse,
)


__version__ = "0.1.0"
__all__ = [
    # Version info
    "__version__",
    # Core
    "DndRulesError",
    "RulesSettings",
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    # Models
    "Character",
    "GameAction",
    "GameState",
    "Monster",
    "ParsedAIProposal",
    "StoryEvent",
    "create_monster",
    "parse_game_action",
    # Engines
    "CombatEngine",
    "CombatManager",
    "CombatState",
    "DiceRoller",
    "PlayerCombatAction",
    "SkillCheckEngine",
    # Game master
    "ActionExecutor",
    "ActionValidator",
    "CombatTurnResult",
    "GameMaster",
    "GameMasterResponse",
]
