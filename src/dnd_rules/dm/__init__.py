"""Game master layer: validation and execution of narrative proposals.

Submodules:
    validator: Pure checks of proposed actions against the state
    executor: Application of validated actions
    game_master: Orchestration of AI responses, action batches and combat
"""

from __future__ import annotations

from dnd_rules.dm.executor import ActionExecutor, ActionOutcome, apply_quest_progress
from dnd_rules.dm.game_master import (
    ActionBatchResult,
    CombatTurnResult,
    GameMaster,
    GameMasterResponse,
)
from dnd_rules.dm.validator import ActionValidator


__all__ = [
    "ActionValidator",
    "ActionExecutor",
    "ActionOutcome",
    "apply_quest_progress",
    "ActionBatchResult",
    "CombatTurnResult",
    "GameMaster",
    "GameMasterResponse",
]
