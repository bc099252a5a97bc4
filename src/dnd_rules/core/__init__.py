"""Engine infrastructure: settings, structured logging, errors and rule constants.

Nothing here knows about game state. The rules tunables (reward caps,
inventory capacity, DC bounds, flee DC) live in ``RulesSettings`` and are
handed to each engine at construction; the fixed 5E tables live in
``dnd_rules.core.constants``.

Errors raised by the engine all derive from ``DndRulesError``. Proposal
problems never raise: they come back as rejected verdicts. Exceptions are
reserved for programming errors such as a malformed dice expression or a
death save on a conscious character.
"""

from __future__ import annotations

from dnd_rules.core.config import (
    RulesSettings,
    Settings,
    clear_settings_cache,
    get_settings,
)
from dnd_rules.core.exceptions import (
    CombatError,
    ConfigurationError,
    DiceRollError,
    DndRulesError,
    GameEngineError,
    InvalidGameStateError,
    InvalidNotationError,
    UnknownActionTypeError,
    ValidationError,
)
from dnd_rules.core.logging import (
    add_engine_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


__all__ = [
    # Errors
    "DndRulesError",
    "ConfigurationError",
    "ValidationError",
    "UnknownActionTypeError",
    "GameEngineError",
    "InvalidGameStateError",
    "CombatError",
    "DiceRollError",
    "InvalidNotationError",
    # Settings
    "Settings",
    "RulesSettings",
    "get_settings",
    "clear_settings_cache",
    # Logging
    "configure_logging",
    "add_engine_context",
    "get_logger",
    "bind_context",
    "clear_context",
]
