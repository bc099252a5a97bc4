"""Custom exception hierarchy for the D&D 5E rules engine.

All exceptions inherit from DndRulesError, enabling unified error handling
at the boundary with the narrative layer while preserving domain context.

Only contract violations are raised. Business-rule rejections (not enough
gold, missing item, unknown quest) are reported as ValidationResult values
and never surface as exceptions.

Example:
    >>> from dnd_rules.core.exceptions import InvalidNotationError
    >>> raise InvalidNotationError("Invalid dice notation", expression="2x6")
"""

from __future__ import annotations

from typing import Any


class DndRulesError(Exception):
    """Base exception for all rules engine errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary containing additional error context.
    """

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        """Initialize the base exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary containing additional error context.
        """
        self.message = message
        self.details = details or {}
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional details.

        Returns:
            Formatted error message including any provided details.
        """
        if self.details:
            detail_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message

    def __repr__(self) -> str:
        """Return a detailed string representation of the exception.

        Returns:
            String representation suitable for debugging.
        """
        return f"{self.__class__.__name__}(message={self.message!r}, details={self.details!r})"


# =============================================================================
# Game Engine Domain Exceptions
# =============================================================================


class GameEngineError(DndRulesError):
    """Base exception for all game engine errors.

    Raised when an upstream collaborator hands the engine data that breaks
    its contract (bad notation, unknown action tags, impossible encounters).
    """


class InvalidGameStateError(GameEngineError):
    """Raised when a state value violates a structural invariant."""

    def __init__(
        self,
        message: str,
        *,
        current_state: str | None = None,
        expected_states: list[str] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize invalid game state error with state context.

        Args:
            message: Human-readable error description.
            current_state: The current invalid state identifier.
            expected_states: List of valid states that were expected.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if current_state:
            combined_details["current_state"] = current_state
        if expected_states:
            combined_details["expected_states"] = expected_states
        super().__init__(message, details=combined_details)


class CombatError(GameEngineError):
    """Raised when a combat encounter cannot be constructed or resolved.

    Acting out of turn or targeting a dead enemy is not an error; those are
    no-ops in the combat manager. This is reserved for impossible input such
    as an encounter with no enemies.
    """

    def __init__(
        self,
        message: str,
        *,
        combatant_id: str | None = None,
        round_number: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize combat error with combat context.

        Args:
            message: Human-readable error description.
            combatant_id: Identifier of the combatant involved.
            round_number: Current combat round when error occurred.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if combatant_id:
            combined_details["combatant_id"] = combatant_id
        if round_number is not None:
            combined_details["round_number"] = round_number
        super().__init__(message, details=combined_details)


class DiceRollError(GameEngineError):
    """Raised when dice rolling operations fail.

    This typically occurs when parsing invalid dice notation or when
    asked to roll a die with fewer than one side.
    """

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize dice roll error with expression context.

        Args:
            message: Human-readable error description.
            expression: The dice expression that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if expression:
            combined_details["expression"] = expression
        super().__init__(message, details=combined_details)


class InvalidNotationError(DiceRollError):
    """Raised when text does not match the ``NdS[+/-M]`` dice notation."""


class UnknownActionTypeError(GameEngineError):
    """Raised when a game action payload names a type the engine does not know."""

    def __init__(
        self,
        message: str,
        *,
        action_type: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize unknown action error with the offending tag.

        Args:
            message: Human-readable error description.
            action_type: The unrecognised action type tag.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if action_type is not None:
            combined_details["action_type"] = action_type
        super().__init__(message, details=combined_details)


# =============================================================================
# Configuration & Validation Exceptions
# =============================================================================


class ConfigurationError(DndRulesError):
    """Raised when engine configuration is invalid.

    This includes invalid values or incompatible combinations such as a
    minimum DC above the maximum DC.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize configuration error with config key context.

        Args:
            message: Human-readable error description.
            config_key: The configuration key that caused the error.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if config_key:
            combined_details["config_key"] = config_key
        super().__init__(message, details=combined_details)


class ValidationError(DndRulesError):
    """Raised when structured data fails validation at the engine boundary."""

    def __init__(
        self,
        message: str,
        *,
        field_name: str | None = None,
        invalid_value: Any | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize validation error with field context.

        Args:
            message: Human-readable error description.
            field_name: Name of the field that failed validation.
            invalid_value: The value that failed validation.
            details: Optional dictionary containing additional error context.
        """
        combined_details = details or {}
        if field_name:
            combined_details["field_name"] = field_name
        if invalid_value is not None:
            combined_details["invalid_value"] = invalid_value
        super().__init__(message, details=combined_details)


__all__ = [
    # Base exception
    "DndRulesError",
    # Game engine exceptions
    "GameEngineError",
    "InvalidGameStateError",
    "CombatError",
    "DiceRollError",
    "InvalidNotationError",
    "UnknownActionTypeError",
    # Configuration & validation
    "ConfigurationError",
    "ValidationError",
]
