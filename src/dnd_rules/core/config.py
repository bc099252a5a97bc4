"""Configuration management for the rules engine.

This module provides centralized configuration using pydantic-settings,
supporting environment variables, .env files, and runtime overrides. The
values here are the anti-cheat knobs of the engine: reward caps, inventory
capacity, and the bounds applied to AI-proposed difficulty classes.

Engines receive their settings explicitly at construction time; nothing in
the resolution path reads the cached singleton after that.

Example:
    >>> from dnd_rules.core.config import get_settings
    >>> settings = get_settings()
    >>> settings.rules.max_gold_reward(1)
    75

Environment Variables:
    DND_RULES_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    DND_RULES_LOG_JSON: Emit JSON logs instead of console output
    DND_RULES_RULES_GOLD_CAP_BASE: Base of the per-action gold cap
    DND_RULES_RULES_XP_CAP_BASE: Base of the per-action XP cap
    DND_RULES_RULES_FLEE_DC: Difficulty class of a flee attempt
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from dnd_rules.core.exceptions import ConfigurationError


class RulesSettings(BaseSettings):
    """Configuration for rule enforcement.

    Attributes:
        gold_cap_base: Flat part of the per-action gold cap.
        gold_cap_per_level: Per-level part of the per-action gold cap.
        xp_cap_base: Flat part of the per-action XP cap.
        xp_cap_per_level: Per-level part of the per-action XP cap.
        max_item_quantity: Most items a single action or reward may create.
        inventory_slots: Default inventory capacity.
        flee_dc: DEX check difficulty to escape combat.
        min_check_dc: Lowest DC accepted from a proposed check.
        max_check_dc: Highest DC accepted from a proposed check.
        default_damage: Damage notation for player attacks without one.
        default_monster_damage: Damage notation for monster attacks without one.
        max_dice_count: Most dice a proposed heal or damage amount may roll.
        max_dice_sides: Largest die a proposed heal or damage amount may use.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_RULES_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    gold_cap_base: int = Field(default=50, ge=0, description="Base gold cap")
    gold_cap_per_level: int = Field(default=25, ge=0, description="Gold cap per level")
    xp_cap_base: int = Field(default=100, ge=0, description="Base XP cap")
    xp_cap_per_level: int = Field(default=50, ge=0, description="XP cap per level")
    max_item_quantity: int = Field(
        default=10,
        ge=1,
        le=100,
        description="Maximum items created by one action",
    )
    inventory_slots: int = Field(default=30, ge=1, description="Inventory capacity")
    flee_dc: int = Field(default=10, ge=1, le=30, description="Flee check DC")
    min_check_dc: int = Field(default=1, ge=1, le=30, description="Lowest accepted DC")
    max_check_dc: int = Field(default=30, ge=1, le=30, description="Highest accepted DC")
    default_damage: str = Field(default="1d8", description="Default player damage")
    default_monster_damage: str = Field(default="1d6", description="Default monster damage")
    max_dice_count: int = Field(default=100, ge=1, le=1000, description="Most dice per proposed roll")
    max_dice_sides: int = Field(default=100, ge=2, le=1000, description="Largest proposed die")

    @model_validator(mode="after")
    def validate_dc_bounds(self) -> "RulesSettings":
        """Ensure the DC clamp is a non-empty range.

        Returns:
            Self if validation passes.

        Raises:
            ConfigurationError: If min_check_dc > max_check_dc.
        """
        if self.min_check_dc > self.max_check_dc:
            raise ConfigurationError(
                f"min_check_dc ({self.min_check_dc}) must not exceed "
                f"max_check_dc ({self.max_check_dc})",
                config_key="min_check_dc",
            )
        return self

    def max_gold_reward(self, level: int) -> int:
        """Maximum gold a single action may grant at a character level."""
        return self.gold_cap_base + level * self.gold_cap_per_level

    def max_xp_reward(self, level: int) -> int:
        """Maximum XP a single action may grant at a character level."""
        return self.xp_cap_base + level * self.xp_cap_per_level

    def clamp_dc(self, dc: int) -> int:
        """Clamp a proposed difficulty class into the accepted range."""
        return max(self.min_check_dc, min(dc, self.max_check_dc))

    def allows_dice(self, count: int, sides: int) -> bool:
        """Whether a proposed dice pool is within the configured limits."""
        return count <= self.max_dice_count and sides <= self.max_dice_sides


class Settings(BaseSettings):
    """Main engine settings.

    Attributes:
        app_name: Application name.
        debug: Enable debug mode.
        log_level: Engine logging level.
        log_json: Emit JSON logs.
        rules: Rule enforcement settings.
    """

    model_config = SettingsConfigDict(
        env_prefix="DND_RULES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    app_name: str = Field(default="D&D 5E Rules Engine", description="Application name")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(default=False, description="Emit JSON logs")

    rules: RulesSettings = Field(default_factory=RulesSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production mode.

        Returns:
            True if not in debug mode.
        """
        return not self.debug


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the engine settings singleton.

    Returns:
        The cached Settings instance.

    Raises:
        ConfigurationError: If configuration is missing or invalid.
    """
    try:
        return Settings()
    except ConfigurationError:
        raise
    except Exception as exc:
        raise ConfigurationError(
            f"Failed to load engine settings: {exc}",
            details={"original_error": str(exc)},
        ) from exc


def clear_settings_cache() -> None:
    """Clear the settings cache, forcing a reload on next access.

    Example:
        >>> clear_settings_cache()
        >>> settings = get_settings()  # Reloads from environment
    """
    get_settings.cache_clear()


__all__ = [
    "RulesSettings",
    "Settings",
    "get_settings",
    "clear_settings_cache",
]
