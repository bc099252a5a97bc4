"""Tests for structured logging setup."""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import pytest
import structlog
from structlog.testing import capture_logs

from dnd_rules.core.config import Settings
from dnd_rules.core.logging import (
    ENGINE_NAME,
    add_engine_context,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)
from dnd_rules.dm.game_master import GameMaster
from dnd_rules.engine.dice import DiceRoller
from dnd_rules.models.game_state import GameState


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Undo global logging configuration after a test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    clear_context()
    structlog.reset_defaults()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def debug_settings() -> Settings:
    """Settings in debug mode so loggers are never cached."""
    return Settings(_env_file=None, debug=True)


def _records(output: str) -> list[dict]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


class TestEngineContext:
    """Tests for the engine tagging processor."""

    def test_adds_engine_name(self) -> None:
        """Test events are tagged with the engine name."""
        event = add_engine_context(None, "info", {"event": "Rolled"})

        assert event["engine"] == ENGINE_NAME

    def test_keeps_existing_tag(self) -> None:
        """Test an explicit engine tag is not overwritten."""
        event = add_engine_context(None, "info", {"event": "Rolled", "engine": "host"})

        assert event["engine"] == "host"


@pytest.mark.usefixtures("restore_logging")
class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_json_output(self, debug_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        """Test JSON events carry level, engine tag and fields."""
        configure_logging(debug_settings, json_format=True)

        get_logger("test").info("Reward capped", applied=75)

        [record] = _records(capsys.readouterr().out)
        assert record["event"] == "Reward capped"
        assert record["level"] == "info"
        assert record["engine"] == ENGINE_NAME
        assert record["applied"] == 75
        assert "timestamp" in record

    def test_level_filtering(self, debug_settings: Settings, capsys: pytest.CaptureFixture[str]) -> None:
        """Test events below the configured level are dropped."""
        configure_logging(debug_settings, level="warning", json_format=True)
        logger = get_logger("test")

        logger.info("Dice rolled")
        logger.warning("Action rejected")

        assert [r["event"] for r in _records(capsys.readouterr().out)] == ["Action rejected"]

    def test_bound_context_is_merged(
        self, debug_settings: Settings, capsys: pytest.CaptureFixture[str]
    ) -> None:
        """Test bound variables appear on every event until cleared."""
        configure_logging(debug_settings, json_format=True)
        logger = get_logger("test")

        bind_context(session_id="abc123")
        logger.info("Inside")
        clear_context()
        logger.info("Outside")

        inside, outside = _records(capsys.readouterr().out)
        assert inside["session_id"] == "abc123"
        assert "session_id" not in outside


class TestEngineEvents:
    """Tests that engine decisions are logged."""

    def test_rejections_logged_as_warnings(
        self, scripted_dice: Callable[..., DiceRoller], sample_state: GameState
    ) -> None:
        """Test a rejected action produces a warning event."""
        gm = GameMaster(scripted_dice())

        with capture_logs() as logs:
            gm.process_game_actions(sample_state, [{"type": "spendGold", "params": {"amount": 500}}])

        rejected = [entry for entry in logs if entry["event"] == "Action rejected"]
        assert len(rejected) == 1
        assert rejected[0]["log_level"] == "warning"
        assert rejected[0]["action_type"] == "spendGold"
