"""Pydantic V2 schemas for quests and their objectives."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.core.constants import MAX_QUEST_TITLE_LENGTH
from dnd_rules.models.enums import QuestStatus


class QuestObjective(BaseModel):
    """A single trackable objective within a quest.

    Attributes:
        id: Objective identifier, unique within its quest.
        description: What the player must do.
        current_progress: Progress so far, within [0, target_progress].
        target_progress: Progress needed for completion.
        is_optional: Optional objectives do not block quest completion.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    description: str = ""
    current_progress: int = Field(default=0, ge=0)
    target_progress: int = Field(default=1, ge=1)
    is_optional: bool = False

    @property
    def is_complete(self) -> bool:
        """Whether the objective has reached its target."""
        return self.current_progress >= self.target_progress


class Quest(BaseModel):
    """A quest tracked in the game state.

    Attributes:
        id: Quest identifier.
        title: Quest title.
        description: Quest description.
        status: Lifecycle state.
        objectives: Ordered objectives.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    title: str = Field(min_length=1, max_length=MAX_QUEST_TITLE_LENGTH)
    description: str = ""
    status: QuestStatus = QuestStatus.ACTIVE
    objectives: tuple[QuestObjective, ...] = ()

    @property
    def is_complete(self) -> bool:
        """Whether every required objective is complete."""
        return all(o.is_complete for o in self.objectives if not o.is_optional)

    def objective(self, objective_id: str) -> QuestObjective | None:
        """Look up an objective by id."""
        for objective in self.objectives:
            if objective.id == objective_id:
                return objective
        return None


__all__ = [
    "QuestObjective",
    "Quest",
]
