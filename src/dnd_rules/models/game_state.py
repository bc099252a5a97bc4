"""Pydantic V2 schemas for the in-memory game state.

GameState is the snapshot the caller owns and persists. The engine borrows
it for one resolution and always hands back a new instance; it never keeps
a reference between calls.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.models.character import Character
from dnd_rules.models.enums import GameDifficulty, QuestStatus, SceneType
from dnd_rules.models.items import Inventory
from dnd_rules.models.quest import Quest
from dnd_rules.models.story import StoryEvent, utc_now


class Scene(BaseModel):
    """The current location.

    Attributes:
        id: Scene identifier.
        name: Location name.
        description: Location description.
        scene_type: Kind of scene.
        is_in_combat: Whether an encounter is running here.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    name: str = Field(default="Unknown Location", min_length=1)
    description: str = ""
    scene_type: SceneType = SceneType.EXPLORATION
    is_in_combat: bool = False


class GameState(BaseModel):
    """Complete state of one save.

    Attributes:
        id: Save identifier, also used as the logging session id.
        save_name: Display name of the save.
        character: The player character.
        inventory: The character's inventory.
        quests: Tracked quests.
        current_scene: Current location.
        story_log: Every story entry produced so far.
        world_flags: Free-form narrative flags.
        faction_reputation: Reputation per faction, within [-100, 100].
        gold: Gold pieces carried.
        difficulty: Campaign difficulty.
        created_at: When the save was created.
        last_played_at: When the last resolution happened.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()))
    save_name: str = "New Adventure"
    character: Character
    inventory: Inventory = Field(default_factory=Inventory)
    quests: tuple[Quest, ...] = ()
    current_scene: Scene = Field(default_factory=Scene)
    story_log: tuple[StoryEvent, ...] = ()
    world_flags: dict[str, Any] = Field(default_factory=dict)
    faction_reputation: dict[str, int] = Field(default_factory=dict)
    gold: int = Field(default=0, ge=0)
    difficulty: GameDifficulty = GameDifficulty.NORMAL
    created_at: datetime = Field(default_factory=utc_now)
    last_played_at: datetime = Field(default_factory=utc_now)

    @property
    def active_quests(self) -> list[Quest]:
        """Quests currently in progress."""
        return [q for q in self.quests if q.status == QuestStatus.ACTIVE]

    @property
    def completed_quests(self) -> list[Quest]:
        """Quests already completed."""
        return [q for q in self.quests if q.status == QuestStatus.COMPLETED]

    def quest(self, quest_id: str) -> Quest | None:
        """Look up a quest by id."""
        for quest in self.quests:
            if quest.id == quest_id:
                return quest
        return None

    def with_character(self, character: Character) -> GameState:
        """Return a copy with a replaced character."""
        return self.model_copy(update={"character": character})

    def with_quest(self, quest: Quest) -> GameState:
        """Return a copy with a quest replaced (by id) or appended."""
        if self.quest(quest.id) is None:
            return self.model_copy(update={"quests": self.quests + (quest,)})
        return self.model_copy(
            update={"quests": tuple(quest if q.id == quest.id else q for q in self.quests)}
        )


__all__ = [
    "Scene",
    "GameState",
]
