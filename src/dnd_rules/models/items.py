"""Pydantic V2 schemas for items and the inventory."""

from __future__ import annotations

from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from dnd_rules.core.constants import DEFAULT_INVENTORY_SLOTS, MAX_NAME_LENGTH
from dnd_rules.models.enums import EquipmentSlot, ItemRarity, ItemType


class Item(BaseModel):
    """A single inventory item.

    Each item occupies one inventory slot; adding five arrows adds five
    items.

    Attributes:
        id: Unique item identifier.
        name: Display name.
        description: Flavour text.
        item_type: Broad category.
        rarity: Rarity tier.
        weight: Weight in pounds.
        value: Value in gold pieces.
        slot: Equipment slot, or None when the item cannot be equipped.
        is_consumable: Removed from the inventory when used.
        is_quest_item: Plot item; never sold or consumed.
        properties: Mechanical properties such as ``heal`` or ``damage`` notation.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: str = Field(default_factory=lambda: str(uuid4()), description="Item ID")
    name: str = Field(min_length=1, max_length=MAX_NAME_LENGTH, description="Item name")
    description: str = Field(default="", description="Item description")
    item_type: ItemType = Field(default=ItemType.MISC)
    rarity: ItemRarity = Field(default=ItemRarity.COMMON)
    weight: float = Field(default=1.0, ge=0)
    value: int = Field(default=0, ge=0, description="Value in gold pieces")
    slot: EquipmentSlot | None = Field(default=None, description="Equipment slot")
    is_consumable: bool = False
    is_quest_item: bool = False
    properties: dict[str, str] = Field(default_factory=dict)

    @property
    def is_equippable(self) -> bool:
        """Whether the item can be equipped."""
        return self.slot is not None


class Inventory(BaseModel):
    """The character's inventory.

    Attributes:
        items: Items carried, one per slot.
        max_slots: Capacity.
        equipped: Item id equipped in each occupied slot.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    items: tuple[Item, ...] = ()
    max_slots: int = Field(default=DEFAULT_INVENTORY_SLOTS, ge=1)
    equipped: dict[EquipmentSlot, str] = Field(default_factory=dict)

    @property
    def is_full(self) -> bool:
        """Whether no slots remain."""
        return len(self.items) >= self.max_slots

    @property
    def free_slots(self) -> int:
        """Number of unused slots."""
        return max(0, self.max_slots - len(self.items))

    @property
    def total_weight(self) -> float:
        """Combined weight of all items."""
        return sum(item.weight for item in self.items)

    def find(self, name: str) -> Item | None:
        """Find the first item whose name matches case-insensitively."""
        wanted = name.strip().lower()
        for item in self.items:
            if item.name.lower() == wanted:
                return item
        return None

    def get(self, item_id: str) -> Item | None:
        """Find an item by id."""
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def count(self, name: str) -> int:
        """Number of items matching a name case-insensitively."""
        wanted = name.strip().lower()
        return sum(1 for item in self.items if item.name.lower() == wanted)

    def is_equipped(self, item_id: str) -> bool:
        """Whether an item id occupies an equipment slot."""
        return item_id in self.equipped.values()

    def with_items(self, *items: Item) -> Inventory:
        """Return a copy with items appended, silently stopping when full."""
        room = self.free_slots
        return self.model_copy(update={"items": self.items + tuple(items[:room])})

    def without(self, item_id: str) -> Inventory:
        """Return a copy with an item removed and unequipped."""
        return self.model_copy(
            update={
                "items": tuple(item for item in self.items if item.id != item_id),
                "equipped": {
                    slot: equipped_id
                    for slot, equipped_id in self.equipped.items()
                    if equipped_id != item_id
                },
            }
        )


__all__ = [
    "Item",
    "Inventory",
]
