"""Item catalog and free-text item inference.

The narrative layer names items in free text ("Enchanted Elven Blade",
"a rusty key"). Known items resolve to a fixed template; anything else is
classified by keyword so the game never refuses an item it cannot place.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from dnd_rules.core.constants import MAX_NAME_LENGTH
from dnd_rules.core.logging import get_logger
from dnd_rules.models.enums import EquipmentSlot, ItemRarity, ItemType
from dnd_rules.models.items import Item


logger = get_logger(__name__)


@dataclass(frozen=True)
class ItemTemplate:
    """Blueprint for creating items.

    Attributes:
        name: Display name.
        description: Flavour text.
        item_type: Item category.
        rarity: Item rarity.
        weight: Weight in pounds.
        value: Value in gold pieces, rarity multiplier included.
        slot: Equipment slot, for equippable items.
        is_consumable: Whether using the item destroys it.
        properties: Mechanical properties such as ``heal`` notation.
    """

    name: str
    description: str
    item_type: ItemType
    rarity: ItemRarity = ItemRarity.COMMON
    weight: float = 1.0
    value: int = 10
    slot: EquipmentSlot | None = None
    is_consumable: bool = False
    properties: dict[str, str] = field(default_factory=dict)

    def to_item(self, *, description: str | None = None) -> Item:
        """Create a fresh item (new id) from this template."""
        return Item(
            name=self.name,
            description=description or self.description,
            item_type=self.item_type,
            rarity=self.rarity,
            weight=self.weight,
            value=self.value,
            slot=self.slot,
            is_consumable=self.is_consumable,
            is_quest_item=self.item_type == ItemType.QUEST_ITEM,
            properties=dict(self.properties),
        )


# =============================================================================
# Known Items
# =============================================================================

KNOWN_ITEMS: tuple[ItemTemplate, ...] = (
    # Potions
    ItemTemplate(
        "Healing Potion",
        "A red liquid that heals wounds when consumed.",
        ItemType.POTION,
        weight=0.5,
        value=50,
        is_consumable=True,
        properties={"heal": "2d4+2"},
    ),
    ItemTemplate(
        "Greater Healing Potion",
        "A bright red potion that provides substantial healing.",
        ItemType.POTION,
        rarity=ItemRarity.UNCOMMON,
        weight=0.5,
        value=150,
        is_consumable=True,
        properties={"heal": "4d4+4"},
    ),
    ItemTemplate(
        "Superior Healing Potion",
        "A deep crimson potion with exceptional healing properties.",
        ItemType.POTION,
        rarity=ItemRarity.RARE,
        weight=0.5,
        value=450,
        is_consumable=True,
        properties={"heal": "8d4+8"},
    ),
    ItemTemplate(
        "Antidote",
        "Cures poison when consumed.",
        ItemType.POTION,
        weight=0.5,
        value=50,
        is_consumable=True,
        properties={"cure": "poisoned"},
    ),
    # Weapons
    ItemTemplate(
        "Longsword",
        "A versatile blade favored by warriors.",
        ItemType.WEAPON,
        weight=3.0,
        value=15,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d8", "damage_type": "slashing", "versatile": "1d10"},
    ),
    ItemTemplate(
        "Shortsword",
        "A light, finesse weapon ideal for quick strikes.",
        ItemType.WEAPON,
        weight=2.0,
        value=10,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d6", "damage_type": "piercing"},
    ),
    ItemTemplate(
        "Dagger",
        "A simple blade useful for close combat or throwing.",
        ItemType.WEAPON,
        weight=1.0,
        value=2,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d4", "damage_type": "piercing"},
    ),
    ItemTemplate(
        "Greataxe",
        "A massive two-handed axe.",
        ItemType.WEAPON,
        weight=7.0,
        value=30,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d12", "damage_type": "slashing"},
    ),
    ItemTemplate(
        "Shortbow",
        "A light bow suitable for hunting and combat.",
        ItemType.WEAPON,
        weight=2.0,
        value=25,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d6", "damage_type": "piercing", "range": "80/320"},
    ),
    ItemTemplate(
        "Longbow",
        "A powerful ranged weapon.",
        ItemType.WEAPON,
        weight=2.0,
        value=50,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d8", "damage_type": "piercing", "range": "150/600"},
    ),
    ItemTemplate(
        "Quarterstaff",
        "A simple wooden staff.",
        ItemType.WEAPON,
        weight=4.0,
        value=2,
        slot=EquipmentSlot.MAIN_HAND,
        properties={"damage": "1d6", "damage_type": "bludgeoning"},
    ),
    ItemTemplate(
        "Arrow",
        "A fletched arrow for a bow.",
        ItemType.MISC,
        weight=0.05,
        value=1,
        is_consumable=True,
    ),
    # Armor
    ItemTemplate(
        "Leather Armor",
        "Light armor made from hardened leather.",
        ItemType.ARMOR,
        weight=10.0,
        value=10,
        slot=EquipmentSlot.ARMOR,
        properties={"ac": "11"},
    ),
    ItemTemplate(
        "Chain Mail",
        "Full suit of interlocking metal rings.",
        ItemType.ARMOR,
        weight=55.0,
        value=75,
        slot=EquipmentSlot.ARMOR,
        properties={"ac": "16"},
    ),
    ItemTemplate(
        "Shield",
        "A wooden or metal shield.",
        ItemType.ARMOR,
        weight=6.0,
        value=10,
        slot=EquipmentSlot.OFF_HAND,
        properties={"ac_bonus": "2"},
    ),
    # Gear
    ItemTemplate("Torch", "Provides light for 1 hour.", ItemType.MISC, weight=1.0, value=1),
    ItemTemplate(
        "Rope", "Fifty feet of hemp rope, useful for climbing and binding.", ItemType.MISC, weight=10.0, value=1
    ),
    ItemTemplate(
        "Rations", "Dried food for one day.", ItemType.MISC, weight=2.0, value=5, is_consumable=True
    ),
    ItemTemplate("Thieves' Tools", "Tools for picking locks and disabling traps.", ItemType.MISC, value=25),
    # Quest items
    ItemTemplate(
        "Rusty Key",
        "An old, rusted key. It might open something.",
        ItemType.QUEST_ITEM,
        weight=0.1,
        value=0,
    ),
    # Magic items
    ItemTemplate(
        "Ring of Protection",
        "A ring that grants +1 to AC and saving throws.",
        ItemType.ACCESSORY,
        rarity=ItemRarity.RARE,
        weight=0.1,
        value=3500,
        slot=EquipmentSlot.RING,
        properties={"ac_bonus": "1", "save_bonus": "1"},
    ),
)


def _normalize_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", " ", name.lower()).strip()


# =============================================================================
# Keyword Inference
# =============================================================================

_WEAPON_KEYWORDS = (
    "sword", "axe", "mace", "hammer", "dagger", "bow", "crossbow",
    "spear", "halberd", "staff", "wand", "blade", "club", "flail",
)
_ARMOR_KEYWORDS = (
    "armor", "mail", "plate", "leather", "shield", "helm", "helmet",
    "gauntlet", "boots", "greaves", "breastplate",
)


def _armor_slot(lower: str) -> EquipmentSlot:
    if "shield" in lower:
        return EquipmentSlot.OFF_HAND
    if "helm" in lower:
        return EquipmentSlot.HEAD
    if "gauntlet" in lower:
        return EquipmentSlot.HANDS
    if "boots" in lower or "greaves" in lower:
        return EquipmentSlot.FEET
    return EquipmentSlot.ARMOR


def infer_rarity(name: str) -> ItemRarity:
    """Guess rarity from words in an item name; common when nothing matches."""
    lower = name.lower()
    if "legendary" in lower or "epic" in lower:
        return ItemRarity.LEGENDARY
    if "very rare" in lower:
        return ItemRarity.VERY_RARE
    if "rare" in lower or "enchanted" in lower:
        return ItemRarity.RARE
    if "uncommon" in lower or "magic" in lower or "+1" in lower:
        return ItemRarity.UNCOMMON
    return ItemRarity.COMMON


def infer_item_template(name: str) -> ItemTemplate:
    """Classify an unknown item name by keyword.

    This never raises. A name that matches nothing becomes a plain
    miscellaneous item, and an over-long name is cut to the item name limit.

    Args:
        name: Free-text item name.

    Returns:
        A best-guess template whose value includes the rarity multiplier.
    """
    display_name = name.strip()[:MAX_NAME_LENGTH].rstrip() or "Unknown Item"
    lower = display_name.lower()

    item_type = ItemType.MISC
    weight = 1.0
    base_value = 10
    slot: EquipmentSlot | None = None
    consumable = False
    properties: dict[str, str] = {}

    if "potion" in lower or "elixir" in lower:
        item_type, weight, base_value, consumable = ItemType.POTION, 0.5, 50, True
        if "heal" in lower:
            properties["heal"] = "2d4+2"
    elif "scroll" in lower:
        item_type, weight, base_value, consumable = ItemType.SCROLL, 0.1, 25, True
    elif any(keyword in lower for keyword in _WEAPON_KEYWORDS):
        item_type, weight, base_value, slot = ItemType.WEAPON, 3.0, 15, EquipmentSlot.MAIN_HAND
    elif any(keyword in lower for keyword in _ARMOR_KEYWORDS):
        item_type, weight, base_value, slot = ItemType.ARMOR, 10.0, 30, _armor_slot(lower)
    elif "key" in lower:
        item_type, weight, base_value = ItemType.QUEST_ITEM, 0.1, 0
    elif "ring" in lower:
        item_type, weight, base_value, slot = ItemType.ACCESSORY, 0.1, 50, EquipmentSlot.RING
    elif "amulet" in lower or "necklace" in lower:
        item_type, weight, base_value, slot = ItemType.ACCESSORY, 0.1, 50, EquipmentSlot.NECK

    rarity = infer_rarity(display_name)
    return ItemTemplate(
        name=display_name,
        description=f"A {display_name}.",
        item_type=item_type,
        rarity=rarity,
        weight=weight,
        value=base_value * rarity.value_multiplier,
        slot=slot,
        is_consumable=consumable,
        properties=properties,
    )


# =============================================================================
# Catalog
# =============================================================================


class ItemCatalog:
    """Lookup for known items with keyword inference as the fallback.

    Example:
        >>> catalog = ItemCatalog()
        >>> catalog.create_item("healing potions").properties["heal"]
        '2d4+2'
        >>> catalog.create_item("Iron Sword").item_type
        <ItemType.WEAPON: 'weapon'>
    """

    def __init__(self, templates: tuple[ItemTemplate, ...] = KNOWN_ITEMS) -> None:
        self._templates = {_normalize_name(t.name): t for t in templates}

    def __len__(self) -> int:
        return len(self._templates)

    def find(self, name: str) -> ItemTemplate | None:
        """Look up a known item, ignoring case, punctuation and a plural 's'."""
        key = _normalize_name(name)
        template = self._templates.get(key)
        if template is None and key.endswith("s"):
            template = self._templates.get(key[:-1])
        return template

    def find_by_type(self, item_type: ItemType) -> list[ItemTemplate]:
        return [t for t in self._templates.values() if t.item_type == item_type]

    def find_by_rarity(self, rarity: ItemRarity) -> list[ItemTemplate]:
        return [t for t in self._templates.values() if t.rarity == rarity]

    def template_for(self, name: str, *, rarity: ItemRarity | None = None) -> ItemTemplate:
        """Resolve a name to a template, inferring one for unknown names.

        An explicit rarity overrides the template's and rescales its value.
        """
        template = self.find(name)
        if template is None:
            template = infer_item_template(name)
            logger.debug(
                "Inferred item template",
                name=name,
                item_type=template.item_type,
                rarity=template.rarity,
            )
        if rarity is not None and rarity != template.rarity:
            base_value = template.value // template.rarity.value_multiplier
            template = ItemTemplate(
                name=template.name,
                description=template.description,
                item_type=template.item_type,
                rarity=rarity,
                weight=template.weight,
                value=base_value * rarity.value_multiplier,
                slot=template.slot,
                is_consumable=template.is_consumable,
                properties=dict(template.properties),
            )
        return template

    def create_item(
        self,
        name: str,
        *,
        rarity: ItemRarity | None = None,
        description: str | None = None,
    ) -> Item:
        """Create a new item instance for a free-text name."""
        return self.template_for(name, rarity=rarity).to_item(description=description)


__all__ = [
    "ItemTemplate",
    "KNOWN_ITEMS",
    "infer_rarity",
    "infer_item_template",
    "ItemCatalog",
]
