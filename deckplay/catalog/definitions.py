"""
Card Definitions - Static, immutable card data.

A definition is what a card *is*. The engine only ever moves card ids
between zones; definitions are looked up when a rule needs a category
or a cost.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CardCategory(Enum):
    """Card categories the deck rules distinguish."""
    BASE = "base"
    MODIFIER = "modifier"
    NULL = "null"


@dataclass(frozen=True)
class CardDetail:
    """A labelled line of card text (e.g. "Effect", "Range")."""
    label: str
    value: str


@dataclass(frozen=True)
class CardDefinition:
    """
    Definition of a single card.

    Only modifiers carry a meaningful cost; base and null cards
    default to zero. `target` and `rarity` are browsing tags and
    play no part in the rules.
    """
    id: str
    name: str
    category: CardCategory
    cost: int = 0
    text: str = ""
    details: tuple[CardDetail, ...] = field(default_factory=tuple)
    target: str | None = None
    rarity: str | None = None

    @property
    def is_base(self) -> bool:
        return self.category == CardCategory.BASE

    @property
    def is_modifier(self) -> bool:
        return self.category == CardCategory.MODIFIER

    @property
    def is_null(self) -> bool:
        return self.category == CardCategory.NULL

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardDefinition:
        """Build a definition from a plain mapping (handbook JSON shape)."""
        details = tuple(
            CardDetail(label=str(d.get("label", "")), value=str(d.get("value", "")))
            for d in data.get("details") or []
        )
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            category=CardCategory(str(data.get("type", data.get("category", "base"))).lower()),
            cost=max(int(data.get("cost") or 0), 0),
            text=data.get("text", ""),
            details=details,
            target=data.get("target"),
            rarity=data.get("rarity"),
        )
