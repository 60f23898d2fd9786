"""
Card Registry - Lookup of card definitions by id and by category.
"""

from __future__ import annotations
from typing import Iterable

from .definitions import CardCategory, CardDefinition


class CardCatalog:
    """
    Read-only registry of card definitions.

    Usage:
        catalog = CardCatalog(cards)
        card = catalog.get_card("strike")
        mods = catalog.list_modifier_cards()
    """

    def __init__(self, cards: Iterable[CardDefinition]):
        self._cards: dict[str, CardDefinition] = {}
        for card in cards:
            if card.id in self._cards:
                raise ValueError(f"Duplicate card id: {card.id}")
            self._cards[card.id] = card

    def __contains__(self, card_id: str) -> bool:
        return card_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def get_card(self, card_id: str) -> CardDefinition | None:
        """Get a card definition by id."""
        return self._cards.get(card_id)

    def list_base_cards(self) -> list[CardDefinition]:
        return self._by_category(CardCategory.BASE)

    def list_modifier_cards(self) -> list[CardDefinition]:
        return self._by_category(CardCategory.MODIFIER)

    def get_null_card(self) -> CardDefinition | None:
        """The filler card. Only the first null card is used."""
        nulls = self._by_category(CardCategory.NULL)
        return nulls[0] if nulls else None

    @property
    def null_id(self) -> str | None:
        null_card = self.get_null_card()
        return null_card.id if null_card else None

    def is_modifier(self, card_id: str) -> bool:
        card = self._cards.get(card_id)
        return card is not None and card.is_modifier

    def is_null(self, card_id: str) -> bool:
        card = self._cards.get(card_id)
        return card is not None and card.is_null

    def cost_of(self, card_id: str) -> int:
        """Cost of a card; unknown cards cost nothing."""
        card = self._cards.get(card_id)
        return card.cost if card else 0

    def _by_category(self, category: CardCategory) -> list[CardDefinition]:
        return [c for c in self._cards.values() if c.category == category]
