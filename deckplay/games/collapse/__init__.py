"""
Collapse - The bundled handbook.

Collapse decks are built from:
- Base cards (26 in a strict deck)
- Modifier cards, paid for out of a capacity budget (10 by default)
- Null cards as filler (at least 5)

This module contains the handbook card set and its catalog factory.
"""

from .cards import COLLAPSE_CARDS, create_collapse_catalog, STORAGE_KEY

__all__ = [
    "COLLAPSE_CARDS",
    "create_collapse_catalog",
    "STORAGE_KEY",
]
