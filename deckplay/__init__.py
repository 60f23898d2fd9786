"""
Deckplay - Deck Builder and Play Engine

A deterministic, rules-driven engine for assembling a custom card deck and
playing it out. The engine provides:
- Deck composition rules (base target, modifier capacity, null filler)
- A deck lifecycle (unlocked -> locked -> built -> shuffled)
- Zone transitions between deck, hand and discard
- Play selection (one base card plus attached modifiers)
- Tolerant persistence and namespaced export/import
"""

__version__ = "0.1.0"


class DeckplayError(Exception):
    """Base class for boundary errors raised outside the engine core."""
