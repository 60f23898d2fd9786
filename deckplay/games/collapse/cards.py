"""
Collapse Cards - Handbook card definitions.

Card structure:
- Base cards: the plays themselves, no cost
- Modifiers: attach to a base during a play, cost 1-4 capacity
- Null: filler, can only ever be discarded
"""

from ...catalog import CardCatalog, CardCategory, CardDefinition, CardDetail

STORAGE_KEY = "collapse.deck-builder.v2"


# ============================================================================
# Base Cards
# ============================================================================

STRIKE = CardDefinition(
    id="strike",
    name="Strike",
    category=CardCategory.BASE,
    text="Deal 2 damage to an adjacent target.",
)

GUARD = CardDefinition(
    id="guard",
    name="Guard",
    category=CardCategory.BASE,
    text="Gain 2 shield until your next turn.",
)

DASH = CardDefinition(
    id="dash",
    name="Dash",
    category=CardCategory.BASE,
    text="Move up to 3 spaces.",
)


# ============================================================================
# Modifier Cards
# ============================================================================

def _modifier(
    card_id: str,
    name: str,
    cost: int,
    effect: str,
    target: str,
    rarity: str,
) -> CardDefinition:
    return CardDefinition(
        id=card_id,
        name=name,
        category=CardCategory.MODIFIER,
        cost=cost,
        text=f"{effect} • Target: {target}",
        details=(
            CardDetail(label="Effect", value=effect),
            CardDetail(label="Target", value=target),
            CardDetail(label="Rarity", value=rarity),
        ),
        target=target,
        rarity=rarity,
    )


EMPOWER = _modifier("empower", "Empower", 1, "+1 damage.", "Strike", "Common")
EXTEND = _modifier("extend", "Extend", 1, "+1 range.", "Any", "Common")
FORTIFY = _modifier("fortify", "Fortify", 2, "+2 shield.", "Guard", "Common")
SURGE = _modifier("surge", "Surge", 2, "+2 movement.", "Dash", "Uncommon")
CLEAVE = _modifier("cleave", "Cleave", 3, "Hit every adjacent target.", "Strike", "Rare")
ECHO = _modifier("echo", "Echo", 4, "Resolve the base twice.", "Any", "Rare")


# ============================================================================
# Null Card
# ============================================================================

STATIC = CardDefinition(
    id="static",
    name="Static",
    category=CardCategory.NULL,
    text="No effect. Discard only.",
)


COLLAPSE_CARDS = [
    STRIKE, GUARD, DASH,
    EMPOWER, EXTEND, FORTIFY, SURGE, CLEAVE, ECHO,
    STATIC,
]


def create_collapse_catalog() -> CardCatalog:
    """Create the catalog for the bundled handbook."""
    return CardCatalog(COLLAPSE_CARDS)
