"""
Card Catalog - Read-only card definitions.

The engine never owns card data. A catalog is handed to it and only
queried: by id, and by category (base, modifier, null).
"""

from .definitions import CardCategory, CardDetail, CardDefinition
from .registry import CardCatalog

__all__ = [
    "CardCategory",
    "CardDetail",
    "CardDefinition",
    "CardCatalog",
]
