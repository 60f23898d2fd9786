"""
Build Rules - Configuration for deck construction and play.

Rules are fixed for the lifetime of a builder. They decide:
- How many base cards a strict deck needs
- The minimum number of null cards
- How modifier capacity is measured (cost-weighted or slot-counted)
- Whether the builder runs in relaxed "simple counters" mode
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
import os

DEFAULT_BASE_TARGET = 26
DEFAULT_MIN_NULLS = 5
DEFAULT_MODIFIER_CAPACITY = 10
DEFAULT_HAND_LIMIT = 5
MAX_HAND_LIMIT = 20


class CapacityPolicy(Enum):
    """How modifier capacity usage is measured."""
    COST_WEIGHTED = "cost_weighted"  # sum of count * cost
    SLOT_COUNTED = "slot_counted"  # each card is one slot


@dataclass(frozen=True)
class BuildRules:
    """
    Deck-build rules for one builder.

    In simple-counters mode there is no fixed base total, and the
    primary base/modifier cards are seeded with initial counts when
    the builder starts empty.
    """
    base_target: int = DEFAULT_BASE_TARGET
    min_nulls: int = DEFAULT_MIN_NULLS
    default_modifier_capacity: int = DEFAULT_MODIFIER_CAPACITY
    default_hand_limit: int = DEFAULT_HAND_LIMIT
    max_hand_limit: int = MAX_HAND_LIMIT
    simple_counters: bool = False
    capacity_policy: CapacityPolicy = CapacityPolicy.COST_WEIGHTED
    base_initial_count: int | None = None
    mod_initial_count: int | None = None

    @property
    def capacity_as_count(self) -> bool:
        return self.capacity_policy == CapacityPolicy.SLOT_COUNTED

    @property
    def unbounded_modifiers(self) -> bool:
        """Simple counters plus slot counting never limits modifiers."""
        return self.simple_counters and self.capacity_as_count

    def clamp_hand_limit(self, value: int) -> int:
        return min(max(value, 0), self.max_hand_limit)

    @classmethod
    def from_env(cls) -> BuildRules:
        """Read rules from DECKPLAY_* environment variables."""
        return cls(
            base_target=int(os.getenv("DECKPLAY_BASE_TARGET", DEFAULT_BASE_TARGET)),
            min_nulls=int(os.getenv("DECKPLAY_MIN_NULLS", DEFAULT_MIN_NULLS)),
            default_modifier_capacity=int(
                os.getenv("DECKPLAY_MODIFIER_CAPACITY", DEFAULT_MODIFIER_CAPACITY)
            ),
            simple_counters=_env_flag("DECKPLAY_SIMPLE_COUNTERS"),
            capacity_policy=(
                CapacityPolicy.SLOT_COUNTED
                if _env_flag("DECKPLAY_CAPACITY_AS_COUNT")
                else CapacityPolicy.COST_WEIGHTED
            ),
        )


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}
