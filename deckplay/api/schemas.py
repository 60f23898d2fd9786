"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the presentation layer and the
engine. Every command answers with a CommandResponse carrying the full
deck state, so the caller can re-render after any click.

Error Codes:
- Engine codes (CAPACITY_EXCEEDED, HAND_FULL, ...) come back inside a
  CommandResponse with success=false; the HTTP status is still 200
- SESSION_NOT_FOUND: Session does not exist or has ended
- BUNDLE_INVALID: Import payload is malformed or holds no namespaced keys
- NOTHING_TO_EXPORT: The store has no namespaced keys
- STORAGE_ERROR: The store could not be read or written
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..games.collapse import STORAGE_KEY


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    # Engine
    PRECONDITION_NOT_MET = "PRECONDITION_NOT_MET"
    CONFIRMATION_REQUIRED = "CONFIRMATION_REQUIRED"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    DECK_LOCKED = "DECK_LOCKED"
    INVALID_PLAY_TARGET = "INVALID_PLAY_TARGET"
    NO_ACTIVE_PLAY = "NO_ACTIVE_PLAY"
    NOT_A_MODIFIER = "NOT_A_MODIFIER"
    HAND_FULL = "HAND_FULL"
    DECK_DEPLETED = "DECK_DEPLETED"
    NOT_FOUND = "NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    NO_HANDLER = "NO_HANDLER"
    HANDLER_ERROR = "HANDLER_ERROR"

    # API boundary
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    BUNDLE_INVALID = "BUNDLE_INVALID"
    NOTHING_TO_EXPORT = "NOTHING_TO_EXPORT"
    STORAGE_ERROR = "STORAGE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"


class LifecycleStatus(str, Enum):
    """Deck lifecycle values."""
    UNLOCKED = "unlocked"
    LOCKED_UNBUILT = "locked_unbuilt"
    LOCKED_BUILT = "locked_built"
    LOCKED_READY = "locked_ready"


class DiscardOriginValue(str, Enum):
    PLAYED = "played"
    DISCARDED = "discarded"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """Card information for display."""
    card_id: str
    name: str
    category: str = Field(description="base, modifier or null")
    cost: int = 0
    text: str = ""
    target: Optional[str] = None
    rarity: Optional[str] = None

    model_config = {"from_attributes": True}


class HandEntryInfo(BaseModel):
    card_id: str
    state: str = Field(description="unspent or played")

    model_config = {"from_attributes": True}


class DiscardEntryInfo(BaseModel):
    card_id: str
    origin: DiscardOriginValue

    model_config = {"from_attributes": True}


class ActivePlayInfo(BaseModel):
    """The play being assembled: one base plus attached modifiers."""
    base_id: str
    mods: list[str] = Field(default_factory=list)
    attached_cost: int = 0


class CompositionInfo(BaseModel):
    """Deck recipe as edited in the builder."""
    base_counts: dict[str, int]
    mod_counts: dict[str, int]
    null_count: int
    modifier_capacity: int
    base_total: int
    base_target: int
    capacity_used: int


class ValidityInfo(BaseModel):
    base_valid: bool
    null_valid: bool
    mod_valid: bool
    overall: bool


class DeckHealthInfo(BaseModel):
    cards_remaining: int
    total_cards: int
    percent: int = Field(..., ge=0, le=100)
    variant: str
    label: str


class DeckStateResponse(BaseModel):
    """Full view of a builder's deck state."""
    lifecycle: LifecycleStatus
    is_locked: bool
    has_built_deck: bool
    has_shuffled_deck: bool
    lock_label: str

    deck_count: int = Field(description="Cards left in the draw pile; order is hidden")
    hand: list[HandEntryInfo] = Field(default_factory=list)
    discard: list[DiscardEntryInfo] = Field(default_factory=list)
    hand_limit: int = Field(..., ge=0, le=20)
    active_play: Optional[ActivePlayInfo] = None

    composition: CompositionInfo
    validity: ValidityInfo
    health: DeckHealthInfo

    deck_name: str = ""
    saved_decks: list[str] = Field(default_factory=list)


# =============================================================================
# Request Models
# =============================================================================

class CreateSessionRequest(BaseModel):
    storage_key: str = Field(STORAGE_KEY, description="Key the builder persists under")


class CountAdjustRequest(BaseModel):
    card_id: str
    delta: int


class DeltaRequest(BaseModel):
    delta: int


class HandLimitRequest(BaseModel):
    value: int


class ShuffleRequest(BaseModel):
    confirmed: bool = Field(False, description="Required to re-shuffle a primed deck")


class DiscardFromDeckRequest(BaseModel):
    count: int = Field(1, ge=1)


class ReturnDiscardRequest(BaseModel):
    shuffle: bool = True
    to_top: bool = True


class CardGroupRequest(BaseModel):
    card_id: str
    all: bool = False


class DiscardFromHandRequest(BaseModel):
    card_id: str
    all: bool = False
    origin: DiscardOriginValue = DiscardOriginValue.DISCARDED


class PlayCardRequest(BaseModel):
    card_id: str


class DeckNameRequest(BaseModel):
    name: str = Field(..., min_length=1)


class ImportRequest(BaseModel):
    """Bulk import. `payload` is an export bundle or a plain key map."""
    payload: dict[str, Any]
    confirmed: bool = Field(False, description="Nothing is replaced unless true")


# =============================================================================
# Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str = Field(..., description="Human-readable error message")
    error_code: ErrorCode = Field(..., description="Machine-readable error code")
    details: Optional[dict[str, Any]] = Field(None, description="Additional error context")
    api_version: str = Field("v1", description="API version")


class CommandResponse(BaseModel):
    """
    Result of one builder command.

    A rejected command has success=false and the unchanged state. A
    silent rejection (e.g. over capacity) has no error message.
    """
    session_id: str
    success: bool
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    notice: Optional[str] = None
    warning_card_id: Optional[str] = None
    changes: list[str] = Field(default_factory=list)
    state: DeckStateResponse
    api_version: str = "v1"


class SessionResponse(BaseModel):
    session_id: str
    storage_key: str
    created_at: float
    is_active: bool
    last_error: Optional[str] = None
    last_notice: Optional[str] = None
    state: DeckStateResponse
    api_version: str = "v1"


class SessionListResponse(BaseModel):
    """Response listing active sessions."""
    sessions: list[str]
    count: int


class EndSessionResponse(BaseModel):
    """Response after ending a session."""
    success: bool
    session_id: str


class CatalogResponse(BaseModel):
    base_cards: list[CardInfo]
    modifier_cards: list[CardInfo]
    null_card: Optional[CardInfo] = None


class ImportResponse(BaseModel):
    applied: bool
    keys: list[str] = Field(default_factory=list)
    removed: int = 0
    backup_path: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
