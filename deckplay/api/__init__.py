"""
API Module - HTTP interface for a local presentation layer.

Exposes the builder via REST:
1. Open a session for a storage key (saved state is restored)
2. Edit the deck composition
3. Lock, shuffle, draw and play
4. Export or import the whole "collapse." namespace

One live builder per storage key. No user accounts.
"""

from .schemas import (
    # Requests
    CreateSessionRequest,
    CountAdjustRequest,
    ImportRequest,
    # Responses
    CommandResponse,
    SessionResponse,
    DeckStateResponse,
    ErrorResponse,
    # Shared
    CardInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateSessionRequest",
    "CountAdjustRequest",
    "ImportRequest",
    # Responses
    "CommandResponse",
    "SessionResponse",
    "DeckStateResponse",
    "ErrorResponse",
    # Shared
    "CardInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
