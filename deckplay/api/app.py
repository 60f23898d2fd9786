"""
FastAPI Application - REST API for the deck builder.

Endpoints:
    POST   /api/v1/sessions                               Create (or reuse) a builder session
    GET    /api/v1/sessions                               List active sessions
    GET    /api/v1/sessions/{id}                          Get session and deck state
    DELETE /api/v1/sessions/{id}                          End session
    GET    /api/v1/catalog                                List cards

  Builder:
    POST   /api/v1/sessions/{id}/base-counts              Adjust a base card count
    POST   /api/v1/sessions/{id}/mod-counts               Adjust a modifier count
    POST   /api/v1/sessions/{id}/null-count               Adjust null cards
    POST   /api/v1/sessions/{id}/modifier-capacity        Adjust modifier capacity
    POST   /api/v1/sessions/{id}/hand-limit               Set hand limit
    POST   /api/v1/sessions/{id}/reset-builder            Reset everything

  Deck:
    POST   /api/v1/sessions/{id}/lock                     Toggle lock (lock builds the deck)
    POST   /api/v1/sessions/{id}/shuffle                  Shuffle (re-shuffle needs confirmed)
    POST   /api/v1/sessions/{id}/reset-deck               Rebuild and shuffle
    POST   /api/v1/sessions/{id}/draw                     Draw the top card
    POST   /api/v1/sessions/{id}/discard-from-deck        Mill cards off the top
    POST   /api/v1/sessions/{id}/return-discard           Discard pile back into deck
    POST   /api/v1/sessions/{id}/discard-groups/to-deck   Discarded copies to deck
    POST   /api/v1/sessions/{id}/discard-groups/to-hand   Discarded copies to hand
    POST   /api/v1/sessions/{id}/hand/discard             Discard from hand

  Play:
    POST   /api/v1/sessions/{id}/play/start               Select a base
    POST   /api/v1/sessions/{id}/play/attach              Attach/detach a modifier
    POST   /api/v1/sessions/{id}/play/finalize            Play base + modifiers
    POST   /api/v1/sessions/{id}/play/cancel              Drop the selection

  Saved decks:
    POST   /api/v1/sessions/{id}/saved-decks              Save current deck
    POST   /api/v1/sessions/{id}/saved-decks/{name}/load  Load a saved deck
    DELETE /api/v1/sessions/{id}/saved-decks/{name}       Delete a saved deck

  Data:
    GET    /api/v1/export                                 Export the namespace
    POST   /api/v1/import                                 Import (replace) the namespace

Every command answers 200 with a CommandResponse; a rejected command
has success=false and the unchanged state.
"""

from typing import Optional, Union
import logging
import os

from .. import __version__

# Environment configuration
DECKPLAY_ENV = os.getenv("DECKPLAY_ENV", "development")
DECKPLAY_STORAGE_DIR = os.getenv("DECKPLAY_STORAGE_DIR", None)
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

logger = logging.getLogger(__name__)


def create_app(service=None):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (creates new if not provided)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
        from fastapi.responses import JSONResponse
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install fastapi uvicorn"
        )

    from .service import APIService
    from .schemas import (
        # Request models
        CreateSessionRequest,
        CountAdjustRequest,
        DeltaRequest,
        HandLimitRequest,
        ShuffleRequest,
        DiscardFromDeckRequest,
        ReturnDiscardRequest,
        CardGroupRequest,
        DiscardFromHandRequest,
        PlayCardRequest,
        DeckNameRequest,
        ImportRequest,
        # Response models
        CommandResponse,
        SessionResponse,
        SessionListResponse,
        EndSessionResponse,
        CatalogResponse,
        ImportResponse,
        ErrorResponse,
        HealthResponse,
        # Enums
        ErrorCode,
    )
    from ..engine_core.rules import BuildRules
    from ..session import SessionManager
    from ..storage import BundleError, DeckStore, StorageError

    app = FastAPI(
        title="Deckplay API",
        description="""
Deck builder and play engine.

## Flow

1. `POST /sessions` to open the builder (saved state is restored)
2. Edit counts until `validity.overall` is true
3. `POST /lock`, then `POST /shuffle`, then `POST /draw`
4. `POST /play/start`, `POST /play/attach`, `POST /play/finalize`

## Error Codes

| Code | Description |
|------|-------------|
| `PRECONDITION_NOT_MET` | Lock, build or shuffle first |
| `CONFIRMATION_REQUIRED` | Re-shuffle needs `confirmed=true` |
| `CAPACITY_EXCEEDED` | Silent: over target or capacity |
| `HAND_FULL` | Hand limit reached |
| `DECK_DEPLETED` | No cards left to draw |
| `SESSION_NOT_FOUND` | Session does not exist |
| `BUNDLE_INVALID` | Import payload unusable |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Service instance
    if service is None:
        store = DeckStore(DECKPLAY_STORAGE_DIR) if DECKPLAY_STORAGE_DIR else DeckStore()
        service = APIService(
            session_manager=SessionManager(store=store, rules=BuildRules.from_env())
        )
    api_service = service

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(
        error_code: ErrorCode,
        message: str,
        status_code: int = 400,
        details: Optional[dict] = None,
    ) -> JSONResponse:
        """Create a standardized error response."""
        return JSONResponse(
            status_code=status_code,
            content=ErrorResponse(
                error=message,
                error_code=error_code,
                details=details,
            ).model_dump(),
        )

    def session_not_found(session_id: str) -> JSONResponse:
        return make_error_response(
            ErrorCode.SESSION_NOT_FOUND,
            f"Session {session_id} not found",
            status_code=404,
        )

    def run(session_id: str, command: str, **kwargs) -> Union[CommandResponse, JSONResponse]:
        response = api_service.run_command(session_id, command, **kwargs)
        if response is None:
            return session_not_found(session_id)
        return response

    command_responses = {404: {"model": ErrorResponse, "description": "Session not found"}}

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/sessions",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Create a builder session",
    )
    async def create_session(body: Optional[CreateSessionRequest] = None) -> SessionResponse:
        """
        Open the builder for a storage key.

        Saved state under the key is restored. If a session already holds
        the key, that session is returned.
        """
        storage_key = body.storage_key if body else None
        try:
            return api_service.create_session(storage_key)
        except StorageError as e:
            return make_error_response(ErrorCode.STORAGE_ERROR, str(e))

    @app.get(
        "/api/v1/sessions",
        response_model=SessionListResponse,
        tags=["Sessions"],
        summary="List active sessions",
    )
    async def list_sessions() -> SessionListResponse:
        sessions = api_service.list_sessions()
        return SessionListResponse(sessions=sessions, count=len(sessions))

    @app.get(
        "/api/v1/sessions/{session_id}",
        response_model=SessionResponse,
        responses=command_responses,
        tags=["Sessions"],
        summary="Get session and deck state",
    )
    async def get_session(session_id: str) -> Union[SessionResponse, JSONResponse]:
        response = api_service.get_session(session_id)
        if response is None:
            return session_not_found(session_id)
        return response

    @app.delete(
        "/api/v1/sessions/{session_id}",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a session",
    )
    async def end_session(session_id: str) -> EndSessionResponse:
        """End a session. Its stored record is kept."""
        success = api_service.end_session(session_id)
        return EndSessionResponse(success=success, session_id=session_id)

    @app.get(
        "/api/v1/catalog",
        response_model=CatalogResponse,
        tags=["Catalog"],
        summary="List the cards the builder knows",
    )
    async def get_catalog() -> CatalogResponse:
        return api_service.get_catalog()

    # =========================================================================
    # Builder Endpoints
    # =========================================================================

    @app.post("/api/v1/sessions/{session_id}/base-counts", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def adjust_base_count(session_id: str, body: CountAdjustRequest):
        return run(session_id, "adjust_base_count", card_id=body.card_id, delta=body.delta)

    @app.post("/api/v1/sessions/{session_id}/mod-counts", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def adjust_mod_count(session_id: str, body: CountAdjustRequest):
        return run(session_id, "adjust_mod_count", card_id=body.card_id, delta=body.delta)

    @app.post("/api/v1/sessions/{session_id}/null-count", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def adjust_null_count(session_id: str, body: DeltaRequest):
        return run(session_id, "adjust_null_count", delta=body.delta)

    @app.post("/api/v1/sessions/{session_id}/modifier-capacity", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def adjust_modifier_capacity(session_id: str, body: DeltaRequest):
        return run(session_id, "adjust_modifier_capacity", delta=body.delta)

    @app.post("/api/v1/sessions/{session_id}/hand-limit", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def set_hand_limit(session_id: str, body: HandLimitRequest):
        return run(session_id, "set_hand_limit", value=body.value)

    @app.post("/api/v1/sessions/{session_id}/reset-builder", response_model=CommandResponse,
              responses=command_responses, tags=["Builder"])
    async def reset_builder(session_id: str):
        return run(session_id, "reset_builder")

    # =========================================================================
    # Deck Endpoints
    # =========================================================================

    @app.post("/api/v1/sessions/{session_id}/lock", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def toggle_lock(session_id: str):
        """Lock builds a fresh shuffled deck; calling it again unlocks."""
        return run(session_id, "toggle_lock")

    @app.post("/api/v1/sessions/{session_id}/shuffle", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def shuffle(session_id: str, body: Optional[ShuffleRequest] = None):
        """
        Shuffle the remaining deck.

        Re-shuffling a primed deck answers `CONFIRMATION_REQUIRED`
        unless `confirmed` is true.
        """
        return run(session_id, "shuffle", confirmed=body.confirmed if body else False)

    @app.post("/api/v1/sessions/{session_id}/reset-deck", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def reset_deck(session_id: str):
        return run(session_id, "reset_deck")

    @app.post("/api/v1/sessions/{session_id}/draw", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def draw(session_id: str):
        return run(session_id, "draw")

    @app.post("/api/v1/sessions/{session_id}/discard-from-deck", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def discard_from_deck(session_id: str, body: Optional[DiscardFromDeckRequest] = None):
        return run(session_id, "discard_from_deck", count=body.count if body else 1)

    @app.post("/api/v1/sessions/{session_id}/return-discard", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def return_discard_to_deck(session_id: str, body: Optional[ReturnDiscardRequest] = None):
        body = body or ReturnDiscardRequest()
        return run(session_id, "return_discard_to_deck", shuffle=body.shuffle, to_top=body.to_top)

    @app.post("/api/v1/sessions/{session_id}/discard-groups/to-deck", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def return_discard_group_to_deck(session_id: str, body: CardGroupRequest):
        return run(session_id, "return_discard_group_to_deck", card_id=body.card_id, all=body.all)

    @app.post("/api/v1/sessions/{session_id}/discard-groups/to-hand", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def return_discard_group_to_hand(session_id: str, body: CardGroupRequest):
        return run(session_id, "return_discard_group_to_hand", card_id=body.card_id, all=body.all)

    @app.post("/api/v1/sessions/{session_id}/hand/discard", response_model=CommandResponse,
              responses=command_responses, tags=["Deck"])
    async def discard_from_hand(session_id: str, body: DiscardFromHandRequest):
        return run(
            session_id,
            "discard_from_hand",
            card_id=body.card_id,
            all=body.all,
            origin=body.origin.value,
        )

    # =========================================================================
    # Play Endpoints
    # =========================================================================

    @app.post("/api/v1/sessions/{session_id}/play/start", response_model=CommandResponse,
              responses=command_responses, tags=["Play"])
    async def start_play(session_id: str, body: PlayCardRequest):
        return run(session_id, "start_play", base_id=body.card_id)

    @app.post("/api/v1/sessions/{session_id}/play/attach", response_model=CommandResponse,
              responses=command_responses, tags=["Play"])
    async def toggle_attach(session_id: str, body: PlayCardRequest):
        return run(session_id, "toggle_attach", mod_id=body.card_id)

    @app.post("/api/v1/sessions/{session_id}/play/finalize", response_model=CommandResponse,
              responses=command_responses, tags=["Play"])
    async def finalize_play(session_id: str):
        return run(session_id, "finalize_play")

    @app.post("/api/v1/sessions/{session_id}/play/cancel", response_model=CommandResponse,
              responses=command_responses, tags=["Play"])
    async def cancel_play(session_id: str):
        return run(session_id, "cancel_play")

    # =========================================================================
    # Saved Deck Endpoints
    # =========================================================================

    @app.post("/api/v1/sessions/{session_id}/saved-decks", response_model=CommandResponse,
              responses=command_responses, tags=["Saved Decks"])
    async def save_deck(session_id: str, body: DeckNameRequest):
        return run(session_id, "save_deck", name=body.name)

    @app.post("/api/v1/sessions/{session_id}/saved-decks/{name}/load", response_model=CommandResponse,
              responses=command_responses, tags=["Saved Decks"])
    async def load_saved_deck(session_id: str, name: str):
        return run(session_id, "load_saved_deck", name=name)

    @app.delete("/api/v1/sessions/{session_id}/saved-decks/{name}", response_model=CommandResponse,
                responses=command_responses, tags=["Saved Decks"])
    async def delete_saved_deck(session_id: str, name: str):
        return run(session_id, "delete_saved_deck", name=name)

    # =========================================================================
    # Export / Import Endpoints
    # =========================================================================

    @app.get(
        "/api/v1/export",
        responses={404: {"model": ErrorResponse, "description": "Nothing to export"}},
        tags=["Data"],
        summary="Export every namespaced key",
    )
    async def export_data():
        try:
            return api_service.export_data()
        except BundleError as e:
            return make_error_response(ErrorCode.NOTHING_TO_EXPORT, str(e), status_code=404)
        except StorageError as e:
            return make_error_response(ErrorCode.STORAGE_ERROR, str(e), status_code=500)

    @app.post(
        "/api/v1/import",
        response_model=ImportResponse,
        responses={400: {"model": ErrorResponse, "description": "Unusable payload"}},
        tags=["Data"],
        summary="Replace the namespace with an imported bundle",
    )
    async def import_data(body: ImportRequest) -> Union[ImportResponse, JSONResponse]:
        """
        Import a bundle.

        A backup of the current data is always written first. Unless
        `confirmed` is true nothing is replaced (`applied=false`).
        """
        try:
            return api_service.import_data(body.payload, confirmed=body.confirmed)
        except BundleError as e:
            return make_error_response(ErrorCode.BUNDLE_INVALID, str(e))
        except (StorageError, OSError) as e:
            logger.error("Import failed: %s", e)
            return make_error_response(ErrorCode.STORAGE_ERROR, str(e), status_code=500)

    # =========================================================================
    # System Endpoints
    # =========================================================================

    @app.get(
        "/health",
        response_model=HealthResponse,
        tags=["System"],
        summary="Health check",
    )
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="healthy",
            service="deckplay",
            version=__version__,
        )

    @app.get("/", tags=["System"])
    async def root():
        """Root endpoint with API info."""
        return {
            "name": "Deckplay API",
            "version": __version__,
            "env": DECKPLAY_ENV,
            "docs": "/api/docs",
            "health": "/health",
        }

    return app


# For running directly: uvicorn deckplay.api.app:app
app = None
try:
    app = create_app()
except ImportError:
    # FastAPI not installed
    pass
except OSError as e:
    logger.warning("Default store unavailable, app not created: %s", e)
