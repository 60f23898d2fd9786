"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to session commands
2. Manages sessions
3. Runs bulk export/import against the store
4. Formats responses for the presentation layer

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any

from .schemas import (
    # Responses
    CommandResponse,
    SessionResponse,
    DeckStateResponse,
    CatalogResponse,
    ImportResponse,
    # Shared
    ActivePlayInfo,
    CardInfo,
    CompositionInfo,
    DeckHealthInfo,
    DiscardEntryInfo,
    HandEntryInfo,
    ValidityInfo,
    # Enums
    ErrorCode,
    LifecycleStatus,
)
from ..catalog import CardDefinition
from ..engine_core.action import ActionResult
from ..session import Session, SessionManager
from ..storage import DeckStore, StorageError, export_bundle, import_bundle

# Session methods reachable through run_command
COMMANDS = frozenset({
    "adjust_base_count",
    "adjust_mod_count",
    "adjust_null_count",
    "adjust_modifier_capacity",
    "set_hand_limit",
    "reset_builder",
    "toggle_lock",
    "shuffle",
    "reset_deck",
    "draw",
    "discard_from_deck",
    "return_discard_to_deck",
    "return_discard_group_to_deck",
    "return_discard_group_to_hand",
    "discard_from_hand",
    "start_play",
    "toggle_attach",
    "finalize_play",
    "cancel_play",
    "save_deck",
    "load_saved_deck",
    "delete_saved_deck",
})


def _default_manager() -> SessionManager:
    return SessionManager(store=DeckStore())


@dataclass
class APIService:
    """
    Main API service for the deck builder.

    Usage:
        service = APIService()

        # Create session
        session_response = service.create_session()

        # Run a command
        response = service.run_command(session_id, "draw")
    """
    session_manager: SessionManager = field(default_factory=_default_manager)

    @property
    def store(self) -> DeckStore | None:
        return self.session_manager.store

    # =========================================================================
    # Sessions
    # =========================================================================

    def create_session(self, storage_key: str | None = None) -> SessionResponse:
        if storage_key:
            session = self.session_manager.create_session(storage_key)
        else:
            session = self.session_manager.create_session()
        return self._session_to_response(session)

    def get_session(self, session_id: str) -> SessionResponse | None:
        session = self.session_manager.get_session(session_id)
        if not session:
            return None
        return self._session_to_response(session)

    def end_session(self, session_id: str) -> bool:
        return self.session_manager.end_session(session_id)

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Commands
    # =========================================================================

    def run_command(self, session_id: str, command: str, **kwargs: Any) -> CommandResponse | None:
        """
        Run one builder command on a session.

        Returns None when the session does not exist.
        """
        if command not in COMMANDS:
            raise ValueError(f"Unknown command: {command}")
        session = self.session_manager.get_session(session_id)
        if not session:
            return None
        result: ActionResult = getattr(session, command)(**kwargs)
        return CommandResponse(
            session_id=session_id,
            success=result.success,
            error=result.error,
            error_code=ErrorCode(result.error_code.value) if result.error_code else None,
            notice=result.notice,
            warning_card_id=result.warning_card_id,
            changes=result.state_changes,
            state=self._state_to_response(session),
        )

    # =========================================================================
    # Catalog
    # =========================================================================

    def get_catalog(self) -> CatalogResponse:
        catalog = self.session_manager.catalog
        null_card = catalog.get_null_card()
        return CatalogResponse(
            base_cards=[_card_info(c) for c in catalog.list_base_cards()],
            modifier_cards=[_card_info(c) for c in catalog.list_modifier_cards()],
            null_card=_card_info(null_card) if null_card else None,
        )

    # =========================================================================
    # Export / Import
    # =========================================================================

    def export_data(self) -> dict[str, Any]:
        """Export bundle for every namespaced key. Raises BundleError when empty."""
        return export_bundle(self._require_store())

    def import_data(self, payload: Any, confirmed: bool) -> ImportResponse:
        """
        Import a bundle; nothing is replaced unless `confirmed`.

        Live sessions re-read their state after an applied import.
        """
        result = import_bundle(self._require_store(), payload, confirm=lambda _: confirmed)
        if result.applied:
            self.session_manager.reload_all()
        return ImportResponse(
            applied=result.applied,
            keys=result.keys,
            removed=result.removed,
            backup_path=str(result.backup_path) if result.backup_path else None,
        )

    def _require_store(self) -> DeckStore:
        if self.store is None:
            raise StorageError("This service has no store configured")
        return self.store

    # =========================================================================
    # Conversion Helpers
    # =========================================================================

    def _session_to_response(self, session: Session) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            storage_key=session.storage_key,
            created_at=session.created_at,
            is_active=session.is_active(),
            last_error=session.last_error,
            last_notice=session.last_notice,
            state=self._state_to_response(session),
        )

    def _state_to_response(self, session: Session) -> DeckStateResponse:
        state = session.deck_state
        composition = state.composition
        validity = session.validity()
        health = session.health()
        play = state.active_play

        return DeckStateResponse(
            lifecycle=LifecycleStatus(state.lifecycle.value),
            is_locked=state.is_locked,
            has_built_deck=state.has_built_deck,
            has_shuffled_deck=state.has_shuffled_deck,
            lock_label=state.lock_label,
            deck_count=len(state.deck),
            hand=[HandEntryInfo(card_id=h.card_id, state=h.state.value) for h in state.hand],
            discard=[
                DiscardEntryInfo(card_id=d.card_id, origin=d.origin.value) for d in state.discard
            ],
            hand_limit=state.hand_limit,
            active_play=ActivePlayInfo(
                base_id=play.base_id,
                mods=list(play.mods),
                attached_cost=session.attached_cost(),
            ) if play else None,
            composition=CompositionInfo(
                base_counts=dict(composition.base_counts),
                mod_counts=dict(composition.mod_counts),
                null_count=composition.null_count,
                modifier_capacity=composition.modifier_capacity,
                base_total=composition.base_total,
                base_target=session.rules.base_target,
                capacity_used=session.capacity_used(),
            ),
            validity=ValidityInfo(
                base_valid=validity.base_valid,
                null_valid=validity.null_valid,
                mod_valid=validity.mod_valid,
                overall=validity.overall,
            ),
            health=DeckHealthInfo(
                cards_remaining=health.cards_remaining,
                total_cards=health.total_cards,
                percent=health.percent,
                variant=health.variant,
                label=health.label,
            ),
            deck_name=state.deck_name,
            saved_decks=sorted(state.saved_decks),
        )


def _card_info(card: CardDefinition) -> CardInfo:
    return CardInfo(
        card_id=card.id,
        name=card.name,
        category=card.category.value,
        cost=card.cost,
        text=card.text,
        target=card.target,
        rarity=card.rarity,
    )
