"""
Wizard session wiring.

Builds a WizardController for one user from settings: picks the draft
backend, derives the draft key, and attaches the session logger.
"""

import logging
from typing import Any, Callable

from onboarding.controller import WizardController
from onboarding.drafts import (
    DraftPersistence,
    DraftStore,
    FileDraftStore,
    MemoryDraftStore,
    SupabaseDraftStore,
    draft_key,
)
from onboarding.payload import PlantingRecord
from rami.config import RamiSettings, get_settings
from rami.observability.session_logger import SessionLogger

logger = logging.getLogger(__name__)

# Shared only when the memory backend is selected (one process, many sessions)
_memory_store = MemoryDraftStore()


def build_draft_store(settings: RamiSettings) -> DraftStore:
    """Pick the draft backend configured in settings."""
    if settings.draft_backend == "memory":
        return _memory_store
    if settings.draft_backend == "supabase":
        return SupabaseDraftStore(table=settings.draft_table)
    return FileDraftStore(settings.draft_dir)


def open_drafts(
    user_id: str | None,
    settings: RamiSettings | None = None,
    store: DraftStore | None = None,
    session_logger: SessionLogger | None = None,
) -> DraftPersistence:
    """Draft slot for one user's session."""
    settings = settings or get_settings()
    return DraftPersistence(
        store or build_draft_store(settings),
        draft_key(settings.draft_namespace, user_id),
        background=settings.draft_background_writes,
        session_logger=session_logger,
    )


def create_controller(
    user_id: str | None,
    on_complete: Callable[[PlantingRecord], Any] | None = None,
    settings: RamiSettings | None = None,
    store: DraftStore | None = None,
) -> WizardController:
    """
    Start (or resume) a wizard session for a user.

    The draft for `user_id` is restored if one exists.
    """
    settings = settings or get_settings()

    session_logger = None
    if settings.session_log_enabled:
        session_logger = SessionLogger(
            session_id=user_id,
            log_dir=settings.session_log_dir,
        )

    drafts = open_drafts(user_id, settings, store=store, session_logger=session_logger)

    logger.info(f"Wizard session for {user_id or 'anonymous'} (drafts: {settings.draft_backend})")

    return WizardController(
        drafts=drafts,
        on_complete=on_complete,
        user_id=user_id,
        session_logger=session_logger,
    )
