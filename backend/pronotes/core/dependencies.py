"""
Dependency injection: FastAPI dependencies and client-side composition.
"""

from supabase import Client

from pronotes.config import Settings, get_settings
from pronotes.core.database import get_supabase_client
from pronotes.core.storage import JsonFileStorage
from pronotes.features.notes.api_store import ApiNoteStore
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.local_store import LocalNoteStore
from pronotes.features.notes.store import NoteStore


def get_db() -> Client:
    """Dependency: get Supabase client."""
    return get_supabase_client()


def get_note_store(
    settings: Settings | None = None,
    indicator: SavedIndicator | None = None,
) -> NoteStore:
    """Build the client note store selected by NOTES_BACKEND.

    local -> LocalNoteStore over the JSON file at LOCAL_STORE_PATH
    api   -> ApiNoteStore against NOTES_API_URL
    """
    settings = settings or get_settings()
    backend = settings.NOTES_BACKEND.lower()

    if backend == "local":
        return LocalNoteStore(
            JsonFileStorage(settings.LOCAL_STORE_PATH),
            key=settings.LOCAL_STORAGE_KEY,
            indicator=indicator,
        )
    if backend == "api":
        return ApiNoteStore(
            settings.NOTES_API_URL,
            timeout=settings.NOTES_API_TIMEOUT,
            indicator=indicator,
        )
    raise ValueError(f"Unknown NOTES_BACKEND '{settings.NOTES_BACKEND}' (expected local | api)")
