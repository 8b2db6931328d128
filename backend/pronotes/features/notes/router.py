"""
Notes feature: API routes for sticky note management.
"""

from fastapi import APIRouter, Depends, Response, status
from supabase import Client

from pronotes.core.dependencies import get_db
from pronotes.core.exceptions import NoteNotFoundError, StorageUnavailableError, app_error_to_http
from pronotes.features.notes.schemas import (
    ImportResult,
    Note,
    NoteCreate,
    NoteImport,
    NoteUpdate,
)
from pronotes.features.notes.service import NotesService

router = APIRouter()


@router.get("", response_model=list[Note])
async def list_notes(db: Client = Depends(get_db)):
    """Full snapshot of all notes."""
    service = NotesService(db)
    return service.list_notes()


@router.post("", response_model=Note, status_code=status.HTTP_201_CREATED)
async def create_note(
    data: NoteCreate,
    db: Client = Depends(get_db),
):
    """Create a new note. The server assigns id and created_at."""
    service = NotesService(db)
    payload = data.model_dump(mode="json")
    return service.create_note(
        text=payload["text"],
        due_date=payload["due_date"],
        reminder_time=payload["reminder_time"],
    )


@router.post("/import", response_model=ImportResult)
async def import_notes(
    data: NoteImport,
    db: Client = Depends(get_db),
):
    """Import a snapshot (merge keeps existing ids untouched)."""
    service = NotesService(db)
    try:
        added = service.import_notes(data.notes, data.mode)
    except StorageUnavailableError as e:
        raise app_error_to_http(e, status.HTTP_503_SERVICE_UNAVAILABLE)
    return {"added": added}


@router.put("/{note_id}", response_model=Note)
async def update_note(
    note_id: str,
    data: NoteUpdate,
    db: Client = Depends(get_db),
):
    """Partially update an existing note."""
    service = NotesService(db)
    changes = data.changes(json=True)
    try:
        return service.update_note(note_id, changes)
    except NoteNotFoundError as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)


@router.delete("/{note_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_note(
    note_id: str,
    db: Client = Depends(get_db),
):
    """Delete a note."""
    service = NotesService(db)
    try:
        service.delete_note(note_id)
    except NoteNotFoundError as e:
        raise app_error_to_http(e, status.HTTP_404_NOT_FOUND)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
