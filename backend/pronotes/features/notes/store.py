"""
Notes feature: the NoteStore interface shared by both client backings.

LocalNoteStore keeps the notes as one serialized array in a key/value
storage; ApiNoteStore talks to the notes REST API. Callers pick one at
composition time (see pronotes.core.dependencies.get_note_store).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date, time

from pydantic import ValidationError as PydanticValidationError

from pronotes.core.exceptions import ValidationError
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.schemas import ImportMode, Note, NoteCreate, NoteUpdate
from pronotes.features.notes.snapshot import parse_snapshot, serialize_notes

# Import/export feedback stays up a little longer than per-note saves
SNAPSHOT_INDICATOR_SECONDS = 2.0


def validate_create(
    text: str,
    due_date: date | None = None,
    reminder_time: time | None = None,
) -> NoteCreate:
    """Build a NoteCreate, turning an empty text into our ValidationError."""
    try:
        return NoteCreate(text=text, due_date=due_date, reminder_time=reminder_time)
    except PydanticValidationError as e:
        raise ValidationError("Note text cannot be empty", detail=str(e)) from e


def validate_update(fields: NoteUpdate | dict) -> NoteUpdate:
    """Accept a NoteUpdate or a plain dict of the fields to change."""
    if isinstance(fields, NoteUpdate):
        return fields
    try:
        return NoteUpdate.model_validate(fields)
    except PydanticValidationError as e:
        raise ValidationError("Invalid note update", detail=str(e)) from e


class NoteStore(ABC):
    """Async CRUD + snapshot interface over a collection of notes.

    Every successful mutation persists the full state and flashes a message
    on the optional SavedIndicator.
    """

    def __init__(self, indicator: SavedIndicator | None = None):
        self.indicator = indicator

    @abstractmethod
    async def list(self) -> list[Note]:
        """All notes in no particular order.

        Raises:
            StorageUnavailableError: the backing medium cannot be read.
        """

    @abstractmethod
    async def create(
        self,
        text: str,
        due_date: date | None = None,
        reminder_time: time | None = None,
    ) -> Note:
        """Create a note; id and created_at are assigned by the store.

        Raises:
            ValidationError: text is empty after trimming.
        """

    @abstractmethod
    async def update(self, note_id, fields: NoteUpdate | dict) -> Note:
        """Merge the supplied fields into one note.

        Raises:
            NoteNotFoundError: no note has this id.
        """

    @abstractmethod
    async def delete(self, note_id) -> None:
        """Raises NoteNotFoundError if no note has this id."""

    @abstractmethod
    async def _import_notes(self, notes: list[Note], mode: ImportMode) -> int:
        """Apply already-validated snapshot notes; return how many were added."""

    async def export_all(self) -> str:
        """Pretty-printed JSON array of every note."""
        return serialize_notes(await self.list())

    async def import_all(self, snapshot, mode: ImportMode | str = ImportMode.MERGE) -> int:
        """Validate a snapshot and merge it into, or replace, the collection.

        Raises:
            ValidationError: malformed snapshot; nothing is changed.
        """
        try:
            mode = ImportMode(mode)
        except ValueError as e:
            raise ValidationError(f"Unknown import mode '{mode}'") from e
        notes = parse_snapshot(snapshot)
        added = await self._import_notes(notes, mode)
        self._saved("Notes Imported!", SNAPSHOT_INDICATOR_SECONDS)
        return added

    async def aclose(self) -> None:
        """Release any connection held by the store."""

    def _saved(self, message: str, delay: float | None = None) -> None:
        if self.indicator is not None:
            self.indicator.show(message, delay)
