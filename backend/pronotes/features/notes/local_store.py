"""
Notes feature: NoteStore kept in a key/value storage under a single key.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from datetime import date, datetime, time, timedelta, timezone
from typing import Callable

from pydantic import ValidationError as PydanticValidationError

from pronotes.core.exceptions import NoteNotFoundError, StorageUnavailableError
from pronotes.core.storage import KeyValueStorage
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.schemas import ImportMode, Note, NoteUpdate
from pronotes.features.notes.snapshot import select_for_import, serialize_notes
from pronotes.features.notes.store import NoteStore, validate_create, validate_update

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "stickyNotesApp.notes"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LocalNoteStore(NoteStore):
    """Notes serialized as one JSON array in an injected storage handle.

    Every mutation re-reads the array, changes it and writes the whole
    array back. The lock keeps two mutations from interleaving their
    read-modify-write cycles.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        key: str = DEFAULT_STORAGE_KEY,
        indicator: SavedIndicator | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        super().__init__(indicator)
        self.storage = storage
        self.key = key
        self._clock = clock or _utcnow
        self._lock = asyncio.Lock()

    # ── Persistence ──────────────────────────────────────

    def _load(self) -> list[Note]:
        raw = self.storage.get_item(self.key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise StorageUnavailableError("Saved notes are corrupt", detail=str(e)) from e
        if not isinstance(data, list):
            raise StorageUnavailableError("Saved notes are corrupt", detail="expected a JSON array")
        try:
            return [Note.model_validate(item) for item in data]
        except PydanticValidationError as e:
            raise StorageUnavailableError("Saved notes are corrupt", detail=str(e)) from e

    def _save(self, notes: list[Note]) -> None:
        self.storage.set_item(self.key, serialize_notes(notes, indent=None))

    def _new_id(self, notes: list[Note]) -> str:
        taken = {str(n.id) for n in notes}
        while True:
            note_id = uuid.uuid4().hex
            if note_id not in taken:
                return note_id

    def _next_created_at(self, notes: list[Note]) -> datetime:
        # strictly increasing, even if the clock stalls or steps back
        now = self._clock()
        latest = max((n.created_at for n in notes if n.created_at), default=None)
        if latest is not None and now <= latest:
            now = latest + timedelta(microseconds=1)
        return now

    # ── NoteStore ────────────────────────────────────────

    async def list(self) -> list[Note]:
        return self._load()

    async def create(
        self,
        text: str,
        due_date: date | None = None,
        reminder_time: time | None = None,
    ) -> Note:
        data = validate_create(text, due_date, reminder_time)
        async with self._lock:
            notes = self._load()
            note = Note(
                id=self._new_id(notes),
                text=data.text,
                created_at=self._next_created_at(notes),
                pinned=False,
                due_date=data.due_date,
                reminder_time=data.reminder_time,
            )
            notes.append(note)
            self._save(notes)
        logger.info(f"Note {note.id} created")
        self._saved("Note added!")
        return note

    async def update(self, note_id, fields: NoteUpdate | dict) -> Note:
        changes = validate_update(fields).changes()
        async with self._lock:
            notes = self._load()
            for index, note in enumerate(notes):
                if note.matches_id(note_id):
                    updated = note.model_copy(update=changes)
                    notes[index] = updated
                    break
            else:
                raise NoteNotFoundError(note_id)
            self._save(notes)
        logger.info(f"Note {note_id} updated: {sorted(changes)}")
        self._saved("Note updated!")
        return updated

    async def delete(self, note_id) -> None:
        async with self._lock:
            notes = self._load()
            remaining = [n for n in notes if not n.matches_id(note_id)]
            if len(remaining) == len(notes):
                raise NoteNotFoundError(note_id)
            self._save(remaining)
        logger.info(f"Note {note_id} deleted")
        self._saved("Note deleted!")

    async def _import_notes(self, notes: list[Note], mode: ImportMode) -> int:
        async with self._lock:
            # replace never needs the old array, so a corrupt blob can be overwritten
            existing = self._load() if mode is ImportMode.MERGE else []
            selected = select_for_import((n.id for n in existing), notes, mode)
            self._save(existing + selected)
        logger.info(f"Imported {len(selected)} notes ({mode.value})")
        return len(selected)
