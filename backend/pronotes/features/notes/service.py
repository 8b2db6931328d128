"""
Notes feature: Service layer over the `notes` table.
"""

import logging

from supabase import Client

from pronotes.config import get_settings
from pronotes.core.exceptions import NoteNotFoundError, StorageUnavailableError
from pronotes.features.notes.schemas import ImportMode, Note
from pronotes.features.notes.snapshot import select_for_import

logger = logging.getLogger(__name__)


class NotesService:
    """CRUD operations for sticky notes.

    id and created_at come from the table defaults, never from the client.
    Updates touch a single row by id, so a partial update never rewrites
    other notes.
    """

    def __init__(self, db: Client, table: str | None = None):
        self.db = db
        self.table = table or get_settings().NOTES_TABLE

    def list_notes(self) -> list[dict]:
        """All notes, newest first."""
        result = (
            self.db.table(self.table)
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return result.data

    def get_note(self, note_id: str) -> dict:
        result = self.db.table(self.table).select("*").eq("id", note_id).execute()
        if not result.data:
            raise NoteNotFoundError(note_id)
        return result.data[0]

    def create_note(
        self,
        text: str,
        due_date: str | None = None,
        reminder_time: str | None = None,
    ) -> dict:
        """Insert a note. Dates arrive already JSON-encoded (ISO strings)."""
        insert_data = {
            "text": text,
            "due_date": due_date,
            "reminder_time": reminder_time,
        }
        result = self.db.table(self.table).insert(insert_data).execute()
        note = result.data[0]
        logger.info(f"Note {note['id']} created")
        return note

    def update_note(self, note_id: str, changes: dict) -> dict:
        """Apply only the supplied fields to one note."""
        if not changes:
            return self.get_note(note_id)

        result = (
            self.db.table(self.table)
            .update(changes)
            .eq("id", note_id)
            .execute()
        )
        if not result.data:
            raise NoteNotFoundError(note_id)
        logger.info(f"Note {note_id} updated: {sorted(changes)}")
        return result.data[0]

    def delete_note(self, note_id: str) -> None:
        """Hard delete a note."""
        result = self.db.table(self.table).delete().eq("id", note_id).execute()
        if not result.data:
            raise NoteNotFoundError(note_id)
        logger.info(f"Note {note_id} deleted")

    def import_notes(self, notes: list[Note], mode: ImportMode) -> int:
        """Write snapshot notes keeping their ids.

        Merge skips ids that already exist (existing rows are never
        overwritten). Replace upserts the snapshot first and only then
        deletes the rows it does not contain, so a rejected write leaves
        the table as it was.

        Raises:
            StorageUnavailableError: the table rejected the snapshot rows.
        """
        existing_ids = [
            row["id"] for row in self.db.table(self.table).select("id").execute().data
        ]
        selected = select_for_import(existing_ids, notes, mode)
        # rows may omit created_at; missing columns take the table default
        rows = [n.model_dump(mode="json", exclude_none=True) for n in selected]

        if rows:
            table = self.db.table(self.table)
            try:
                if mode is ImportMode.REPLACE:
                    table.upsert(rows, default_to_null=False).execute()
                else:
                    table.insert(rows, default_to_null=False).execute()
            except Exception as e:
                logger.error(f"❌ Import of {len(rows)} notes failed ({mode.value}): {e}")
                raise StorageUnavailableError(
                    "Import failed, existing notes were left unchanged", detail=str(e)
                ) from e

        if mode is ImportMode.REPLACE:
            kept = {str(n.id) for n in selected}
            stale = [i for i in existing_ids if str(i) not in kept]
            if stale:
                self.db.table(self.table).delete().in_("id", stale).execute()

        logger.info(f"Imported {len(selected)} notes ({mode.value})")
        return len(selected)
