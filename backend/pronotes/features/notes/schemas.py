"""
Notes feature: Schemas for the note entity and request/response models.
"""

from datetime import date, datetime, time, timezone
from enum import Enum

from pydantic import AliasChoices, BaseModel, Field, field_validator


class ImportMode(str, Enum):
    """How an imported snapshot is combined with the existing notes."""
    MERGE = "merge"      # keep everything, add only unseen ids
    REPLACE = "replace"  # discard the existing collection


def clean_text(value: str) -> str:
    """Trim note text, rejecting text that is empty after trimming."""
    text = value.strip()
    if not text:
        raise ValueError("Note text cannot be empty")
    return text


class Note(BaseModel):
    """A single sticky note.

    Accepts both the snake_case wire names and the camelCase names written
    by the browser-only variant (createdAt, dueDate, reminderTime).
    """
    id: str | int
    text: str
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    pinned: bool = False
    due_date: date | None = Field(
        default=None, validation_alias=AliasChoices("due_date", "dueDate")
    )
    reminder_time: time | None = Field(
        default=None, validation_alias=AliasChoices("reminder_time", "reminderTime")
    )

    @field_validator("pinned", mode="before")
    @classmethod
    def _null_pinned(cls, value):
        return False if value is None else value

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def matches_id(self, note_id) -> bool:
        """Ids are opaque: "5" from a URL and 5 from a database row are the same note."""
        return str(self.id) == str(note_id)


class NoteCreate(BaseModel):
    """Request to create a new note."""
    text: str
    due_date: date | None = None
    reminder_time: time | None = None

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, value: str) -> str:
        return clean_text(value)


class NoteUpdate(BaseModel):
    """Request to update an existing note (partial merge)."""
    text: str | None = None
    pinned: bool | None = None
    due_date: date | None = None
    reminder_time: time | None = None

    @field_validator("text")
    @classmethod
    def _text_not_empty(cls, value: str | None) -> str | None:
        return None if value is None else clean_text(value)

    def changes(self, json: bool = False) -> dict:
        """Fields the caller actually supplied (JSON-encoded values if json=True).

        text/pinned cannot be cleared, so an explicit null for them is dropped;
        due_date/reminder_time may be cleared with an explicit null.
        """
        supplied = self.model_dump(mode="json" if json else "python", exclude_unset=True)
        return {
            k: v for k, v in supplied.items()
            if v is not None or k in ("due_date", "reminder_time")
        }


class NoteImport(BaseModel):
    """Request to import a snapshot of notes."""
    mode: ImportMode = ImportMode.MERGE
    notes: list[Note]


class ImportResult(BaseModel):
    """Response for an import: how many notes were added."""
    added: int
