"""
Notes feature: board controller.

Plays the role of the browser page: each user action makes at most one
store call, then the full list is fetched again and projected into cards.
Failures never escape an action; they are logged and queued as alerts for
the front end to show.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time
from pathlib import Path
from typing import Any, Awaitable, Callable

from pronotes.core.exceptions import AppBaseError, StorageUnavailableError
from pronotes.features.notes.projector import (
    DisplayState,
    classify,
    due_label,
    format_timestamp,
    is_overdue,
    project,
)
from pronotes.features.notes.schemas import ImportMode, Note
from pronotes.features.notes.snapshot import export_filename
from pronotes.features.notes.store import SNAPSHOT_INDICATOR_SECONDS, NoteStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DeleteConfirmation:
    """A delete waiting for the user to confirm or cancel."""
    note_id: str | int


@dataclass(frozen=True)
class NoteCard:
    """One rendered note."""
    note: Note
    state: DisplayState
    timestamp: str
    due: str
    overdue: bool

    @property
    def css_classes(self) -> list[str]:
        classes = ["sticky-note", self.state.css_class]
        if self.note.pinned:
            classes.append("pinned")
        return classes


class NotesBoard:
    """Client-side controller over a NoteStore."""

    def __init__(self, store: NoteStore, clock: Callable[[], datetime] | None = None):
        self.store = store
        self._clock = clock or datetime.now
        self.search_term = ""
        self.cards: list[NoteCard] = []
        self.alerts: list[str] = []
        self.pending_delete: DeleteConfirmation | None = None

    # ── Feedback ─────────────────────────────────────────

    @property
    def saved_message(self) -> str:
        """Current transient "Saved!" text, "" once it has cleared."""
        indicator = self.store.indicator
        return indicator.message if indicator is not None else ""

    def take_alerts(self) -> list[str]:
        """Return queued alerts and clear the queue."""
        alerts, self.alerts = self.alerts, []
        return alerts

    def _alert(self, message: str) -> None:
        self.alerts.append(message)

    async def _attempt(self, action: str, call: Awaitable[Any]) -> tuple[bool, Any]:
        try:
            return True, await call
        except AppBaseError as e:
            logger.error(f"Error trying to {action}: {e.message} ({e.detail})")
            self._alert(f"Failed to {action}: {e.message}")
            return False, None

    # ── Rendering ────────────────────────────────────────

    async def render(self) -> list[NoteCard]:
        """Fetch every note and rebuild the cards from scratch."""
        try:
            notes = await self.store.list()
        except StorageUnavailableError as e:
            logger.error(f"Failed to fetch notes: {e.message} ({e.detail})")
            self._alert(f"Could not load notes: {e.message}")
            notes = []

        now = self._clock()
        self.cards = [self._card(n, now) for n in project(notes, self.search_term)]
        return self.cards

    async def search(self, term: str) -> list[NoteCard]:
        self.search_term = term
        return await self.render()

    def _card(self, note: Note, now: datetime) -> NoteCard:
        return NoteCard(
            note=note,
            state=classify(note, now),
            timestamp=format_timestamp(note.created_at) if note.created_at else "",
            due=due_label(note),
            overdue=is_overdue(note, now.date()),
        )

    def find_card(self, note_id) -> NoteCard | None:
        for card in self.cards:
            if card.note.matches_id(note_id):
                return card
        return None

    # ── Actions ──────────────────────────────────────────

    async def add(
        self,
        text: str,
        due_date: date | None = None,
        reminder_time: time | None = None,
    ) -> Note | None:
        """Add a note. Blank text does nothing (the add button is disabled)."""
        if not text.strip():
            return None
        ok, note = await self._attempt(
            "add note", self.store.create(text, due_date, reminder_time)
        )
        if ok:
            await self.render()
        return note

    async def edit_text(self, note_id, text: str) -> bool:
        card = self.find_card(note_id)
        if card is not None and card.note.text == text.strip():
            return False
        ok, _ = await self._attempt(
            "update note", self.store.update(note_id, {"text": text})
        )
        if ok:
            await self.render()
        return ok

    async def set_due(
        self,
        note_id,
        due_date: date | None,
        reminder_time: time | None = None,
    ) -> bool:
        ok, _ = await self._attempt(
            "update note",
            self.store.update(note_id, {"due_date": due_date, "reminder_time": reminder_time}),
        )
        if ok:
            await self.render()
        return ok

    async def toggle_pin(self, note_id) -> bool:
        """Flip the pinned flag as last rendered."""
        card = self.find_card(note_id)
        if card is None:
            self._alert("Failed to update note: Note not found")
            return False
        ok, _ = await self._attempt(
            "update note", self.store.update(note_id, {"pinned": not card.note.pinned})
        )
        if ok:
            await self.render()
        return ok

    # ── Delete confirmation ──────────────────────────────

    def request_delete(self, note_id) -> DeleteConfirmation:
        """Start the confirmation step; nothing is deleted yet."""
        self.pending_delete = DeleteConfirmation(note_id)
        return self.pending_delete

    def cancel_delete(self) -> None:
        self.pending_delete = None

    async def confirm_delete(self) -> bool:
        """Delete the note awaiting confirmation, if any."""
        confirmation = self.pending_delete
        if confirmation is None:
            return False
        try:
            ok, _ = await self._attempt(
                "delete note", self.store.delete(confirmation.note_id)
            )
        finally:
            self.pending_delete = None
        if ok:
            await self.render()
        return ok

    # ── Export / import ──────────────────────────────────

    async def export_to(self, directory: str | Path = ".") -> Path | None:
        """Write pronotes_export_<today>.json into directory."""
        ok, snapshot = await self._attempt("export notes", self.store.export_all())
        if not ok:
            return None
        if snapshot.strip() == "[]":
            self._alert("No notes to export!")
            return None

        path = Path(directory) / export_filename(self._clock().date())
        try:
            path.write_text(snapshot, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write export {path}: {e}")
            self._alert(f"Failed to export notes: {e}")
            return None

        if self.store.indicator is not None:
            self.store.indicator.show("Notes Exported!", SNAPSHOT_INDICATOR_SECONDS)
        logger.info(f"Exported notes to {path}")
        return path

    async def import_from(
        self,
        path: str | Path,
        mode: ImportMode | str = ImportMode.MERGE,
    ) -> int | None:
        """Import a snapshot file; returns how many notes were added."""
        try:
            snapshot = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to read import file {path}: {e}")
            self._alert("Error reading file.")
            return None

        ok, added = await self._attempt("import notes", self.store.import_all(snapshot, mode))
        if not ok:
            return None
        self._alert(f"Successfully imported {added} notes!")
        await self.render()
        return added
