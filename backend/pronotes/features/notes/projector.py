"""
Notes feature: ordering, filtering and display-state classification.

Everything here is a pure function of its inputs. The order is recomputed
from the raw list on every render and is never persisted.

Order:
  1. keep notes whose text contains the search term (case-insensitive)
  2. pinned notes ahead of unpinned notes
  3. inside each group: dated before undated, soonest due date first,
     then newest created first; remaining ties keep input order
"""

from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Iterable

from pronotes.features.notes.schemas import Note

# Notes imported without a creation time sort as if created at the epoch.
_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DisplayState(str, Enum):
    """Urgency tag used to colour a note card."""
    OVERDUE = "overdue"
    DUE_TODAY = "due-today"
    DUE_TOMORROW = "due-tomorrow"
    DEFAULT = "default"

    @property
    def css_class(self) -> str:
        return f"color-{self.value}"


def matches_search(note: Note, search_term: str) -> bool:
    """True if the note text contains search_term, ignoring case."""
    return search_term.casefold() in note.text.casefold()


def _sort_key(note: Note) -> tuple:
    created = (note.created_at or _EPOCH).timestamp()
    if note.due_date is None:
        return (1, 0, -created)
    return (0, note.due_date.toordinal(), -created)


def project(notes: Iterable[Note], search_term: str = "") -> list[Note]:
    """Filter and order notes for display.

    Args:
        notes: Raw notes in any order.
        search_term: Case-insensitive substring filter ("" keeps everything).

    Returns:
        A new list: pinned notes first, each group ordered by due date then
        creation date. The input is not modified.
    """
    filtered = [n for n in notes if matches_search(n, search_term)]
    # sorted() is stable, so equal keys keep their relative input order
    pinned = sorted((n for n in filtered if n.pinned), key=_sort_key)
    unpinned = sorted((n for n in filtered if not n.pinned), key=_sort_key)
    return pinned + unpinned


def classify(note: Note, now: datetime | None = None) -> DisplayState:
    """Classify a note by how urgent its due date is.

    Today is taken from `now` (local time by default). A note due today
    whose reminder time has already passed counts as overdue.
    """
    if note.due_date is None:
        return DisplayState.DEFAULT

    now = now or datetime.now()
    today = now.date()

    if note.due_date < today:
        return DisplayState.OVERDUE

    if note.due_date == today:
        if note.reminder_time is not None:
            reminder = datetime.combine(
                today, note.reminder_time.replace(tzinfo=None), tzinfo=now.tzinfo
            )
            if reminder < now:
                return DisplayState.OVERDUE
        return DisplayState.DUE_TODAY

    if note.due_date == today + timedelta(days=1):
        return DisplayState.DUE_TOMORROW

    return DisplayState.DEFAULT


def is_overdue(note: Note, today: date) -> bool:
    """Date-only overdue check for the "Due:" badge (ignores reminder time)."""
    return note.due_date is not None and note.due_date < today


# ── Display formatting ───────────────────────────────────

def format_timestamp(value: datetime) -> str:
    """Format a creation time in local time, e.g. "Jun 3, 2025, 02:15 PM"."""
    local = value.astimezone() if value.tzinfo else value
    return f"{local:%b} {local.day}, {local:%Y}, {local:%I:%M %p}"


def format_due_date(value: date) -> str:
    """Format a due date, e.g. "Jun 3, 2025"."""
    return f"{value:%b} {value.day}, {value:%Y}"


def due_label(note: Note) -> str:
    """The "Due: ..." line shown on a card, or "" for undated notes."""
    if note.due_date is None:
        return ""
    label = f"Due: {format_due_date(note.due_date)}"
    if note.reminder_time is not None:
        label += f" at {note.reminder_time:%H:%M}"
    return label
