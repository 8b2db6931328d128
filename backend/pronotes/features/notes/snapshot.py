"""
Notes feature: export/import snapshot handling.

A snapshot is a JSON array of note objects. Import accepts it only if every
element is an object with at least an `id` and a `text`.
"""

import json
from datetime import date
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from pronotes.core.exceptions import ValidationError
from pronotes.features.notes.schemas import ImportMode, Note

INVALID_SNAPSHOT_MESSAGE = "Invalid JSON file format. Please select a valid ProNotes export file."


def serialize_notes(notes: Iterable[Note], indent: int | None = 2) -> str:
    """Serialize notes to a JSON array (pretty-printed by default)."""
    return json.dumps(
        [n.model_dump(mode="json") for n in notes],
        indent=indent,
        ensure_ascii=False,
    )


def export_filename(today: date) -> str:
    """e.g. pronotes_export_2025-06-03.json"""
    return f"pronotes_export_{today.isoformat()}.json"


def parse_snapshot(snapshot: str | bytes | Any) -> list[Note]:
    """Validate an import payload and return its notes.

    Args:
        snapshot: JSON text, or data that was already decoded.

    Raises:
        ValidationError: payload is not a list of objects with id and text.
    """
    if isinstance(snapshot, (str, bytes)):
        try:
            data = json.loads(snapshot)
        except ValueError as e:
            raise ValidationError(INVALID_SNAPSHOT_MESSAGE, detail=str(e)) from e
    else:
        data = snapshot

    if not isinstance(data, list) or not all(
        isinstance(item, dict) and "id" in item and "text" in item for item in data
    ):
        raise ValidationError(INVALID_SNAPSHOT_MESSAGE)

    try:
        return [Note.model_validate(item) for item in data]
    except PydanticValidationError as e:
        raise ValidationError(INVALID_SNAPSHOT_MESSAGE, detail=str(e)) from e


def dedupe_by_id(notes: Iterable[Note]) -> list[Note]:
    """Drop repeated ids, first occurrence wins."""
    seen: set[str] = set()
    unique = []
    for note in notes:
        key = str(note.id)
        if key in seen:
            continue
        seen.add(key)
        unique.append(note)
    return unique


def select_for_import(existing_ids: Iterable, imported: Iterable[Note], mode: ImportMode) -> list[Note]:
    """Notes from the snapshot that end up in the store.

    Merge never overwrites: a snapshot note whose id already exists is
    skipped even if its content differs. Replace takes the whole snapshot.
    """
    imported = dedupe_by_id(imported)
    if mode is ImportMode.REPLACE:
        return imported
    taken = {str(i) for i in existing_ids}
    return [n for n in imported if str(n.id) not in taken]
