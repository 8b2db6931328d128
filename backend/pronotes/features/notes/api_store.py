"""
Notes feature: NoteStore backed by the notes REST API.

ENDPOINTS (relative to base_url, e.g. http://localhost:8000/api/notes):
  GET    ""           -> 200 [Note]
  POST   ""           -> 201 Note          body: {text, due_date?, reminder_time?}
  PUT    "/{id}"      -> 200 Note | 404    body: any of {text, pinned, due_date, reminder_time}
  DELETE "/{id}"      -> 204 | 404
  POST   "/import"    -> 200 {added} | 503  body: {mode, notes}

No retries: a failed request fails the user action that caused it.
"""

from __future__ import annotations

import logging
from datetime import date, time

import httpx
from pydantic import RootModel, ValidationError as PydanticValidationError

from pronotes.core.exceptions import (
    NoteNotFoundError,
    StorageUnavailableError,
    TransportError,
    ValidationError,
)
from pronotes.features.notes.indicator import SavedIndicator
from pronotes.features.notes.schemas import ImportMode, ImportResult, Note, NoteUpdate
from pronotes.features.notes.store import NoteStore, validate_create, validate_update

logger = logging.getLogger(__name__)

UNEXPECTED_RESPONSE = "Unexpected response from notes server"


class NoteList(RootModel[list[Note]]):
    """GET body: a JSON array of notes."""


class ApiNoteStore(NoteStore):
    """Client for the notes API.

    Pass `client` to reuse an existing httpx.AsyncClient (tests mount the
    FastAPI app through httpx.ASGITransport this way).
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        indicator: SavedIndicator | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        super().__init__(indicator)
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ApiNoteStore":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    # ── HTTP helpers ─────────────────────────────────────

    async def _request(self, method: str, path: str = "", **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            return await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"❌ {method} {url} failed: {e}")
            raise TransportError(detail=str(e)) from e

    @staticmethod
    def _raise_for_status(response: httpx.Response, note_id=None) -> None:
        if response.is_success:
            return
        if response.status_code == 404 and note_id is not None:
            raise NoteNotFoundError(note_id)
        if response.status_code == 422:
            raise ValidationError("The notes server rejected the data", detail=response.text)
        logger.error(f"❌ Notes API error {response.status_code}: {response.text[:200]}")
        raise TransportError(
            f"Notes server answered {response.status_code}", detail=response.text
        )

    @staticmethod
    def _validate(model, response: httpx.Response):
        """Decode a success body into `model`; anything unexpected is a storage fault."""
        try:
            return model.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            logger.error(f"❌ Unexpected notes API body: {response.text[:200]}")
            raise StorageUnavailableError(UNEXPECTED_RESPONSE, detail=str(e)) from e

    # ── NoteStore ────────────────────────────────────────

    async def list(self) -> list[Note]:
        response = await self._request("GET")
        self._raise_for_status(response)
        return self._validate(NoteList, response).root

    async def create(
        self,
        text: str,
        due_date: date | None = None,
        reminder_time: time | None = None,
    ) -> Note:
        data = validate_create(text, due_date, reminder_time)
        response = await self._request("POST", json=data.model_dump(mode="json"))
        self._raise_for_status(response)
        note = self._validate(Note, response)
        self._saved("Note added!")
        return note

    async def update(self, note_id, fields: NoteUpdate | dict) -> Note:
        update = validate_update(fields)
        body = update.changes(json=True)
        response = await self._request("PUT", f"/{note_id}", json=body)
        self._raise_for_status(response, note_id)
        note = self._validate(Note, response)
        self._saved("Note updated!")
        return note

    async def delete(self, note_id) -> None:
        response = await self._request("DELETE", f"/{note_id}")
        self._raise_for_status(response, note_id)
        self._saved("Note deleted!")

    async def _import_notes(self, notes: list[Note], mode: ImportMode) -> int:
        body = {
            "mode": mode.value,
            "notes": [n.model_dump(mode="json") for n in notes],
        }
        response = await self._request("POST", "/import", json=body)
        self._raise_for_status(response)
        return self._validate(ImportResult, response).added
