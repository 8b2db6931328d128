"""
Tests for ApiNoteStore, run against the real FastAPI app through ASGITransport.
"""

from datetime import date, time

import httpx
import pytest

from pronotes.core.exceptions import (
    NoteNotFoundError,
    StorageUnavailableError,
    TransportError,
    ValidationError,
)
from pronotes.features.notes.api_store import ApiNoteStore
from pronotes.features.notes.schemas import ImportMode

from conftest import API_URL


class TestCrud:
    async def test_create_and_list(self, api_store, indicator):
        note = await api_store.create("remote", date(2025, 6, 3), time(9, 0))
        assert note.id == 1
        assert note.created_at is not None
        assert indicator.message == "Note added!"

        [listed] = await api_store.list()
        assert listed.text == "remote"
        assert listed.due_date == date(2025, 6, 3)
        assert listed.reminder_time == time(9, 0)

    async def test_empty_text_never_sent(self, api_store, fake_db):
        with pytest.raises(ValidationError):
            await api_store.create("  ")
        assert fake_db.table("notes").rows == []

    async def test_update_only_supplied_fields(self, api_store):
        note = await api_store.create("old", date(2025, 6, 3))
        await api_store.update(note.id, {"text": "x"})
        [stored] = await api_store.list()
        assert stored.text == "x"
        assert stored.due_date == date(2025, 6, 3)
        assert stored.pinned is False
        assert stored.created_at == note.created_at

    async def test_update_missing(self, api_store):
        with pytest.raises(NoteNotFoundError):
            await api_store.update(404, {"pinned": True})

    async def test_delete_twice(self, api_store):
        note = await api_store.create("bye")
        await api_store.delete(note.id)
        assert await api_store.list() == []
        with pytest.raises(NoteNotFoundError):
            await api_store.delete(note.id)


class TestSnapshot:
    async def test_merge_import_keeps_existing(self, api_store):
        note = await api_store.create("old")
        added = await api_store.import_all(
            [{"id": note.id, "text": "hi"}, {"id": 77, "text": "new"}], ImportMode.MERGE
        )
        assert added == 1
        texts = {n.id: n.text for n in await api_store.list()}
        assert texts == {note.id: "old", 77: "new"}

    async def test_replace_import(self, api_store):
        await api_store.create("gone")
        await api_store.import_all('[{"id": "k", "text": "kept"}]', ImportMode.REPLACE)
        assert [n.text for n in await api_store.list()] == ["kept"]

    async def test_invalid_snapshot_not_sent(self, api_store, fake_db):
        await api_store.create("keep")
        with pytest.raises(ValidationError):
            await api_store.import_all('{"not": "a list"}', ImportMode.REPLACE)
        assert len(fake_db.table("notes").rows) == 1

    async def test_export(self, api_store):
        await api_store.create("exported")
        assert '"text": "exported"' in await api_store.export_all()


class TestTransportFailures:
    async def test_unreachable_server(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        store = ApiNoteStore(API_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(refuse)))
        with pytest.raises(TransportError):
            await store.list()
        with pytest.raises(TransportError):
            await store.create("x")

    async def test_server_error(self):
        def boom(request):
            return httpx.Response(500, json={"error": "Internal server error"})

        store = ApiNoteStore(API_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(boom)))
        with pytest.raises(TransportError):
            await store.list()

    async def test_non_list_payload(self):
        def weird(request):
            return httpx.Response(200, json={"data": []})

        store = ApiNoteStore(API_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(weird)))
        with pytest.raises(StorageUnavailableError):
            await store.list()


class TestUnexpectedBodies:
    @staticmethod
    def store_answering(status_code, **body) -> ApiNoteStore:
        def answer(request):
            return httpx.Response(status_code, **body)

        return ApiNoteStore(API_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(answer)))

    async def test_create_html_body(self):
        store = self.store_answering(201, text="<html>proxy</html>")
        with pytest.raises(StorageUnavailableError):
            await store.create("hello")

    async def test_update_wrong_shape(self):
        store = self.store_answering(200, json={"id": 1})
        with pytest.raises(StorageUnavailableError):
            await store.update(1, {"pinned": True})

    async def test_import_wrong_shape(self):
        store = self.store_answering(200, json={"unexpected": 1})
        with pytest.raises(StorageUnavailableError):
            await store.import_all([{"id": 1, "text": "x"}])
