from __future__ import annotations

import asyncio
import base64
import json

import pytest
from conftest import FakeFileStore

from platestore.client import PlateStoreClient
from platestore.config import StoreConfig
from platestore.exceptions import (
    PlateConfigError,
    PlateConflictError,
    PlateRecordError,
    PlateStoreApiError,
    PlateStoreError,
    PlateTransportError,
    PlateValidationWarning,
)
from platestore.models.record import PlateRecord
from platestore.models.store import VersionedHandle


def _record(plate: str = "AB12CDE", **fields: object) -> dict[str, object]:
    body: dict[str, object] = {
        "plate": plate,
        "owner": "",
        "notes": "",
        "addedAt": "2026-01-01T10:00:00.000Z",
        "addedBy": "octocat",
        "flagged": False,
        "flagReason": "",
    }
    body.update(fields)
    return body


@pytest.mark.asyncio
async def test_list_records_missing_directory_is_empty(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        assert await client.list_records() == []


@pytest.mark.asyncio
async def test_list_records_decodes_entries_and_keeps_raw_text(config: StoreConfig, store: FakeFileStore) -> None:
    sha = store.add("plates/AB12CDE.json", _record(notes="blue van"))
    store.add("plates/BROKEN.json", "not json {")

    async with PlateStoreClient(config, store=store) as client:
        entries = {entry.path: entry for entry in await client.list_records()}

    good = entries["plates/AB12CDE.json"]
    assert good.data is not None
    assert good.data["notes"] == "blue van"
    assert good.handle == VersionedHandle(sha=sha, path="plates/AB12CDE.json")
    assert good.record is not None
    assert good.record.added_by == "octocat"

    broken = entries["plates/BROKEN.json"]
    assert broken.data is None
    assert broken.record is None
    assert broken.raw == "not json {"


@pytest.mark.asyncio
async def test_list_records_drops_entries_that_fail_to_fetch(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", _record("AB12CDE"))
    store.add("plates/A1.json", _record("A1"))
    store.add("plates/ZZ99ZZZ.json", _record("ZZ99ZZZ"))
    store.failing.add("plates/A1.json")

    async with PlateStoreClient(config, store=store) as client:
        entries = await client.list_records()

    assert sorted(entry.path for entry in entries) == ["plates/AB12CDE.json", "plates/ZZ99ZZZ.json"]


@pytest.mark.asyncio
async def test_list_records_skips_directories(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", _record())
    store.directories.append("plates/archive")

    async with PlateStoreClient(config, store=store) as client:
        entries = await client.list_records()

    assert [entry.path for entry in entries] == ["plates/AB12CDE.json"]


@pytest.mark.asyncio
async def test_list_records_propagates_directory_errors(config: StoreConfig) -> None:
    class _FailingStore(FakeFileStore):
        async def list_directory(self, path: str) -> None:
            raise PlateStoreApiError("HTTP 500 from list", status_code=500, endpoint=path)

    async with PlateStoreClient(config, store=_FailingStore()) as client:
        with pytest.raises(PlateStoreApiError) as exc_info:
            await client.list_records()
    assert exc_info.value.status_code == 500


@pytest.mark.asyncio
async def test_get_record_missing_returns_none(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        assert await client.get_record("NOPE1") is None


@pytest.mark.asyncio
async def test_get_record_returns_record_and_handle(config: StoreConfig, store: FakeFileStore) -> None:
    sha = store.add("plates/AB12CDE.json", _record(owner="J. Smith", flagged=True, flagReason="no tax"))

    async with PlateStoreClient(config, store=store) as client:
        found = await client.get_record("AB12CDE")

    assert found is not None
    record, handle = found
    assert record.owner == "J. Smith"
    assert record.flagged is True
    assert record.flag_reason == "no tax"
    assert handle.sha == sha


@pytest.mark.asyncio
async def test_get_record_invalid_body_raises_record_error(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", "[1, 2, 3]")

    async with PlateStoreClient(config, store=store) as client:
        with pytest.raises(PlateRecordError) as exc_info:
            await client.get_record("AB12CDE")
    assert exc_info.value.path == "plates/AB12CDE.json"


@pytest.mark.asyncio
async def test_put_record_without_handle_creates_file(config: StoreConfig, store: FakeFileStore) -> None:
    record = PlateRecord(plate="AB12CDE", owner="Fleet", added_at="2026-01-01T10:00:00.000Z")

    async with PlateStoreClient(config, store=store) as client:
        await client.put_record(record)

    put = store.puts[-1]
    assert put["path"] == "plates/AB12CDE.json"
    assert put["message"] == "Add plate AB12CDE"
    assert put["sha"] is None
    text = base64.b64decode(put["content"]).decode("utf-8")
    assert text.startswith('{\n  "plate": "AB12CDE"')
    assert json.loads(text) == {
        "plate": "AB12CDE",
        "owner": "Fleet",
        "notes": "",
        "addedAt": "2026-01-01T10:00:00.000Z",
        "addedBy": "",
        "flagged": False,
        "flagReason": "",
    }


@pytest.mark.asyncio
async def test_put_record_without_handle_on_existing_file_is_store_error(
    config: StoreConfig, store: FakeFileStore
) -> None:
    store.add("plates/AB12CDE.json", _record(notes="original"))

    async with PlateStoreClient(config, store=store) as client:
        with pytest.raises(PlateStoreApiError) as exc_info:
            await client.put_record(PlateRecord(plate="AB12CDE", notes="overwrite"))

    assert not isinstance(exc_info.value, PlateConflictError)
    assert exc_info.value.status_code == 422
    assert '"notes": "original"' in store.text("plates/AB12CDE.json")


@pytest.mark.asyncio
async def test_put_record_with_current_handle_updates(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", _record(notes="old"))

    async with PlateStoreClient(config, store=store) as client:
        found = await client.get_record("AB12CDE")
        assert found is not None
        record, handle = found
        await client.put_record(record.model_copy(update={"notes": "new"}), handle)
        updated = await client.get_record("AB12CDE")

    assert store.puts[-1]["message"] == "Update plate AB12CDE"
    assert store.puts[-1]["sha"] == handle.sha
    assert updated is not None
    assert updated[0].notes == "new"
    assert updated[1].sha != handle.sha


@pytest.mark.asyncio
async def test_put_record_with_stale_handle_is_conflict(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", _record())

    async with PlateStoreClient(config, store=store) as client:
        first = await client.get_record("AB12CDE")
        second = await client.get_record("AB12CDE")
        assert first is not None and second is not None

        await client.put_record(first[0].model_copy(update={"notes": "first"}), first[1])
        with pytest.raises(PlateConflictError):
            await client.put_record(second[0].model_copy(update={"notes": "second"}), second[1])

    assert '"notes": "first"' in store.text("plates/AB12CDE.json")


@pytest.mark.asyncio
async def test_concurrent_saves_for_same_plate_let_one_writer_win(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/AB12CDE.json", _record())

    async with PlateStoreClient(config, store=store) as client:
        found = await client.lookup("AB12CDE")
        results = await asyncio.gather(
            client.save("AB12CDE", notes="one", handle=found.handle),
            client.save("AB12CDE", notes="two", handle=found.handle),
            return_exceptions=True,
        )

    assert sum(isinstance(result, PlateRecord) for result in results) == 1
    assert sum(isinstance(result, PlateConflictError) for result in results) == 1


@pytest.mark.asyncio
async def test_put_record_rejects_handle_for_other_file(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        with pytest.raises(ValueError, match="cannot be used"):
            await client.put_record(
                PlateRecord(plate="AB12CDE"),
                VersionedHandle(sha="sha-9", path="plates/ZZ99ZZZ.json"),
            )
    assert store.puts == []


@pytest.mark.asyncio
async def test_save_stamps_time_and_identity(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        record = await client.save("ab12 cde", owner=" Fleet ", flagged=True, flag_reason="stolen")

    assert record.plate == "AB12CDE"
    assert record.owner == "Fleet"
    assert record.added_by == "octocat"
    assert record.added_at.endswith("Z")
    assert record.flag_reason == "stolen"
    assert json.loads(store.text("plates/AB12CDE.json"))["addedBy"] == "octocat"


@pytest.mark.asyncio
async def test_save_survives_identity_lookup_failure(config: StoreConfig, store: FakeFileStore) -> None:
    store.user = PlateTransportError("Request to /user failed: timeout", endpoint="/user")

    async with PlateStoreClient(config, store=store) as client:
        record = await client.save("AB12CDE")

    assert record.added_by == ""
    assert "plates/AB12CDE.json" in store.files


@pytest.mark.asyncio
async def test_whoami_without_token_skips_identity_lookup(store: FakeFileStore) -> None:
    anonymous = StoreConfig(owner="octo", repo="plates-db")

    async with PlateStoreClient(anonymous, store=store) as client:
        assert await client.whoami() == ""
    assert store.user_calls == 0


@pytest.mark.asyncio
async def test_save_requires_a_plate(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        with pytest.raises(ValueError, match="No plate"):
            await client.save(" - ")


@pytest.mark.asyncio
async def test_lookup_implausible_plate_warns_and_still_fetches(config: StoreConfig, store: FakeFileStore) -> None:
    store.add("plates/12345678.json", _record("12345678", notes="odd"))

    async with PlateStoreClient(config, store=store) as client:
        with pytest.warns(PlateValidationWarning):
            found = await client.lookup("1234-5678")

    assert found.plausible is False
    assert found.exists
    assert found.record is not None
    assert found.record.notes == "odd"


@pytest.mark.asyncio
async def test_lookup_missing_plate_has_no_handle(config: StoreConfig, store: FakeFileStore) -> None:
    async with PlateStoreClient(config, store=store) as client:
        found = await client.lookup("ab12cde")

    assert found.plate == "AB12CDE"
    assert found.plausible is True
    assert found.record is None
    assert found.handle is None


@pytest.mark.asyncio
async def test_search_filters_and_sorts(config: StoreConfig, store: FakeFileStore) -> None:
    for plate in ("ZZ99ZZZ", "AB12CDE", "A1"):
        store.add(f"plates/{plate}.json", _record(plate))

    async with PlateStoreClient(config, store=store) as client:
        everything = await client.search()
        matching = await client.search("ab")

    assert [entry.data["plate"] for entry in everything if entry.data] == ["A1", "AB12CDE", "ZZ99ZZZ"]
    assert [entry.path for entry in matching] == ["plates/AB12CDE.json"]


@pytest.mark.asyncio
async def test_client_requires_context_manager(config: StoreConfig) -> None:
    client = PlateStoreClient(config)
    with pytest.raises(PlateStoreError, match="not initialized"):
        await client.list_records()


@pytest.mark.asyncio
async def test_client_rejects_incomplete_config(store: FakeFileStore) -> None:
    with pytest.raises(PlateConfigError, match="repo"):
        async with PlateStoreClient(StoreConfig(owner="octo", repo=""), store=store):
            pass
