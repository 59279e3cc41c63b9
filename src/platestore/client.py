"""High-level async client for plate records kept in a repository."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import Any

import aiohttp
from pydantic import ValidationError

from platestore._api import contents as _contents
from platestore._api.user import parse_login
from platestore._transport import FileStore, GitHubTransport
from platestore.config import StoreConfig
from platestore.exceptions import PlateRecordError, PlateStoreError
from platestore.listing import project_listing
from platestore.models.record import PlateRecord
from platestore.models.store import FileDescriptor, PlateLookup, StoreEntry, VersionedHandle
from platestore.normalize import normalize_plate, prepare_plate

_logger = logging.getLogger(__name__)


def _now_iso() -> str:
    """Current UTC time as ISO-8601 with milliseconds and a ``Z`` suffix."""
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class PlateStoreClient:
    """Async client for plate records stored one JSON file per plate.

    Usage::

        async with PlateStoreClient(config) as client:
            found = await client.lookup("ab12 cde")
            await client.save(found.plate, notes="seen twice", handle=found.handle)

    Writes use optimistic concurrency: pass the handle from the last
    fetch to :meth:`put_record`.  A stale handle raises
    :class:`PlateConflictError`; nothing is retried automatically.
    """

    def __init__(
        self,
        config: StoreConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        store: FileStore | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._store = store
        self._owns_store = store is None

    @property
    def config(self) -> StoreConfig:
        return self._config

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> PlateStoreClient:
        self._config.check()
        if self._owns_store:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._store = GitHubTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if self._owns_store:
            self._store = None

    def _require_store(self) -> FileStore:
        if self._store is None:
            raise PlateStoreError("Client not initialized. Use 'async with PlateStoreClient(...) as client:'")
        return self._store

    # ------------------------------------------------------------------
    # Record operations
    # ------------------------------------------------------------------

    async def list_records(self) -> list[StoreEntry]:
        """Fetch every record file in the records directory.

        A missing directory means no records yet and yields ``[]``.  Files
        are fetched concurrently; a file that fails to fetch is logged and
        left out instead of failing the whole listing.
        """
        store = self._require_store()
        descriptors = await store.list_directory(self._config.records_dir)
        if descriptors is None:
            _logger.debug("Records directory %s does not exist yet", self._config.records_dir)
            return []

        files = [descriptor for descriptor in descriptors if descriptor.is_file]
        results = await asyncio.gather(
            *(self._fetch_entry(store, descriptor) for descriptor in files),
            return_exceptions=True,
        )

        entries: list[StoreEntry] = []
        for descriptor, result in zip(files, results, strict=True):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                _logger.warning("Skipping %s: %s", descriptor.path, result)
                continue
            if result is not None:
                entries.append(result)
        _logger.debug("Loaded %d of %d record files", len(entries), len(files))
        return entries

    async def _fetch_entry(self, store: FileStore, descriptor: FileDescriptor) -> StoreEntry | None:
        remote = await store.get_file(descriptor.url or descriptor.path)
        if remote is None:
            _logger.debug("Record file %s vanished during listing", descriptor.path)
            return None
        return _contents.build_entry(descriptor.path, remote)

    async def get_record(self, plate_key: str) -> tuple[PlateRecord, VersionedHandle] | None:
        """Fetch the record stored for *plate_key* with its version handle.

        Returns ``None`` when no record exists for the key.
        """
        store = self._require_store()
        path = _contents.record_path(self._config, plate_key)
        remote = await store.get_file(path)
        if remote is None:
            return None

        text = _contents.decode_content(remote)
        try:
            record = PlateRecord.model_validate_json(text)
        except ValidationError as exc:
            raise PlateRecordError(f"{path} is not a valid plate record: {exc}", path=path) from exc
        return record, VersionedHandle(sha=remote.sha, path=remote.path or path)

    async def put_record(self, record: PlateRecord, handle: VersionedHandle | None = None) -> None:
        """Create or replace the file for *record*.

        Without *handle* the file must not exist yet.  With *handle* the
        write only succeeds while the stored file is still at that version.

        Raises
        ------
        PlateConflictError
            The handle is stale.
        PlateStoreApiError
            Any other rejection by the store.
        PlateTransportError
            The request did not complete.
        """
        store = self._require_store()
        path = _contents.record_path(self._config, record.plate)
        if handle is not None and handle.path and handle.path != path:
            raise ValueError(f"Handle for {handle.path} cannot be used to write {path}")

        await store.put_file(
            path,
            message=_contents.commit_message(record.plate, update=handle is not None),
            content=_contents.encode_record(record),
            sha=handle.sha if handle is not None else None,
        )
        _logger.info("Saved plate %s", record.plate)

    # ------------------------------------------------------------------
    # Flows
    # ------------------------------------------------------------------

    async def whoami(self) -> str:
        """Login behind the configured token, or ``""`` if it cannot be resolved."""
        if not self._config.token:
            return ""
        store = self._require_store()
        try:
            return parse_login(await store.get_current_user())
        except PlateStoreError:
            _logger.debug("Identity lookup failed", exc_info=True)
            return ""

    async def lookup(self, raw: str) -> PlateLookup:
        """Normalize user input and fetch the matching record, if any.

        An implausible plate only produces a :class:`PlateValidationWarning`;
        the lookup still runs.
        """
        plate, plausible = prepare_plate(raw)
        if not plate:
            raise ValueError("Enter a plate first")
        found = await self.get_record(plate)
        if found is None:
            return PlateLookup(plate=plate, plausible=plausible)
        record, handle = found
        return PlateLookup(plate=plate, plausible=plausible, record=record, handle=handle)

    async def save(
        self,
        plate: str,
        *,
        owner: str = "",
        notes: str = "",
        flagged: bool = False,
        flag_reason: str = "",
        handle: VersionedHandle | None = None,
    ) -> PlateRecord:
        """Build a fresh record for *plate* and write it.

        ``addedAt`` is stamped with the current time and ``addedBy`` with
        the token's login when it can be resolved.  Pass the handle from a
        previous lookup to update an existing record.
        """
        if not normalize_plate(plate):
            raise ValueError("No plate to save")
        record = PlateRecord(
            plate=plate,
            owner=owner,
            notes=notes,
            added_at=_now_iso(),
            added_by=await self.whoami(),
            flagged=flagged,
            flag_reason=flag_reason,
        )
        await self.put_record(record, handle)
        return record

    async def search(self, filter_text: str = "") -> list[StoreEntry]:
        """List all records and return those matching *filter_text*, sorted."""
        return project_listing(await self.list_records(), self._config, filter_text)
