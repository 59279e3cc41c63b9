"""Filter, sort and summarise listed records for display.

Pure functions over the entries returned by
:meth:`PlateStoreClient.list_records`; no I/O happens here.
"""

from __future__ import annotations

from collections.abc import Iterable

from platestore._api.contents import key_from_path
from platestore.config import StoreConfig
from platestore.models.listing import ListingRow
from platestore.models.store import StoreEntry


def display_key(entry: StoreEntry, config: StoreConfig) -> str:
    """Key shown for *entry*.

    The body's ``plate`` when the file parsed as a JSON object carrying
    one, otherwise the key derived from the storage path.
    """
    if entry.data is not None:
        plate = entry.data.get("plate")
        if isinstance(plate, str) and plate:
            return plate
    return key_from_path(config, entry.path)


def project_listing(
    entries: Iterable[StoreEntry],
    config: StoreConfig,
    filter_text: str = "",
) -> list[StoreEntry]:
    """Return the entries whose key contains *filter_text*, sorted by key.

    Matching is case-insensitive.  An empty filter keeps everything.
    Entries with equal keys keep their input order.
    """
    needle = filter_text.strip().upper()
    keyed = [(display_key(entry, config), entry) for entry in entries]
    if needle:
        keyed = [(key, entry) for key, entry in keyed if needle in key.upper()]
    keyed.sort(key=lambda pair: pair[0])
    return [entry for _key, entry in keyed]


def build_row(entry: StoreEntry, config: StoreConfig) -> ListingRow:
    data = entry.data or {}
    flagged = bool(data.get("flagged"))
    return ListingRow(
        key=display_key(entry, config),
        notes=str(data.get("notes") or ""),
        flagged=flagged,
        flag_reason=str(data.get("flagReason") or "") if flagged else "",
        added_at=str(data.get("addedAt") or "unknown"),
        path=entry.path,
    )


def build_rows(
    entries: Iterable[StoreEntry],
    config: StoreConfig,
    filter_text: str = "",
) -> list[ListingRow]:
    """Filter and sort *entries*, then summarise each one for display."""
    return [build_row(entry, config) for entry in project_listing(entries, config, filter_text)]
