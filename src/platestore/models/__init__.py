"""Data models for platestore."""

from platestore.models.listing import ListingRow
from platestore.models.record import PlateRecord
from platestore.models.store import FileDescriptor, PlateLookup, RemoteFile, StoreEntry, VersionedHandle

__all__ = [
    "FileDescriptor",
    "ListingRow",
    "PlateLookup",
    "PlateRecord",
    "RemoteFile",
    "StoreEntry",
    "VersionedHandle",
]
