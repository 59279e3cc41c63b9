"""platestore - Async Python client for vehicle-plate records kept in a repository."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("platestore")
except PackageNotFoundError:
    __version__ = "0+local"
from platestore.client import PlateStoreClient
from platestore.config import StoreConfig, load_config, save_config
from platestore.exceptions import (
    PlateConfigError,
    PlateConflictError,
    PlateRecordError,
    PlateStoreApiError,
    PlateStoreError,
    PlateTransportError,
    PlateValidationWarning,
)
from platestore.listing import build_rows, display_key, project_listing
from platestore.models import (
    FileDescriptor,
    ListingRow,
    PlateLookup,
    PlateRecord,
    RemoteFile,
    StoreEntry,
    VersionedHandle,
)
from platestore.normalize import is_plausible_plate, normalize_plate

__all__ = [
    "__version__",
    "FileDescriptor",
    "ListingRow",
    "PlateConfigError",
    "PlateConflictError",
    "PlateLookup",
    "PlateRecord",
    "PlateRecordError",
    "PlateStoreApiError",
    "PlateStoreClient",
    "PlateStoreError",
    "PlateTransportError",
    "PlateValidationWarning",
    "RemoteFile",
    "StoreConfig",
    "StoreEntry",
    "VersionedHandle",
    "build_rows",
    "display_key",
    "is_plausible_plate",
    "load_config",
    "normalize_plate",
    "project_listing",
    "save_config",
]
