"""Wire models for the remote file store."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from platestore.models.record import PlateRecord


class VersionedHandle(BaseModel):
    """Version token of a fetched record file.

    Opaque to the client: it is handed back unchanged on the next write so
    the store can reject the write if the file changed in between.
    """

    model_config = ConfigDict(frozen=True)

    sha: str = Field(min_length=1)
    path: str = ""


class FileDescriptor(BaseModel):
    """One item of a directory listing."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str
    url: str = ""
    type: str = "file"
    name: str = ""
    sha: str = ""

    @property
    def is_file(self) -> bool:
        return self.type == "file"


class RemoteFile(BaseModel):
    """A single fetched file with its still-encoded payload."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    path: str = ""
    sha: str = Field(min_length=1)
    content: str = ""
    encoding: str = "base64"


class StoreEntry(BaseModel):
    """A record file as returned by a listing.

    ``data`` holds the parsed JSON object when the body is structured;
    ``raw`` always holds the decoded text so unparseable files are not lost.
    """

    model_config = ConfigDict(frozen=True)

    path: str
    raw: str = ""
    data: dict[str, Any] | None = None
    handle: VersionedHandle | None = None

    @property
    def record(self) -> PlateRecord | None:
        """The body validated as a :class:`PlateRecord`, if it is one."""
        if self.data is None:
            return None
        try:
            return PlateRecord.model_validate(self.data)
        except ValidationError:
            return None


class PlateLookup(BaseModel):
    """Outcome of looking up user-entered plate text."""

    model_config = ConfigDict(frozen=True)

    plate: str
    """Normalized plate that was looked up."""
    plausible: bool
    """Result of the advisory format check."""
    record: PlateRecord | None = None
    handle: VersionedHandle | None = None

    @property
    def exists(self) -> bool:
        return self.record is not None
