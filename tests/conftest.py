from __future__ import annotations

# pylint: disable=redefined-outer-name

import base64
import itertools
import json
from dataclasses import dataclass, field
from typing import Any

import pytest

from platestore.config import StoreConfig
from platestore.exceptions import PlateConflictError, PlateStoreApiError, PlateTransportError
from platestore.models.store import FileDescriptor, RemoteFile

FAKE_API = "https://api.test"


def encode_text(text: str) -> str:
    """Base64 encode *text* wrapped at 60 columns like the contents API does."""
    encoded = base64.b64encode(text.encode("utf-8")).decode("ascii")
    return "\n".join(encoded[i : i + 60] for i in range(0, len(encoded), 60)) + "\n"


@dataclass
class StoredFile:
    content: str
    sha: str


@dataclass
class FakeFileStore:
    """In-memory `FileStore` enforcing the contents API write rules."""

    files: dict[str, StoredFile] = field(default_factory=dict)
    directories: list[str] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)
    user: dict[str, Any] | Exception = field(default_factory=lambda: {"login": "octocat"})
    puts: list[dict[str, Any]] = field(default_factory=list)
    user_calls: int = 0
    _shas: Any = field(default_factory=lambda: (f"sha-{n}" for n in itertools.count(1)))

    def add(self, path: str, body: Any) -> str:
        text = body if isinstance(body, str) else json.dumps(body)
        sha = next(self._shas)
        self.files[path] = StoredFile(content=encode_text(text), sha=sha)
        return sha

    def text(self, path: str) -> str:
        return base64.b64decode(self.files[path].content.replace("\n", "")).decode("utf-8")

    async def list_directory(self, path: str) -> list[FileDescriptor] | None:
        prefix = path.rstrip("/") + "/"
        items = [
            FileDescriptor(path=name, url=f"{FAKE_API}/{name}", type="file", name=name.rsplit("/", 1)[-1])
            for name in self.files
            if name.startswith(prefix)
        ]
        items += [FileDescriptor(path=name, type="dir") for name in self.directories if name.startswith(prefix)]
        return items or None

    async def get_file(self, location: str) -> RemoteFile | None:
        path = location.removeprefix(f"{FAKE_API}/")
        if path in self.failing:
            raise PlateTransportError(f"Request to {path} failed: boom", endpoint=path)
        stored = self.files.get(path)
        if stored is None:
            return None
        return RemoteFile(path=path, sha=stored.sha, content=stored.content)

    async def put_file(self, path: str, *, message: str, content: str, sha: str | None = None) -> None:
        self.puts.append({"path": path, "message": message, "content": content, "sha": sha})
        current = self.files.get(path)
        if sha is None and current is not None:
            raise PlateStoreApiError(
                'HTTP 422 from put: "sha" wasn\'t supplied.',
                status_code=422,
                endpoint=path,
                body='{"message": "Invalid request.\\n\\n\\"sha\\" wasn\'t supplied."}',
            )
        if sha is not None and (current is None or current.sha != sha):
            raise PlateConflictError(f"Version conflict on {path}", status_code=409, endpoint=path)
        self.files[path] = StoredFile(content=content, sha=next(self._shas))

    async def get_current_user(self) -> dict[str, Any]:
        self.user_calls += 1
        if isinstance(self.user, Exception):
            raise self.user
        return self.user


@pytest.fixture
def config() -> StoreConfig:
    return StoreConfig(owner="octo", repo="plates-db", branch="main", token="tok-123", api_url=FAKE_API)


@pytest.fixture
def store() -> FakeFileStore:
    return FakeFileStore()
