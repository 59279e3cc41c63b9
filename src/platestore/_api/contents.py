"""Record file helpers for the repository contents API.

Pure functions shared by the client: where a plate lives, how a record
body is encoded for transport and how fetched files are turned back into
records or listing entries.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any
from urllib.parse import quote

from platestore._constants import RECORD_SUFFIX
from platestore.config import StoreConfig
from platestore.exceptions import PlateTransportError
from platestore.models.record import PlateRecord
from platestore.models.store import RemoteFile, StoreEntry, VersionedHandle


def record_path(config: StoreConfig, plate: str) -> str:
    """Repository path of the record file for *plate*."""
    return f"{config.records_dir.strip('/')}/{quote(plate, safe='')}{RECORD_SUFFIX}"


def key_from_path(config: StoreConfig, path: str) -> str:
    """Strip the records directory and the file suffix from *path*."""
    prefix = config.records_dir.strip("/") + "/"
    key = path[len(prefix) :] if path.startswith(prefix) else path
    if key.endswith(RECORD_SUFFIX):
        key = key[: -len(RECORD_SUFFIX)]
    return key


def commit_message(plate: str, *, update: bool) -> str:
    return f"Update plate {plate}" if update else f"Add plate {plate}"


def encode_record(record: PlateRecord) -> str:
    """Serialize *record* as indented JSON, base64 encoded for the PUT body."""
    text = json.dumps(record.dump_wire(), indent=2, ensure_ascii=False)
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def decode_content(remote: RemoteFile) -> str:
    """Decode the payload of a fetched file to text.

    The API wraps base64 payloads at 60 columns, so embedded newlines are
    removed before decoding.
    """
    if remote.encoding not in ("base64", ""):
        raise PlateTransportError(
            f"Unsupported content encoding {remote.encoding!r} for {remote.path}",
            endpoint=remote.path,
        )
    payload = remote.content.replace("\n", "").replace("\r", "")
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise PlateTransportError(f"Invalid base64 content for {remote.path}", endpoint=remote.path) from exc
    return data.decode("utf-8", errors="replace")


def parse_body(text: str) -> dict[str, Any] | None:
    """Parse *text* as a JSON object, returning ``None`` for anything else."""
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        return None
    return value if isinstance(value, dict) else None


def build_entry(path: str, remote: RemoteFile) -> StoreEntry:
    """Turn a fetched file into a listing entry, keeping raw text on parse failure."""
    text = decode_content(remote)
    return StoreEntry(
        path=path,
        raw=text,
        data=parse_body(text),
        handle=VersionedHandle(sha=remote.sha, path=remote.path or path),
    )
