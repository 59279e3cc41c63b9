"""HTTP transport for the repository contents API."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Collection, Mapping
from typing import Any, Protocol
from urllib.parse import quote

import aiohttp

from platestore._api.user import ENDPOINT as USER_ENDPOINT
from platestore._constants import ACCEPT, CONFLICT_STATUS_CODES, USER_AGENT
from platestore._redact import redact_for_log
from platestore.config import StoreConfig
from platestore.exceptions import PlateConflictError, PlateStoreApiError, PlateTransportError
from platestore.models.store import FileDescriptor, RemoteFile

_logger = logging.getLogger(__name__)


class FileStore(Protocol):
    """Structural interface of the remote file store used by the client.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`GitHubTransport`) concrete.

    ``list_directory`` and ``get_file`` return ``None`` when the target does
    not exist.  ``put_file`` raises :class:`PlateConflictError` when *sha*
    no longer matches the stored file.
    """

    async def list_directory(self, path: str) -> list[FileDescriptor] | None:
        ...

    async def get_file(self, location: str) -> RemoteFile | None:
        ...

    async def put_file(self, path: str, *, message: str, content: str, sha: str | None = None) -> None:
        ...

    async def get_current_user(self) -> dict[str, Any]:
        ...


class GitHubTransport:
    """`FileStore` backed by the GitHub REST contents API."""

    def __init__(self, config: StoreConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    def _headers(self) -> dict[str, str]:
        headers = {"accept": ACCEPT, "user-agent": USER_AGENT}
        if self._config.token:
            headers["authorization"] = f"token {self._config.token}"
        return headers

    def _contents_endpoint(self, path: str) -> str:
        owner = quote(self._config.owner, safe="")
        repo = quote(self._config.repo, safe="")
        return f"/repos/{owner}/{repo}/contents/{path.lstrip('/')}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        body: Mapping[str, Any] | None = None,
        missing_ok: bool = False,
        conflict_codes: Collection[int] = (),
    ) -> Any:
        """Issue one request and return the decoded JSON body.

        ``endpoint`` is either an API path or an absolute URL taken from a
        previous response.  Returns ``None`` for 404 when *missing_ok* is set.
        """
        url = endpoint if endpoint.startswith(("http://", "https://")) else f"{self._config.api_url}{endpoint}"

        _logger.debug("%s %s", method, url)
        if body is not None:
            _logger.debug("Request body: %s", redact_for_log(body))

        try:
            async with self._http.request(
                method,
                url,
                params=params,
                json=body,
                headers=self._headers(),
            ) as resp:
                status = resp.status
                payload = await resp.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
            raise PlateTransportError(
                f"Request to {endpoint} failed: {exc or type(exc).__name__}",
                endpoint=endpoint,
            ) from exc

        if not 200 <= status < 300:
            # Error bodies are diagnostics only.
            text = payload.decode("utf-8", errors="replace")
        else:
            try:
                text = payload.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise PlateTransportError(f"Response from {endpoint} is not valid UTF-8", endpoint=endpoint) from exc

        if status == 404 and missing_ok:
            _logger.debug("%s %s -> 404", method, endpoint)
            return None
        if status in conflict_codes:
            raise PlateConflictError(
                f"Version conflict on {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
                body=text,
            )
        if not 200 <= status < 300:
            raise PlateStoreApiError(
                f"HTTP {status} from {endpoint}: {text[:200]}",
                status_code=status,
                endpoint=endpoint,
                body=text,
            )

        try:
            result = json.loads(text) if text else {}
        except json.JSONDecodeError as exc:
            raise PlateTransportError(
                f"Invalid JSON from {endpoint}: {text[:200]}",
                endpoint=endpoint,
            ) from exc

        _logger.debug("Response from %s: %s", endpoint, redact_for_log(result))
        return result

    async def list_directory(self, path: str) -> list[FileDescriptor] | None:
        endpoint = self._contents_endpoint(path)
        result = await self._request("GET", endpoint, params={"ref": self._config.branch}, missing_ok=True)
        if result is None:
            return None
        if not isinstance(result, list):
            raise PlateTransportError(f"Expected a directory listing from {endpoint}", endpoint=endpoint)
        return [FileDescriptor.model_validate(item) for item in result if isinstance(item, dict)]

    async def get_file(self, location: str) -> RemoteFile | None:
        """Fetch a file by repository path or by the ``url`` of a descriptor."""
        if location.startswith(("http://", "https://")):
            endpoint, params = location, None
        else:
            endpoint, params = self._contents_endpoint(location), {"ref": self._config.branch}
        result = await self._request("GET", endpoint, params=params, missing_ok=True)
        if result is None:
            return None
        if not isinstance(result, dict) or not isinstance(result.get("sha"), str) or not result["sha"]:
            raise PlateTransportError(f"Expected a file object from {endpoint}", endpoint=endpoint)
        return RemoteFile.model_validate(result)

    async def put_file(self, path: str, *, message: str, content: str, sha: str | None = None) -> None:
        body: dict[str, Any] = {
            "message": message,
            "content": content,
            "branch": self._config.branch,
        }
        if sha is not None:
            body["sha"] = sha
        await self._request(
            "PUT",
            self._contents_endpoint(path),
            body=body,
            conflict_codes=CONFLICT_STATUS_CODES,
        )

    async def get_current_user(self) -> dict[str, Any]:
        result = await self._request("GET", USER_ENDPOINT)
        return result if isinstance(result, dict) else {}
