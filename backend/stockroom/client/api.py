# Overview: Async HTTP client for the Stockroom API.

"""
Thin wrapper around ``httpx.AsyncClient``.

Every non-2xx response is raised as ``ApiError`` carrying the server's error
``kind``; transport failures are raised as ``ApiError`` with kind ``network``.
Callers never see raw httpx exceptions.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from .results import ErrorKind

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        status_code: int | None = None,
        payload: dict | None = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code
        self.payload = payload or {}

    def __repr__(self) -> str:
        return f"<ApiError kind={self.kind.value} status={self.status_code} message={str(self)!r}>"


def attachment_filename(response: httpx.Response, fallback: str) -> str:
    """File name from a Content-Disposition header, e.g. ``attachment; filename=x.pdf``."""
    disposition = response.headers.get("content-disposition", "")
    for part in disposition.split(";"):
        key, _, value = part.strip().partition("=")
        if key.lower() == "filename" and value:
            return value.strip().strip('"')
    return fallback


class ApiClient:
    def __init__(
        self,
        base_url: str,
        *,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ):
        kwargs: dict[str, Any] = {"base_url": base_url}
        if transport is not None:
            kwargs["transport"] = transport
        if timeout is not None:
            kwargs["timeout"] = timeout
        self._client = httpx.AsyncClient(**kwargs)
        self.token = token

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, token: str | None) -> dict[str, str]:
        token = token if token is not None else self.token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def send(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict | None = None,
        files: dict | None = None,
        token: str | None = None,
    ) -> httpx.Response:
        """Issue a request and return the raw response; raises ApiError on failure."""
        try:
            response = await self._client.request(
                method,
                path,
                json=json,
                params=params,
                files=files,
                headers=self._headers(token),
            )
        except httpx.HTTPError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise ApiError(str(e) or e.__class__.__name__, kind=ErrorKind.NETWORK) from e

        if response.is_error:
            try:
                payload = response.json()
            except ValueError:
                payload = {}
            if not isinstance(payload, dict):
                payload = {}
            message = payload.get("error") or payload.get("message") or response.reason_phrase
            raise ApiError(
                message,
                kind=ErrorKind.from_value(payload.get("kind")),
                status_code=response.status_code,
                payload=payload,
            )

        return response

    async def request(self, method: str, path: str, **kwargs) -> dict:
        """Like send(), but decodes the JSON body."""
        response = await self.send(method, path, **kwargs)
        try:
            return response.json()
        except ValueError as e:
            raise ApiError(
                f"Invalid JSON response from {path}",
                kind=ErrorKind.NETWORK,
                status_code=response.status_code,
            ) from e

    async def get(self, path: str, **kwargs) -> dict:
        return await self.request("GET", path, **kwargs)

    async def post(self, path: str, **kwargs) -> dict:
        return await self.request("POST", path, **kwargs)

    async def patch(self, path: str, **kwargs) -> dict:
        return await self.request("PATCH", path, **kwargs)

    async def delete(self, path: str, **kwargs) -> dict:
        return await self.request("DELETE", path, **kwargs)
