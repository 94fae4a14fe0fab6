"""HTTP adapter calling the remote import service and session endpoints."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Sequence
from dataclasses import dataclass
from http.client import HTTPException
from typing import Any, Protocol
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from peeriq.application.ports.import_service_gateway_port import (
    ImportServiceError,
    ImportServiceGatewayPort,
    ImportServiceReply,
)
from peeriq.domain.user_import.row_validator import ImportUserRecord

IMPORT_USERS_PATH = "/functions/v1/import-users"
LOGIN_PATH = "/auth/login"
_NON_2XX_MESSAGE = "Import service returned a non-2xx status code"


@dataclass(frozen=True)
class HttpResponse:
    """Normalized HTTP response data returned by transport implementations."""

    status_code: int
    body_bytes: bytes


class HttpTransportPort(Protocol):
    """Transport protocol used by the import service adapter."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> HttpResponse:
        """Execute one HTTP request and return normalized response data."""


class UrllibHttpTransport:
    """urllib-based async transport running blocking calls in a worker thread."""

    async def request(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> HttpResponse:
        return await asyncio.to_thread(
            self._request_sync,
            method=method,
            url=url,
            headers=headers,
            body=body,
            timeout_seconds=timeout_seconds,
        )

    def _request_sync(
        self,
        *,
        method: str,
        url: str,
        headers: dict[str, str],
        body: bytes | None,
        timeout_seconds: float,
    ) -> HttpResponse:
        request = Request(url=url, data=body, headers=headers, method=method)
        try:
            with urlopen(request, timeout=timeout_seconds) as response:
                return HttpResponse(status_code=int(response.getcode()), body_bytes=response.read())
        except HTTPError as error:
            return HttpResponse(status_code=int(error.code), body_bytes=error.read())
        except (OSError, HTTPException) as error:
            # urlopen does not wrap dropped connections in URLError.
            raise ImportServiceError(f"Could not reach import service: {error}") from error


class HttpImportServiceGateway(ImportServiceGatewayPort):
    """Submit validated batches to `POST /functions/v1/import-users`."""

    def __init__(
        self,
        *,
        base_url: str,
        transport: HttpTransportPort | None = None,
        timeout_seconds: float = 60.0,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._transport = transport or UrllibHttpTransport()
        self._timeout_seconds = timeout_seconds

    async def submit_users(
        self,
        *,
        access_token: str,
        users: Sequence[ImportUserRecord],
    ) -> ImportServiceReply:
        """Send the whole batch in one request and adopt the reported counts."""

        response = await self._post_json(
            path=IMPORT_USERS_PATH,
            payload={"users": [user.to_payload() for user in users]},
            access_token=access_token,
        )
        body = _decode_json_object(response.body_bytes)
        if not 200 <= response.status_code < 300:
            message = body.get("error") if body is not None else None
            raise ImportServiceError(message if isinstance(message, str) else _NON_2XX_MESSAGE)
        if body is None:
            raise ImportServiceError("Import service returned an invalid response body")

        errors = body.get("errors") or []
        return ImportServiceReply(
            successful=_as_count(body.get("successful")),
            failed=_as_count(body.get("failed")),
            errors=tuple(str(item) for item in errors) if isinstance(errors, list) else (),
        )

    async def sign_in(self, *, email: str, password: str) -> str:
        """Exchange email and password for a bearer token."""

        response = await self._post_json(
            path=LOGIN_PATH,
            payload={"email": email, "password": password},
            access_token=None,
        )
        body = _decode_json_object(response.body_bytes)
        if not 200 <= response.status_code < 300 or body is None:
            detail = body.get("detail") if body is not None else None
            raise ImportServiceError(
                detail if isinstance(detail, str) else f"sign-in failed ({response.status_code})"
            )
        token = body.get("access_token")
        if not isinstance(token, str) or not token:
            raise ImportServiceError("sign-in response did not include an access token")
        return token

    async def _post_json(
        self,
        *,
        path: str,
        payload: dict[str, Any],
        access_token: str | None,
    ) -> HttpResponse:
        headers = {"Content-Type": "application/json", "Accept": "application/json"}
        if access_token is not None:
            headers["Authorization"] = f"Bearer {access_token}"
        return await self._transport.request(
            method="POST",
            url=f"{self._base_url}{path}",
            headers=headers,
            body=json.dumps(payload).encode("utf-8"),
            timeout_seconds=self._timeout_seconds,
        )


class StaticSessionProvider:
    """Session provider holding one bearer token obtained out of band."""

    def __init__(self, access_token: str | None) -> None:
        self._access_token = access_token.strip() if access_token else None

    def get_current_session(self) -> str | None:
        return self._access_token or None


def _decode_json_object(body_bytes: bytes) -> dict[str, Any] | None:
    try:
        decoded = json.loads(body_bytes.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        return None
    if not isinstance(decoded, dict):
        return None
    return decoded


def _as_count(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        return 0
    return value
