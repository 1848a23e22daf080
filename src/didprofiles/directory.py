"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

HTTP client for the remote profile directory (MintGarden profile API).
"""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.parse
import urllib.request
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import DirectoryCallError, DirectoryProtocolError
from .naming import FallbackNamer, display_name_for, truncated_name
from .runtime.timeouts import await_with_timeout
from .types import ProfileMetadata

UNKNOWN_PROFILE_DETAIL = "Unknown profile."


@dataclass(frozen=True, slots=True)
class HttpReply:
    """Raw HTTP status and body."""

    status: int
    body: bytes


# (method, url, body, timeout_s) -> reply
HttpSend = Callable[[str, str, bytes | None, float], HttpReply]


class ProfileDirectory(Protocol):
    """Lookup operations the service needs from a profile directory."""

    async def fetch_profile(self, did: str) -> ProfileMetadata: ...

    async def fetch_profiles(self, dids: Sequence[str]) -> dict[str, ProfileMetadata]: ...


class _ProfileRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    encoded_id: str | None = None
    name: str | None = None
    avatar_uri: str | None = None


class _BatchEnvelope(BaseModel):
    model_config = ConfigDict(extra="ignore")

    items: list[_ProfileRecord]


def _is_unknown_marker(payload: Any) -> bool:
    return isinstance(payload, dict) and payload.get("detail") == UNKNOWN_PROFILE_DETAIL


class DirectoryClient(ProfileDirectory):
    """
    Resolve identifiers against the directory's single and batch endpoints.

    Every failure is raised as a `DirectoryError` subclass: transport,
    timeout and status failures as `DirectoryCallError`, undecodable or
    mis-shaped bodies as `DirectoryProtocolError`. A "not found" answer is
    not an error; it yields an unknown profile.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        headers: dict[str, str] | None = None,
        namer: FallbackNamer = truncated_name,
        send: HttpSend | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._headers = dict(headers or {})
        self._namer = namer
        self._send = send or self.http_send

    @property
    def base_url(self) -> str:
        return self._base_url

    async def fetch_profile(self, did: str) -> ProfileMetadata:
        url = f"{self._base_url}/profile/{urllib.parse.quote(did, safe=':')}"
        reply = await self._request("GET", url, None)
        payload = self._decode(reply, allow_unknown=True)
        if _is_unknown_marker(payload):
            return self._unknown(did)
        try:
            record = _ProfileRecord.model_validate(payload)
        except ValidationError as e:
            raise DirectoryProtocolError(f"Invalid profile payload for '{did}'") from e
        return self._to_profile(did, record)

    async def fetch_profiles(self, dids: Sequence[str]) -> dict[str, ProfileMetadata]:
        """Resolve many identifiers in one call; ids missing from the reply are omitted."""
        wanted = set(dids)
        body = json.dumps({"ids": list(dids)}).encode("utf-8")
        reply = await self._request("POST", f"{self._base_url}/profiles", body)
        payload = self._decode(reply, allow_unknown=False)
        if isinstance(payload, list):
            payload = {"items": payload}
        try:
            envelope = _BatchEnvelope.model_validate(payload)
        except ValidationError as e:
            raise DirectoryProtocolError("Invalid batch profile payload") from e

        out: dict[str, ProfileMetadata] = {}
        for record in envelope.items:
            if record.encoded_id is None or record.encoded_id not in wanted:
                continue
            out[record.encoded_id] = self._to_profile(record.encoded_id, record)
        return out

    def _to_profile(self, did: str, record: _ProfileRecord) -> ProfileMetadata:
        name = (record.name or "").strip()
        return ProfileMetadata(
            id=did,
            display_name=name or display_name_for(did, self._namer),
            avatar_uri=record.avatar_uri or None,
            is_unknown=False,
        )

    def _unknown(self, did: str) -> ProfileMetadata:
        return ProfileMetadata(
            id=did,
            display_name=display_name_for(did, self._namer),
            avatar_uri=None,
            is_unknown=True,
        )

    def _decode(self, reply: HttpReply, *, allow_unknown: bool) -> Any:
        try:
            payload = json.loads(reply.body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            if 200 <= reply.status < 300:
                raise DirectoryProtocolError("Invalid JSON response from directory") from e
            payload = None

        # The directory answers unknown ids with 404 plus this marker. That is a
        # definitive answer at any status and gets cached; other errors do not.
        if allow_unknown and _is_unknown_marker(payload):
            return payload
        if not 200 <= reply.status < 300:
            raise DirectoryCallError(f"HTTP {reply.status} from profile directory")
        return payload

    async def _request(self, method: str, url: str, body: bytes | None) -> HttpReply:
        try:
            return await await_with_timeout(
                asyncio.to_thread(self._send, method, url, body, self._timeout_s),
                self._timeout_s,
            )
        except asyncio.TimeoutError as e:
            raise DirectoryCallError(f"Timed out calling {url}") from e

    def http_send(
        self, method: str, url: str, body: bytes | None, timeout_s: float
    ) -> HttpReply:
        headers = {"Accept": "application/json", **self._headers}
        if body is not None:
            headers["Content-Type"] = "application/json"
        req = urllib.request.Request(url, data=body, method=method, headers=headers)
        try:
            with urllib.request.urlopen(req, timeout=timeout_s) as resp:  # noqa: S310
                return HttpReply(status=resp.status, body=resp.read())
        except urllib.error.HTTPError as e:
            try:
                error_body = e.read()
            except Exception:  # noqa: BLE001
                error_body = b""
            return HttpReply(status=e.code, body=error_body)
        except (urllib.error.URLError, TimeoutError, OSError) as e:
            raise DirectoryCallError(f"Network error calling {url}: {e}") from e
