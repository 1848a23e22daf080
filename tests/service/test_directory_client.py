from __future__ import annotations

import asyncio
import json
import time

import pytest

from didprofiles import ProfileService, ServiceConfig
from didprofiles.directory import DirectoryClient, HttpReply
from didprofiles.errors import DirectoryCallError, DirectoryProtocolError

DID = "did:chia:1abcdefghijklmnopqrstuvwxyz9876"


def run_async(coro):
    return asyncio.run(coro)


class _Recorder:
    def __init__(self, reply: HttpReply) -> None:
        self.reply = reply
        self.requests: list[tuple[str, str, bytes | None, float]] = []

    def __call__(self, method: str, url: str, body: bytes | None, timeout_s: float) -> HttpReply:
        self.requests.append((method, url, body, timeout_s))
        return self.reply


def json_reply(status: int, payload) -> HttpReply:
    return HttpReply(status=status, body=json.dumps(payload).encode("utf-8"))


def make_client(send, **kwargs) -> DirectoryClient:
    return DirectoryClient("https://api.example.test/", send=send, **kwargs)


def test_fetch_profile_parses_record():
    send = _Recorder(
        json_reply(
            200,
            {"encoded_id": DID, "name": "Alice", "avatar_uri": "https://img/a.png", "bio": "x"},
        )
    )
    profile = run_async(make_client(send, timeout_s=3.0).fetch_profile(DID))

    assert profile.id == DID
    assert profile.display_name == "Alice"
    assert profile.avatar_uri == "https://img/a.png"
    assert profile.is_unknown is False
    assert send.requests == [("GET", f"https://api.example.test/profile/{DID}", None, 3.0)]


def test_fetch_profile_without_name_synthesizes_one():
    send = _Recorder(json_reply(200, {"encoded_id": DID, "name": "", "avatar_uri": None}))
    profile = run_async(make_client(send).fetch_profile(DID))

    assert profile.display_name == "1abcdefghi...9876"
    assert profile.is_unknown is False


@pytest.mark.parametrize("status", [200, 404])
def test_unknown_profile_marker_yields_unknown_profile(status):
    send = _Recorder(json_reply(status, {"detail": "Unknown profile."}))
    profile = run_async(make_client(send).fetch_profile(DID))

    assert profile.is_unknown is True
    assert profile.avatar_uri is None
    assert profile.display_name == "1abcdefghi...9876"


def test_error_status_raises_call_error():
    send = _Recorder(json_reply(500, {"detail": "Internal error"}))
    with pytest.raises(DirectoryCallError, match="HTTP 500"):
        run_async(make_client(send).fetch_profile(DID))


def test_error_status_with_html_body_raises_call_error():
    send = _Recorder(HttpReply(status=502, body=b"<html>bad gateway</html>"))
    with pytest.raises(DirectoryCallError, match="HTTP 502"):
        run_async(make_client(send).fetch_profile(DID))


def test_invalid_json_raises_protocol_error():
    send = _Recorder(HttpReply(status=200, body=b"not-json"))
    with pytest.raises(DirectoryProtocolError, match="Invalid JSON"):
        run_async(make_client(send).fetch_profile(DID))


def test_wrong_shape_raises_protocol_error():
    send = _Recorder(json_reply(200, ["not", "an", "object"]))
    with pytest.raises(DirectoryProtocolError, match="Invalid profile payload"):
        run_async(make_client(send).fetch_profile(DID))


def test_transport_error_propagates_as_call_error():
    def send(method, url, body, timeout_s):
        raise DirectoryCallError("Network error calling profile directory")

    with pytest.raises(DirectoryCallError, match="Network error"):
        run_async(make_client(send).fetch_profile(DID))


def test_slow_transport_times_out():
    def send(method, url, body, timeout_s):
        time.sleep(0.3)
        return HttpReply(status=200, body=b"{}")

    with pytest.raises(DirectoryCallError, match="Timed out"):
        run_async(make_client(send, timeout_s=0.05).fetch_profile(DID))


def test_fetch_profiles_posts_ids_and_keeps_requested_records():
    send = _Recorder(
        json_reply(
            200,
            [
                {"encoded_id": "did:a", "name": "Alpha", "avatar_uri": None},
                {"encoded_id": "did:z", "name": "Not requested"},
                {"name": "No id"},
            ],
        )
    )
    found = run_async(make_client(send).fetch_profiles(["did:a", "did:b"]))

    assert list(found) == ["did:a"]
    assert found["did:a"].display_name == "Alpha"
    method, url, body, _ = send.requests[0]
    assert method == "POST"
    assert url == "https://api.example.test/profiles"
    assert json.loads(body) == {"ids": ["did:a", "did:b"]}


def test_fetch_profiles_accepts_items_envelope():
    send = _Recorder(json_reply(200, {"items": [{"encoded_id": "did:a", "name": "Alpha"}]}))
    found = run_async(make_client(send).fetch_profiles(["did:a"]))
    assert found["did:a"].display_name == "Alpha"


def test_fetch_profiles_rejects_malformed_payload():
    send = _Recorder(json_reply(200, {"unexpected": True}))
    with pytest.raises(DirectoryProtocolError, match="batch"):
        run_async(make_client(send).fetch_profiles(["did:a"]))


def test_fetch_profiles_error_status_is_not_treated_as_unknown():
    send = _Recorder(json_reply(404, {"detail": "Unknown profile."}))
    with pytest.raises(DirectoryCallError, match="HTTP 404"):
        run_async(make_client(send).fetch_profiles(["did:a"]))


@pytest.mark.parametrize(
    ("reply", "cached"),
    [
        (json_reply(404, {"detail": "Unknown profile."}), True),
        (json_reply(503, {"detail": "Service unavailable"}), False),
        (json_reply(503, {"detail": "Unknown profile?"}), False),
    ],
)
def test_service_caches_not_found_marker_but_not_error_statuses(reply, cached):
    async def scenario() -> None:
        send = _Recorder(reply)
        service = ProfileService(
            directory=make_client(send),
            config=ServiceConfig(delay_between_requests_ms=0),
        )
        first = await service.get_profile(DID)
        second = await service.get_profile(DID)

        assert first.is_unknown is True
        assert second == first
        assert len(send.requests) == (1 if cached else 2)

    run_async(scenario())
