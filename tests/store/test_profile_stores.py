from __future__ import annotations

import asyncio
import fnmatch

import pytest

from didprofiles.errors import ProfileStoreError
from didprofiles.store import (
    InMemoryProfileStore,
    JsonFileProfileStore,
    RedisProfileStore,
    SQLiteProfileStore,
    create_profile_store_from_env,
)


def run_async(coro):
    return asyncio.run(coro)


class _FakeRedis:
    def __init__(self) -> None:
        self.rows: dict[str, bytes] = {}
        self.pinged = False
        self.closed = False

    async def ping(self) -> bool:
        self.pinged = True
        return True

    async def get(self, key: str):
        return self.rows.get(key)

    async def set(self, key: str, value: str) -> None:
        self.rows[key] = value.encode("utf-8")

    async def delete(self, key: str) -> None:
        self.rows.pop(key, None)

    async def scan_iter(self, match: str):
        for key in list(self.rows):
            if fnmatch.fnmatch(key, match):
                yield key.encode("utf-8")

    async def aclose(self) -> None:
        self.closed = True


def test_in_memory_store_get_set_delete_keys():
    async def scenario() -> None:
        store = InMemoryProfileStore()
        await store.setup()
        assert await store.get("a") is None
        await store.set("a", "1")
        await store.set("b", "2")
        await store.save()
        assert await store.get("a") == "1"
        assert sorted(await store.keys()) == ["a", "b"]
        await store.delete("a")
        await store.delete("missing")
        assert await store.keys() == ["b"]

    run_async(scenario())


def test_json_file_store_survives_reopen(tmp_path):
    path = tmp_path / "nested" / "profiles.json"

    async def scenario() -> None:
        first = JsonFileProfileStore(path)
        await first.setup()
        assert await first.keys() == []
        await first.set("did:chia:1a", '{"x":1}')
        await first.set("did:chia:1b", '{"x":2}')
        await first.delete("did:chia:1b")
        await first.save()

        second = JsonFileProfileStore(path)
        await second.setup()
        assert await second.keys() == ["did:chia:1a"]
        assert await second.get("did:chia:1a") == '{"x":1}'

    run_async(scenario())
    assert not list(path.parent.glob("*.tmp"))


def test_json_file_store_unsaved_writes_are_not_durable(tmp_path):
    path = tmp_path / "profiles.json"

    async def scenario() -> None:
        first = JsonFileProfileStore(path)
        await first.setup()
        await first.set("a", "1")
        await first.save()
        await first.set("b", "2")

        second = JsonFileProfileStore(path)
        await second.setup()
        assert await second.keys() == ["a"]

    run_async(scenario())


def test_json_file_store_rejects_corrupt_file(tmp_path):
    path = tmp_path / "profiles.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(ProfileStoreError, match="Cannot read"):
        run_async(JsonFileProfileStore(path).setup())


def test_sqlite_store_survives_reopen(tmp_path):
    path = tmp_path / "profiles.sqlite3"

    async def scenario() -> None:
        first = SQLiteProfileStore(path)
        await first.setup()
        await first.set("a", "1")
        await first.set("a", "2")
        await first.set("b", "3")
        await first.delete("b")
        await first.save()
        await first.close()

        second = SQLiteProfileStore(path)
        await second.setup()
        assert await second.keys() == ["a"]
        assert await second.get("a") == "2"
        assert await second.get("missing") is None
        await second.close()

    run_async(scenario())


def test_sqlite_store_requires_setup(tmp_path):
    store = SQLiteProfileStore(tmp_path / "profiles.sqlite3")
    with pytest.raises(ProfileStoreError, match="before setup"):
        run_async(store.get("a"))


def test_redis_store_namespaces_keys():
    client = _FakeRedis()
    client.rows["other:x"] = b"ignored"

    async def scenario() -> None:
        store = RedisProfileStore(client, prefix="tests:profiles")
        await store.setup()
        await store.set("did:chia:1a", "v1")
        assert client.rows["tests:profiles:did:chia:1a"] == b"v1"
        assert await store.get("did:chia:1a") == "v1"
        assert await store.keys() == ["did:chia:1a"]
        await store.delete("did:chia:1a")
        assert await store.get("did:chia:1a") is None
        await store.close()

    run_async(scenario())
    assert client.pinged is True
    assert client.closed is True


def test_store_factory_defaults_to_in_memory(monkeypatch):
    monkeypatch.delenv("DIDPROFILES_STORE_BACKEND", raising=False)
    assert isinstance(create_profile_store_from_env(), InMemoryProfileStore)


def test_store_factory_builds_file_backends(monkeypatch, tmp_path):
    monkeypatch.setenv("DIDPROFILES_STORE_PATH", str(tmp_path / "cache.json"))
    monkeypatch.setenv("DIDPROFILES_STORE_BACKEND", "json")
    store = create_profile_store_from_env()
    assert isinstance(store, JsonFileProfileStore)
    assert store.path == tmp_path / "cache.json"

    monkeypatch.setenv("DIDPROFILES_STORE_BACKEND", "sqlite")
    assert isinstance(create_profile_store_from_env(), SQLiteProfileStore)


def test_store_factory_redis_with_injected_client(monkeypatch):
    monkeypatch.setenv("DIDPROFILES_STORE_BACKEND", "redis")
    monkeypatch.setenv("DIDPROFILES_REDIS_PREFIX", "tests:cache")
    injected = object()

    store = create_profile_store_from_env(redis_client=injected)

    assert isinstance(store, RedisProfileStore)
    assert store._redis is injected  # noqa: SLF001
    assert store._prefix == "tests:cache"  # noqa: SLF001


def test_store_factory_invalid_backend_raises(monkeypatch):
    monkeypatch.setenv("DIDPROFILES_STORE_BACKEND", "bad-backend")
    with pytest.raises(ValueError, match="Unknown DIDPROFILES_STORE_BACKEND"):
        create_profile_store_from_env()
