"""
Shared fixtures: one factory per session-store backend, plus an in-process
stand-in for a Redis-over-HTTP endpoint so the key-value store runs without
network access.
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

from classrate.infrastructure.kv.redis_rest_client import RedisRestClient
from classrate.infrastructure.store.json_store import JsonSessionStore
from classrate.infrastructure.store.kv_store import KvSessionStore
from classrate.infrastructure.store.memory_store import MemorySessionStore
from classrate.infrastructure.store.sql_store import SqlSessionStore

KV_URL = "https://kv.example.test"
KV_TOKEN = "test-token"


class FakeRedisRest:
    """Implements the handful of Redis commands the key-value store sends."""

    def __init__(self) -> None:
        self.strings: dict[str, str] = {}
        self.zsets: dict[str, dict[str, float]] = {}
        self.commands: list[list[str]] = []
        self.fail_with: int | None = None

    def execute(self, cmd: list[str]):
        self.commands.append(cmd)
        name, args = cmd[0].upper(), cmd[1:]

        if name == "PING":
            return "PONG"
        if name == "GET":
            return self.strings.get(args[0])
        if name == "MGET":
            return [self.strings.get(k) for k in args]
        if name == "SET":
            key, value, *opts = args
            if "XX" in [o.upper() for o in opts] and key not in self.strings:
                return None
            self.strings[key] = value
            return "OK"
        if name == "DEL":
            return sum(1 for k in args if self.strings.pop(k, None) is not None)
        if name == "ZADD":
            key, score, member = args
            zset = self.zsets.setdefault(key, {})
            added = member not in zset
            zset[member] = float(score)
            return int(added)
        if name == "ZREM":
            key, member = args
            return 1 if self.zsets.get(key, {}).pop(member, None) is not None else 0
        if name == "ZRANGE":
            key, start, stop, *opts = args
            members = sorted(self.zsets.get(key, {}).items(), key=lambda kv: (kv[1], kv[0]))
            ordered = [m for m, _ in members]
            if "REV" in [o.upper() for o in opts]:
                ordered.reverse()
            stop_i = int(stop)
            return ordered[int(start) : (None if stop_i == -1 else stop_i + 1)]
        raise ValueError(f"ERR unknown command '{name}'")

    def handler(self, request: httpx.Request) -> httpx.Response:
        if request.headers.get("Authorization") != f"Bearer {KV_TOKEN}":
            return httpx.Response(401, json={"error": "Unauthorized"})
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": "service unavailable"})

        body = json.loads(request.content)
        if request.url.path in ("/pipeline", "/multi-exec"):
            replies = []
            for cmd in body:
                try:
                    replies.append({"result": self.execute(cmd)})
                except ValueError as e:
                    replies.append({"error": str(e)})
            return httpx.Response(200, json=replies)

        try:
            return httpx.Response(200, json={"result": self.execute(body)})
        except ValueError as e:
            return httpx.Response(400, json={"error": str(e)})


@pytest.fixture
def fake_redis() -> FakeRedisRest:
    return FakeRedisRest()


@pytest.fixture
def kv_client(fake_redis: FakeRedisRest) -> RedisRestClient:
    return RedisRestClient(url=KV_URL, token=KV_TOKEN, transport=httpx.MockTransport(fake_redis.handler))


def _make_store(kind: str, tmp_path: Path, kv_client: RedisRestClient):
    if kind == "memory":
        return MemorySessionStore()
    if kind == "json":
        return JsonSessionStore(data_dir=str(tmp_path / "sessions"))
    if kind == "sql":
        return SqlSessionStore(url=f"sqlite:///{tmp_path / 'ratings.db'}")
    return KvSessionStore(client=kv_client, key_prefix="test")


@pytest.fixture(params=["memory", "json", "sql", "kv"])
def store(request, tmp_path: Path, kv_client: RedisRestClient):
    return _make_store(request.param, tmp_path, kv_client)


@pytest.fixture
def memory_store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def client(memory_store: MemorySessionStore):
    from classrate.main import app
    from classrate.wiring.dependencies import set_session_store

    set_session_store(memory_store)
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        set_session_store(None)
