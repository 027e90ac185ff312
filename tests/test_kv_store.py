from __future__ import annotations

import json

import httpx
import pytest

from classrate.application.exceptions import ConfigurationError, PersistenceFailure
from classrate.domain.entities.criterion import Criterion
from classrate.infrastructure.kv.redis_rest_client import RedisRestClient
from classrate.infrastructure.store.kv_store import KvSessionStore

from conftest import KV_TOKEN, KV_URL

CRITERIA = (Criterion("clarity", "Clarity"),)


def test_session_is_one_document_plus_index_entry(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client, key_prefix="room")

    session = store.create_session("Alice", "Teacher", CRITERIA)

    document = json.loads(fake_redis.strings[f"room:session:{session.id}"])
    assert document["presenter"] == "Alice"
    assert document["evaluations"] == []
    assert session.id in fake_redis.zsets["room:sessions"]


def test_evaluation_rewrites_the_document(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client, key_prefix="room")
    session = store.create_session("Alice", "Teacher", CRITERIA)

    store.add_evaluation_to_session(session.id, "Bob", {"clarity": 5}, 5.0)

    document = json.loads(fake_redis.strings[f"room:session:{session.id}"])
    assert [e["evaluator"] for e in document["evaluations"]] == ["Bob"]


def test_evaluation_does_not_resurrect_deleted_session(kv_client, fake_redis, monkeypatch):
    store = KvSessionStore(client=kv_client, key_prefix="room")
    session = store.create_session("Alice", "Teacher", CRITERIA)
    snapshot = store.get_session(session.id)
    store.delete_session(session.id)
    # simulate the read having happened before the delete
    monkeypatch.setattr(store, "get_session", lambda session_id: snapshot)

    assert store.add_evaluation_to_session(session.id, "Bob", {"clarity": 5}, 5.0) is None
    assert f"room:session:{session.id}" not in fake_redis.strings


def test_ensure_ready_pings_once(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client)

    store.ensure_ready()
    store.list_sessions()
    store.list_sessions()

    assert [c[0] for c in fake_redis.commands].count("PING") == 1


def test_stale_index_entries_are_dropped(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client, key_prefix="room")
    kept = store.create_session("Alice", "Teacher", CRITERIA)
    gone = store.create_session("Bob", "Teacher", CRITERIA)
    del fake_redis.strings[f"room:session:{gone.id}"]

    assert [s.id for s in store.list_sessions()] == [kept.id]
    assert gone.id not in fake_redis.zsets["room:sessions"]


def test_backend_error_becomes_persistence_failure(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client)
    store.ensure_ready()
    fake_redis.fail_with = 503

    with pytest.raises(PersistenceFailure):
        store.list_sessions()


def test_corrupt_document_is_persistence_failure(kv_client, fake_redis):
    store = KvSessionStore(client=kv_client, key_prefix="room")
    fake_redis.strings["room:session:session_bad_000000"] = "{not json"

    with pytest.raises(PersistenceFailure):
        store.get_session("session_bad_000000")


def test_wrong_token_is_rejected(fake_redis):
    client = RedisRestClient(url=KV_URL, token="wrong", transport=httpx.MockTransport(fake_redis.handler))

    with pytest.raises(PersistenceFailure):
        KvSessionStore(client=client).ensure_ready()


def test_unreachable_endpoint():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = RedisRestClient(url=KV_URL, token=KV_TOKEN, transport=httpx.MockTransport(refuse))

    with pytest.raises(PersistenceFailure):
        client.ping()


def test_error_reply_inside_pipeline(kv_client):
    with pytest.raises(PersistenceFailure):
        kv_client.pipeline([["PING"], ["BOGUS"]])


@pytest.mark.parametrize("url,token", [("", KV_TOKEN), (KV_URL, "")])
def test_client_requires_url_and_token(url, token):
    with pytest.raises(ConfigurationError):
        RedisRestClient(url=url, token=token)
