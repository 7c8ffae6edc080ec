"""Unit tests for angel_gateway.session_store."""

import threading

from angel_gateway.session_store import InMemorySessionStore, SessionStore


class TestInMemorySessionStore:
    """Tests for put/get/delete semantics."""

    def test_is_a_session_store(self, store):
        assert isinstance(store, SessionStore)

    def test_get_after_put_returns_record(self, store, session_record):
        record = session_record()
        store.put("A123456", record)
        assert store.get("A123456") is record

    def test_get_unknown_returns_none(self, store):
        assert store.get("missing") is None

    def test_put_overwrites(self, store, session_record):
        store.put("A123456", session_record(jwt_token="old"))
        store.put("A123456", session_record(jwt_token="new"))
        assert store.get("A123456").jwt_token == "new"
        assert len(store) == 1

    def test_delete_removes_record(self, store, session_record):
        store.put("A123456", session_record())
        store.delete("A123456")
        assert store.get("A123456") is None
        assert "A123456" not in store

    def test_delete_missing_is_noop(self, store):
        store.delete("missing")
        assert len(store) == 0

    def test_clear(self, store, session_record):
        store.put("A", session_record(client_id="A"))
        store.put("B", session_record(client_id="B"))
        store.clear()
        assert len(store) == 0

    def test_update_tokens_replaces_jwt_and_feed(self, store, session_record):
        original = session_record()
        store.put("A123456", original)

        updated = store.update_tokens("A123456", "jwt-2", "feed-2")

        assert store.get("A123456") is updated
        assert (updated.jwt_token, updated.feed_token) == ("jwt-2", "feed-2")
        assert updated.api_key == original.api_key
        assert updated.refresh_token == original.refresh_token
        assert updated.created_at == original.created_at
        assert original.jwt_token == "jwt-1"

    def test_update_tokens_after_delete_does_not_restore(self, store, session_record):
        store.put("A123456", session_record())
        store.delete("A123456")

        assert store.update_tokens("A123456", "jwt-2", "feed-2") is None
        assert "A123456" not in store

    def test_concurrent_writers_keep_one_record_per_client(self, store, session_record):
        def writer(n):
            for i in range(200):
                store.put(f"C{i % 5}", session_record(client_id=f"C{i % 5}", jwt_token=f"{n}-{i}"))

        threads = [threading.Thread(target=writer, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(store) == 5
        assert all(f"C{i}" in store for i in range(5))


class TestSessionRecord:
    def test_created_at_defaults_to_now(self, session_record):
        record = session_record()
        assert record.created_at.tzinfo is not None
