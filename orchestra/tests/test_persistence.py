"""Tests for snapshot merging and the chat store backends."""

import asyncio
import json
import time
from types import SimpleNamespace

import pytest

from orchestra.models.execution import DatabaseOperation, DatabaseOperationType
from orchestra.persistence import create_chat_store
from orchestra.persistence.snapshots import merge_snapshots, snapshot_errors, snapshot_from_request
from orchestra.persistence.sqlite_store import SqliteChatStore
from orchestra.persistence.supabase_store import SupabaseChatStore


def _progress(answered: int, total: int = 10) -> dict:
    return {"progress": {"answered": answered, "total_questions": total}}


class TestMergeSnapshots:
    """Test snapshot merge rules."""

    def test_progress_moves_forward(self):
        merged = merge_snapshots(_progress(2), _progress(5))
        assert merged["progress"]["answered"] == 5

    def test_progress_never_rolls_back(self):
        merged = merge_snapshots(_progress(5), _progress(3))
        assert merged["progress"]["answered"] == 5

    def test_progress_never_exceeds_total(self):
        merged = merge_snapshots(_progress(5), _progress(11))
        assert merged["progress"]["answered"] == 5

    def test_partial_answers_are_merged(self):
        existing = {**_progress(1), "partial_answers": {"q1": "yes"}}
        incoming = {**_progress(2), "partial_answers": {"q2": "no"}}
        merged = merge_snapshots(existing, incoming)
        assert merged["partial_answers"] == {"q1": "yes", "q2": "no"}

    def test_other_keys_are_overwritten(self):
        merged = merge_snapshots({"stage": "intro"}, {"stage": "questions"})
        assert merged["stage"] == "questions"

    def test_empty_sides(self):
        assert merge_snapshots(None, _progress(1)) == _progress(1)
        assert merge_snapshots(_progress(1), None) == _progress(1)

    def test_snapshot_errors(self):
        assert snapshot_errors(None) == ["snapshot is empty"]
        assert snapshot_errors(_progress(3)) == []
        assert "answered questions exceed total questions" in snapshot_errors(_progress(12))

    def test_snapshot_from_request_parses_json_string(self):
        assert snapshot_from_request({"snapshot_data": json.dumps(_progress(1))}) == _progress(1)
        assert snapshot_from_request({"snapshot": _progress(2)}) == _progress(2)
        assert snapshot_from_request({"snapshot_data": "{not json"}) is None


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteChatStore(tmp_path / "chat.db")


def _op(kind: str, **data) -> DatabaseOperation:
    return DatabaseOperation(type=DatabaseOperationType(kind), data=data)


class TestSqliteChatStore:
    """Test the sqlite chat store through execute()."""

    @pytest.mark.asyncio
    async def test_create_session_is_idempotent(self, sqlite_store):
        first = await sqlite_store.execute(_op("create_session", session_id="s1", system_id="support"))
        second = await sqlite_store.execute(
            _op("create_session", session_id="s1", system_id="support", title="Other")
        )
        assert first.success
        assert second.message == "existing session returned (no data overwritten)"
        assert second.data["title"] == "Chat session"

    @pytest.mark.asyncio
    async def test_save_and_get_session(self, sqlite_store):
        await sqlite_store.execute(_op("create_session", session_id="s1", system_id="support"))
        await sqlite_store.execute(_op("save_message", session_id="s1", role="user", content="first"))
        await sqlite_store.execute(
            _op("save_message", session_id="s1", role="assistant", content="second", content_json={"a": 1})
        )

        result = await sqlite_store.execute(_op("get_session", session_id="s1"))
        messages = result.data["messages"]
        assert [m["content"] for m in messages] == ["first", "second"]
        assert messages[1]["content_json"] == {"a": 1}

    @pytest.mark.asyncio
    async def test_save_message_requires_role(self, sqlite_store):
        result = await sqlite_store.execute(_op("save_message", session_id="s1", content="x"))
        assert not result.success
        assert result.error == "role field is required"

    @pytest.mark.asyncio
    async def test_update_snapshot_merges(self, sqlite_store):
        await sqlite_store.execute(
            _op("create_session", session_id="s1", initial_snapshot=_progress(4))
        )
        result = await sqlite_store.execute(
            _op("update_snapshot", session_id="s1", snapshot_data=json.dumps(_progress(2)))
        )
        assert result.success
        assert result.data["snapshot"]["progress"]["answered"] == 4

    @pytest.mark.asyncio
    async def test_update_snapshot_creates_missing_session(self, sqlite_store):
        result = await sqlite_store.execute(
            _op("update_snapshot", session_id="new", system_id="support", snapshot=_progress(1))
        )
        assert result.success
        assert result.data["system_id"] == "support"

        missing = await sqlite_store.execute(_op("update_snapshot", session_id="nothing"))
        assert not missing.success

    @pytest.mark.asyncio
    async def test_get_sessions_filters_by_system(self, sqlite_store):
        await sqlite_store.execute(_op("create_session", session_id="a", system_id="support"))
        await sqlite_store.execute(_op("create_session", session_id="b", system_id="sales"))
        result = await sqlite_store.execute(_op("get_sessions", system_id="support"))
        assert [s["id"] for s in result.data] == ["a"]

    @pytest.mark.asyncio
    async def test_delete_session(self, sqlite_store):
        await sqlite_store.execute(_op("create_session", session_id="s1"))
        await sqlite_store.execute(_op("save_message", session_id="s1", role="user", content="x"))
        result = await sqlite_store.execute(_op("delete_session", session_id="s1"))
        assert result.data == {"deleted": "s1", "existed": True}
        assert not (await sqlite_store.execute(_op("get_session", session_id="s1"))).success

    @pytest.mark.asyncio
    async def test_create_tables(self, sqlite_store):
        assert (await sqlite_store.execute(_op("create_tables"))).success


class FakeQuery:
    """Minimal stand-in for the supabase query builder over in-memory rows."""

    def __init__(self, rows: list[dict]) -> None:
        self.rows = rows
        self.filters: list[tuple[str, object]] = []
        self.action = "select"
        self.payload = None
        self.limit_to = None

    def select(self, columns="*"):
        return self

    def insert(self, row):
        self.action, self.payload = "insert", row
        return self

    def update(self, values):
        self.action, self.payload = "update", values
        return self

    def delete(self):
        self.action = "delete"
        return self

    def eq(self, key, value):
        self.filters.append((key, value))
        return self

    def order(self, column, desc=False):
        return self

    def limit(self, count):
        self.limit_to = count
        return self

    def _matches(self, row):
        return all(row.get(key) == value for key, value in self.filters)

    def execute(self):
        if self.action == "insert":
            row = dict(self.payload)
            self.rows.append(row)
            return SimpleNamespace(data=[row])
        matched = [row for row in self.rows if self._matches(row)]
        if self.action == "update":
            for row in matched:
                row.update(self.payload)
        elif self.action == "delete":
            self.rows[:] = [row for row in self.rows if not self._matches(row)]
        return SimpleNamespace(data=matched[: self.limit_to] if self.limit_to else matched)


class FakeSupabase:
    def __init__(self) -> None:
        self.tables: dict[str, list[dict]] = {"chat_sessions": [], "chat_messages": []}

    def table(self, name):
        return FakeQuery(self.tables[name])


class TestSupabaseChatStore:
    """Test the Supabase store against an in-memory client."""

    @pytest.mark.asyncio
    async def test_session_lifecycle(self):
        client = FakeSupabase()
        store = SupabaseChatStore(client=client)

        created = await store.execute(_op("create_session", session_id="s1", system_id="support"))
        assert created.message == "new session created successfully"
        await store.execute(_op("save_message", session_id="s1", role="user", content="hi"))
        await store.execute(_op("update_snapshot", session_id="s1", snapshot=_progress(3)))

        fetched = await store.execute(_op("get_session", session_id="s1"))
        assert fetched.data["session"]["snapshot"] == _progress(3)
        assert [m["content"] for m in fetched.data["messages"]] == ["hi"]

        deleted = await store.execute(_op("delete_session", session_id="s1"))
        assert deleted.data == {"deleted": "s1", "existed": True}
        assert client.tables == {"chat_sessions": [], "chat_messages": []}

    @pytest.mark.asyncio
    async def test_snapshot_rollback_is_ignored(self):
        store = SupabaseChatStore(client=FakeSupabase())
        await store.execute(_op("create_session", session_id="s1", initial_snapshot=_progress(6)))
        result = await store.execute(_op("update_snapshot", session_id="s1", snapshot=_progress(1)))
        assert result.data["snapshot"]["progress"]["answered"] == 6

    @pytest.mark.asyncio
    async def test_slow_client_does_not_block_the_event_loop(self):
        class SlowSupabase(FakeSupabase):
            def table(self, name):
                time.sleep(0.3)
                return super().table(name)

        store = SupabaseChatStore(client=SlowSupabase())
        ticks = []

        async def ticker():
            for _ in range(10):
                ticks.append(time.monotonic())
                await asyncio.sleep(0.01)

        async def query():
            await asyncio.sleep(0)
            return await store.execute(_op("get_sessions"))

        _, result = await asyncio.gather(ticker(), query())
        assert result.success
        assert max(later - earlier for earlier, later in zip(ticks, ticks[1:])) < 0.2

    @pytest.mark.asyncio
    async def test_client_errors_become_failures(self):
        class Broken:
            def table(self, name):
                raise ConnectionError("unreachable")

        result = await SupabaseChatStore(client=Broken()).execute(_op("get_sessions"))
        assert not result.success
        assert result.error == "unreachable"


class TestCreateChatStore:
    def test_defaults_to_sqlite(self, monkeypatch, tmp_path):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
        monkeypatch.setattr("orchestra.persistence.sqlite_store.DEFAULT_DB_PATH", tmp_path / "x.db")
        assert isinstance(create_chat_store(), SqliteChatStore)
