"""
Unit tests for key/value storage and the run history store.
"""

from datetime import datetime, timedelta, timezone

import pytest

from content_agents.memory.history import HistoryStore, prepend_entries, project_entries
from content_agents.memory.storage import HISTORY_KEY, LAST_RUNS_KEY, InMemoryStorage, JsonFileStorage
from content_agents.models.core import AgentResultEntry, AgentRun, AgentStatus, PipelineRun


def make_entry(entry_id: str, agent_id: str = "scheduler", status: str = "completed") -> AgentResultEntry:
    return AgentResultEntry(
        id=entry_id,
        agent_id=agent_id,
        timestamp=datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc),
        status=status,
        output={"summary": entry_id},
        duration_ms=12,
    )


class TestInMemoryStorage:
    """Test cases for InMemoryStorage."""

    @pytest.mark.asyncio
    async def test_set_get_remove(self):
        storage = InMemoryStorage()

        assert await storage.set("key", {"a": [1, 2]})
        assert await storage.get("key") == {"a": [1, 2]}
        assert await storage.remove("key")
        assert await storage.get("key") is None
        assert not await storage.remove("key")

    @pytest.mark.asyncio
    async def test_values_are_copies(self):
        storage = InMemoryStorage()
        value = {"a": [1]}
        await storage.set("key", value)

        value["a"].append(2)

        assert await storage.get("key") == {"a": [1]}

    @pytest.mark.asyncio
    async def test_corrupt_value_reads_as_none(self):
        storage = InMemoryStorage()
        storage.set_raw("key", "{not json")

        assert await storage.get("key") is None

    @pytest.mark.asyncio
    async def test_unserialisable_value_is_rejected(self):
        storage = InMemoryStorage()

        assert not await storage.set("key", {"when": object()})
        assert await storage.get("key") is None


class TestJsonFileStorage:
    """Test cases for JsonFileStorage."""

    @pytest.mark.asyncio
    async def test_round_trip_creates_directory(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path / "nested" / "store"))

        assert await storage.set(HISTORY_KEY, [{"id": "x"}])

        assert (tmp_path / "nested" / "store" / f"{HISTORY_KEY}.json").exists()
        assert await storage.get(HISTORY_KEY) == [{"id": "x"}]
        assert not list((tmp_path / "nested" / "store").glob("*.tmp"))

    @pytest.mark.asyncio
    async def test_missing_and_corrupt_files(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        (tmp_path / "broken.json").write_text("[1, 2", encoding="utf-8")

        assert await storage.get("absent") is None
        assert await storage.get("broken") is None

    @pytest.mark.asyncio
    async def test_keys_are_sanitised(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))

        await storage.set("../escape/key", 1)

        assert (tmp_path / ".._escape_key.json").exists()
        assert await storage.get("../escape/key") == 1

    @pytest.mark.asyncio
    async def test_remove(self, tmp_path):
        storage = JsonFileStorage(str(tmp_path))
        await storage.set("key", True)

        assert await storage.remove("key")
        assert not await storage.remove("key")


class TestHistoryProjection:
    """Test cases for projecting runs into history entries."""

    def test_only_completed_and_failed_runs_are_recorded(self):
        started = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)
        pipeline_run = PipelineRun(
            id="pipeline-1",
            pipeline_id="full-content",
            agent_runs=[
                AgentRun(id="run-a", agent_id="writer", status=AgentStatus.COMPLETED, output={"n": 1},
                         started_at=started, completed_at=started + timedelta(seconds=2), duration_ms=2000),
                AgentRun(id="run-b", agent_id="scheduler", status=AgentStatus.FAILED, error="bad",
                         started_at=started),
                AgentRun(id="run-c", agent_id="scheduler", status=AgentStatus.CANCELLED, started_at=started),
            ],
        )

        entries = project_entries(pipeline_run)

        assert [entry.id for entry in entries] == ["run-a", "run-b"]
        assert entries[0].pipeline_run_id == "pipeline-1"
        assert entries[0].timestamp == started + timedelta(seconds=2)
        assert entries[0].duration_ms == 2000
        assert entries[1].status == "failed"
        assert entries[1].error == "bad"
        assert entries[1].timestamp == started
        assert entries[1].duration_ms == 0

    def test_prepend_is_newest_first_and_capped(self):
        history = [make_entry(f"old-{index}") for index in range(3)]

        result = prepend_entries(history, [make_entry("new-1"), make_entry("new-2")], limit=4)

        assert [entry.id for entry in result] == ["new-1", "new-2", "old-0", "old-1"]


class TestHistoryStore:
    """Test cases for HistoryStore."""

    @pytest.mark.asyncio
    async def test_save_and_load(self):
        store = HistoryStore(InMemoryStorage())

        await store.save([make_entry("a"), make_entry("b", status="failed")])
        loaded = await store.load()

        assert [entry.id for entry in loaded] == ["a", "b"]
        assert loaded[0].timestamp == datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    async def test_save_respects_limit(self):
        storage = InMemoryStorage()
        store = HistoryStore(storage, limit=2)

        await store.save([make_entry(str(index)) for index in range(5)])

        assert len(storage.snapshot()[HISTORY_KEY]) == 2

    @pytest.mark.asyncio
    async def test_corrupt_history_loads_empty(self):
        storage = InMemoryStorage({HISTORY_KEY: {"not": "a list"}})

        assert await HistoryStore(storage).load() == []

    @pytest.mark.asyncio
    async def test_invalid_entries_are_dropped(self):
        good = make_entry("good").model_dump(mode="json")
        storage = InMemoryStorage({HISTORY_KEY: [good, {"id": "missing-fields"}, "junk"]})

        loaded = await HistoryStore(storage).load()

        assert [entry.id for entry in loaded] == ["good"]

    @pytest.mark.asyncio
    async def test_clear(self):
        storage = InMemoryStorage()
        store = HistoryStore(storage)
        await store.save([make_entry("a")])

        await store.clear()

        assert await store.load() == []

    @pytest.mark.asyncio
    async def test_last_run_timestamps(self):
        storage = InMemoryStorage()
        store = HistoryStore(storage)
        when = datetime(2026, 3, 2, 10, 30, tzinfo=timezone.utc)

        await store.save_last_runs({"scheduler": when})

        assert isinstance(storage.snapshot()[LAST_RUNS_KEY]["scheduler"], str)
        assert await store.load_last_runs() == {"scheduler": when}
        assert await store.last_run("scheduler") == when
        assert await store.last_run("writer") is None

    @pytest.mark.asyncio
    async def test_corrupt_last_runs_load_empty(self):
        storage = InMemoryStorage({LAST_RUNS_KEY: {"scheduler": "yesterday-ish"}})

        assert await HistoryStore(storage).load_last_runs() == {}
