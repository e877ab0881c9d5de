from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from src.client.sync import TaskSyncEngine

from .fakes import ALICE, FakeTaskStore, RecordingNotifier, settle

FIXED_NOW = datetime(2030, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture()
def store() -> FakeTaskStore:
    return FakeTaskStore()


@pytest.fixture()
def engine(store: FakeTaskStore, notifier: RecordingNotifier) -> TaskSyncEngine:
    return TaskSyncEngine(store, ALICE, notifier, clock=lambda: FIXED_NOW)


async def assert_settled(engine: TaskSyncEngine, store: FakeTaskStore) -> None:
    """The displayed list equals what a fresh reload returns right now."""
    assert engine.tasks == store.snapshot()


class TestLoad:
    @pytest.mark.asyncio
    async def test_load_replaces_list_and_clears_loading(self, engine, store) -> None:
        store.seed("a")
        store.seed("b")
        assert engine.loading is True

        tasks = await engine.load()

        assert [t.title for t in tasks] == ["b", "a"]
        assert engine.loading is False

    @pytest.mark.asyncio
    async def test_load_is_newest_first(self, engine, store) -> None:
        for i in range(5):
            store.seed(f"t{i}")
        tasks = await engine.load()
        created = [t.created_at for t in tasks]
        assert all(a >= b for a, b in zip(created, created[1:]))

    @pytest.mark.asyncio
    async def test_load_failure_keeps_previous_list(self, engine, store, notifier) -> None:
        store.seed("kept")
        await engine.load()
        store.seed("unseen")
        store.fail.add("list_tasks")

        tasks = await engine.load()

        assert [t.title for t in tasks] == ["kept"]
        assert engine.loading is False
        assert notifier.errors == ["Error fetching tasks"]


class TestCreate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("title", ["", "   ", "\t\n"])
    async def test_blank_title_is_a_silent_no_op(self, engine, store, notifier, title) -> None:
        store.seed("existing")
        await engine.load()
        before = list(engine.tasks)
        store.calls.clear()

        await engine.create(title, "desc")

        assert store.calls == []
        assert engine.tasks == before
        assert notifier.errors == []
        assert notifier.successes == []

    @pytest.mark.asyncio
    async def test_create_clears_compose_and_reloads(self, engine, store, notifier) -> None:
        await engine.create("Buy milk", "2 litres")

        assert store.remote_calls("insert_task") == [("insert_task", "Buy milk", "2 litres", ALICE.id)]
        assert engine.compose.title == ""
        assert engine.compose.description == ""
        assert [t.title for t in engine.tasks] == ["Buy milk"]
        assert notifier.successes == ["Task created"]
        await assert_settled(engine, store)

    @pytest.mark.asyncio
    async def test_create_uses_compose_fields(self, engine, store) -> None:
        engine.compose.title = "From the form"
        engine.compose.description = "typed"

        await engine.create()

        assert store.remote_calls("insert_task") == [("insert_task", "From the form", "typed", ALICE.id)]

    @pytest.mark.asyncio
    async def test_create_failure_keeps_compose(self, engine, store, notifier) -> None:
        store.fail.add("insert_task")

        await engine.create("Keep me", "and me")

        assert engine.compose.title == "Keep me"
        assert engine.compose.description == "and me"
        assert notifier.errors == ["Error creating task"]
        assert store.remote_calls("list_tasks") == []


class TestUpdate:
    @pytest.mark.asyncio
    async def test_update_stamps_current_time_and_reloads(self, engine, store, notifier) -> None:
        task = store.seed("old", "d")
        await engine.load()
        engine.start_edit(task)

        await engine.update(task.id, "new", "d2")

        assert store.remote_calls("update_task") == [
            ("update_task", task.id, {"title": "new", "description": "d2", "updated_at": FIXED_NOW.isoformat()})
        ]
        assert engine.editing is None
        assert engine.tasks[0].title == "new"
        assert engine.tasks[0].updated_at == FIXED_NOW
        assert notifier.successes == ["Task updated"]
        await assert_settled(engine, store)

    @pytest.mark.asyncio
    async def test_update_failure_keeps_draft(self, engine, store, notifier) -> None:
        task = store.seed("old")
        await engine.load()
        engine.start_edit(task)
        engine.edit_draft(title="typed")
        store.fail.add("update_task")

        await engine.save_edit()

        assert engine.editing is not None
        assert engine.editing.title == "typed"
        assert notifier.errors == ["Error updating task"]

    @pytest.mark.asyncio
    async def test_update_of_missing_task_reports_once(self, engine, store, notifier) -> None:
        await engine.update("nope", "t", "")
        assert notifier.errors == ["Error updating task"]

    @pytest.mark.asyncio
    async def test_save_edit_without_draft_does_nothing(self, engine, store) -> None:
        await engine.save_edit()
        assert store.calls == []


class TestEditSession:
    @pytest.mark.asyncio
    async def test_starting_another_edit_discards_the_first_draft(self, engine, store) -> None:
        a = store.seed("A", "a-desc")
        b = store.seed("B", "b-desc")
        await engine.load()

        engine.start_edit(a)
        engine.edit_draft(title="A edited", description="a changed")
        engine.start_edit(b)
        engine.edit_draft(title="B edited")
        await engine.save_edit()

        updates = store.remote_calls("update_task")
        assert len(updates) == 1
        assert updates[0][1] == b.id
        assert updates[0][2]["title"] == "B edited"
        assert updates[0][2]["description"] == "b-desc"
        assert store.rows[a.id].title == "A"
        assert store.rows[a.id].description == "a-desc"

    @pytest.mark.asyncio
    async def test_start_edit_copies_fields(self, engine, store) -> None:
        task = store.seed("T", None)
        await engine.load()

        engine.start_edit(task)

        assert engine.editing is not None
        assert (engine.editing.id, engine.editing.title, engine.editing.description) == (task.id, "T", "")

    @pytest.mark.asyncio
    async def test_start_edit_refuses_unknown_task(self, engine, store) -> None:
        task = store.seed("not loaded yet")
        engine.start_edit(task)
        assert engine.editing is None

    @pytest.mark.asyncio
    async def test_cancel_edit_is_local(self, engine, store) -> None:
        task = store.seed("T")
        await engine.load()
        store.calls.clear()

        engine.start_edit(task)
        engine.cancel_edit()

        assert engine.editing is None
        assert store.calls == []

    @pytest.mark.asyncio
    async def test_reload_drops_draft_for_vanished_task(self, engine, store) -> None:
        task = store.seed("T")
        await engine.load()
        engine.start_edit(task)
        del store.rows[task.id]

        await engine.load()

        assert engine.editing is None


class TestToggle:
    @pytest.mark.asyncio
    async def test_toggle_flips_and_reloads(self, engine, store) -> None:
        task = store.seed("T")
        await engine.load()

        await engine.toggle_complete(engine.tasks[0])

        assert store.remote_calls("update_task") == [
            ("update_task", task.id, {"is_complete": True, "updated_at": FIXED_NOW.isoformat()})
        ]
        assert engine.tasks[0].is_complete is True
        await assert_settled(engine, store)

    @pytest.mark.asyncio
    async def test_toggle_failure_reports_once(self, engine, store, notifier) -> None:
        store.seed("T")
        await engine.load()
        store.fail.add("update_task")

        await engine.toggle_complete(engine.tasks[0])

        assert notifier.errors == ["Error updating task"]
        assert engine.tasks[0].is_complete is False

    @pytest.mark.asyncio
    async def test_known_race_double_toggle_from_stale_snapshot(self, engine, store) -> None:
        """Both toggles read the same local flag, so they write the same value."""
        store.seed("T")
        await engine.load()
        stale = engine.tasks[0]

        await asyncio.gather(engine.toggle_complete(stale), engine.toggle_complete(stale))

        written = [c[2]["is_complete"] for c in store.remote_calls("update_task")]
        assert written == [True, True]
        assert engine.tasks[0].is_complete is True


class TestRemove:
    @pytest.mark.asyncio
    async def test_remove_reloads(self, engine, store, notifier) -> None:
        keep = store.seed("keep")
        gone = store.seed("gone")
        await engine.load()

        await engine.remove(gone.id)

        assert [t.id for t in engine.tasks] == [keep.id]
        assert notifier.successes == ["Task deleted"]
        await assert_settled(engine, store)

    @pytest.mark.asyncio
    async def test_remove_clears_draft_for_that_task(self, engine, store) -> None:
        task = store.seed("T")
        await engine.load()
        engine.start_edit(task)

        await engine.remove(task.id)

        assert engine.editing is None

    @pytest.mark.asyncio
    async def test_remove_clears_draft_even_when_delete_fails(self, engine, store, notifier) -> None:
        task = store.seed("T")
        await engine.load()
        engine.start_edit(task)
        store.fail.add("delete_task")

        await engine.remove(task.id)

        assert engine.editing is None
        assert notifier.errors == ["Error deleting task"]
        assert [t.id for t in engine.tasks] == [task.id]

    @pytest.mark.asyncio
    async def test_remove_keeps_draft_for_other_task(self, engine, store) -> None:
        a = store.seed("A")
        b = store.seed("B")
        await engine.load()
        engine.start_edit(a)

        await engine.remove(b.id)

        assert engine.editing is not None
        assert engine.editing.id == a.id

    @pytest.mark.asyncio
    async def test_draft_is_dropped_as_soon_as_delete_is_issued(self, engine, store) -> None:
        task = store.seed("T")
        await engine.load()
        engine.start_edit(task)
        store.hold_lists = True

        pending = asyncio.create_task(engine.remove(task.id))
        await settle()

        assert engine.editing is None
        for waiter in store.pending_lists:
            waiter.set_result(None)
        await pending


class TestConcurrentReloads:
    @pytest.mark.asyncio
    async def test_last_reload_to_resolve_wins(self, engine, store) -> None:
        store.hold_lists = True

        first = asyncio.create_task(engine.create("A"))
        await settle()
        second = asyncio.create_task(engine.create("B"))
        await settle()
        assert len(store.pending_lists) == 2

        # The newer snapshot lands first, then the older one overwrites it.
        store.pending_lists[1].set_result(None)
        await settle()
        assert [t.title for t in engine.tasks] == ["B", "A"]

        store.pending_lists[0].set_result(None)
        await asyncio.gather(first, second)
        assert [t.title for t in engine.tasks] == ["A"]

        store.hold_lists = False
        await engine.load()
        assert [t.title for t in engine.tasks] == ["B", "A"]
