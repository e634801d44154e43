import asyncio

import pytest

from app.engine.autosave import (
    AutosaveTask,
    InMemoryKeyValueStore,
    JsonFileKeyValueStore,
    forget_session,
    load_session,
    save_session,
)
from app.engine.session import SessionRegistry


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def test_maybe_save_waits_for_interval():
    clock = FakeClock()
    registry = SessionRegistry()
    session = registry.create()
    store = InMemoryKeyValueStore()
    task = AutosaveTask(registry, store, interval=30, clock=clock)

    clock.advance(29)
    assert task.maybe_save() is False
    assert store.data == {}

    clock.advance(1)
    assert task.maybe_save() is True
    assert store.get(f"{session.id}:generated_prompt_draft") == session.current_text

    clock.advance(10)
    assert task.maybe_save() is False


def test_saved_session_round_trips_through_json_file(tmp_path):
    path = tmp_path / "drafts.json"
    registry = SessionRegistry()
    session = registry.create()
    session.set_project_definition("Recipe planner")
    entry = session.add_entry("module", "Shopping list", "Aggregate ingredients")
    session.edit_text("edited by hand")
    save_session(JsonFileKeyValueStore(path), session)

    restored_registry = SessionRegistry()
    restored = load_session(JsonFileKeyValueStore(path), session.id, restored_registry)

    assert restored is not None
    assert restored_registry.get(session.id) is restored
    assert restored.config.project_definition == "Recipe planner"
    assert restored.config.custom_entries[0].id == entry.id
    assert restored.current_text == "edited by hand"
    assert restored.draft.dirty is True


def test_load_session_handles_missing_and_corrupt_data(tmp_path):
    path = tmp_path / "drafts.json"
    store = JsonFileKeyValueStore(path)

    assert load_session(store, "unknown", SessionRegistry()) is None

    store.update({"broken:prompt_config": '{"selected_modules": "not a list"}'})
    assert load_session(store, "broken", SessionRegistry()) is None

    path.write_text("{not json", encoding="utf-8")
    assert store.get("broken:prompt_config") is None


@pytest.mark.asyncio
async def test_run_saves_on_stop():
    registry = SessionRegistry()
    session = registry.create()
    store = InMemoryKeyValueStore()
    task = AutosaveTask(registry, store, interval=3600, clock=FakeClock())
    stop = asyncio.Event()

    runner = asyncio.create_task(task.run(stop, poll_seconds=0.01))
    await asyncio.sleep(0.02)
    assert store.data == {}
    stop.set()
    await runner

    assert store.get(f"{session.id}:prompt_config") == session.config.model_dump_json()


class CountingStore(InMemoryKeyValueStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes = 0

    def update(self, items):
        self.writes += 1
        super().update(items)


def test_save_now_writes_all_sessions_in_one_batch():
    registry = SessionRegistry()
    first = registry.create()
    second = registry.create()
    store = CountingStore()

    assert AutosaveTask(registry, store, interval=30, clock=FakeClock()).save_now() == 2

    assert store.writes == 1
    assert store.get(f"{first.id}:prompt_config") == first.config.model_dump_json()
    assert store.get(f"{second.id}:generated_prompt_draft") == second.current_text


def test_json_file_store_replaces_file_atomically_and_forgets_sessions(tmp_path):
    path = tmp_path / "drafts.json"
    store = JsonFileKeyValueStore(path)
    registry = SessionRegistry()
    kept = registry.create()
    closed = registry.create()
    save_session(store, kept)
    save_session(store, closed)

    forget_session(store, closed.id)

    assert [p.name for p in tmp_path.iterdir()] == ["drafts.json"]
    assert store.get(f"{closed.id}:prompt_config") is None
    assert store.get(f"{closed.id}:generated_prompt_draft") is None
    assert store.get(f"{kept.id}:generated_prompt_draft") == kept.current_text


@pytest.mark.asyncio
async def test_run_writes_off_the_event_loop_when_due(tmp_path):
    clock = FakeClock()
    registry = SessionRegistry()
    session = registry.create()
    store = JsonFileKeyValueStore(tmp_path / "drafts.json")
    task = AutosaveTask(registry, store, interval=30, clock=clock)
    stop = asyncio.Event()

    clock.advance(30)
    runner = asyncio.create_task(task.run(stop, poll_seconds=0.01))
    key = f"{session.id}:generated_prompt_draft"
    for _ in range(200):
        if store.get(key) is not None:
            break
        await asyncio.sleep(0.01)

    assert store.get(key) == session.current_text
    stop.set()
    await runner
