"""Periodic local persistence of session config and draft text.

The task is driven by an injectable clock so callers (and tests) decide when
time has passed; `run` is the loop used by the service lifespan.
"""

import asyncio
import json
import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from app.engine.artifacts import PromptConfig
from app.engine.session import PromptSession, SessionRegistry

logger = logging.getLogger(__name__)

CONFIG_KEY = "prompt_config"
DRAFT_KEY = "generated_prompt_draft"


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def update(self, items: Mapping[str, str]) -> None: ...

    def delete(self, keys: Iterable[str]) -> None: ...


class InMemoryKeyValueStore:
    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    def get(self, key: str) -> str | None:
        return self.data.get(key)

    def update(self, items: Mapping[str, str]) -> None:
        self.data.update(items)

    def delete(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.data.pop(key, None)


class JsonFileKeyValueStore:
    """
    All keys live in one JSON object on disk. Each write replaces the file
    atomically through a temporary sibling, so a crash never leaves a partial file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            logger.warning("Ignoring unreadable draft store %s: %s", self.path, exc)
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)

    def get(self, key: str) -> str | None:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def update(self, items: Mapping[str, str]) -> None:
        if not items:
            return
        with self._lock:
            data = self._read()
            data.update(items)
            self._write(data)

    def delete(self, keys: Iterable[str]) -> None:
        with self._lock:
            data = self._read()
            removed = [key for key in keys if data.pop(key, None) is not None]
            if removed:
                self._write(data)


def _key(session_id: str, name: str) -> str:
    return f"{session_id}:{name}"


def session_items(session: PromptSession) -> dict[str, str]:
    return {
        _key(session.id, CONFIG_KEY): session.config.model_dump_json(),
        _key(session.id, DRAFT_KEY): session.current_text,
    }


def save_session(store: KeyValueStore, session: PromptSession) -> None:
    store.update(session_items(session))


def forget_session(store: KeyValueStore, session_id: str) -> None:
    store.delete([_key(session_id, CONFIG_KEY), _key(session_id, DRAFT_KEY)])


def load_session(store: KeyValueStore, session_id: str, registry: SessionRegistry) -> PromptSession | None:
    """Rebuild a saved session into `registry`, or return None when nothing usable was saved."""
    raw_config = store.get(_key(session_id, CONFIG_KEY))
    if raw_config is None:
        return None
    try:
        config = PromptConfig.model_validate_json(raw_config)
    except ValidationError as exc:
        logger.warning("Saved config for session %s is invalid: %s", session_id, exc)
        return None
    session = PromptSession.from_saved(
        session_id,
        config,
        store.get(_key(session_id, DRAFT_KEY)),
        catalog=registry.catalog,
    )
    return registry.add(session)


class AutosaveTask:
    def __init__(
        self,
        registry: SessionRegistry,
        store: KeyValueStore,
        *,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.registry = registry
        self.store = store
        self.interval = interval
        self.clock = clock
        self._last_saved = clock()

    def _snapshot(self) -> dict[str, str]:
        items: dict[str, str] = {}
        for session in self.registry:
            items.update(session_items(session))
        return items

    def _mark_saved(self, items: dict[str, str]) -> int:
        self._last_saved = self.clock()
        saved = len(items) // 2
        logger.debug("Autosaved %s session(s).", saved)
        return saved

    def is_due(self) -> bool:
        return self.clock() - self._last_saved >= self.interval

    def save_now(self) -> int:
        items = self._snapshot()
        self.store.update(items)
        return self._mark_saved(items)

    async def save_in_background(self) -> int:
        """Snapshot sessions on the loop, then write them in one batch off the loop."""
        items = self._snapshot()
        await asyncio.to_thread(self.store.update, items)
        return self._mark_saved(items)

    def maybe_save(self) -> bool:
        """Save every session if `interval` has elapsed on the clock since the last save."""
        if not self.is_due():
            return False
        self.save_now()
        return True

    async def run(self, stop: asyncio.Event, *, poll_seconds: float = 1.0) -> None:
        while not stop.is_set():
            if self.is_due():
                try:
                    await self.save_in_background()
                except OSError as exc:
                    logger.error("Autosave failed: %s", exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=poll_seconds)
            except asyncio.TimeoutError:
                continue
        await self.save_in_background()
