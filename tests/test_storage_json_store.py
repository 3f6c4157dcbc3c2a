"""Tests for the JSON storage layer (InteractionStore)."""

from __future__ import annotations

import json
import threading
from pathlib import Path

import pytest

from switchboard.models.interaction import InteractionRecord
from switchboard.storage.json_store import (
    InteractionStore,
    MemoryInteractionStore,
    new_interaction_id,
)


def _make_record(
    provider: str = "openai",
    type: str = "chat",
    record_id: str | None = None,
    success: bool = True,
) -> InteractionRecord:
    """Build a valid InteractionRecord with realistic field values."""
    return InteractionRecord(
        id=record_id,
        provider=provider,
        type=type,
        input=[{"role": "user", "content": "Hello"}],
        output={
            "message": {"role": "assistant", "content": "Hi!"},
            "usage": {"prompt_tokens": 5, "completion_tokens": 2, "total_tokens": 7},
            "id": "chatcmpl-1",
        } if success else None,
        options={"max_tokens": 50},
        tokens_used=7 if success else 0,
        duration=0.42,
        success=success,
        error=None if success else "OpenAIAdapter API Error (Status: 500): boom",
    )


class TestNewInteractionId:
    """IDs sort chronologically."""

    def test_ids_sort_in_creation_order(self) -> None:
        ids = [new_interaction_id() for _ in range(5)]
        assert ids == sorted(ids)
        assert len(set(ids)) == 5


class TestInteractionStoreSave:
    """Tests for save and the atomic file layout."""

    def test_creates_interactions_directory(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        store.ensure_dirs()
        assert (tmp_path / ".switchboard" / "interactions").is_dir()

    def test_custom_storage_dir(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path, storage_dir="data/audit")
        store.save(_make_record())
        assert (tmp_path / "data" / "audit" / "interactions").is_dir()

    def test_save_generates_id(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        interaction_id = store.save(_make_record())
        path = tmp_path / ".switchboard" / "interactions" / f"{interaction_id}.json"
        assert path.exists()
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["id"] == interaction_id
        assert data["provider"] == "openai"

    def test_save_keeps_existing_id(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        assert store.save(_make_record(record_id="fixed-id")) == "fixed-id"

    def test_no_tmp_files_left(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        store.save(_make_record())
        leftovers = list((tmp_path / ".switchboard").rglob("*.tmp"))
        assert leftovers == []

    def test_index_maps_provider_to_ids(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        a = store.save(_make_record(provider="openai"))
        b = store.save(_make_record(provider="claude"))
        c = store.save(_make_record(provider="openai"))
        index = json.loads((tmp_path / ".switchboard" / "index.json").read_text(encoding="utf-8"))
        assert index == {"openai": [a, c], "claude": [b]}

    def test_concurrent_saves_keep_index_valid(self, tmp_path: Path) -> None:
        """Saves from several threads all land in a parseable index."""
        store = InteractionStore(tmp_path)
        saved: list[str] = []
        saved_lock = threading.Lock()

        def writer() -> None:
            for _ in range(25):
                interaction_id = store.save(_make_record(provider="p"))
                with saved_lock:
                    saved.append(interaction_id)

        threads = [threading.Thread(target=writer) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        index = json.loads((tmp_path / ".switchboard" / "index.json").read_text(encoding="utf-8"))
        assert sorted(index["p"]) == sorted(saved)
        assert store.list_ids(provider="p") == sorted(saved)
        assert len(store.list_ids()) == 200
        assert list((tmp_path / ".switchboard").rglob("*.tmp")) == []


class TestInteractionStoreLoad:
    """Tests for load, list_ids and load_recent."""

    def test_round_trip(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        original = _make_record()
        interaction_id = store.save(original)
        loaded = store.load(interaction_id)
        assert loaded == original.model_copy(update={"id": interaction_id})

    def test_load_missing_raises(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            InteractionStore(tmp_path).load("nope")

    def test_list_ids_empty(self, tmp_path: Path) -> None:
        assert InteractionStore(tmp_path).list_ids() == []
        assert InteractionStore(tmp_path).list_ids(provider="openai") == []

    def test_list_ids_filtered(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        a = store.save(_make_record(provider="openai"))
        store.save(_make_record(provider="claude"))
        assert store.list_ids(provider="openai") == [a]
        assert len(store.list_ids()) == 2

    def test_load_recent_newest_first(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        ids = [store.save(_make_record()) for _ in range(3)]
        recent = store.load_recent(limit=2)
        assert [r.id for r in recent] == [ids[2], ids[1]]

    def test_load_recent_zero_limit(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        store.save(_make_record())
        assert store.load_recent(limit=0) == []

    def test_failure_record_round_trip(self, tmp_path: Path) -> None:
        store = InteractionStore(tmp_path)
        loaded = store.load(store.save(_make_record(success=False)))
        assert loaded.success is False
        assert loaded.output is None
        assert loaded.error.startswith("OpenAIAdapter API Error")


class TestMemoryInteractionStore:
    """Tests for the in-process store."""

    def test_save_and_list(self) -> None:
        store = MemoryInteractionStore()
        a = store.save(_make_record(provider="openai"))
        b = store.save(_make_record(provider="claude"))
        assert store.list_ids() == [a, b]
        assert store.list_ids(provider="claude") == [b]

    def test_load_recent(self) -> None:
        store = MemoryInteractionStore()
        ids = [store.save(_make_record()) for _ in range(3)]
        assert [r.id for r in store.load_recent(2)] == [ids[2], ids[1]]
