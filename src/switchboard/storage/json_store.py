"""Persistence for audit records of dispatched AI interactions.

InteractionStore keeps InteractionRecord objects as JSON files under
.switchboard/interactions/ with an index file mapping provider names
to interaction IDs. Writes are atomic to prevent corruption.
MemoryInteractionStore is the in-process equivalent.
"""

from __future__ import annotations

import json
import threading
import time
from pathlib import Path
from typing import Protocol
from uuid import uuid4

from switchboard.models.config import STORAGE_DIRNAME
from switchboard.models.interaction import InteractionRecord


_id_lock = threading.Lock()
_last_ns = 0

# Serializes index read-modify-write across every store in the process.
_index_lock = threading.Lock()


def new_interaction_id() -> str:
    """Return an ID that sorts chronologically: ns timestamp + random suffix.

    Timestamps are strictly increasing within the process, even when the
    clock resolution is coarser than the call rate.
    """
    global _last_ns
    with _id_lock:
        _last_ns = max(time.time_ns(), _last_ns + 1)
        stamp = _last_ns
    return f"{stamp:020d}-{uuid4().hex[:12]}"


class InteractionSink(Protocol):
    """Anything that can persist an InteractionRecord."""

    def save(self, record: InteractionRecord) -> str: ...


class InteractionStore:
    """Persist and query InteractionRecord objects as JSON files.

    File layout:
        .switchboard/
            interactions/
                {interaction-id}.json    # Individual records
            index.json                   # Provider name -> [IDs] mapping

    Writes are atomic (write to a uniquely named .tmp, then rename) to
    prevent partial files. Index updates are serialized, so concurrent
    saves from several threads keep index.json valid. IDs sort
    chronologically.
    """

    def __init__(self, project_root: Path, storage_dir: str | None = None) -> None:
        effective_dir = storage_dir or STORAGE_DIRNAME
        self.storage_dir = project_root / effective_dir
        self.interactions_dir = self.storage_dir / "interactions"
        self.index_path = self.storage_dir / "index.json"

    def ensure_dirs(self) -> None:
        """Create the interactions directory."""
        self.interactions_dir.mkdir(parents=True, exist_ok=True)

    def save(self, record: InteractionRecord) -> str:
        """Save an InteractionRecord as a JSON file and update the index.

        Args:
            record: The interaction record to persist.

        Returns:
            The interaction ID (either from record.id or newly generated).
        """
        self.ensure_dirs()

        interaction_id = record.id or new_interaction_id()
        if not record.id:
            record = record.model_copy(update={"id": interaction_id})

        content = record.model_dump_json(indent=2)

        # Atomic write: write to .tmp then rename
        record_file = self.interactions_dir / f"{interaction_id}.json"
        tmp_file = self.interactions_dir / f"{interaction_id}.json.{uuid4().hex}.tmp"
        tmp_file.write_text(content, encoding="utf-8")
        tmp_file.replace(record_file)

        self._update_index(record.provider, interaction_id)
        return interaction_id

    def load(self, interaction_id: str) -> InteractionRecord:
        """Load an InteractionRecord from its JSON file.

        Raises:
            FileNotFoundError: If no record with that ID exists.
        """
        record_file = self.interactions_dir / f"{interaction_id}.json"
        content = record_file.read_text(encoding="utf-8")
        return InteractionRecord.model_validate_json(content)

    def list_ids(self, provider: str | None = None) -> list[str]:
        """List interaction IDs, optionally filtered by provider.

        Args:
            provider: If provided, only return interactions with this
                provider. If None, return all interactions.

        Returns:
            Chronologically sorted list of interaction IDs.
        """
        if provider is not None:
            index = self._load_index()
            return sorted(index.get(provider, []))

        if not self.interactions_dir.exists():
            return []
        return sorted(f.stem for f in self.interactions_dir.glob("*.json"))

    def load_recent(self, limit: int = 20) -> list[InteractionRecord]:
        """Load the most recent records, newest first."""
        if limit <= 0:
            return []
        ids = self.list_ids()[-limit:]
        return [self.load(interaction_id) for interaction_id in reversed(ids)]

    def _load_index(self) -> dict[str, list[str]]:
        """Load the provider-to-interactions index file."""
        if self.index_path.exists():
            content = self.index_path.read_text(encoding="utf-8")
            return json.loads(content)
        return {}

    def _update_index(self, provider: str, interaction_id: str) -> None:
        """Add an interaction ID to the index under the given provider."""
        with _index_lock:
            index = self._load_index()
            index.setdefault(provider, []).append(interaction_id)

            # Atomic write
            content = json.dumps(index, indent=2, ensure_ascii=False)
            tmp_path = self.storage_dir / f"index.json.{uuid4().hex}.tmp"
            tmp_path.write_text(content, encoding="utf-8")
            tmp_path.replace(self.index_path)


class MemoryInteractionStore:
    """In-process interaction store, for tests and short-lived scripts."""

    def __init__(self) -> None:
        self.records: list[InteractionRecord] = []
        self._lock = threading.Lock()

    def save(self, record: InteractionRecord) -> str:
        interaction_id = record.id or new_interaction_id()
        if not record.id:
            record = record.model_copy(update={"id": interaction_id})
        with self._lock:
            self.records.append(record)
        return interaction_id

    def list_ids(self, provider: str | None = None) -> list[str]:
        with self._lock:
            return [
                r.id for r in self.records
                if r.id is not None and (provider is None or r.provider == provider)
            ]

    def load_recent(self, limit: int = 20) -> list[InteractionRecord]:
        if limit <= 0:
            return []
        with self._lock:
            return list(reversed(self.records[-limit:]))
