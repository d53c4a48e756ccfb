"""
Durable storage for the flow collection.

The whole collection lives in one JSON document addressed by a storage key.
Designed with an abstract interface so the JSON file can be swapped for
another key-value backend.
"""

from __future__ import annotations

import json
import logging
import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError

import flow_config
from flow_models import Flow, utcnow

logger = logging.getLogger(__name__)

_FLOW_LIST = TypeAdapter(List[Flow])


class FlowStore(Protocol):
    """
    Abstract interface for flow storage.

    All mutation goes through ``upsert`` and ``remove``; each one persists
    the full collection.
    """

    def load(self) -> List[Flow]:
        """Restore all flows from durable storage."""
        ...

    def save_all(self, flows: List[Flow]) -> None:
        """Persist the full collection in a single write."""
        ...

    def upsert(self, flow: Flow) -> Flow:
        """Insert or replace a flow by id."""
        ...

    def remove(self, flow_id: str) -> bool:
        """Delete a flow by id."""
        ...

    def get(self, flow_id: str) -> Optional[Flow]:
        """Get a copy of one flow."""
        ...

    def list(self) -> List[Flow]:
        """Get copies of all flows in store order."""
        ...


class JSONFlowStore:
    """
    JSON-file implementation of FlowStore.

    The in-memory collection is authoritative for the session; a failed
    write is logged and not retried.
    """

    def __init__(self, data_dir: Optional[str] = None, storage_key: Optional[str] = None):
        """
        Initialize the store and load any existing collection.

        Args:
            data_dir: Directory for the JSON document
            storage_key: Name of the document (without extension)
        """
        self.data_dir = Path(data_dir or flow_config.FLOWS_DIR)
        self.storage_key = storage_key or flow_config.STORAGE_KEY
        self.path = self.data_dir / f"{self.storage_key}.json"
        self._flows: List[Flow] = self.load()

    def load(self) -> List[Flow]:
        """
        Load flows from disk.

        Absent or malformed data yields an empty collection.
        """
        if not self.path.exists():
            logger.debug(f"No stored flows at {self.path}")
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            flows = _FLOW_LIST.validate_python(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Could not load flows from {self.path}: {e}")
            return []
        logger.info(f"Loaded {len(flows)} flow(s) from {self.path}")
        return flows

    def save_all(self, flows: List[Flow]) -> None:
        """Write the collection atomically (temp file + rename)."""
        tmp = self.path.with_suffix(".tmp")
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            payload = _FLOW_LIST.dump_json(flows, indent=2)
            with open(tmp, "wb") as f:
                f.write(payload)
            os.replace(tmp, self.path)
        except OSError as e:
            logger.error(f"Could not save flows to {self.path}: {e}")
            if tmp.exists():
                tmp.unlink()

    def upsert(self, flow: Flow) -> Flow:
        """
        Replace the flow with the same id, or append it.

        Replacing stamps ``updated_at``; appending stamps both timestamps.
        The flow is validated again first, so a record that could not be
        loaded back is never written.

        Returns:
            A copy of the stored flow

        Raises:
            pydantic.ValidationError: If the flow is invalid
        """
        stored = Flow.model_validate(flow.model_dump())
        for index, existing in enumerate(self._flows):
            if existing.id == stored.id:
                stored.updated_at = _advance(existing.updated_at)
                self._flows[index] = stored
                break
        else:
            now = utcnow()
            stored.created_at = now
            stored.updated_at = now
            self._flows.append(stored)

        self.save_all(self._flows)
        return stored.model_copy(deep=True)

    def remove(self, flow_id: str) -> bool:
        """Delete a flow by id. Nothing is written when the id is unknown."""
        remaining = [f for f in self._flows if f.id != flow_id]
        if len(remaining) == len(self._flows):
            return False
        self._flows = remaining
        self.save_all(self._flows)
        return True

    def get(self, flow_id: str) -> Optional[Flow]:
        for flow in self._flows:
            if flow.id == flow_id:
                return flow.model_copy(deep=True)
        return None

    def list(self) -> List[Flow]:
        return [flow.model_copy(deep=True) for flow in self._flows]

    def __len__(self) -> int:
        return len(self._flows)


def _advance(previous: datetime) -> datetime:
    """Current time, nudged forward if the clock has not moved past ``previous``."""
    now = utcnow()
    if now <= previous:
        now = previous + timedelta(microseconds=1)
    return now
