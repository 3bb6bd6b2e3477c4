from __future__ import annotations
from dataclasses import replace
from pathlib import Path
from typing import Dict, Optional, Protocol
import copy
import json
import logging
from urllib.parse import quote

from text_refinery.memory import Memory, new_memory, utc_now

logger = logging.getLogger(__name__)

MEMORY_FILE_PREFIX = "text_refinery_memory_"


def memory_filename(key: str) -> str:
    return f"{MEMORY_FILE_PREFIX}{key}.json"


class MemoryStore(Protocol):
    """Key-value store for Memory records. `put` reports failure as False."""

    def get(self, key: str) -> Optional[Memory]:
        ...

    def put(self, key: str, memory: Memory) -> bool:
        ...


class InMemoryMemoryStore:
    """Process-local store; records live as long as the store object."""

    def __init__(self):
        self._records: Dict[str, dict] = {}

    def get(self, key: str) -> Optional[Memory]:
        data = self._records.get(key)
        return Memory.from_dict(copy.deepcopy(data)) if data is not None else None

    def put(self, key: str, memory: Memory) -> bool:
        self._records[key] = memory.to_dict()
        return True


class LocalJsonMemoryStore:
    """One pretty-printed JSON file per key inside a directory."""

    def __init__(self, directory: str):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        # Percent-encoding keeps distinct keys in distinct files
        return self.directory / memory_filename(quote(key, safe=""))

    def get(self, key: str) -> Optional[Memory]:
        path = self.path_for(key)
        if not path.exists():
            return None
        with open(path, "r", encoding="utf-8") as f:
            return Memory.from_dict(json.load(f))

    def put(self, key: str, memory: Memory) -> bool:
        path = self.path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".json.tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(memory.to_dict(), f, ensure_ascii=False, indent=2)
            tmp.replace(path)
        except OSError as e:
            logger.error(f"Writing memory file {path} failed: {e}")
            return False
        return True


def load_memory(store: Optional[MemoryStore], key: str) -> Memory:
    """Load the record for `key`, or a fresh one if there is none."""
    if store is None:
        return new_memory()
    memory = store.get(key)
    if memory is None:
        logger.info(f"No stored memory for '{key}', starting fresh")
        return new_memory()
    logger.info(f"Loaded memory '{key}' at version {memory.version}")
    return memory


def persist_memory(store: MemoryStore, key: str, memory: Memory) -> bool:
    """
    Save `memory` with its version bumped by one.

    The in-run record is only bumped once the store accepts the write.
    Store failures are logged and reported as False, never raised.
    """
    stamped = replace(memory, version=memory.version + 1, last_updated=utc_now())
    try:
        ok = store.put(key, stamped)
    except Exception as e:
        logger.warning(f"Persisting memory '{key}' failed: {type(e).__name__}: {e}")
        return False

    if not ok:
        logger.warning(f"Persisting memory '{key}' failed, continuing with in-run memory only")
        return False

    memory.version = stamped.version
    memory.last_updated = stamped.last_updated
    logger.info(f"Persisted memory '{key}' at version {memory.version}")
    return True
