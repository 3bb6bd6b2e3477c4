from text_refinery.adapters.memory_store import (
    InMemoryMemoryStore,
    LocalJsonMemoryStore,
    MemoryStore,
    load_memory,
    persist_memory,
)

__all__ = [
    "InMemoryMemoryStore",
    "LocalJsonMemoryStore",
    "MemoryStore",
    "load_memory",
    "persist_memory",
]
