"""Render telemetry: per-render records and undefined-reference counts.

Both are owned by an Environment and are observational only; nothing here
affects rendered output. External collectors receive each RenderRecord
through the ``RenderCollector`` protocol:

    >>> class Printer:
    ...     def record(self, record: RenderRecord) -> None:
    ...         print(record.template, record.elapsed_ms)
    >>> env = Environment(loader=loader, collector=Printer())

Thread-Safety:
    RenderHistory and UndefinedCounter guard their state with a Lock.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True, slots=True)
class RenderRecord:
    """One completed ``Environment.render`` call.

    Attributes:
        template: Template name as requested
        path: Resolved source filename, or None for in-memory templates
        variables: Names of the call-site variables, sorted
        variable_count: Number of call-site variables
        elapsed_ms: Wall time for load (or cache hit) plus render
        memory_delta: Traced memory growth in bytes (0 unless tracemalloc is tracing)
        output_size: Length of the rendered output
        from_cache: True if the compiled template came from a cache
        timestamp: Completion time (seconds since the epoch)
    """

    template: str
    path: str | None
    variables: tuple[str, ...]
    variable_count: int
    elapsed_ms: float
    memory_delta: int
    output_size: int
    from_cache: bool
    timestamp: float


class RenderCollector(Protocol):
    """Receives one RenderRecord per completed render."""

    def record(self, record: RenderRecord) -> None: ...


class RenderHistory:
    """Bounded FIFO of RenderRecords.

    When full, the older half is dropped in one step rather than one record
    per render.
    """

    __slots__ = ("_limit", "_lock", "_records")

    def __init__(self, limit: int = 500):
        self._limit = limit
        self._records: list[RenderRecord] = []
        self._lock = threading.Lock()

    def record(self, record: RenderRecord) -> None:
        with self._lock:
            if len(self._records) >= self._limit:
                del self._records[: self._limit // 2]
            self._records.append(record)

    @property
    def records(self) -> list[RenderRecord]:
        """Snapshot of the retained records, oldest first."""
        with self._lock:
            return list(self._records)

    def clear(self) -> None:
        with self._lock:
            self._records.clear()

    def stats(self) -> dict[str, Any]:
        """Totals over the retained records."""
        with self._lock:
            records = list(self._records)
        from_cache = sum(1 for r in records if r.from_cache)
        return {
            "total": len(records),
            "total_time": sum(r.elapsed_ms for r in records),
            "total_memory": sum(r.memory_delta for r in records),
            "total_size": sum(r.output_size for r in records),
            "from_cache": from_cache,
            "compiled": len(records) - from_cache,
        }

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


@dataclass(frozen=True, slots=True)
class UndefinedReference:
    """How often a name was missing, and the most recent occurrence."""

    count: int
    message: str
    location: str


class UndefinedCounter:
    """Counts undefined references by name.

    At most ``limit`` distinct names are tracked; once full, names already
    present keep counting and new names are ignored.
    """

    __slots__ = ("_entries", "_limit", "_lock")

    def __init__(self, limit: int = 1000):
        self._limit = limit
        self._entries: dict[str, UndefinedReference] = {}
        self._lock = threading.Lock()

    def add(self, name: str, message: str, location: str) -> None:
        with self._lock:
            previous = self._entries.get(name)
            if previous is None:
                if len(self._entries) >= self._limit:
                    return
                count = 1
            else:
                count = previous.count + 1
            self._entries[name] = UndefinedReference(count, message, location)

    def snapshot(self) -> dict[str, UndefinedReference]:
        with self._lock:
            return dict(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
