"""Document store interface used by the monitoring pipeline."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Sequence


class StorageError(RuntimeError):
    """Raised when a document store operation fails."""


class Filter(NamedTuple):
    """Single ``field op value`` condition; ``field`` may be dotted."""

    field: str
    op: str
    value: Any


_MISSING = object()

SUPPORTED_OPS = {"==", "!=", ">=", "<=", ">", "<", "in"}


def get_field(document: Mapping[str, Any], path: str) -> Any:
    """Return the value at a dotted ``path`` or a sentinel when absent."""

    current: Any = document
    for part in path.split("."):
        if not isinstance(current, Mapping) or part not in current:
            return _MISSING
        current = current[part]
    return current


def _comparable(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def matches(document: Mapping[str, Any], filters: Sequence[Filter]) -> bool:
    """Evaluate all ``filters`` against ``document`` (logical AND)."""

    for flt in filters:
        if flt.op not in SUPPORTED_OPS:
            raise StorageError(f"Unsupported filter operator: {flt.op}")
        actual = get_field(document, flt.field)
        if actual is _MISSING:
            return False
        actual = _comparable(actual)
        if flt.op == "in":
            if actual not in [_comparable(v) for v in flt.value]:
                return False
            continue
        expected = _comparable(flt.value)
        try:
            if flt.op == "==" and not actual == expected:
                return False
            if flt.op == "!=" and not actual != expected:
                return False
            if flt.op == ">=" and not actual >= expected:
                return False
            if flt.op == "<=" and not actual <= expected:
                return False
            if flt.op == ">" and not actual > expected:
                return False
            if flt.op == "<" and not actual < expected:
                return False
        except TypeError:
            # mixed types never match, as in document databases
            return False
    return True


class DocumentStore(ABC):
    """Asynchronous collection/document store.

    Documents are plain mappings. ``add`` assigns the document key, which is
    returned so callers can update the same record later without re-querying.
    """

    @abstractmethod
    async def add(self, collection: str, document: Mapping[str, Any]) -> str:
        """Insert ``document`` and return its generated key."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the document stored under ``key`` or ``None``."""

    @abstractmethod
    async def update(
        self, collection: str, key: str, fields: Mapping[str, Any]
    ) -> None:
        """Merge ``fields`` into an existing document."""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        *,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Return documents in insertion order matching every filter."""

    async def count(self, collection: str, filters: Sequence[Filter] = ()) -> int:
        return len(await self.query(collection, filters))

    async def close(self) -> None:  # pragma: no cover - default no-op
        return None
