"""
In-memory document store.

'InMemoryDocumentStore' is the reference 'DocumentStore' used by the test-suite
and for local development. It keeps every collection in a dict, applies patch
operations atomically on a deep copy of the target document, and pushes a fresh
snapshot to every live query whose result changed after a write.

Ordering follows the same rule for every query: the requested 'OrderBy' keys
in sequence, documents missing an ordering field (for instance a server
timestamp that has not been assigned yet) after all documents that have it,
and the document id as the final tie-breaker.
"""

import copy
import itertools
from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from social_toolkit.store.base import (
    SERVER_TIMESTAMP,
    Document,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    IncrementBy,
    OrderBy,
    PatchOperation,
    SetAdd,
    SetField,
    SetNested,
    SetRemove,
    SnapshotCallback,
    StoreError,
    Subscription,
)
from social_toolkit.utils.database import generate_uid
from social_toolkit.utils.time import get_current_timestamp

_MISSING = object()


def resolve_path(document: Any, path: str) -> Any:
    """Return the value at a dotted 'path', or '_MISSING' when any segment is absent."""
    current = document
    for segment in path.split("."):
        if isinstance(current, dict):
            if segment not in current:
                return _MISSING
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return _MISSING
            current = current[index]
        else:
            return _MISSING
    return current


def _matches(document: Document, field_filter: FieldFilter) -> bool:
    value = resolve_path(document, field_filter.field)
    if value is _MISSING:
        return False
    if field_filter.op == "==":
        return bool(value == field_filter.value)
    if field_filter.op == "array_contains":
        return isinstance(value, list) and field_filter.value in value
    return value in field_filter.value


def _sorted(documents: list[Document], order_by: Sequence[OrderBy]) -> list[Document]:
    result = sorted(documents, key=lambda d: d["id"])
    for order in reversed(order_by):
        present = [d for d in result if resolve_path(d, order.field) not in (_MISSING, None)]
        missing = [d for d in result if resolve_path(d, order.field) in (_MISSING, None)]
        present.sort(key=lambda d: resolve_path(d, order.field), reverse=order.descending)
        result = present + missing
    return result


class _Listener:
    def __init__(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[FieldFilter],
        order_by: Sequence[OrderBy],
    ) -> None:
        self.collection = collection
        self.callback = callback
        self.filters = tuple(filters)
        self.order_by = tuple(order_by)
        self.last_snapshot: list[Document] | None = None


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed 'DocumentStore' with synchronous snapshot delivery.

    Snapshots are delivered inside the write that caused them, which keeps
    tests deterministic. Each delivered snapshot is a deep copy, so subscribers
    can never mutate stored state. An exception raised by a subscriber is logged
    and does not affect the write or other subscribers.

    Attributes:
        clock: Callable returning epoch milliseconds, used for 'SERVER_TIMESTAMP'.
    """

    def __init__(self, clock: Callable[[], int] = get_current_timestamp) -> None:
        self.clock = clock
        self._collections: dict[str, dict[str, Document]] = {}
        self._listeners: dict[int, _Listener] = {}
        self._listener_ids = itertools.count()

    async def get(self, collection: str, doc_id: str) -> Document | None:
        document = self._collections.get(collection, {}).get(doc_id)
        return copy.deepcopy(document) if document is not None else None

    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[Document]:
        return self._run_query(collection, filters, order_by)

    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> Subscription:
        listener_id = next(self._listener_ids)
        listener = _Listener(collection, callback, filters, order_by)
        self._listeners[listener_id] = listener
        logger.debug(f"Subscribed listener {listener_id} to '{collection}'")
        subscription = Subscription(lambda: self._remove_listener(listener_id))
        self._deliver(listener_id, listener)
        return subscription

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    async def create(self, collection: str, fields: Document) -> str:
        doc_id = fields.get("id") or generate_uid()
        now = self.clock()
        document = self._resolve_timestamps(copy.deepcopy(fields), now)
        document["id"] = doc_id
        self._collections.setdefault(collection, {})[doc_id] = document
        self._notify(collection)
        return doc_id

    async def patch(self, collection: str, doc_id: str, operations: Sequence[PatchOperation]) -> None:
        stored = self._collections.get(collection, {}).get(doc_id)
        if stored is None:
            raise DocumentNotFoundError(f"Document '{collection}/{doc_id}' not found")
        now = self.clock()
        document = copy.deepcopy(stored)
        for operation in operations:
            self._apply(document, operation, now)
        self._collections[collection][doc_id] = document
        self._notify(collection)

    def _run_query(
        self, collection: str, filters: Sequence[FieldFilter], order_by: Sequence[OrderBy]
    ) -> list[Document]:
        documents = [
            copy.deepcopy(document)
            for document in self._collections.get(collection, {}).values()
            if all(_matches(document, f) for f in filters)
        ]
        return _sorted(documents, order_by)

    def _remove_listener(self, listener_id: int) -> None:
        self._listeners.pop(listener_id, None)
        logger.debug(f"Unsubscribed listener {listener_id}")

    def _notify(self, collection: str) -> None:
        for listener_id, listener in list(self._listeners.items()):
            if listener.collection == collection:
                self._deliver(listener_id, listener)

    def _deliver(self, listener_id: int, listener: _Listener) -> None:
        if listener_id not in self._listeners:
            return
        snapshot = self._run_query(listener.collection, listener.filters, listener.order_by)
        if snapshot == listener.last_snapshot:
            return
        listener.last_snapshot = snapshot
        try:
            listener.callback(copy.deepcopy(snapshot))
        except Exception:
            logger.exception(f"Snapshot callback for listener {listener_id} on '{listener.collection}' failed")

    def _resolve_timestamps(self, value: Any, now: int) -> Any:
        if value is SERVER_TIMESTAMP:
            return now
        if isinstance(value, dict):
            return {k: self._resolve_timestamps(v, now) for k, v in value.items()}
        if isinstance(value, list):
            return [self._resolve_timestamps(v, now) for v in value]
        return value

    def _apply(self, document: Document, operation: PatchOperation, now: int) -> None:
        parent, key = self._container_for(document, operation.path)
        current = self._read(parent, key)

        match operation:
            case SetField(value=value):
                self._write(parent, key, self._resolve_timestamps(copy.deepcopy(value), now))
            case IncrementBy(delta=delta, key=None):
                self._write(parent, key, self._incremented(current, delta, operation.path))
            case IncrementBy(delta=delta, key=entry):
                mapping = self._as_map(current, operation.path)
                mapping[entry] = self._incremented(mapping.get(entry, _MISSING), delta, f"{operation.path}[{entry!r}]")
                self._write(parent, key, mapping)
            case SetAdd(element=element):
                items = self._as_list(current, operation.path)
                if element not in items:
                    items.append(copy.deepcopy(element))
                self._write(parent, key, items)
            case SetRemove(element=element):
                items = self._as_list(current, operation.path)
                self._write(parent, key, [item for item in items if item != element])
            case SetNested(key=entry, value=value):
                mapping = self._as_map(current, operation.path)
                mapping[entry] = self._resolve_timestamps(copy.deepcopy(value), now)
                self._write(parent, key, mapping)
            case _:
                raise StoreError(f"Unsupported patch operation {operation!r}")

    @staticmethod
    def _incremented(current: Any, delta: int, path: str) -> int | float:
        base = 0 if current is _MISSING or current is None else current
        if not isinstance(base, (int, float)) or isinstance(base, bool):
            raise StoreError(f"Cannot increment non-numeric field '{path}'")
        return base + delta

    @staticmethod
    def _as_map(current: Any, path: str) -> dict[str, Any]:
        if current is _MISSING or current is None:
            return {}
        if not isinstance(current, dict):
            raise StoreError(f"Cannot set entry on non-map field '{path}'")
        return current

    @staticmethod
    def _as_list(current: Any, path: str) -> list[Any]:
        if current is _MISSING or current is None:
            return []
        if not isinstance(current, list):
            raise StoreError(f"Field '{path}' is not a list")
        return list(current)

    @staticmethod
    def _container_for(document: Document, path: str) -> tuple[Any, str]:
        """Walk to the parent of the last path segment, creating intermediate maps."""
        *parents, last = path.split(".")
        container: Any = document
        for segment in parents:
            if isinstance(container, list):
                if not segment.isdigit() or int(segment) >= len(container):
                    raise StoreError(f"Invalid list index '{segment}' in path '{path}'")
                container = container[int(segment)]
            elif isinstance(container, dict):
                container = container.setdefault(segment, {})
            else:
                raise StoreError(f"Cannot traverse '{segment}' in path '{path}'")
        if isinstance(container, list) and (not last.isdigit() or int(last) >= len(container)):
            raise StoreError(f"Invalid list index '{last}' in path '{path}'")
        if not isinstance(container, (dict, list)):
            raise StoreError(f"Cannot traverse '{last}' in path '{path}'")
        return container, last

    @staticmethod
    def _read(container: Any, key: str) -> Any:
        if isinstance(container, list):
            return container[int(key)]
        return container.get(key, _MISSING)

    @staticmethod
    def _write(container: Any, key: str, value: Any) -> None:
        if isinstance(container, list):
            container[int(key)] = value
        else:
            container[key] = value
