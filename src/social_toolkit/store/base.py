"""
Document store abstractions and patch-operation values.

The toolkit never talks to a concrete backend directly. Every read and write
goes through the 'DocumentStore' ABC, which offers exactly four capabilities:
point reads, one-shot and live queries, document creation and field patches.

Patches are expressed as a list of 'PatchOperation' values built by the core
('SetField', 'IncrementBy', 'SetAdd', 'SetRemove', 'SetNested') and interpreted
by the store, so no backend-specific mutation vocabulary leaks into the
interaction or conversation logic. Dotted paths address nested maps and integer
segments address list items, e.g. 'profile.karma' or 'poll_options.2.votes'.
Map entries keyed by user ids are addressed with an explicit 'key' instead
('SetNested', 'IncrementBy(key=...)'), since ids may contain dots.

Concrete implementations: 'InMemoryDocumentStore'.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Document = dict[str, Any]
SnapshotCallback = Callable[[list[Document]], None]


class StoreError(Exception):
    """Raised by store implementations when a remote operation fails."""


class DocumentNotFoundError(StoreError):
    """Raised when a patch targets a document that does not exist."""


class _ServerTimestamp:
    """Sentinel replaced by the store's own clock when a document is written."""

    _instance: "_ServerTimestamp | None" = None

    def __new__(cls) -> "_ServerTimestamp":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __copy__(self) -> "_ServerTimestamp":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_ServerTimestamp":
        return self

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP: Any = _ServerTimestamp()


class FieldFilter(BaseModel):
    """A single query predicate on one (possibly dotted) field."""

    model_config = ConfigDict(frozen=True)

    field: str
    op: Literal["==", "array_contains", "in"] = "=="
    value: Any


class OrderBy(BaseModel):
    model_config = ConfigDict(frozen=True)

    field: str
    descending: bool = False


class _Operation(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str


class SetField(_Operation):
    op: Literal["set"] = "set"
    value: Any


class IncrementBy(_Operation):
    """Add 'delta' to the number at 'path', or to the entry 'key' of the map at 'path' when given."""

    op: Literal["increment"] = "increment"
    delta: int
    key: str | None = None


class SetAdd(_Operation):
    """Add 'element' to the list at 'path' unless it is already present."""

    op: Literal["set_add"] = "set_add"
    element: Any


class SetRemove(_Operation):
    """Remove every occurrence of 'element' from the list at 'path'."""

    op: Literal["set_remove"] = "set_remove"
    element: Any


class SetNested(_Operation):
    """Set one entry of the map at 'path', e.g. a per-user counter or ballot."""

    op: Literal["set_nested"] = "set_nested"
    key: str
    value: Any


PatchOperation = Annotated[
    Union[SetField, IncrementBy, SetAdd, SetRemove, SetNested],
    Field(discriminator="op"),
]


class Subscription:
    """
    Handle for a live query.

    'unsubscribe' is idempotent and guarantees that no further snapshot reaches
    the callback once it returns. Subscriptions can be used as context managers
    so a view's lifetime bounds the listener's.
    """

    def __init__(self, on_unsubscribe: Callable[[], None]) -> None:
        self._on_unsubscribe: Callable[[], None] | None = on_unsubscribe

    @property
    def active(self) -> bool:
        return self._on_unsubscribe is not None

    def unsubscribe(self) -> None:
        if self._on_unsubscribe is None:
            return
        on_unsubscribe, self._on_unsubscribe = self._on_unsubscribe, None
        on_unsubscribe()

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.unsubscribe()


class DocumentStore(ABC):
    """
    Abstract remote document store with live-query subscriptions.

    Implementations decide their own transport and consistency model; the
    toolkit only assumes writes are eventually reflected in later snapshots.
    Snapshots are whole materialised query results, never diffs.

    Every failed remote operation must surface as 'StoreError' (or a subclass).
    Implementations wrap their transport and backend exceptions in it; the
    services only roll back or report 'StoreError' and let
    anything else propagate as a programming error.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Document | None:
        """Return the document with its 'id' field, or None if absent."""
        pass

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> list[Document]:
        """One-shot variant of 'subscribe'."""
        pass

    @abstractmethod
    def subscribe(
        self,
        collection: str,
        callback: SnapshotCallback,
        filters: Sequence[FieldFilter] = (),
        order_by: Sequence[OrderBy] = (),
    ) -> Subscription:
        """Deliver the current result to 'callback' and again whenever it changes."""
        pass

    @abstractmethod
    async def create(self, collection: str, fields: Document) -> str:
        """Insert a new document and return its generated id."""
        pass

    @abstractmethod
    async def patch(self, collection: str, doc_id: str, operations: Sequence[PatchOperation]) -> None:
        """Apply 'operations' atomically to one document."""
        pass
