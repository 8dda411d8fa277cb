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
    StoreError,
    Subscription,
)
from social_toolkit.store.in_memory import InMemoryDocumentStore

__all__ = [
    "SERVER_TIMESTAMP",
    "Document",
    "DocumentNotFoundError",
    "DocumentStore",
    "FieldFilter",
    "InMemoryDocumentStore",
    "IncrementBy",
    "OrderBy",
    "PatchOperation",
    "SetAdd",
    "SetField",
    "SetNested",
    "SetRemove",
    "StoreError",
    "Subscription",
]
