import asyncio
from collections.abc import Sequence
from typing import Any

import pytest

from social_toolkit.store.base import Document, PatchOperation, StoreError
from social_toolkit.store.in_memory import InMemoryDocumentStore

START = 1_700_000_000_000


class FakeClock:
    def __init__(self, now: int = START) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1_000) -> int:
        self.now += ms
        return self.now


class FlakyStore(InMemoryDocumentStore):
    """In-memory store whose writes fail on demand, per operation and collection."""

    def __init__(self, clock: FakeClock) -> None:
        super().__init__(clock=clock)
        self.failing: set[tuple[str, str]] = set()
        self.patch_calls: list[tuple[str, str, list[PatchOperation]]] = []

    def fail(self, operation: str, collection: str) -> None:
        self.failing.add((operation, collection))

    def recover(self) -> None:
        self.failing.clear()

    async def create(self, collection: str, fields: Document) -> str:
        if ("create", collection) in self.failing:
            raise StoreError(f"simulated outage creating in {collection}")
        return await super().create(collection, fields)

    async def patch(self, collection: str, doc_id: str, operations: Sequence[PatchOperation]) -> None:
        self.patch_calls.append((collection, doc_id, list(operations)))
        if ("patch", collection) in self.failing:
            raise StoreError(f"simulated outage patching {collection}/{doc_id}")
        await super().patch(collection, doc_id, operations)


class HangingStore(InMemoryDocumentStore):
    """Patches never complete, like a request stuck on a dead connection."""

    async def patch(self, collection: str, doc_id: str, operations: Sequence[PatchOperation]) -> None:
        await asyncio.Event().wait()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> FlakyStore:
    return FlakyStore(clock)


def post_document(post_id: str, **overrides: Any) -> Document:
    document: Document = {
        "id": post_id,
        "author_id": "author",
        "username": "author",
        "text": f"post {post_id}",
        "post_type": "text",
        "upvotes": 0,
        "downvotes": 0,
        "upvoted_by": [],
        "downvoted_by": [],
        "bookmarked_by": [],
        "comment_count": 0,
        "created_at": START,
    }
    document.update(overrides)
    return document


def poll_document(post_id: str, counts: Sequence[int] = (0, 0, 0), **overrides: Any) -> Document:
    return post_document(
        post_id,
        post_type="poll",
        poll_options=[{"text": f"option {i}", "votes": votes} for i, votes in enumerate(counts)],
        poll_voted_by={},
        **overrides,
    )
