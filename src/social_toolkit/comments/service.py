"""
Comment creation and live comment threads.

'add_comment' stores the comment first and then bumps the post's
'comment_count'. The counter is only used for display and trending, so a
failure of the second write is logged and tolerated: the comment itself is
already visible through the live thread.
"""

from collections.abc import Callable

from loguru import logger

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.comment import Comment
from social_toolkit.errors import TransientRemoteFailure
from social_toolkit.store.base import (
    SERVER_TIMESTAMP,
    DocumentStore,
    FieldFilter,
    IncrementBy,
    OrderBy,
    StoreError,
    Subscription,
)
from social_toolkit.threads.assembler import ThreadedComment, assemble_thread


class CommentService:
    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ToolkitSettings()
        self.collection = self.settings.comments_collection

    async def add_comment(
        self,
        post_id: str,
        author_id: str,
        text: str,
        parent_id: str | None = None,
        username: str = "",
        university: str = "",
    ) -> str:
        text = text.strip()
        if not text:
            raise ValueError("Comment text must not be empty")

        try:
            comment_id = await self.store.create(
                self.collection,
                {
                    "post_id": post_id,
                    "parent_id": parent_id,
                    "author_id": author_id,
                    "username": username,
                    "university": university,
                    "text": text,
                    "created_at": SERVER_TIMESTAMP,
                    "likes": 0,
                },
            )
        except StoreError as e:
            raise TransientRemoteFailure(f"Could not add comment to post {post_id}", cause=e) from e

        try:
            await self.store.patch(
                self.settings.posts_collection, post_id, [IncrementBy(path="comment_count", delta=1)]
            )
        except StoreError as e:
            logger.warning(f"Comment {comment_id} stored but comment count of post {post_id} is stale: {e}")
        return comment_id

    async def get_comments(self, post_id: str) -> list[Comment]:
        documents = await self.store.query(self.collection, **self._query(post_id))
        return [Comment.model_validate(d) for d in documents]

    def listen_to_comments(self, post_id: str, callback: Callable[[list[ThreadedComment]], None]) -> Subscription:
        """Deliver the assembled thread of 'post_id' on every comments snapshot."""
        return self.store.subscribe(
            self.collection,
            lambda documents: callback(assemble_thread([Comment.model_validate(d) for d in documents])),
            **self._query(post_id),
        )

    @staticmethod
    def _query(post_id: str) -> dict[str, list]:
        return {
            "filters": [FieldFilter(field="post_id", value=post_id)],
            "order_by": [OrderBy(field="created_at")],
        }
