"""
Post creation and lookup.

'PostService.create_post' validates a draft the way the composer screen does
and writes a fully initialised post document: empty vote and bookmark sets,
zeroed counters, poll options with zero votes, and a server timestamp.
Confessions are written without any author identity.
"""

from collections.abc import Sequence

from loguru import logger
from pydantic import BaseModel, Field

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.post import PollOption, Post, PostType
from social_toolkit.errors import TransientRemoteFailure
from social_toolkit.store.base import SERVER_TIMESTAMP, DocumentStore, StoreError

ANONYMOUS_USERNAME = "Anonymous"


class PostDraft(BaseModel):
    """User input for a new post."""

    text: str
    post_type: PostType = PostType.TEXT
    community_id: str | None = None
    community_name: str | None = None
    image: str | None = None
    poll_options: list[str] = Field(default_factory=list)


class PostService:
    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ToolkitSettings()
        self.collection = self.settings.posts_collection

    async def get_post(self, post_id: str) -> Post | None:
        document = await self.store.get(self.collection, post_id)
        return Post.model_validate(document) if document else None

    async def create_post(self, draft: PostDraft, author_id: str, username: str = "", university: str = "") -> str:
        text = draft.text.strip()
        if not text:
            raise ValueError("Post text must not be empty")

        is_confession = draft.post_type == PostType.CONFESSION
        fields = {
            "author_id": None if is_confession else author_id,
            "username": ANONYMOUS_USERNAME if is_confession else username,
            "university": "" if is_confession else university,
            "community_id": draft.community_id,
            "community_name": draft.community_name,
            "text": text,
            "image": draft.image,
            "post_type": draft.post_type.value,
            "is_anonymous": is_confession,
            "upvotes": 0,
            "downvotes": 0,
            "upvoted_by": [],
            "downvoted_by": [],
            "bookmarked_by": [],
            "comment_count": 0,
            "created_at": SERVER_TIMESTAMP,
        }
        if draft.post_type == PostType.POLL:
            fields["poll_options"] = [option.model_dump() for option in self._poll_options(draft.poll_options)]
            fields["poll_voted_by"] = {}

        try:
            post_id = await self.store.create(self.collection, fields)
        except StoreError as e:
            raise TransientRemoteFailure("Could not create post", cause=e) from e
        logger.info(f"Created {draft.post_type} post {post_id}")
        return post_id

    def _poll_options(self, options: Sequence[str]) -> list[PollOption]:
        cleaned = [option.strip() for option in options if option.strip()]
        if not self.settings.min_poll_options <= len(cleaned) <= self.settings.max_poll_options:
            raise ValueError(
                f"A poll needs between {self.settings.min_poll_options} and "
                f"{self.settings.max_poll_options} options, got {len(cleaned)}"
            )
        return [PollOption(text=option) for option in cleaned]
