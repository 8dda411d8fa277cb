"""
Post data model.

Posts are the unit of the feed. Interaction state lives on the post document
itself as viewer-id sets ('upvoted_by', 'downvoted_by', 'bookmarked_by') and a
ballot map ('poll_voted_by'), alongside denormalised counters used for sorting.
Confession posts carry no author id so that they can not be traced back to a
profile.

Older documents may still carry the legacy 'likes' and 'comments_count'
counters; readers fall back to them when the current counters are absent.
"""

from enum import StrEnum

from pydantic import BaseModel, Field


class PostType(StrEnum):
    TEXT = "text"
    IMAGE = "image"
    POLL = "poll"
    CONFESSION = "confession"


class PollOption(BaseModel):
    text: str
    votes: int = 0


class Post(BaseModel):
    """
    A single feed post as stored on the document store.

    A viewer id appears in at most one of 'upvoted_by' and 'downvoted_by'.
    'poll_options' is None for every type but 'poll'.
    """

    id: str
    author_id: str | None = None
    username: str = ""
    university: str = ""
    community_id: str | None = None
    community_name: str | None = None
    text: str = ""
    image: str | None = None
    post_type: PostType = PostType.TEXT
    is_anonymous: bool = False
    upvotes: int | None = None
    downvotes: int | None = None
    likes: int | None = None
    upvoted_by: list[str] = Field(default_factory=list)
    downvoted_by: list[str] = Field(default_factory=list)
    bookmarked_by: list[str] = Field(default_factory=list)
    poll_options: list[PollOption] | None = None
    poll_voted_by: dict[str, int] = Field(default_factory=dict)
    comment_count: int | None = None
    comments_count: int | None = None
    created_at: int | None = None

    @property
    def score(self) -> int:
        return len(self.upvoted_by) - len(self.downvoted_by)

    @property
    def effective_upvotes(self) -> int:
        if self.upvotes is not None:
            return self.upvotes
        return self.likes or 0

    @property
    def effective_comment_count(self) -> int:
        if self.comment_count is not None:
            return self.comment_count
        return self.comments_count or 0
