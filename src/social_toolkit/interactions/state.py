"""
Per-(post, viewer) interaction state.

'PostInteraction' is the explicit value a client holds for one viewer on one
post: the vote, the bookmark flag, the poll ballot, and the locally displayed
score and poll counts. It is immutable; every change produces a new value, which
keeps the transition logic testable without any UI or store.
"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from social_toolkit.data_models.post import Post


class Vote(StrEnum):
    NONE = "none"
    UP = "up"
    DOWN = "down"


VOTE_WEIGHT = {Vote.NONE: 0, Vote.UP: 1, Vote.DOWN: -1}


class PostInteraction(BaseModel):
    """
    One viewer's interaction with one post.

    Attributes:
        vote: The viewer's current vote.
        score: Displayed net score (upvoters minus downvoters), including the viewer's own vote.
        bookmarked: Whether the viewer saved the post.
        poll_choice: Index of the option the viewer voted for, None while unvoted.
        poll_counts: Displayed vote count per poll option, empty for non-poll posts.
    """

    model_config = ConfigDict(frozen=True)

    post_id: str
    viewer_id: str
    vote: Vote = Vote.NONE
    score: int = 0
    bookmarked: bool = False
    poll_choice: int | None = None
    poll_counts: tuple[int, ...] = ()

    @classmethod
    def from_post(cls, post: Post, viewer_id: str) -> "PostInteraction":
        if viewer_id in post.upvoted_by:
            vote = Vote.UP
        elif viewer_id in post.downvoted_by:
            vote = Vote.DOWN
        else:
            vote = Vote.NONE
        return cls(
            post_id=post.id,
            viewer_id=viewer_id,
            vote=vote,
            score=post.score,
            bookmarked=viewer_id in post.bookmarked_by,
            poll_choice=post.poll_voted_by.get(viewer_id),
            poll_counts=tuple(option.votes for option in post.poll_options or ()),
        )

    @property
    def has_voted_poll(self) -> bool:
        return self.poll_choice is not None

    @property
    def poll_total(self) -> int:
        return sum(self.poll_counts)

    def poll_percentages(self) -> list[int]:
        return poll_percentages(self.poll_counts)


def poll_percentages(counts: tuple[int, ...] | list[int]) -> list[int]:
    """Whole-number share of each option, rounding halves up. All zeros when nobody voted."""
    total = sum(counts)
    if total == 0:
        return [0 for _ in counts]
    return [(200 * votes + total) // (2 * total) for votes in counts]
