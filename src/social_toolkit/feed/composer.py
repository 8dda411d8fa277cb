"""
Feed composition.

'compose_feed' selects and orders the posts of one channel from the latest
posts snapshot. It is a pure function of its inputs and is re-run on every
snapshot, so a channel switch or a profile update never needs a new query.

Channels:
    for_you      every post, newest first.
    following    posts by the viewer or by anyone the viewer follows, newest first.
    trending     every post by 'trending_score', ties broken newest first.
    community    posts of one community, newest first.
    confessions  confession posts, newest first.
    profile      posts authored by one user, newest first.
    bookmarks    posts the viewer bookmarked, newest first.

Every ordering ends with the post id as a tie-breaker, so identical inputs
always give an identical output regardless of snapshot order.
"""

from collections.abc import Callable, Collection, Sequence
from enum import StrEnum

from social_toolkit.data_models.post import Post, PostType


class FeedChannel(StrEnum):
    FOR_YOU = "for_you"
    FOLLOWING = "following"
    TRENDING = "trending"
    COMMUNITY = "community"
    CONFESSIONS = "confessions"
    PROFILE = "profile"
    BOOKMARKS = "bookmarks"


def trending_score(post: Post) -> int:
    """Upvotes (or legacy likes) plus twice the comment count."""
    return post.effective_upvotes + post.effective_comment_count * 2


def _newest_first(posts: Sequence[Post]) -> list[Post]:
    # posts with a pending server timestamp are the most recent ones
    ordered = sorted(posts, key=lambda p: p.id)
    return sorted(ordered, key=lambda p: (p.created_at is None, p.created_at or 0), reverse=True)


def _by_trending(posts: Sequence[Post]) -> list[Post]:
    ordered = _newest_first(posts)
    return sorted(ordered, key=trending_score, reverse=True)


def compose_feed(
    posts: Sequence[Post],
    channel: FeedChannel | str,
    following_ids: Collection[str] = (),
    viewer_id: str | None = None,
    target_id: str | None = None,
) -> list[Post]:
    """
    Return the ordered posts of 'channel'.

    Args:
        posts: The latest posts snapshot.
        channel: Channel to compose.
        following_ids: Ids the viewer follows, used by 'following'.
        viewer_id: The viewing user, used by 'following' and 'bookmarks'.
        target_id: Community id for 'community', author id for 'profile'.
    """
    channel = FeedChannel(channel)
    following = set(following_ids)

    predicates: dict[FeedChannel, Callable[[Post], bool]] = {
        FeedChannel.FOR_YOU: lambda p: True,
        FeedChannel.TRENDING: lambda p: True,
        FeedChannel.FOLLOWING: lambda p: p.author_id is not None
        and (p.author_id == viewer_id or p.author_id in following),
        FeedChannel.COMMUNITY: lambda p: target_id is not None and p.community_id == target_id,
        FeedChannel.CONFESSIONS: lambda p: p.post_type == PostType.CONFESSION,
        FeedChannel.PROFILE: lambda p: target_id is not None and p.author_id == target_id,
        FeedChannel.BOOKMARKS: lambda p: viewer_id is not None and viewer_id in p.bookmarked_by,
    }
    selected = [post for post in posts if predicates[channel](post)]

    if channel == FeedChannel.TRENDING:
        return _by_trending(selected)
    return _newest_first(selected)
