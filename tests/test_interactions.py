import asyncio
import itertools

import pytest

from conftest import FlakyStore, HangingStore, poll_document, post_document
from social_toolkit.data_models.post import Post
from social_toolkit.errors import InvalidTransition, TransientRemoteFailure
from social_toolkit.interactions import (
    InteractionController,
    PostInteraction,
    Vote,
    cast_poll_vote,
    poll_percentages,
    toggle_bookmark,
    toggle_downvote,
    toggle_upvote,
)
from social_toolkit.store.base import IncrementBy, SetAdd, SetNested, SetRemove


def fresh_state(**overrides: object) -> PostInteraction:
    return PostInteraction(post_id="p1", viewer_id="v", **overrides)


async def seed(store: FlakyStore, document: dict) -> Post:
    await store.create("posts", document)
    return Post.model_validate(await store.get("posts", document["id"]))


# pure transitions


@pytest.mark.parametrize(
    ("start", "toggle", "expected_vote", "score_delta"),
    [
        (Vote.NONE, toggle_upvote, Vote.UP, 1),
        (Vote.UP, toggle_upvote, Vote.NONE, -1),
        (Vote.DOWN, toggle_upvote, Vote.UP, 2),
        (Vote.NONE, toggle_downvote, Vote.DOWN, -1),
        (Vote.DOWN, toggle_downvote, Vote.NONE, 1),
        (Vote.UP, toggle_downvote, Vote.DOWN, -2),
    ],
)
def test_vote_transition_table(start, toggle, expected_vote, score_delta) -> None:
    state = fresh_state(vote=start, score=10)
    transition = toggle(state)
    assert transition.state.vote == expected_vote
    assert transition.state.score == 10 + score_delta


def test_switching_vote_moves_viewer_between_sets() -> None:
    transition = toggle_upvote(fresh_state(vote=Vote.DOWN))
    assert transition.operations == (
        SetRemove(path="downvoted_by", element="v"),
        IncrementBy(path="downvotes", delta=-1),
        SetAdd(path="upvoted_by", element="v"),
        IncrementBy(path="upvotes", delta=1),
    )


def test_upvote_twice_restores_state() -> None:
    for start in Vote:
        state = fresh_state(vote=start, score=3)
        assert toggle_upvote(toggle_upvote(state).state).state == state
        assert toggle_downvote(toggle_downvote(state).state).state == state


@pytest.mark.parametrize("length", [1, 2, 3, 5])
def test_any_toggle_sequence_matches_vote_weight(length: int) -> None:
    weight = {Vote.NONE: 0, Vote.UP: 1, Vote.DOWN: -1}
    for sequence in itertools.product([toggle_upvote, toggle_downvote], repeat=length):
        state = fresh_state(score=0)
        expected = Vote.NONE
        for toggle in sequence:
            state = toggle(state).state
            target = Vote.UP if toggle is toggle_upvote else Vote.DOWN
            expected = Vote.NONE if expected == target else target
        assert state.vote == expected
        assert state.score == weight[expected]


def test_bookmark_is_independent_of_vote() -> None:
    state = fresh_state(vote=Vote.UP, score=1)
    on = toggle_bookmark(state)
    assert on.state.bookmarked and on.state.vote == Vote.UP and on.state.score == 1
    assert on.operations == (SetAdd(path="bookmarked_by", element="v"),)
    off = toggle_bookmark(on.state)
    assert not off.state.bookmarked
    assert off.operations == (SetRemove(path="bookmarked_by", element="v"),)


def test_poll_vote_transition() -> None:
    transition = cast_poll_vote(fresh_state(poll_counts=(1, 0, 2)), 1)
    assert transition.state.poll_choice == 1
    assert transition.state.poll_counts == (1, 1, 2)
    assert transition.operations == (
        IncrementBy(path="poll_options.1.votes", delta=1),
        SetNested(path="poll_voted_by", key="v", value=1),
    )


@pytest.mark.parametrize("index", [-1, 3, 10])
def test_poll_vote_out_of_range_is_invalid(index: int) -> None:
    with pytest.raises(InvalidTransition):
        cast_poll_vote(fresh_state(poll_counts=(0, 0, 0)), index)


def test_poll_revote_is_invalid() -> None:
    with pytest.raises(InvalidTransition):
        cast_poll_vote(fresh_state(poll_counts=(1, 0), poll_choice=0), 1)


def test_poll_percentages() -> None:
    assert poll_percentages((0, 0, 0)) == [0, 0, 0]
    assert poll_percentages((1, 1, 1)) == [33, 33, 33]
    assert poll_percentages((1, 7)) == [13, 88]
    assert poll_percentages((3, 1)) == [75, 25]
    assert poll_percentages(()) == []


def test_interaction_from_post() -> None:
    post = Post.model_validate(
        poll_document("p1", counts=(2, 1), upvoted_by=["v", "w"], downvoted_by=["x"], bookmarked_by=["v"])
        | {"poll_voted_by": {"v": 0}}
    )
    state = PostInteraction.from_post(post, "v")
    assert state.vote == Vote.UP
    assert state.score == 1
    assert state.bookmarked
    assert state.poll_choice == 0
    assert state.poll_counts == (2, 1)
    assert PostInteraction.from_post(post, "x").vote == Vote.DOWN


# optimistic controller


@pytest.mark.asyncio
async def test_upvote_applies_immediately_and_persists(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)

    task = controller.toggle_upvote(post, "v")
    local = controller.get("p1", "v")
    assert local.vote == Vote.UP and local.score == 1
    assert controller.is_pending("p1", "v", "vote")

    confirmed = await task
    assert confirmed.vote == Vote.UP
    assert not controller.is_pending("p1", "v")
    stored = await store.get("posts", "p1")
    assert stored["upvoted_by"] == ["v"]
    assert stored["upvotes"] == 1


@pytest.mark.asyncio
async def test_failed_vote_rolls_back(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1", upvoted_by=["other"], upvotes=1))
    controller = InteractionController(store)
    store.fail("patch", "posts")

    task = controller.toggle_downvote(post, "v")
    assert controller.get("p1", "v").score == 0

    with pytest.raises(TransientRemoteFailure):
        await task
    restored = controller.get("p1", "v")
    assert restored.vote == Vote.NONE
    assert restored.score == 1
    assert not controller.is_pending("p1", "v")


@pytest.mark.asyncio
async def test_retry_after_rollback_succeeds(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)
    store.fail("patch", "posts")
    with pytest.raises(TransientRemoteFailure):
        await controller.toggle_upvote(post, "v")

    store.recover()
    await controller.toggle_upvote(post, "v")
    assert controller.get("p1", "v").vote == Vote.UP
    assert (await store.get("posts", "p1"))["upvoted_by"] == ["v"]


@pytest.mark.asyncio
async def test_vote_rollback_keeps_bookmark(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)

    bookmark = controller.toggle_bookmark(post, "v")
    await bookmark
    store.fail("patch", "posts")
    vote = controller.toggle_upvote(post, "v")
    with pytest.raises(TransientRemoteFailure):
        await vote

    state = controller.get("p1", "v")
    assert state.bookmarked
    assert state.vote == Vote.NONE


@pytest.mark.asyncio
async def test_failed_bookmark_rolls_back(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1", bookmarked_by=["v"]))
    controller = InteractionController(store)
    store.fail("patch", "posts")

    task = controller.toggle_bookmark(post, "v")
    assert not controller.get("p1", "v").bookmarked
    with pytest.raises(TransientRemoteFailure):
        await task
    assert controller.get("p1", "v").bookmarked


@pytest.mark.asyncio
async def test_poll_vote_counts_once(store: FlakyStore) -> None:
    post = await seed(store, poll_document("p1", counts=(0, 0, 0)))
    controller = InteractionController(store)

    await controller.vote_poll(post, "v", 1)
    assert controller.vote_poll(post, "v", 2) is None
    assert controller.vote_poll(post, "v", 1) is None

    stored = await store.get("posts", "p1")
    assert [o["votes"] for o in stored["poll_options"]] == [0, 1, 0]
    assert stored["poll_voted_by"] == {"v": 1}
    assert controller.get("p1", "v").poll_percentages() == [0, 100, 0]


@pytest.mark.asyncio
async def test_invalid_poll_vote_makes_no_remote_call(store: FlakyStore) -> None:
    post = await seed(store, poll_document("p1", counts=(0, 0)))
    controller = InteractionController(store)

    assert controller.vote_poll(post, "v", 5) is None
    assert store.patch_calls == []
    assert controller.interaction(post, "v").poll_choice is None


@pytest.mark.asyncio
async def test_failed_poll_vote_is_not_rolled_back(store: FlakyStore) -> None:
    post = await seed(store, poll_document("p1", counts=(0, 0)))
    controller = InteractionController(store)
    store.fail("patch", "posts")

    with pytest.raises(TransientRemoteFailure):
        await controller.vote_poll(post, "v", 0)
    state = controller.get("p1", "v")
    assert state.poll_choice == 0
    assert state.poll_counts == (1, 0)


@pytest.mark.asyncio
async def test_unresolved_patch_keeps_optimistic_state() -> None:
    store = HangingStore()
    await store.create("posts", post_document("p1"))
    post = Post.model_validate(await store.get("posts", "p1"))
    controller = InteractionController(store)

    task = controller.toggle_upvote(post, "v")
    await asyncio.sleep(0.01)
    assert not task.done()
    assert controller.get("p1", "v").vote == Vote.UP
    assert controller.is_pending("p1", "v", "vote")

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert controller.get("p1", "v").vote == Vote.UP


@pytest.mark.asyncio
async def test_reconcile_keeps_pending_vote_and_merges_other_votes(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)

    task = controller.toggle_upvote(post, "v")
    snapshot = Post.model_validate(post_document("p1", upvoted_by=["w"], upvotes=1))
    reconciled = controller.reconcile(snapshot, "v")
    assert reconciled.vote == Vote.UP
    assert reconciled.score == 2

    await task
    settled = controller.reconcile(Post.model_validate(await store.get("posts", "p1")), "v")
    assert settled.vote == Vote.UP
    assert settled.score == 1


@pytest.mark.asyncio
async def test_reconcile_without_pending_takes_snapshot(store: FlakyStore) -> None:
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)
    controller.interaction(post, "v")

    snapshot = Post.model_validate(post_document("p1", downvoted_by=["v"], bookmarked_by=["v"]))
    state = controller.reconcile(snapshot, "v")
    assert state.vote == Vote.DOWN
    assert state.bookmarked
    assert state.score == -1


@pytest.mark.asyncio
async def test_release_keeps_only_pending_state() -> None:
    store = HangingStore()
    for post_id in ("p1", "p2"):
        await store.create("posts", post_document(post_id))
    posts = [Post.model_validate(d) for d in await store.query("posts")]
    controller = InteractionController(store)
    controller.reconcile_all(posts, "v")
    task = controller.toggle_upvote(posts[0], "v")

    controller.release(["p1", "p2"], "v")
    assert controller.get("p1", "v").vote == Vote.UP
    assert controller.get("p2", "v") is None
    assert controller.tracked_count == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task


class BrokenAdapterStore(FlakyStore):
    """A store that leaks a raw transport error instead of wrapping it."""

    async def patch(self, collection, doc_id, operations) -> None:
        raise ConnectionResetError("socket closed")


@pytest.mark.asyncio
async def test_unwrapped_store_error_propagates_and_settles(clock) -> None:
    store = BrokenAdapterStore(clock)
    post = await seed(store, post_document("p1"))
    controller = InteractionController(store)

    with pytest.raises(ConnectionResetError):
        await controller.toggle_upvote(post, "v")
    assert not controller.is_pending("p1", "v")
