"""
Optimistic interaction controller.

'InteractionController' owns the local 'PostInteraction' value for every
(post, viewer) pair the client has seen. Each mutation runs in two phases:

    1. synchronously: compute the transition, store the new local state and
       schedule the remote patch as an 'asyncio.Task';
    2. later, inside the task: await the patch. On failure, votes and bookmarks
       are rolled back and the task raises 'TransientRemoteFailure'.

Callers get the task back right away and may await it or simply let it run.
The controller does not queue concurrent mutations on the same variable; the
caller is expected to disable the control while a task is pending. Poll ballots
are never rolled back, and a patch that never completes leaves the optimistic
state in place.
"""

import asyncio
from collections import Counter
from collections.abc import Callable, Iterable, Sequence

from loguru import logger

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.post import Post
from social_toolkit.errors import InvalidTransition, TransientRemoteFailure
from social_toolkit.interactions import transitions
from social_toolkit.interactions.state import VOTE_WEIGHT, PostInteraction
from social_toolkit.interactions.transitions import Transition
from social_toolkit.store.base import DocumentStore, PatchOperation, StoreError

InteractionKey = tuple[str, str]

VOTE = "vote"
BOOKMARK = "bookmark"
POLL = "poll"


class InteractionController:
    """
    Holds per-viewer interaction state and applies optimistic mutations.

    Attributes:
        store: Document store receiving the patches.
        collection: Name of the posts collection.
    """

    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.collection = (settings or ToolkitSettings()).posts_collection
        self._states: dict[InteractionKey, PostInteraction] = {}
        self._pending: dict[InteractionKey, Counter[str]] = {}
        self._tasks: set[asyncio.Task[PostInteraction]] = set()

    def interaction(self, post: Post, viewer_id: str) -> PostInteraction:
        """Return the local state for 'viewer_id' on 'post', deriving it from the post on first access."""
        key = (post.id, viewer_id)
        if key not in self._states:
            self._states[key] = PostInteraction.from_post(post, viewer_id)
        return self._states[key]

    def get(self, post_id: str, viewer_id: str) -> PostInteraction | None:
        return self._states.get((post_id, viewer_id))

    def is_pending(self, post_id: str, viewer_id: str, variable: str | None = None) -> bool:
        pending = self._pending.get((post_id, viewer_id))
        if not pending:
            return False
        return pending[variable] > 0 if variable else any(pending.values())

    def reconcile(self, post: Post, viewer_id: str) -> PostInteraction:
        """
        Refresh the local state from a new snapshot of 'post'.

        Variables with a mutation in flight keep their optimistic value; the
        displayed score and poll counts still pick up other viewers' changes.
        """
        key = (post.id, viewer_id)
        fresh = PostInteraction.from_post(post, viewer_id)
        current = self._states.get(key)
        if current is not None:
            fresh = self._overlay_pending(fresh, current, self._pending.get(key, Counter()))
        self._states[key] = fresh
        return fresh

    def reconcile_all(self, posts: Sequence[Post], viewer_id: str) -> None:
        for post in posts:
            self.reconcile(post, viewer_id)

    def toggle_upvote(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self._mutate(post, viewer_id, VOTE, transitions.toggle_upvote, rollback=True)

    def toggle_downvote(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self._mutate(post, viewer_id, VOTE, transitions.toggle_downvote, rollback=True)

    def toggle_bookmark(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self._mutate(post, viewer_id, BOOKMARK, transitions.toggle_bookmark, rollback=True)

    def vote_poll(self, post: Post, viewer_id: str, option_index: int) -> "asyncio.Task[PostInteraction] | None":
        """Cast a poll ballot. Returns None without any remote call when the ballot is not allowed."""
        try:
            return self._mutate(
                post,
                viewer_id,
                POLL,
                lambda state: transitions.cast_poll_vote(state, option_index),
                rollback=False,
            )
        except InvalidTransition as e:
            logger.debug(f"Ignored poll vote: {e}")
            return None

    def release(self, post_ids: Iterable[str], viewer_id: str) -> None:
        """Drop the local state of posts with no mutation in flight; pending ones stay tracked."""
        for post_id in post_ids:
            key = (post_id, viewer_id)
            if key not in self._pending:
                self._states.pop(key, None)

    @property
    def tracked_count(self) -> int:
        return len(self._states)

    async def drain(self) -> None:
        """Wait for every in-flight mutation to settle, ignoring their outcome."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    def _mutate(
        self,
        post: Post,
        viewer_id: str,
        variable: str,
        transition_fn: Callable[[PostInteraction], Transition],
        rollback: bool,
    ) -> "asyncio.Task[PostInteraction]":
        key = (post.id, viewer_id)
        before = self.interaction(post, viewer_id)
        transition = transition_fn(before)

        self._states[key] = transition.state
        self._pending.setdefault(key, Counter())[variable] += 1

        task = asyncio.get_running_loop().create_task(
            self._commit(key, variable, before, transition.operations, rollback)
        )
        self._tasks.add(task)
        task.add_done_callback(self._forget)
        return task

    async def _commit(
        self,
        key: InteractionKey,
        variable: str,
        before: PostInteraction,
        operations: Sequence[PatchOperation],
        rollback: bool,
    ) -> PostInteraction:
        post_id, viewer_id = key
        try:
            await self.store.patch(self.collection, post_id, list(operations))
        except StoreError as e:
            if rollback:
                self._states[key] = self._restore(self._states[key], before, variable)
                logger.warning(f"Rolled back {variable} of {viewer_id} on post {post_id}: {e}")
            else:
                logger.error(f"Failed to persist {variable} of {viewer_id} on post {post_id}, keeping local state: {e}")
            raise TransientRemoteFailure(f"Could not update {variable} on post {post_id}", cause=e) from e
        finally:
            self._settle(key, variable)
        return self._states[key]

    def _settle(self, key: InteractionKey, variable: str) -> None:
        pending = self._pending.get(key)
        if pending is None:
            return
        pending[variable] -= 1
        if pending[variable] <= 0:
            del pending[variable]
        if not pending:
            del self._pending[key]

    def _forget(self, task: "asyncio.Task[PostInteraction]") -> None:
        self._tasks.discard(task)
        if not task.cancelled():
            # failures are already logged in '_commit'
            task.exception()

    @staticmethod
    def _restore(current: PostInteraction, before: PostInteraction, variable: str) -> PostInteraction:
        if variable == VOTE:
            score = current.score - VOTE_WEIGHT[current.vote] + VOTE_WEIGHT[before.vote]
            return current.model_copy(update={"vote": before.vote, "score": score})
        if variable == BOOKMARK:
            return current.model_copy(update={"bookmarked": before.bookmarked})
        return current

    @staticmethod
    def _overlay_pending(fresh: PostInteraction, current: PostInteraction, pending: Counter[str]) -> PostInteraction:
        update: dict[str, object] = {}
        if pending[VOTE]:
            update["vote"] = current.vote
            update["score"] = fresh.score - VOTE_WEIGHT[fresh.vote] + VOTE_WEIGHT[current.vote]
        if pending[BOOKMARK]:
            update["bookmarked"] = current.bookmarked
        if pending[POLL] and fresh.poll_choice is None and current.poll_choice is not None:
            counts = list(fresh.poll_counts)
            if current.poll_choice < len(counts):
                counts[current.poll_choice] += 1
            update["poll_choice"] = current.poll_choice
            update["poll_counts"] = tuple(counts)
        return fresh.model_copy(update=update) if update else fresh
