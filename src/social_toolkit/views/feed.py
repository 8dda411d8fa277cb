"""
Live feed view.

'FeedView' joins two independent subscriptions: every post, and the viewer's
own profile (for the ids they follow). Whichever delivers, the channel is
recomposed from the latest value of both, so a profile update reorders the
'following' channel without waiting for new posts. Each posts snapshot is also
reconciled into the 'InteractionController', keeping in-flight optimistic
votes intact. Closing the view releases the interaction state it reconciled,
except for posts with a mutation still in flight.
"""

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.post import Post
from social_toolkit.data_models.user import UserProfile
from social_toolkit.feed.composer import FeedChannel, compose_feed
from social_toolkit.interactions.controller import InteractionController
from social_toolkit.interactions.state import PostInteraction
from social_toolkit.profiles.service import ProfileService
from social_toolkit.store.base import DocumentStore, OrderBy
from social_toolkit.views.base import LiveView


class FeedView(LiveView[list[Post]]):
    def __init__(
        self,
        store: DocumentStore,
        interactions: InteractionController,
        viewer_id: str,
        channel: FeedChannel | str = FeedChannel.FOR_YOU,
        target_id: str | None = None,
        settings: ToolkitSettings | None = None,
    ) -> None:
        super().__init__([])
        settings = settings or ToolkitSettings()
        self.interactions = interactions
        self.viewer_id = viewer_id
        self.channel = FeedChannel(channel)
        self.target_id = target_id
        self._posts: list[Post] = []
        self._following: list[str] = []

        self._track(
            store.subscribe(
                settings.posts_collection,
                self._on_posts,
                order_by=[OrderBy(field="created_at", descending=True)],
            )
        )
        self._track(ProfileService(store, settings).listen_to_profile(viewer_id, self._on_profile))

    @property
    def following_ids(self) -> list[str]:
        return list(self._following)

    def set_channel(self, channel: FeedChannel | str, target_id: str | None = None) -> None:
        self.channel = FeedChannel(channel)
        self.target_id = target_id
        self._recompose()

    def interaction(self, post: Post) -> PostInteraction:
        return self.interactions.interaction(post, self.viewer_id)

    def close(self) -> None:
        if self.closed:
            return
        super().close()
        self.interactions.release((post.id for post in self._posts), self.viewer_id)

    def _on_posts(self, documents: list[dict]) -> None:
        if self.closed:
            return
        self._posts = [Post.model_validate(d) for d in documents]
        self.interactions.reconcile_all(self._posts, self.viewer_id)
        self._recompose()

    def _on_profile(self, profile: UserProfile | None) -> None:
        if self.closed:
            return
        self._following = profile.following if profile else []
        self._recompose()

    def _recompose(self) -> None:
        self._publish(
            compose_feed(
                self._posts,
                self.channel,
                following_ids=self._following,
                viewer_id=self.viewer_id,
                target_id=self.target_id,
            )
        )
