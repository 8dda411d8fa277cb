"""
Profiles, the follow graph and community membership.

Following is stored on both sides: the follower's 'following' set and the
target's 'followers' set. The two patches are independent writes; a failure of
the second leaves the graph one-sided until the gesture is repeated, which is
harmless because both operations are set-add / set-remove and therefore
idempotent.
"""

from collections.abc import Callable

from loguru import logger

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.user import Community, UserProfile
from social_toolkit.errors import TransientRemoteFailure
from social_toolkit.store.base import (
    DocumentStore,
    FieldFilter,
    IncrementBy,
    PatchOperation,
    SetAdd,
    SetRemove,
    StoreError,
    Subscription,
)


class ProfileService:
    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ToolkitSettings()
        self.users = self.settings.users_collection
        self.communities = self.settings.communities_collection

    async def get_profile(self, user_id: str) -> UserProfile | None:
        document = await self.store.get(self.users, user_id)
        return UserProfile.model_validate(document) if document else None

    async def create_profile(self, profile: UserProfile) -> str:
        return await self.store.create(self.users, profile.model_dump())

    def listen_to_profile(self, user_id: str, callback: Callable[[UserProfile | None], None]) -> Subscription:
        return self.store.subscribe(
            self.users,
            lambda documents: callback(UserProfile.model_validate(documents[0]) if documents else None),
            filters=[FieldFilter(field="id", value=user_id)],
        )

    async def follow(self, follower_id: str, target_id: str) -> None:
        if follower_id == target_id:
            raise ValueError("Users cannot follow themselves")
        await self._update_edge(follower_id, target_id, SetAdd)
        logger.info(f"{follower_id} now follows {target_id}")

    async def unfollow(self, follower_id: str, target_id: str) -> None:
        await self._update_edge(follower_id, target_id, SetRemove)

    async def join_community(self, community_id: str, user_id: str) -> None:
        community = await self.get_community(community_id)
        if community is not None and user_id in community.members:
            return
        await self._patch(
            self.communities,
            community_id,
            [SetAdd(path="members", element=user_id), IncrementBy(path="member_count", delta=1)],
        )

    async def leave_community(self, community_id: str, user_id: str) -> None:
        community = await self.get_community(community_id)
        if community is not None and user_id not in community.members:
            return
        await self._patch(
            self.communities,
            community_id,
            [SetRemove(path="members", element=user_id), IncrementBy(path="member_count", delta=-1)],
        )

    async def get_community(self, community_id: str) -> Community | None:
        document = await self.store.get(self.communities, community_id)
        return Community.model_validate(document) if document else None

    async def _update_edge(self, follower_id: str, target_id: str, operation: type[SetAdd] | type[SetRemove]) -> None:
        await self._patch(self.users, follower_id, [operation(path="following", element=target_id)])
        await self._patch(self.users, target_id, [operation(path="followers", element=follower_id)])

    async def _patch(self, collection: str, doc_id: str, operations: list[PatchOperation]) -> None:
        try:
            await self.store.patch(collection, doc_id, operations)
        except StoreError as e:
            raise TransientRemoteFailure(f"Could not update {collection}/{doc_id}", cause=e) from e
