"""
Social toolkit controller (Facade).

'SocialToolkitController' is the single entry point for client logic. It wires
one 'DocumentStore' into the services that make up the feed:

    'InteractionController'  - optimistic votes, bookmarks and poll ballots.
    'PostService'            - post creation.
    'CommentService'         - comment creation and live threads.
    'ProfileService'         - profiles, follow graph, community membership.
    'ConversationDirectory'  - direct-message conversations and messages.

and hands out live views ('open_feed', 'open_comments', 'open_conversations',
'open_chat_room') whose lifetimes are owned by the caller. Every view must be
closed when its screen goes away; views are also context managers.

The input models ('CommentInput', 'MessageInput') carry the user-typed content
separately from the acting user, who is always passed as a 'UserProfile'.
"""

import asyncio

from pydantic import BaseModel

from social_toolkit.comments.service import CommentService
from social_toolkit.config import ToolkitSettings
from social_toolkit.conversations.directory import ConversationDirectory, MessageReceipt
from social_toolkit.data_models.conversation import ParticipantDetail
from social_toolkit.data_models.post import Post
from social_toolkit.data_models.user import UserProfile
from social_toolkit.feed.composer import FeedChannel
from social_toolkit.interactions.controller import InteractionController
from social_toolkit.interactions.state import PostInteraction
from social_toolkit.posts.service import PostDraft, PostService
from social_toolkit.profiles.service import ProfileService
from social_toolkit.store.base import DocumentStore
from social_toolkit.store.in_memory import InMemoryDocumentStore
from social_toolkit.views.comments import CommentThreadView
from social_toolkit.views.conversations import ChatRoomView, ConversationListView
from social_toolkit.views.feed import FeedView


class CommentInput(BaseModel):
    text: str
    parent_id: str | None = None


class MessageInput(BaseModel):
    text: str


def participant_detail(profile: UserProfile) -> ParticipantDetail:
    return ParticipantDetail(uid=profile.id, username=profile.username or "User", avatar=profile.avatar)


class SocialToolkitController:
    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ToolkitSettings()
        self.interactions = InteractionController(store, self.settings)
        self.posts = PostService(store, self.settings)
        self.comments = CommentService(store, self.settings)
        self.profiles = ProfileService(store, self.settings)
        self.directory = ConversationDirectory(store, self.settings)

    @classmethod
    def in_memory(cls, settings: ToolkitSettings | None = None) -> "SocialToolkitController":
        return cls(InMemoryDocumentStore(), settings)

    async def create_post(self, draft: PostDraft, author: UserProfile) -> str:
        return await self.posts.create_post(draft, author.id, author.username, author.university)

    def interaction(self, post: Post, viewer_id: str) -> PostInteraction:
        return self.interactions.interaction(post, viewer_id)

    def toggle_upvote(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self.interactions.toggle_upvote(post, viewer_id)

    def toggle_downvote(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self.interactions.toggle_downvote(post, viewer_id)

    def toggle_bookmark(self, post: Post, viewer_id: str) -> "asyncio.Task[PostInteraction]":
        return self.interactions.toggle_bookmark(post, viewer_id)

    def vote_poll(self, post: Post, viewer_id: str, option_index: int) -> "asyncio.Task[PostInteraction] | None":
        return self.interactions.vote_poll(post, viewer_id, option_index)

    async def add_comment(self, post_id: str, author: UserProfile, comment_input: CommentInput) -> str:
        return await self.comments.add_comment(
            post_id,
            author.id,
            comment_input.text,
            parent_id=comment_input.parent_id,
            username=author.username,
            university=author.university,
        )

    async def follow(self, viewer_id: str, target_id: str) -> None:
        await self.profiles.follow(viewer_id, target_id)

    async def unfollow(self, viewer_id: str, target_id: str) -> None:
        await self.profiles.unfollow(viewer_id, target_id)

    async def start_conversation(self, viewer: UserProfile, other: UserProfile) -> str:
        return await self.directory.get_or_create_conversation(
            viewer.id, other.id, participant_detail(viewer), participant_detail(other)
        )

    async def send_message(
        self, conversation_id: str, sender: UserProfile, message_input: MessageInput
    ) -> MessageReceipt:
        return await self.directory.send_message(conversation_id, sender.id, message_input.text, sender.username)

    async def mark_conversation_read(self, conversation_id: str, viewer_id: str) -> None:
        await self.directory.mark_conversation_read(conversation_id, viewer_id)

    def open_feed(
        self, viewer_id: str, channel: FeedChannel | str = FeedChannel.FOR_YOU, target_id: str | None = None
    ) -> FeedView:
        return FeedView(self.store, self.interactions, viewer_id, channel, target_id, self.settings)

    def open_comments(self, post_id: str) -> CommentThreadView:
        return CommentThreadView(self.comments, post_id)

    def open_conversations(self, user_id: str) -> ConversationListView:
        return ConversationListView(self.directory, user_id)

    async def open_chat_room(self, conversation_id: str, viewer_id: str) -> ChatRoomView:
        return await ChatRoomView.open(self.directory, conversation_id, viewer_id)
