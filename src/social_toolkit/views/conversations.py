"""
Live conversation views.

'ConversationListView' tracks the viewer's conversations for the chat list and
the unread badge. 'ChatRoomView' tracks the messages of one open conversation
and prepares them for display; 'open' marks the conversation read for the
viewer, mirroring what happens when a chat room is entered.
"""

from social_toolkit.conversations.directory import ConversationDirectory, MessageRow, present_messages, unread_total
from social_toolkit.data_models.conversation import Conversation
from social_toolkit.data_models.message import Message
from social_toolkit.views.base import LiveView


class ConversationListView(LiveView[list[Conversation]]):
    def __init__(self, directory: ConversationDirectory, user_id: str) -> None:
        super().__init__([])
        self.user_id = user_id
        self._track(directory.listen_to_conversations(user_id, self._publish))

    @property
    def unread_total(self) -> int:
        return unread_total(self.value, self.user_id)


class ChatRoomView(LiveView[list[Message]]):
    def __init__(self, directory: ConversationDirectory, conversation_id: str, viewer_id: str) -> None:
        super().__init__([])
        self.directory = directory
        self.conversation_id = conversation_id
        self.viewer_id = viewer_id
        self._track(directory.listen_to_messages(conversation_id, self._publish))

    @classmethod
    async def open(cls, directory: ConversationDirectory, conversation_id: str, viewer_id: str) -> "ChatRoomView":
        view = cls(directory, conversation_id, viewer_id)
        try:
            await view.mark_read()
        except BaseException:
            view.close()
            raise
        return view

    async def mark_read(self) -> None:
        await self.directory.mark_conversation_read(self.conversation_id, self.viewer_id)

    def rows(self, now: int | None = None) -> list[MessageRow]:
        return present_messages(self.value, self.viewer_id, now)
