"""
Conversation directory.

'ConversationDirectory' is the read and write path for direct messages:

    'get_or_create_conversation' - canonical pair lookup, creating on a miss.
    'send_message'               - append a message, then refresh the
                                   conversation preview and unread badges.
    'mark_conversation_read'     - reset one participant's badge.
    'listen_to_conversations'    - live conversation list of one user.
    'listen_to_messages'         - live message list of one conversation.

The lookup in 'get_or_create_conversation' and the following create are two
separate store calls. Two clients of the same pair can both miss and both
create, leaving duplicate conversations; the directory does not detect or merge
them. When duplicates exist, lookups resolve to the oldest one.

'send_message' is likewise two writes. If the metadata patch fails after the
message was stored, the message stays and the returned 'MessageReceipt' reports
'metadata_committed=False'; previews and badges catch up with the next
successful send.

The module-level helpers ('order_messages', 'present_messages',
'sort_conversations', 'unread_total', 'date_label') are pure and used by the
views to render snapshots.
"""

from collections.abc import Callable, Sequence
from datetime import timedelta

from loguru import logger
from pydantic import BaseModel, ConfigDict, ValidationError

from social_toolkit.config import ToolkitSettings
from social_toolkit.data_models.conversation import Conversation, ParticipantDetail, canonical_pair
from social_toolkit.data_models.message import Message
from social_toolkit.errors import TransientRemoteFailure
from social_toolkit.store.base import (
    SERVER_TIMESTAMP,
    DocumentStore,
    FieldFilter,
    IncrementBy,
    OrderBy,
    PatchOperation,
    SetField,
    SetNested,
    StoreError,
    Subscription,
)
from social_toolkit.utils.time import get_current_timestamp, to_local_date


class MessageReceipt(BaseModel):
    """Outcome of 'send_message'. The message exists whenever a receipt is returned."""

    model_config = ConfigDict(frozen=True)

    message_id: str
    metadata_committed: bool


class MessageRow(BaseModel):
    """A message prepared for display in a chat room."""

    model_config = ConfigDict(frozen=True)

    message: Message
    date_label: str
    show_date: bool
    is_mine: bool
    is_consecutive: bool


class ConversationDirectory:
    def __init__(self, store: DocumentStore, settings: ToolkitSettings | None = None) -> None:
        self.store = store
        self.settings = settings or ToolkitSettings()
        self.conversations = self.settings.conversations_collection
        self.messages = self.settings.messages_collection

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        document = await self.store.get(self.conversations, conversation_id)
        return Conversation.model_validate(document) if document else None

    async def find_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        documents = await self.store.query(
            self.conversations,
            filters=[FieldFilter(field="participant_ids", value=canonical_pair(user_a, user_b))],
            order_by=[OrderBy(field="created_at")],
        )
        return Conversation.model_validate(documents[0]) if documents else None

    async def get_or_create_conversation(
        self,
        user_a: str,
        user_b: str,
        details_a: ParticipantDetail | None = None,
        details_b: ParticipantDetail | None = None,
    ) -> str:
        """Return the id of the conversation between 'user_a' and 'user_b', creating it when none exists."""
        if user_a == user_b:
            raise ValueError(f"User {user_a} cannot start a conversation with themselves")

        try:
            existing = await self.find_conversation(user_a, user_b)
            if existing is not None:
                return existing.id

            conversation_id = await self.store.create(
                self.conversations,
                {
                    "participant_ids": canonical_pair(user_a, user_b),
                    "participant_details": [
                        (details_a or ParticipantDetail(uid=user_a)).model_dump(),
                        (details_b or ParticipantDetail(uid=user_b)).model_dump(),
                    ],
                    "last_message": "",
                    "last_message_at": None,
                    "created_at": SERVER_TIMESTAMP,
                    "unread_count": {user_a: 0, user_b: 0},
                },
            )
        except StoreError as e:
            raise TransientRemoteFailure(f"Could not open conversation between {user_a} and {user_b}", cause=e) from e

        logger.info(f"Created conversation {conversation_id} between {user_a} and {user_b}")
        return conversation_id

    async def send_message(
        self, conversation_id: str, sender_id: str, text: str, sender_name: str = ""
    ) -> MessageReceipt:
        text = text.strip()
        if not text:
            raise ValueError("Message text must not be empty")

        try:
            message_id = await self.store.create(
                self.messages,
                {
                    "conversation_id": conversation_id,
                    "sender_id": sender_id,
                    "sender_name": sender_name,
                    "text": text,
                    "created_at": SERVER_TIMESTAMP,
                    "read": False,
                },
            )
        except StoreError as e:
            raise TransientRemoteFailure(f"Could not send message to conversation {conversation_id}", cause=e) from e

        try:
            conversation = await self.get_conversation(conversation_id)
            if conversation is None:
                raise StoreError(f"Conversation {conversation_id} not found")
            await self.store.patch(
                self.conversations, conversation_id, self._metadata_update(conversation, sender_id, text)
            )
        except (StoreError, ValidationError) as e:
            logger.warning(f"Message {message_id} stored but conversation {conversation_id} metadata is stale: {e}")
            return MessageReceipt(message_id=message_id, metadata_committed=False)

        return MessageReceipt(message_id=message_id, metadata_committed=True)

    async def mark_conversation_read(self, conversation_id: str, user_id: str) -> None:
        try:
            await self.store.patch(
                self.conversations, conversation_id, [SetNested(path="unread_count", key=user_id, value=0)]
            )
        except StoreError as e:
            raise TransientRemoteFailure(f"Could not mark conversation {conversation_id} read", cause=e) from e

    def listen_to_conversations(
        self, user_id: str, callback: Callable[[list[Conversation]], None]
    ) -> Subscription:
        return self.store.subscribe(
            self.conversations,
            lambda documents: callback(sort_conversations([Conversation.model_validate(d) for d in documents])),
            filters=[FieldFilter(field="participant_ids", op="array_contains", value=user_id)],
            order_by=[OrderBy(field="last_message_at", descending=True)],
        )

    def listen_to_messages(self, conversation_id: str, callback: Callable[[list[Message]], None]) -> Subscription:
        return self.store.subscribe(
            self.messages,
            lambda documents: callback(order_messages([Message.model_validate(d) for d in documents])),
            filters=[FieldFilter(field="conversation_id", value=conversation_id)],
            order_by=[OrderBy(field="created_at")],
        )

    def _metadata_update(self, conversation: Conversation, sender_id: str, text: str) -> list[PatchOperation]:
        operations: list[PatchOperation] = [
            SetField(path="last_message", value=self._preview(text)),
            SetField(path="last_message_at", value=SERVER_TIMESTAMP),
        ]
        operations += [
            IncrementBy(path="unread_count", key=participant, delta=1)
            for participant in conversation.participant_ids
            if participant != sender_id
        ]
        return operations

    def _preview(self, text: str) -> str:
        limit = self.settings.message_preview_length
        return text if len(text) <= limit else text[:limit].rstrip() + "..."


def order_messages(messages: Sequence[Message]) -> list[Message]:
    """Ascending by creation time; unconfirmed messages go last, ids break ties."""
    return sorted(messages, key=lambda m: (m.created_at is None, m.created_at or 0, m.id))


def sort_conversations(conversations: Sequence[Conversation]) -> list[Conversation]:
    """Most recent activity first. Conversations without messages follow, newest created first."""
    with_messages = sorted(
        (c for c in conversations if c.last_message_at is not None),
        key=lambda c: (-(c.last_message_at or 0), c.id),
    )
    without_messages = sorted(
        (c for c in conversations if c.last_message_at is None),
        key=lambda c: (-(c.created_at or 0), c.id),
    )
    return with_messages + without_messages


def unread_total(conversations: Sequence[Conversation], user_id: str) -> int:
    return sum(conversation.unread_for(user_id) for conversation in conversations)


def date_label(timestamp: int | None, now: int | None = None) -> str:
    """'TODAY', 'YESTERDAY' or a short upper-case date such as 'MAR 4', using the local calendar."""
    if timestamp is None:
        return ""
    day = to_local_date(timestamp)
    today = to_local_date(get_current_timestamp() if now is None else now)
    if day == today:
        return "TODAY"
    if day == today - timedelta(days=1):
        return "YESTERDAY"
    return f"{day.strftime('%b').upper()} {day.day}"


def present_messages(messages: Sequence[Message], viewer_id: str, now: int | None = None) -> list[MessageRow]:
    now = get_current_timestamp() if now is None else now
    rows: list[MessageRow] = []
    previous: Message | None = None
    previous_label: str | None = None
    for message in order_messages(messages):
        label = date_label(message.created_at, now)
        show_date = previous is None or label != previous_label
        rows.append(
            MessageRow(
                message=message,
                date_label=label,
                show_date=show_date,
                is_mine=message.sender_id == viewer_id,
                is_consecutive=previous is not None and previous.sender_id == message.sender_id and not show_date,
            )
        )
        previous, previous_label = message, label
    return rows
