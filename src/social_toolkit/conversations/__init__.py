from social_toolkit.conversations.directory import (
    ConversationDirectory,
    MessageReceipt,
    MessageRow,
    date_label,
    order_messages,
    present_messages,
    sort_conversations,
    unread_total,
)

__all__ = [
    "ConversationDirectory",
    "MessageReceipt",
    "MessageRow",
    "date_label",
    "order_messages",
    "present_messages",
    "sort_conversations",
    "unread_total",
]
