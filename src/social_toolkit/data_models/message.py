"""
Message data model.

Messages are appended to a flat collection and point at their conversation
through 'conversation_id'. 'created_at' is assigned by the store; until the
store confirms a write it may be None on a locally cached snapshot.
"""

from pydantic import BaseModel


class Message(BaseModel):
    """A single direct message. 'read' is set by the recipient's client, never by the sender."""

    id: str
    conversation_id: str
    sender_id: str
    sender_name: str = ""
    text: str
    created_at: int | None = None
    read: bool = False
