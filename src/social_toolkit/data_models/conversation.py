"""
Conversation data model.

A conversation is a direct-message channel between exactly two users.
'participant_ids' is stored sorted ascending so that the pair itself acts as a
canonical key for lookups. 'last_message', 'last_message_at' and
'unread_count' are denormalised from the message collection so that the
conversation list can render previews and badges from a single query.
"""

from pydantic import BaseModel, Field


class ParticipantDetail(BaseModel):
    """Display information captured for each participant when the conversation is created."""

    uid: str
    username: str = "User"
    avatar: str | None = None


class Conversation(BaseModel):
    id: str
    participant_ids: list[str]
    participant_details: list[ParticipantDetail] = Field(default_factory=list)
    last_message: str = ""
    last_message_at: int | None = None
    created_at: int | None = None
    unread_count: dict[str, int] = Field(default_factory=dict)

    def unread_for(self, user_id: str) -> int:
        return self.unread_count.get(user_id, 0)

    def other_participant(self, user_id: str) -> ParticipantDetail | None:
        """Return the counterpart of 'user_id', falling back to a bare detail built from the id pair."""
        for detail in self.participant_details:
            if detail.uid != user_id:
                return detail
        others = [uid for uid in self.participant_ids if uid != user_id]
        return ParticipantDetail(uid=others[0]) if others else None


def canonical_pair(user_a: str, user_b: str) -> list[str]:
    return sorted([user_a, user_b])
