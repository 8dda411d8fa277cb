from social_toolkit.data_models.comment import Comment
from social_toolkit.data_models.conversation import Conversation, ParticipantDetail, canonical_pair
from social_toolkit.data_models.message import Message
from social_toolkit.data_models.post import PollOption, Post, PostType
from social_toolkit.data_models.user import Community, UserProfile

__all__ = [
    "Comment",
    "Community",
    "Conversation",
    "Message",
    "ParticipantDetail",
    "PollOption",
    "Post",
    "PostType",
    "UserProfile",
    "canonical_pair",
]
