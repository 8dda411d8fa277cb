"""
Social toolkit: optimistic interactions and live view synchronisation for a
campus social feed built on a remote document store.

    from social_toolkit import SocialToolkitController

    controller = SocialToolkitController.in_memory()
    with controller.open_feed("u1", "trending") as feed:
        ...
"""

from social_toolkit.config import ToolkitSettings
from social_toolkit.controller import CommentInput, MessageInput, SocialToolkitController
from social_toolkit.errors import InvalidTransition, SocialToolkitError, TransientRemoteFailure

__all__ = [
    "CommentInput",
    "InvalidTransition",
    "MessageInput",
    "SocialToolkitController",
    "SocialToolkitError",
    "ToolkitSettings",
    "TransientRemoteFailure",
]
