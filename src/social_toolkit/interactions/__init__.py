from social_toolkit.interactions.controller import InteractionController
from social_toolkit.interactions.state import PostInteraction, Vote, poll_percentages
from social_toolkit.interactions.transitions import (
    Transition,
    cast_poll_vote,
    toggle_bookmark,
    toggle_downvote,
    toggle_upvote,
)

__all__ = [
    "InteractionController",
    "PostInteraction",
    "Transition",
    "Vote",
    "cast_poll_vote",
    "poll_percentages",
    "toggle_bookmark",
    "toggle_downvote",
    "toggle_upvote",
]
