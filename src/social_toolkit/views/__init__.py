from social_toolkit.views.base import LiveView
from social_toolkit.views.comments import CommentThreadView
from social_toolkit.views.conversations import ChatRoomView, ConversationListView
from social_toolkit.views.feed import FeedView

__all__ = ["ChatRoomView", "CommentThreadView", "ConversationListView", "FeedView", "LiveView"]
