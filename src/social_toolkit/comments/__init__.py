from social_toolkit.comments.service import CommentService

__all__ = ["CommentService"]
