from social_toolkit.posts.service import PostDraft, PostService

__all__ = ["PostDraft", "PostService"]
