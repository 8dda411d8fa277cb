from social_toolkit.comments.service import CommentService
from social_toolkit.threads.assembler import ThreadedComment, display_depth
from social_toolkit.views.base import LiveView


class CommentThreadView(LiveView[list[ThreadedComment]]):
    """Threaded comments of one post, reassembled from scratch on every snapshot."""

    def __init__(self, comments: CommentService, post_id: str) -> None:
        super().__init__([])
        self.post_id = post_id
        self.max_indent_depth = comments.settings.max_comment_indent_depth
        self._track(comments.listen_to_comments(post_id, self._publish))

    def indent_depth(self, threaded: ThreadedComment) -> int:
        return display_depth(threaded.depth, self.max_indent_depth)
