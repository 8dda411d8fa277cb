"""
Comment data model.

Comments are stored flat in one collection and reference their post through
'post_id'. Replies point at another comment of the same post through
'parent_id'; root comments have no parent. The thread shape is rebuilt from the
flat list on every snapshot by 'social_toolkit.threads.assembler'.
"""

from pydantic import BaseModel


class Comment(BaseModel):
    id: str
    post_id: str
    parent_id: str | None = None
    author_id: str | None = None
    username: str = ""
    university: str = ""
    text: str = ""
    created_at: int | None = None
    likes: int = 0
