"""
Comment thread assembly.

'assemble_thread' turns the flat comment list of one snapshot into the
display order of a threaded view: roots by ascending creation time, each
followed depth-first by its replies, also by ascending creation time.

The function is pure and recomputed on every snapshot. One pass builds an
adjacency list keyed by parent id, a second pass walks it with an explicit
stack, so no tree object outlives the call. Comments whose parent is missing
from the snapshot (orphans) are left out together with their replies; they
show up, correctly nested, as soon as a later snapshot contains the parent.
Depth is reported uncapped; 'display_depth' clamps it for indentation.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence

from pydantic import BaseModel, ConfigDict

from social_toolkit.data_models.comment import Comment


class ThreadedComment(BaseModel):
    model_config = ConfigDict(frozen=True)

    comment: Comment
    depth: int


def _chronological_key(comment: Comment) -> tuple[bool, int, str]:
    # comments still waiting for a server timestamp are the newest ones
    return comment.created_at is None, comment.created_at or 0, comment.id


def _unique_by_id(comments: Iterable[Comment]) -> list[Comment]:
    latest: dict[str, Comment] = {}
    for comment in comments:
        latest[comment.id] = comment
    return list(latest.values())


def assemble_thread(comments: Sequence[Comment]) -> list[ThreadedComment]:
    """Return '(comment, depth)' pairs in preorder; roots have depth 0."""
    unique = _unique_by_id(comments)

    children: defaultdict[str, list[Comment]] = defaultdict(list)
    roots: list[Comment] = []
    for comment in unique:
        if comment.parent_id is None:
            roots.append(comment)
        else:
            children[comment.parent_id].append(comment)
    for siblings in children.values():
        siblings.sort(key=_chronological_key)
    roots.sort(key=_chronological_key)

    ordered: list[ThreadedComment] = []
    visited: set[str] = set()
    stack: list[tuple[Comment, int]] = [(root, 0) for root in reversed(roots)]
    while stack:
        comment, depth = stack.pop()
        if comment.id in visited:
            continue
        visited.add(comment.id)
        ordered.append(ThreadedComment(comment=comment, depth=depth))
        stack.extend((child, depth + 1) for child in reversed(children.get(comment.id, [])))
    return ordered


def find_orphans(comments: Sequence[Comment]) -> list[Comment]:
    """Comments that 'assemble_thread' hides from this snapshot, in chronological order."""
    shown = {threaded.comment.id for threaded in assemble_thread(comments)}
    return sorted((c for c in _unique_by_id(comments) if c.id not in shown), key=_chronological_key)


def display_depth(depth: int, max_depth: int = 3) -> int:
    return min(depth, max_depth)
