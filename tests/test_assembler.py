from social_toolkit.data_models.comment import Comment
from social_toolkit.threads import assemble_thread, display_depth, find_orphans


def comment(comment_id: str, created_at: int | None, parent_id: str | None = None) -> Comment:
    return Comment(id=comment_id, post_id="p1", parent_id=parent_id, text=comment_id, created_at=created_at)


def shape(comments: list[Comment]) -> list[tuple[str, int]]:
    return [(threaded.comment.id, threaded.depth) for threaded in assemble_thread(comments)]


def test_replies_follow_their_parent() -> None:
    comments = [comment("C", 3, "A"), comment("A", 1), comment("B", 2, "A")]
    assert shape(comments) == [("A", 0), ("B", 1), ("C", 1)]


def test_nested_reply_is_visited_depth_first() -> None:
    comments = [comment("A", 1), comment("B", 2, "A"), comment("C", 3, "A"), comment("D", 4, "B")]
    assert shape(comments) == [("A", 0), ("B", 1), ("D", 2), ("C", 1)]


def test_roots_are_chronological() -> None:
    comments = [comment("late", 30), comment("early", 10), comment("reply", 20, "late")]
    assert shape(comments) == [("early", 0), ("late", 0), ("reply", 1)]


def test_ties_are_broken_by_id() -> None:
    comments = [comment("b", 5), comment("a", 5)]
    assert shape(comments) == [("a", 0), ("b", 0)]


def test_every_comment_appears_once() -> None:
    comments = [comment("A", 1), comment("B", 2, "A"), comment("B", 2, "A"), comment("C", 3, "B")]
    assert shape(comments) == [("A", 0), ("B", 1), ("C", 2)]


def test_depth_is_not_capped() -> None:
    comments = [comment("c0", 0)] + [comment(f"c{i}", i, f"c{i - 1}") for i in range(1, 7)]
    assert [depth for _, depth in shape(comments)] == list(range(7))


def test_orphans_are_hidden_until_parent_arrives() -> None:
    early = [comment("A", 1), comment("R", 5, "B"), comment("RR", 6, "R")]
    assert shape(early) == [("A", 0)]
    assert [c.id for c in find_orphans(early)] == ["R", "RR"]

    later = early + [comment("B", 2)]
    assert shape(later) == [("A", 0), ("B", 0), ("R", 1), ("RR", 2)]
    assert find_orphans(later) == []


def test_pending_timestamp_sorts_last() -> None:
    comments = [comment("new", None), comment("A", 1), comment("B", 2)]
    assert shape(comments) == [("A", 0), ("B", 0), ("new", 0)]


def test_output_does_not_depend_on_input_order() -> None:
    comments = [comment("A", 1), comment("B", 2, "A"), comment("C", 3, "A"), comment("D", 4, "B"), comment("E", 0)]
    assert shape(comments) == shape(list(reversed(comments)))


def test_empty_snapshot() -> None:
    assert assemble_thread([]) == []


def test_display_depth_clamps() -> None:
    assert [display_depth(d) for d in range(6)] == [0, 1, 2, 3, 3, 3]
    assert display_depth(5, max_depth=1) == 1
