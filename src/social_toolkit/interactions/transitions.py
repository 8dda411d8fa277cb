"""
Pure interaction transitions.

Each function takes the current 'PostInteraction' and returns a 'Transition':
the next state plus the patch operations that persist it. Nothing here touches
the store. Vote transitions follow this table, with 'toggle_downvote' as the
mirror image of 'toggle_upvote':

    NONE -> UP    score + 1
    UP   -> NONE  score - 1
    DOWN -> UP    score + 2
"""

from pydantic import BaseModel, ConfigDict

from social_toolkit.errors import InvalidTransition
from social_toolkit.interactions.state import VOTE_WEIGHT, PostInteraction, Vote
from social_toolkit.store.base import IncrementBy, PatchOperation, SetAdd, SetNested, SetRemove

# voter set and counter field per vote direction
_VOTE_FIELDS = {
    Vote.UP: ("upvoted_by", "upvotes"),
    Vote.DOWN: ("downvoted_by", "downvotes"),
}


class Transition(BaseModel):
    model_config = ConfigDict(frozen=True)

    state: PostInteraction
    operations: tuple[PatchOperation, ...]


def _toggle_vote(state: PostInteraction, target: Vote) -> Transition:
    new_vote = Vote.NONE if state.vote == target else target
    operations: list[PatchOperation] = []
    if state.vote != Vote.NONE:
        voters, counter = _VOTE_FIELDS[state.vote]
        operations += [SetRemove(path=voters, element=state.viewer_id), IncrementBy(path=counter, delta=-1)]
    if new_vote != Vote.NONE:
        voters, counter = _VOTE_FIELDS[new_vote]
        operations += [SetAdd(path=voters, element=state.viewer_id), IncrementBy(path=counter, delta=1)]
    score = state.score - VOTE_WEIGHT[state.vote] + VOTE_WEIGHT[new_vote]
    return Transition(
        state=state.model_copy(update={"vote": new_vote, "score": score}),
        operations=tuple(operations),
    )


def toggle_upvote(state: PostInteraction) -> Transition:
    return _toggle_vote(state, Vote.UP)


def toggle_downvote(state: PostInteraction) -> Transition:
    return _toggle_vote(state, Vote.DOWN)


def toggle_bookmark(state: PostInteraction) -> Transition:
    operation_type = SetRemove if state.bookmarked else SetAdd
    return Transition(
        state=state.model_copy(update={"bookmarked": not state.bookmarked}),
        operations=(operation_type(path="bookmarked_by", element=state.viewer_id),),
    )


def cast_poll_vote(state: PostInteraction, option_index: int) -> Transition:
    """Record a first ballot for 'option_index'. Raises 'InvalidTransition' on a revote or an unknown option."""
    if state.poll_choice is not None:
        raise InvalidTransition(f"Viewer {state.viewer_id} already voted on poll {state.post_id}")
    if not 0 <= option_index < len(state.poll_counts):
        raise InvalidTransition(
            f"Option {option_index} out of range for poll {state.post_id} with {len(state.poll_counts)} options"
        )
    counts = list(state.poll_counts)
    counts[option_index] += 1
    return Transition(
        state=state.model_copy(update={"poll_choice": option_index, "poll_counts": tuple(counts)}),
        operations=(
            IncrementBy(path=f"poll_options.{option_index}.votes", delta=1),
            SetNested(path="poll_voted_by", key=state.viewer_id, value=option_index),
        ),
    )
