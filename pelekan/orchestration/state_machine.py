"""
State machine for the two-part review assessment.

The service owns the cursor ``(current_test, current_index, status)``; the
client derives one discrete state from it and the question set. Valid
transitions and the action that triggers each are defined here.
"""

from enum import Enum
from typing import Dict, List, Optional, Sequence, Set, Tuple

from pelekan.schemas.review import (
    AssessmentSession,
    FinishResult,
    QuestionSet,
    ReviewStatus,
)


class ReviewFlowState(str, Enum):
    """Discrete states of the review assessment."""
    NOT_READY = "not_ready"
    TEST1_ACTIVE = "test1_active"
    TEST1_END_OF_TEST = "test1_end_of_test"
    TEST2_ACTIVE = "test2_active"
    TEST2_END_OF_TEST = "test2_end_of_test"
    RESULT_LOCKED = "result_locked"
    RESULT_UNLOCKED = "result_unlocked"


class ReviewAction(str, Enum):
    """User actions that may move the review state machine."""
    ANSWER = "answer"
    CONTINUE = "continue"
    SKIP_TEST2 = "skip_test2"
    FINISH = "finish"


RESULT_STATES = (ReviewFlowState.RESULT_LOCKED, ReviewFlowState.RESULT_UNLOCKED)

_S = ReviewFlowState
_A = ReviewAction

# Valid transitions: (from_state, to_state) -> actions that may trigger
_TRANSITIONS: Dict[Tuple[ReviewFlowState, ReviewFlowState], Set[ReviewAction]] = {
    # Test 1
    (_S.TEST1_ACTIVE, _S.TEST1_ACTIVE): {_A.ANSWER},
    (_S.TEST1_ACTIVE, _S.TEST1_END_OF_TEST): {_A.ANSWER},
    (_S.TEST1_END_OF_TEST, _S.TEST2_ACTIVE): {_A.CONTINUE},
    (_S.TEST1_END_OF_TEST, _S.RESULT_LOCKED): {_A.SKIP_TEST2},
    (_S.TEST1_END_OF_TEST, _S.RESULT_UNLOCKED): {_A.SKIP_TEST2},
    # Test 2
    (_S.TEST2_ACTIVE, _S.TEST2_ACTIVE): {_A.ANSWER},
    (_S.TEST2_ACTIVE, _S.TEST2_END_OF_TEST): {_A.ANSWER},
    (_S.TEST2_ACTIVE, _S.RESULT_LOCKED): {_A.SKIP_TEST2},
    (_S.TEST2_ACTIVE, _S.RESULT_UNLOCKED): {_A.SKIP_TEST2},
    (_S.TEST2_END_OF_TEST, _S.RESULT_LOCKED): {_A.FINISH},
    (_S.TEST2_END_OF_TEST, _S.RESULT_UNLOCKED): {_A.FINISH},
}


def valid_transitions(from_state: ReviewFlowState) -> List[ReviewFlowState]:
    """Return list of valid target states from given state."""
    return sorted({t for (f, t) in _TRANSITIONS if f == from_state}, key=lambda s: s.value)


def can_transition(
    action: ReviewAction,
    from_state: ReviewFlowState,
    to_state: Optional[ReviewFlowState] = None,
) -> bool:
    """
    Check if ``action`` may be taken from ``from_state``.

    With ``to_state`` the specific edge is checked; without it, any edge
    leaving ``from_state`` that the action triggers is enough.
    """
    if to_state is not None:
        return action in _TRANSITIONS.get((from_state, to_state), set())
    return any(
        action in actions
        for (f, _), actions in _TRANSITIONS.items()
        if f == from_state
    )


def is_end_of_test(current_index: int, questions: Sequence[object]) -> bool:
    """
    True once the cursor has moved past the last question.

    An empty question list is "not ready", never a finished test.
    """
    total = len(questions)
    return total > 0 and current_index >= total


def result_state(locked: bool) -> ReviewFlowState:
    return ReviewFlowState.RESULT_LOCKED if locked else ReviewFlowState.RESULT_UNLOCKED


def derive_state(
    session: Optional[AssessmentSession],
    question_set: Optional[QuestionSet],
    finish: Optional[FinishResult] = None,
) -> ReviewFlowState:
    """Map the service cursor (plus a committed finish result) to one state."""
    if finish is not None:
        return result_state(finish.locked)
    if session is None:
        return ReviewFlowState.NOT_READY
    if session.status == ReviewStatus.COMPLETED_LOCKED:
        return ReviewFlowState.RESULT_LOCKED
    if session.status == ReviewStatus.UNLOCKED:
        return ReviewFlowState.RESULT_UNLOCKED
    if question_set is None:
        return ReviewFlowState.NOT_READY

    questions = question_set.questions_for(session.current_test)
    if not questions:
        return ReviewFlowState.NOT_READY
    if session.current_test == 1:
        if is_end_of_test(session.current_index, questions):
            return ReviewFlowState.TEST1_END_OF_TEST
        return ReviewFlowState.TEST1_ACTIVE
    if is_end_of_test(session.current_index, questions):
        return ReviewFlowState.TEST2_END_OF_TEST
    return ReviewFlowState.TEST2_ACTIVE
