"""
Review Flow Controller - drives the two-part qualifying assessment.

Test 1 runs to its end, then the user either continues into test 2 or skips
it; test 2 can also be skipped midway. Every transition that needs several
remote calls is all-or-nothing from this controller's point of view.
"""

from typing import Any, List, Optional, Sequence

from pelekan.api.client import ProgressionClient
from pelekan.errors import FlowError, InvalidLocalState
from pelekan.logging_config import get_logger
from pelekan.orchestration.base import FlowController
from pelekan.orchestration.state_machine import (
    RESULT_STATES,
    ReviewAction,
    ReviewFlowState,
    can_transition,
    derive_state,
)
from pelekan.orchestration.transitions import Step
from pelekan.schemas.review import (
    AssessmentSession,
    FinishResult,
    Question,
    QuestionSet,
    ReviewResult,
    ReviewState,
)

logger = get_logger(__name__)


class ReviewFlowController(FlowController):
    """
    Assessment flow over ``(current_test, current_index, status)``.

    Exposed state is derived from the last committed session, question set and
    finish result; it only changes after a transition fully succeeded.
    """

    def __init__(self, client: ProgressionClient, identity: Optional[str] = None):
        super().__init__(client, identity)
        self.session: Optional[AssessmentSession] = None
        self.question_set: Optional[QuestionSet] = None
        self.finish_result: Optional[FinishResult] = None
        self.review_result: Optional[ReviewResult] = None
        self.selected_value: Optional[int] = None
        self._skipped_test2 = False
        self._bootstrapping = False
        self._bootstrapped_for: Optional[str] = None

    def _reset_transient(self) -> None:
        super()._reset_transient()
        self.session = None
        self.question_set = None
        self.finish_result = None
        self.review_result = None
        self.selected_value = None
        self._skipped_test2 = False
        self._bootstrapping = False
        self._bootstrapped_for = None

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------

    @property
    def state(self) -> ReviewFlowState:
        return derive_state(self.session, self.question_set, self.finish_result)

    @property
    def questions(self) -> List[Question]:
        if self.session is None or self.question_set is None:
            return []
        return self.question_set.questions_for(self.session.current_test)

    @property
    def question_total(self) -> int:
        """0 means "not ready", not "finished"."""
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.state not in (ReviewFlowState.TEST1_ACTIVE, ReviewFlowState.TEST2_ACTIVE):
            return None
        return self.questions[self.session.current_index]

    @property
    def did_skip_test2(self) -> bool:
        if self.review_result and self.review_result.result:
            return self.review_result.result.meta.did_skip_test2
        return self._skipped_test2 or bool(self.session and self.session.test2_skipped_at)

    @property
    def result_title_key(self) -> Optional[str]:
        """Which result title to show; never affects routing."""
        if self.state not in RESULT_STATES:
            return None
        return "skipped_test2" if self.did_skip_test2 else "full_review"

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def bootstrap(self) -> bool:
        """
        Load session and questions, starting a session when none is linked.

        Runs at most once per identity; a call while one is running, or after
        one already ran for this identity, is suppressed. ``reload`` resets.
        """
        identity = self._require_identity()
        if self._bootstrapping or self._bootstrapped_for == identity:
            return False
        self._bootstrapping = True
        self._bootstrapped_for = identity
        generation = self._generation
        try:
            review_state: ReviewState = await self.client.get_review_state(identity)
            question_set = await self.client.get_question_set()
            session = review_state.session
            if session is None or not session.question_set_id:
                logger.info("Starting review session", extra={"had_session": session is not None})
                await self.client.start_review(identity)
                review_state = await self.client.get_review_state(identity)
        except FlowError as exc:
            if self._is_current(generation):
                self._record_error(exc)
            return False
        finally:
            if self._is_current(generation):
                self._bootstrapping = False

        if not self._is_current(generation):
            return False
        self.session = review_state.session
        self.question_set = question_set
        self.error = None
        logger.info(
            "Review bootstrapped",
            extra={"state": self.state.value, "question_set_id": question_set.set_id},
        )
        return True

    async def reload(self) -> bool:
        """Manual recovery: reset guards and transient state, rerun bootstrap."""
        self._generation += 1
        self._reset_transient()
        return await self.bootstrap()

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def select(self, value: Optional[int]) -> None:
        self.selected_value = value

    def _require(self, action: ReviewAction) -> ReviewFlowState:
        state = self.state
        if not can_transition(action, state):
            raise InvalidLocalState(
                f"{action.value.upper()}_NOT_ALLOWED",
                f"{action.value} is not allowed in {state.value}",
            )
        return state

    async def submit_answer(self) -> bool:
        """Record the selected value for the current question, then refresh."""
        if self.busy:
            return False
        identity = self._require_identity()
        if self.current_question is None:
            raise InvalidLocalState("NO_CURRENT_QUESTION")
        if self.selected_value is None:
            raise InvalidLocalState("NO_SELECTION", "select an option before submitting")
        self._require(ReviewAction.ANSWER)

        test_no = self.session.current_test
        index = self.session.current_index
        value = self.selected_value
        steps = [
            Step("answer", lambda: self.client.answer_review(identity, test_no, index, value)),
            Step("refresh", lambda: self.client.get_review_state(identity)),
        ]

        def commit(results: List[Any]) -> None:
            self.session = results[-1].session
            self.selected_value = None

        return await self._transition(ReviewAction.ANSWER.value, steps, commit)

    async def continue_to_test2(self) -> bool:
        """Close test 1 and move into test 2."""
        if self.busy:
            return False
        identity = self._require_identity()
        self._require(ReviewAction.CONTINUE)
        steps = [
            Step("complete_test_1", lambda: self.client.complete_test(identity, 1)),
            Step("refresh", lambda: self.client.get_review_state(identity)),
        ]

        def commit(results: List[Any]) -> None:
            self.session = results[-1].session
            self.selected_value = None

        return await self._transition(ReviewAction.CONTINUE.value, steps, commit)

    async def skip_test2(self) -> bool:
        """Skip test 2, from the end of test 1 or from inside test 2."""
        if self.busy:
            return False
        identity = self._require_identity()
        state = self._require(ReviewAction.SKIP_TEST2)
        steps: List[Step] = []
        if state == ReviewFlowState.TEST1_END_OF_TEST:
            steps.append(Step("complete_test_1", lambda: self.client.complete_test(identity, 1)))
        steps.append(Step("skip_test2", lambda: self.client.skip_test2(identity)))
        steps.append(Step("finish", lambda: self.client.finish_review(identity)))
        return await self._finish_transition(ReviewAction.SKIP_TEST2, steps)

    async def finish(self) -> bool:
        """Close test 2 and compute the result."""
        if self.busy:
            return False
        identity = self._require_identity()
        self._require(ReviewAction.FINISH)
        steps = [
            Step("complete_test_2", lambda: self.client.complete_test(identity, 2)),
            Step("finish", lambda: self.client.finish_review(identity)),
        ]
        return await self._finish_transition(ReviewAction.FINISH, steps)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _state_label(self) -> Optional[str]:
        return self.state.value

    async def _finish_transition(self, action: ReviewAction, steps: Sequence[Step]) -> bool:
        def commit(results: List[Any]) -> None:
            self.finish_result = results[-1]
            self._skipped_test2 = action == ReviewAction.SKIP_TEST2
            self.selected_value = None

        if not await self._transition(action.value, steps, commit):
            return False
        await self._load_result()
        return True

    async def _load_result(self) -> None:
        """Fetch the result payload and final session after a committed finish."""
        identity = self._require_identity()
        generation = self._generation
        try:
            review_result = await self.client.get_review_result(identity)
            review_state = await self.client.get_review_state(identity)
        except FlowError as exc:
            if self._is_current(generation):
                self._record_error(exc)
            return
        if not self._is_current(generation):
            return
        self.review_result = review_result
        if review_state.session is not None:
            self.session = review_state.session
