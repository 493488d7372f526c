"""
Baseline Step Controller - single-cursor questionnaire with leading consents.

The service serves one step at a time: a number of consent steps, then the
scored questions. ``nav.index``/``nav.total`` count the consents too, so the
question position is recovered by subtracting the consent count taken from
the progress snapshot.
"""

from typing import Any, List, Optional

from pelekan.api.client import ProgressionClient
from pelekan.config import get_settings
from pelekan.errors import FlowError, InvalidLocalState, RejectedByServer
from pelekan.logging_config import get_logger
from pelekan.orchestration.base import FlowController
from pelekan.orchestration.transitions import Step
from pelekan.schemas.baseline import (
    BaselineScore,
    BaselineState,
    ConsentStep,
    QuestionStep,
    ReviewMissingStep,
)
from pelekan.schemas.snapshot import ProgressSnapshot

logger = get_logger(__name__)


def score_percent(total_score: float, max_score: Optional[int] = None) -> int:
    """Score as a rounded percentage of ``max_score``, clamped to 0..100."""
    if max_score is None or max_score <= 0:
        max_score = get_settings().baseline_max_score
    return max(0, min(100, round(total_score / max_score * 100)))


class BaselineStepController(FlowController):
    """Drives the baseline assessment one step at a time."""

    def __init__(
        self,
        client: ProgressionClient,
        identity: Optional[str] = None,
        *,
        consent_count: int = 0,
        max_score: Optional[int] = None,
    ):
        super().__init__(client, identity)
        self.consent_count = consent_count
        self.max_score = max_score
        self.baseline: Optional[BaselineState] = None
        self.selected_index: Optional[int] = None

    @classmethod
    def from_snapshot(
        cls,
        client: ProgressionClient,
        identity: Optional[str],
        snapshot: ProgressSnapshot,
    ) -> "BaselineStepController":
        """Controller sized from the snapshot's consent steps and score scale."""
        block = snapshot.baseline
        content = block.content if block else None
        return cls(
            client,
            identity,
            consent_count=block.consent_count if block else 0,
            max_score=content.meta.max_score if content else None,
        )

    def _reset_transient(self) -> None:
        super()._reset_transient()
        self.baseline = None
        self.selected_index = None

    def _state_label(self) -> Optional[str]:
        if self.baseline is None:
            return None
        step = self.baseline.step
        return f"{self.baseline.status}:{step.type if step else '-'}"

    # ------------------------------------------------------------------
    # Derived view
    # ------------------------------------------------------------------

    @property
    def step(self):
        return self.baseline.step if self.baseline else None

    @property
    def result(self) -> Optional[BaselineScore]:
        return self.baseline.result if self.baseline else None

    @property
    def completed(self) -> bool:
        return self.baseline is not None and self.baseline.status == "completed"

    @property
    def question_index(self) -> Optional[int]:
        if not isinstance(self.step, QuestionStep):
            return None
        return max(0, self.baseline.nav.index - self.consent_count)

    @property
    def question_total(self) -> Optional[int]:
        if not isinstance(self.step, QuestionStep):
            return None
        return max(0, self.baseline.nav.total - self.consent_count)

    @property
    def is_last_question(self) -> bool:
        index, total = self.question_index, self.question_total
        if index is None or total is None:
            return False
        return total > 0 and index + 1 == total

    @property
    def needs_reset(self) -> bool:
        return isinstance(self.step, ReviewMissingStep)

    @property
    def percent(self) -> Optional[int]:
        if self.result is None:
            return None
        return score_percent(self.result.total_score, self.max_score)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def select(self, index: Optional[int]) -> None:
        self.selected_index = index

    def _apply(self, baseline: BaselineState) -> None:
        self.baseline = baseline
        step = baseline.step
        self.selected_index = step.selected_index if isinstance(step, QuestionStep) else None
        if baseline.status != "completed" and step is None:
            self._record_error(RejectedByServer("STEP_MISSING", "in progress but no step served"))

    async def load(self) -> bool:
        """Fetch ``(status, nav, step)``; a failure keeps the previous view."""
        identity = self._require_identity()
        generation = self._generation
        try:
            baseline = await self.client.get_baseline_state(identity)
        except FlowError as exc:
            if self._is_current(generation):
                self._record_error(exc)
            return False
        if not self._is_current(generation):
            return False
        self.error = None
        self._apply(baseline)
        return self.error is None

    def _refetch(self, identity: str) -> Step:
        return Step("refresh", lambda: self.client.get_baseline_state(identity))

    def _commit(self, results: List[Any]) -> None:
        self._apply(results[-1])

    async def _step_transition(self, name: str, steps: List[Step]) -> bool:
        """Run a refetching transition; a served state without a step is a failure."""
        committed = await self._transition(name, steps, self._commit)
        return committed and self.error is None

    async def advance(self) -> bool:
        """
        Act on the current step.

        Consent is acknowledged; a question posts the selected option and, when
        it was the last one, submits the assessment. ``review_missing`` does
        nothing; only ``reset`` recovers from it.
        """
        if self.busy:
            return False
        identity = self._require_identity()
        step = self.step
        if step is None:
            raise InvalidLocalState("NO_STEP", "baseline step not loaded")
        if isinstance(step, ReviewMissingStep):
            logger.info("Baseline needs reset", extra={"step_type": step.type})
            return False

        if isinstance(step, ConsentStep):
            payload = {"acknowledged": True}
            steps = [Step("answer", lambda: self.client.answer_baseline(identity, "consent", step.id, payload))]
        else:
            if self.selected_index is None:
                raise InvalidLocalState("NO_SELECTION", "select an option before continuing")
            payload = {"optionIndex": self.selected_index}
            steps = [Step("answer", lambda: self.client.answer_baseline(identity, "question", step.id, payload))]
            if self.is_last_question:
                steps.append(Step("submit", lambda: self.client.submit_baseline(identity)))
        steps.append(self._refetch(identity))
        return await self._step_transition(f"advance_{step.type}", steps)

    async def start(self) -> bool:
        if self.busy:
            return False
        identity = self._require_identity()
        steps = [
            Step("start", lambda: self.client.start_baseline(identity)),
            self._refetch(identity),
        ]
        return await self._step_transition("start", steps)

    async def reset(self) -> bool:
        """Discard the answers server-side and start over."""
        if self.busy:
            return False
        identity = self._require_identity()
        steps = [
            Step("reset", lambda: self.client.reset_baseline(identity)),
            self._refetch(identity),
        ]
        return await self._step_transition("reset", steps)

    async def mark_result_seen(self) -> bool:
        """Acknowledge the result; the caller refreshes the snapshot afterwards."""
        if self.busy:
            return False
        identity = self._require_identity()
        steps = [Step("seen", lambda: self.client.mark_baseline_seen(identity))]
        return await self._transition("seen", steps, lambda results: None)
