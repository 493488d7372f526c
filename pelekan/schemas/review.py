"""
Pydantic schemas for the two-part review assessment.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from pelekan.schemas.common import WireModel


class ReviewStatus(str, Enum):
    """Server-side status of a review session."""
    IN_PROGRESS = "in_progress"
    COMPLETED_LOCKED = "completed_locked"
    UNLOCKED = "unlocked"


class ChosenPath(str, Enum):
    """Path picked on the choose-path screen."""
    SKIP_REVIEW = "skip_review"
    REVIEW = "review"


class AssessmentSession(WireModel):
    """Review session cursor as held by the service."""

    id: Optional[str] = None
    status: ReviewStatus = ReviewStatus.IN_PROGRESS
    chosen_path: Optional[ChosenPath] = None
    current_test: int = 1
    current_index: int = Field(default=0, ge=0)
    test1_completed_at: Optional[datetime] = None
    test2_completed_at: Optional[datetime] = None
    test2_skipped_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    unlocked_at: Optional[datetime] = None
    question_set_id: Optional[str] = None


class ReviewState(WireModel):
    """Response of ``GET review/state``."""

    has_session: bool = False
    can_enter_pelekan: bool = False
    paywall_required: bool = False
    session: Optional[AssessmentSession] = None


class QuestionOption(WireModel):
    """Single allowed answer value."""

    value: int
    label: str = Field(default="", alias="labelFa")


class Question(WireModel):
    """One review question."""

    index: int
    key: str = ""
    text: str = Field(default="", alias="textFa")
    help: Optional[str] = Field(default=None, alias="helpFa")
    options: List[QuestionOption] = []


class QuestionSetInfo(WireModel):
    """Identity of a question set."""

    id: str
    code: Optional[str] = None
    version: Optional[int] = None
    title: Optional[str] = Field(default=None, alias="titleFa")


class QuestionTests(WireModel):
    test1: List[Question] = []
    test2: List[Question] = []


class QuestionSet(WireModel):
    """Response of ``GET review/question-set`` (identity-independent)."""

    question_set: QuestionSetInfo
    tests: QuestionTests = QuestionTests()

    @property
    def set_id(self) -> str:
        return self.question_set.id

    @property
    def test1(self) -> List[Question]:
        return self.tests.test1

    @property
    def test2(self) -> List[Question]:
        return self.tests.test2

    def questions_for(self, test_no: int) -> List[Question]:
        """Question list selected by a test number (1 or 2)."""
        return self.test1 if test_no == 1 else self.test2


class FinishResult(WireModel):
    """Response of ``POST review/finish`` and ``POST review/skip-test2``."""

    status: Optional[ReviewStatus] = None
    locked: bool = False
    can_enter_pelekan: bool = False


class ResultMeta(WireModel):
    did_skip_test2: bool = False


class ReviewOutcome(WireModel):
    """Computed outcome; only the fields the client branches on are typed."""

    locked: bool = False
    message: Optional[str] = None
    meta: ResultMeta = ResultMeta()


class ReviewResult(WireModel):
    """Response of ``GET review/result``."""

    status: Optional[ReviewStatus] = None
    can_enter_pelekan: bool = False
    result: Optional[ReviewOutcome] = None
