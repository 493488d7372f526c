"""
Pydantic schemas for the baseline (single-cursor) assessment.
"""

from datetime import datetime
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import Field

from pelekan.schemas.common import WireModel


class BaselineNav(WireModel):
    """Raw step cursor; ``index``/``total`` count consent steps too."""

    index: int = 0
    total: int = 0
    can_prev: bool = False
    can_next: bool = False
    can_submit: bool = False


class ConsentStep(WireModel):
    type: Literal["consent"] = "consent"
    id: str
    text: str = ""
    option_text: Optional[str] = None
    acknowledged: bool = False


class BaselineOption(WireModel):
    index: int
    label: str = ""


class QuestionStep(WireModel):
    type: Literal["question"] = "question"
    id: str
    text: str = ""
    options: List[BaselineOption] = []
    selected_index: Optional[int] = None


class ReviewMissingStep(WireModel):
    """Answers went missing server-side; only a reset recovers."""

    type: Literal["review_missing"] = "review_missing"
    message: Optional[str] = None


BaselineStep = Annotated[
    Union[ConsentStep, QuestionStep, ReviewMissingStep],
    Field(discriminator="type"),
]


class BaselineScore(WireModel):
    total_score: float = 0
    level: Optional[str] = None
    interpretation_text: Optional[str] = None
    completed_at: Optional[datetime] = None


class BaselineState(WireModel):
    """Response of ``GET baseline/state``."""

    status: str = "in_progress"
    nav: BaselineNav = BaselineNav()
    step: Optional[BaselineStep] = None
    result: Optional[BaselineScore] = None


class BaselineSessionSummary(WireModel):
    """Baseline session as embedded in the progress snapshot."""

    id: Optional[str] = None
    status: str = "in_progress"
    total_score: Optional[float] = None
    level: Optional[str] = None
    completed_at: Optional[datetime] = None

    @property
    def is_completed(self) -> bool:
        return self.status == "completed"


class BaselineMeta(WireModel):
    title: Optional[str] = Field(default=None, alias="titleFa")
    max_score: Optional[int] = None


class BaselineContent(WireModel):
    consent_steps: List[Dict[str, Any]] = []
    meta: BaselineMeta = BaselineMeta()


class BaselineBlock(WireModel):
    session: Optional[BaselineSessionSummary] = None
    content: Optional[BaselineContent] = None

    @property
    def consent_count(self) -> int:
        return len(self.content.consent_steps) if self.content else 0
