"""Wire schemas for the progression service."""

from pelekan.schemas.common import ActionAck, ApiEnvelope, WireModel
from pelekan.schemas.baseline import (
    BaselineBlock,
    BaselineNav,
    BaselineState,
    BaselineStep,
    ConsentStep,
    QuestionStep,
    ReviewMissingStep,
)
from pelekan.schemas.review import (
    AssessmentSession,
    ChosenPath,
    FinishResult,
    Question,
    QuestionSet,
    ReviewResult,
    ReviewState,
    ReviewStatus,
)
from pelekan.schemas.snapshot import (
    Day,
    DayProgressRow,
    Progress,
    ProgressSnapshot,
    ScreenState,
    Stage,
    TreatmentAccess,
)

__all__ = [
    # Common
    "ActionAck",
    "ApiEnvelope",
    "WireModel",
    # Baseline
    "BaselineBlock",
    "BaselineNav",
    "BaselineState",
    "BaselineStep",
    "ConsentStep",
    "QuestionStep",
    "ReviewMissingStep",
    # Review
    "AssessmentSession",
    "ChosenPath",
    "FinishResult",
    "Question",
    "QuestionSet",
    "ReviewResult",
    "ReviewState",
    "ReviewStatus",
    # Snapshot
    "Day",
    "DayProgressRow",
    "Progress",
    "ProgressSnapshot",
    "ScreenState",
    "Stage",
    "TreatmentAccess",
]
