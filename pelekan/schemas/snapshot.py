"""
Pydantic schemas for the progress snapshot (``GET state``).

The snapshot is the complete server-computed progression state for one
identity. Every field that encodes a business rule (screen, entitlement,
treatment access, paywall) is taken as-is; nothing here recomputes it.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from pelekan.schemas.baseline import BaselineBlock
from pelekan.schemas.common import WireModel
from pelekan.schemas.review import AssessmentSession


class ScreenState(str, Enum):
    """Top-level screen of the treatment tab."""
    IDLE = "idle"
    BASELINE_ASSESSMENT = "baseline_assessment"
    BASELINE_RESULT = "baseline_result"
    CHOOSE_PATH = "choose_path"
    REVIEW = "review"
    TREATING = "treating"


class PlanStatus(str, Enum):
    FREE = "free"
    PRO = "pro"
    EXPIRED = "expired"
    EXPIRING = "expiring"


class TreatmentAccess(str, Enum):
    """Whether the active day may be entered or only previewed."""
    FULL = "full"
    FROZEN_CURRENT = "frozen_current"
    ARCHIVE_ONLY = "archive_only"


class PaywallReason(str, Enum):
    START_TREATMENT = "start_treatment"
    CONTINUE_TREATMENT = "continue_treatment"


class Entitlement(WireModel):
    plan_status: PlanStatus = PlanStatus.FREE
    days_left: int = Field(default=0, ge=0)


class Paywall(WireModel):
    needed: bool = False
    reason: Optional[PaywallReason] = None


class UiBlock(WireModel):
    paywall: Paywall = Paywall()
    flags: Dict[str, Any] = {}


class Task(WireModel):
    id: str
    title: str = Field(default="", alias="titleFa")
    description: Optional[str] = None
    sort_order: int = 0
    weight_percent: float = 0
    xp_reward: int = 0
    is_required: bool = False


class Day(WireModel):
    """Immutable day content. ``global_day_number`` orders all days."""

    id: str
    stage_id: str
    day_number_in_stage: int
    global_day_number: int
    title: Optional[str] = None
    description: Optional[str] = None
    required_percent: float = 0
    tasks: List[Task] = []


class Stage(WireModel):
    id: str
    code: str
    title: str = Field(default="", alias="titleFa")
    sort_order: int = 0
    status: Optional[str] = None
    days: List[Day] = []


class DayProgressRow(WireModel):
    day_id: str
    status: str = "idle"
    completion_percent: float = 0
    started_at: Optional[datetime] = None
    last_activity_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    xp_earned: Optional[int] = None

    @property
    def is_done(self) -> bool:
        """Done by status flag OR by completion percent; either suffices."""
        if str(self.status or "").lower() in ("done", "completed"):
            return True
        return self.completion_percent >= 100


class Streak(WireModel):
    current_days: int = 0
    best_days: int = 0
    last_completed_at: Optional[datetime] = None


class Progress(WireModel):
    active_day_id: Optional[str] = None
    day_progress: List[DayProgressRow] = []
    xp_total: int = 0
    streak: Streak = Streak()

    def row_for(self, day_id: str) -> Optional[DayProgressRow]:
        for row in self.day_progress:
            if row.day_id == day_id:
                return row
        return None


class ReviewBlock(WireModel):
    has_session: bool = False
    session: Optional[AssessmentSession] = None


class TreatmentStageStatus(WireModel):
    code: str
    title: Optional[str] = None
    status: Optional[str] = None


class TreatmentInfo(WireModel):
    """Server hints about the active stage/day while treating."""

    active_stage: Optional[str] = None
    active_day: Optional[int] = None
    stages: List[TreatmentStageStatus] = []


class ProgressSnapshot(WireModel):
    """Root snapshot; replaced wholesale on every refresh."""

    screen_state: ScreenState = Field(alias="tabState")
    entitlement: Entitlement = Field(default=Entitlement(), alias="user")
    treatment_access: TreatmentAccess = TreatmentAccess.ARCHIVE_ONLY
    ui: UiBlock = UiBlock()
    stages: List[Stage] = []
    progress: Optional[Progress] = None
    baseline: Optional[BaselineBlock] = None
    review: Optional[ReviewBlock] = None
    treatment: Optional[TreatmentInfo] = None
    has_content: bool = True

    @property
    def paywall(self) -> Paywall:
        return self.ui.paywall

    @property
    def review_session(self) -> Optional[AssessmentSession]:
        return self.review.session if self.review else None

    @property
    def active_stage_code(self) -> Optional[str]:
        """Explicit active stage code, when the service provides one."""
        if self.treatment and self.treatment.active_stage:
            return self.treatment.active_stage.strip() or None
        return None

    def stage_statuses(self) -> Dict[str, str]:
        """Per-stage status by stage code (stage field first, then treatment hints)."""
        statuses: Dict[str, str] = {}
        if self.treatment:
            for st in self.treatment.stages:
                if st.status:
                    statuses[st.code] = st.status
        for stage in self.stages:
            if stage.status:
                statuses[stage.code] = stage.status
        return statuses
