"""
Path Classifier - turns the stage/day tree into an ordered, zig-zagging list
of renderable nodes, each tagged with its accessibility.

Output order:
  1. One synthetic results node (qualifying-assessment outcome).
  2. Per stage, in the given order: a header, the stage's days, a spacer.

Day accessibility:
  - available    day id equals ``progress.active_day_id``
  - done         the day's progress row is done (status flag OR percent)
  - enterable    available AND treatment access is full or frozen_current
  - previewable  stage comes before the active stage, OR done
  - locked       neither available nor previewable
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Union

from pelekan.logging_config import get_logger
from pelekan.schemas.baseline import BaselineSessionSummary
from pelekan.schemas.review import AssessmentSession
from pelekan.schemas.snapshot import (
    Day,
    Progress,
    ProgressSnapshot,
    Stage,
    TreatmentAccess,
)

logger = get_logger(__name__)

RESULTS_NODE_ID = "results"

ENTERABLE_ACCESS = (TreatmentAccess.FULL, TreatmentAccess.FROZEN_CURRENT)


class NodeKind(str, Enum):
    RESULTS = "results"
    HEADER = "header"
    DAY = "day"
    SPACER = "spacer"


class Zig(str, Enum):
    LEFT = "L"
    RIGHT = "R"


class AccessClass(str, Enum):
    """Single accessibility tag of a day node."""
    ENTERABLE = "enterable"
    PREVIEWABLE = "previewable"
    AVAILABLE = "available"  # active day, but access level does not allow entering
    LOCKED = "locked"


@dataclass(frozen=True)
class PathNode:
    kind: NodeKind
    id: str
    stage: Optional[Stage] = None
    day: Optional[Day] = None
    zig: Optional[Zig] = None
    available: bool = False
    done: bool = False
    enterable: bool = False
    previewable: bool = False
    terminal: bool = False
    upcoming: bool = False

    @property
    def locked(self) -> bool:
        return self.kind == NodeKind.DAY and not self.available and not self.previewable

    @property
    def access(self) -> Optional[AccessClass]:
        if self.kind != NodeKind.DAY:
            return None
        if self.enterable:
            return AccessClass.ENTERABLE
        if self.previewable:
            return AccessClass.PREVIEWABLE
        if self.available:
            return AccessClass.AVAILABLE
        return AccessClass.LOCKED


# ── Tap actions ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class EnterDay:
    day_id: str


@dataclass(frozen=True)
class PreviewDay:
    day_id: str
    mode: str = "preview"


@dataclass(frozen=True)
class OpenResults:
    pass


TapAction = Union[EnterDay, PreviewDay, OpenResults]


def tap(node: PathNode) -> Optional[TapAction]:
    """Action fired by tapping ``node``; None for locked days and layout nodes."""
    if node.kind == NodeKind.RESULTS:
        return OpenResults()
    if node.kind != NodeKind.DAY:
        return None
    if node.enterable:
        return EnterDay(node.day.id)
    if node.previewable:
        return PreviewDay(node.day.id)
    return None


# ── Results node ────────────────────────────────────────────────────────


def results_node_done(
    baseline_session: Optional[BaselineSessionSummary],
    review_session: Optional[AssessmentSession],
) -> bool:
    """All four must hold: baseline completed, review session, chosen path, a review timestamp."""
    if baseline_session is None or not baseline_session.is_completed:
        return False
    if review_session is None or review_session.chosen_path is None:
        return False
    return any(
        (
            review_session.completed_at,
            review_session.test2_completed_at,
            review_session.test1_completed_at,
            review_session.test2_skipped_at,
        )
    )


# ── Classifier ──────────────────────────────────────────────────────────


def _resolve_active_stage(
    stages: Sequence[Stage],
    active_stage_code: Optional[str],
    stage_statuses: Optional[Dict[str, str]],
) -> Optional[Stage]:
    if active_stage_code:
        for stage in stages:
            if stage.code == active_stage_code:
                return stage
    statuses = stage_statuses or {}
    for stage in stages:
        status = stage.status or statuses.get(stage.code)
        if status == "active":
            return stage
    return None


def _terminal_day_id(stages: Sequence[Stage]) -> Optional[str]:
    """Day with the maximum global number; the first one wins a tie."""
    best: Optional[Day] = None
    for stage in stages:
        for day in stage.days:
            if best is None or day.global_day_number > best.global_day_number:
                best = day
    return best.id if best else None


class PathClassifier:
    """
    Builds the node list for one classification pass.

    The zig counter lives on the pass, not the instance, so every call starts
    from the left again.
    """

    def classify(
        self,
        stages: Sequence[Stage],
        progress: Optional[Progress],
        treatment_access: TreatmentAccess,
        *,
        active_stage_code: Optional[str] = None,
        stage_statuses: Optional[Dict[str, str]] = None,
        results_done: bool = False,
    ) -> List[PathNode]:
        active_stage = _resolve_active_stage(stages, active_stage_code, stage_statuses)
        # No active stage: every stage counts as future.
        active_order = active_stage.sort_order if active_stage else None
        active_day_id = progress.active_day_id if progress else None
        terminal_id = _terminal_day_id(stages)
        can_enter = TreatmentAccess(treatment_access) in ENTERABLE_ACCESS

        nodes: List[PathNode] = [
            PathNode(kind=NodeKind.RESULTS, id=RESULTS_NODE_ID, done=results_done)
        ]
        zig = 0
        for stage in stages:
            past_stage = active_order is not None and stage.sort_order < active_order
            upcoming = active_order is None or stage.sort_order > active_order
            nodes.append(
                PathNode(kind=NodeKind.HEADER, id=f"header-{stage.id}", stage=stage, upcoming=upcoming)
            )
            for day in stage.days:
                row = progress.row_for(day.id) if progress else None
                done = row.is_done if row else False
                available = active_day_id is not None and day.id == active_day_id
                nodes.append(
                    PathNode(
                        kind=NodeKind.DAY,
                        id=f"day-{day.id}",
                        stage=stage,
                        day=day,
                        zig=Zig.LEFT if zig % 2 == 0 else Zig.RIGHT,
                        available=available,
                        done=done,
                        enterable=available and can_enter,
                        previewable=past_stage or done,
                        terminal=day.id == terminal_id,
                    )
                )
                zig += 1
            nodes.append(PathNode(kind=NodeKind.SPACER, id=f"spacer-{stage.id}", stage=stage))

        logger.debug(
            "Path classified",
            extra={
                "node_count": len(nodes),
                "active_stage": active_stage.code if active_stage else None,
                "active_day_id": active_day_id,
            },
        )
        return nodes

    def classify_snapshot(self, snapshot: ProgressSnapshot) -> List[PathNode]:
        """Classify straight from a progress snapshot."""
        baseline_session = snapshot.baseline.session if snapshot.baseline else None
        return self.classify(
            snapshot.stages,
            snapshot.progress,
            snapshot.treatment_access,
            active_stage_code=snapshot.active_stage_code,
            stage_statuses=snapshot.stage_statuses(),
            results_done=results_node_done(baseline_session, snapshot.review_session),
        )


def active_index(nodes: Sequence[PathNode]) -> Optional[int]:
    """Position of the available day, for scroll-to-active."""
    for i, node in enumerate(nodes):
        if node.kind == NodeKind.DAY and node.available:
            return i
    return None
