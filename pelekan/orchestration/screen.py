"""
Screen Resolver and the snapshot owner.

The screen comes from the service (``tabState``); the only local input is a
one-shot ``review`` override used right after the user picks the review path,
before the next snapshot confirms it.
"""

from typing import List, Optional

from pelekan.api.client import ProgressionClient
from pelekan.engines.path.classifier import PathClassifier, PathNode
from pelekan.errors import FlowError
from pelekan.logging_config import get_logger
from pelekan.orchestration.base import FlowController
from pelekan.schemas.snapshot import ProgressSnapshot, ScreenState

logger = get_logger(__name__)


def resolve(snapshot: ProgressSnapshot, local_override: Optional[ScreenState] = None) -> ScreenState:
    """A set review override wins; otherwise the service's screen, verbatim."""
    if local_override == ScreenState.REVIEW:
        return ScreenState.REVIEW
    return snapshot.screen_state


class ScreenCoordinator(FlowController):
    """
    Owns the current snapshot and the one-shot review override.

    Each refresh replaces the snapshot wholesale. Once the override has been
    rendered, the next successful refresh clears it.
    """

    def __init__(
        self,
        client: ProgressionClient,
        identity: Optional[str] = None,
        *,
        classifier: Optional[PathClassifier] = None,
    ):
        super().__init__(client, identity)
        self.classifier = classifier or PathClassifier()
        self.snapshot: Optional[ProgressSnapshot] = None
        self._override: Optional[ScreenState] = None
        self._override_rendered = False
        self._refresh_seq = 0

    def _reset_transient(self) -> None:
        super()._reset_transient()
        self.snapshot = None
        self._override = None
        self._override_rendered = False

    @property
    def override(self) -> Optional[ScreenState]:
        return self._override

    def request_review_override(self) -> None:
        self._override = ScreenState.REVIEW
        self._override_rendered = False

    def current_screen(self) -> Optional[ScreenState]:
        """Screen to render now; None until the first snapshot arrives."""
        if self._override is not None:
            self._override_rendered = True
            if self.snapshot is None:
                return self._override
        if self.snapshot is None:
            return None
        return resolve(self.snapshot, self._override)

    async def refresh(self) -> bool:
        """
        Fetch a fresh snapshot. A failure keeps the previous snapshot and the
        review override.
        """
        identity = self._require_identity()
        generation = self._generation
        self._refresh_seq += 1
        seq = self._refresh_seq
        clear_override = self._override_rendered
        try:
            snapshot = await self.client.get_state(identity)
        except FlowError as exc:
            if self._is_current(generation):
                self._record_error(exc)
            return False

        if clear_override and self._override_rendered and self._is_current(generation):
            self._override = None
            self._override_rendered = False

        if not self._is_current(generation) or seq != self._refresh_seq:
            logger.info("Dropping stale snapshot", extra={"seq": seq, "latest": self._refresh_seq})
            return False
        self.snapshot = snapshot
        self.error = None
        logger.info(
            "Snapshot refreshed",
            extra={
                "screen_state": snapshot.screen_state.value,
                "treatment_access": snapshot.treatment_access.value,
            },
        )
        return True

    def path_nodes(self) -> List[PathNode]:
        if self.snapshot is None:
            return []
        return self.classifier.classify_snapshot(self.snapshot)
