"""
Shared plumbing for flow controllers: identity, liveness, guard, error slot.
"""

from typing import Any, Callable, List, Optional, Sequence

from pelekan.api.client import ProgressionClient
from pelekan.errors import FlowError, InvalidLocalState
from pelekan.logging_config import bind_identity, get_logger
from pelekan.orchestration.transitions import Step, StepFailed, TransitionGuard, run_steps

logger = get_logger(__name__)


class FlowController:
    """
    Base for controllers that hold transient, in-memory flow state.

    ``_generation`` changes whenever the identity changes or the controller is
    torn down; results of calls started under an older generation are dropped
    instead of being applied.
    """

    def __init__(self, client: ProgressionClient, identity: Optional[str] = None):
        self.client = client
        self._identity = identity
        self._alive = True
        self._generation = 0
        self.guard = TransitionGuard()
        self.error: Optional[FlowError] = None

    @property
    def identity(self) -> Optional[str]:
        return self._identity

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def busy(self) -> bool:
        return self.guard.busy

    def _require_identity(self) -> str:
        if not self._identity:
            raise InvalidLocalState("IDENTITY_MISSING")
        bind_identity(self._identity)
        return self._identity

    def _is_current(self, generation: int) -> bool:
        return self._alive and generation == self._generation

    def _record_error(self, exc: FlowError) -> None:
        self.error = exc
        logger.warning(
            "%s error: %s",
            type(self).__name__,
            exc.code,
            extra={"error_type": type(exc).__name__},
        )

    def _state_label(self) -> Optional[str]:
        return None

    async def _transition(
        self,
        name: str,
        steps: Sequence[Step],
        commit: Callable[[List[Any]], None],
    ) -> bool:
        """
        Run ``steps`` under the guard and ``commit`` their results.

        Returns False, with nothing committed, when another transition is in
        flight, a step fails (error recorded) or the controller went stale.
        """
        with self.guard.hold() as acquired:
            if not acquired:
                return False
            generation = self._generation
            from_state = self._state_label()
            try:
                results = await run_steps(steps)
            except StepFailed as exc:
                if self._is_current(generation):
                    self._record_error(exc.error)
                return False
            if not self._is_current(generation):
                logger.info("Dropping stale transition result", extra={"transition": name})
                return False
            self.error = None
            commit(results)
            logger.info(
                "%s transition",
                type(self).__name__,
                extra={
                    "transition": name,
                    "from_state": from_state,
                    "to_state": self._state_label(),
                },
            )
            return True

    def _reset_transient(self) -> None:
        """Drop all transient state. Subclasses extend."""
        self.error = None
        self.guard.reset()

    def set_identity(self, identity: Optional[str]) -> None:
        """Switch identity; everything scoped to the old one is discarded."""
        if identity == self._identity:
            return
        self._identity = identity
        self._generation += 1
        self._reset_transient()

    def teardown(self) -> None:
        """Stop applying results of in-flight calls (screen left)."""
        self._alive = False
        self._generation += 1
