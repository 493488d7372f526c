"""
Compound transitions and the per-controller transition guard.

A compound transition is an ordered list of remote calls. They run one after
another and stop at the first failure; the caller commits to its own state
only when every step succeeded.
"""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterator, List, Sequence

from pelekan.errors import FlowError
from pelekan.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Step:
    """One remote call of a compound transition."""
    name: str
    call: Callable[[], Awaitable[Any]]


class StepFailed(Exception):
    """A step of a compound transition failed; nothing was committed."""

    def __init__(self, step: str, completed: Sequence[str], error: FlowError):
        self.step = step
        self.completed = list(completed)
        self.error = error
        super().__init__(f"{step} failed after {self.completed}: {error.code}")


async def run_steps(steps: Sequence[Step]) -> List[Any]:
    """
    Run ``steps`` in order and return their results.

    Raises StepFailed on the first NetworkFailure/RejectedByServer; later
    steps are not attempted.
    """
    results: List[Any] = []
    completed: List[str] = []
    for step in steps:
        try:
            results.append(await step.call())
        except FlowError as exc:
            logger.warning(
                "Transition step failed",
                extra={"step": step.name, "completed_steps": completed, "error_code": exc.code},
            )
            raise StepFailed(step.name, completed, exc) from exc
        completed.append(step.name)
    return results


class TransitionGuard:
    """
    Allows at most one outbound transition at a time.

    A second attempt while one is pending is dropped, not queued. The client
    is single-threaded asyncio, so a plain flag is enough.
    """

    def __init__(self) -> None:
        self._busy = False
        self._epoch = 0

    @property
    def busy(self) -> bool:
        return self._busy

    def try_acquire(self) -> bool:
        if self._busy:
            return False
        self._busy = True
        return True

    def reset(self) -> None:
        """Force-release; a holder from before the reset will not release again."""
        self._busy = False
        self._epoch += 1

    @contextmanager
    def hold(self) -> Iterator[bool]:
        """Yield True when acquired; the body must no-op on False."""
        acquired = self.try_acquire()
        epoch = self._epoch
        try:
            yield acquired
        finally:
            if acquired and epoch == self._epoch:
                self._busy = False
