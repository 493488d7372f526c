"""
Choose-path controller: record the path picked after the baseline result.

Skipping the review also starts treatment; both calls must succeed before the
choice counts as made. The caller refreshes the snapshot afterwards, which
moves the screen to ``treating`` or ``review``.
"""

from typing import Optional

from pelekan.errors import InvalidLocalState
from pelekan.orchestration.base import FlowController
from pelekan.orchestration.transitions import Step
from pelekan.schemas.review import ChosenPath


class ChoosePathController(FlowController):

    chosen: Optional[ChosenPath] = None

    def _reset_transient(self) -> None:
        super()._reset_transient()
        self.chosen = None

    def _state_label(self) -> Optional[str]:
        return self.chosen.value if self.chosen else None

    async def choose(self, choice: ChosenPath) -> bool:
        if self.busy:
            return False
        identity = self._require_identity()
        try:
            choice = ChosenPath(choice)
        except ValueError:
            raise InvalidLocalState("INVALID_CHOICE", f"unknown path {choice!r}") from None
        steps = [Step("choose", lambda: self.client.choose_path(identity, choice))]
        if choice == ChosenPath.SKIP_REVIEW:
            steps.append(Step("start_treatment", lambda: self.client.start_treatment(identity)))

        def commit(results) -> None:
            self.chosen = choice

        return await self._transition(f"choose_{choice.value}", steps, commit)
