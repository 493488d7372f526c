"""Orchestration layer - screen resolution and flow controllers."""

from pelekan.orchestration.baseline_flow import BaselineStepController, score_percent
from pelekan.orchestration.choose_path import ChoosePathController
from pelekan.orchestration.review_flow import ReviewFlowController
from pelekan.orchestration.screen import ScreenCoordinator, resolve
from pelekan.orchestration.state_machine import ReviewAction, ReviewFlowState

__all__ = [
    "BaselineStepController",
    "ChoosePathController",
    "ReviewAction",
    "ReviewFlowController",
    "ReviewFlowState",
    "ScreenCoordinator",
    "resolve",
    "score_percent",
]
