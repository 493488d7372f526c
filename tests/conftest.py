"""
Pytest fixtures for progression client tests.
"""

from unittest.mock import AsyncMock

import pytest

from factories import PHONE, make_question_set
from pelekan.api.client import ProgressionClient
from pelekan.schemas.common import ActionAck
from pelekan.schemas.review import FinishResult, ReviewResult


@pytest.fixture
def phone() -> str:
    return PHONE


@pytest.fixture
def client() -> AsyncMock:
    """ProgressionClient double; every endpoint acknowledges by default."""
    mock = AsyncMock(spec=ProgressionClient)
    ack = ActionAck(status="ok")
    for name in (
        "start_treatment",
        "start_baseline",
        "answer_baseline",
        "submit_baseline",
        "reset_baseline",
        "mark_baseline_seen",
        "choose_path",
        "start_review",
        "answer_review",
        "complete_test",
    ):
        getattr(mock, name).return_value = ack
    mock.skip_test2.return_value = FinishResult(status="unlocked", locked=False, can_enter_pelekan=True)
    mock.finish_review.return_value = FinishResult(status="unlocked", locked=False, can_enter_pelekan=True)
    mock.get_review_result.return_value = ReviewResult.model_validate(
        {"status": "unlocked", "canEnterPelekan": True, "result": {"locked": False, "meta": {"didSkipTest2": False}}}
    )
    mock.get_question_set.return_value = make_question_set()
    return mock
