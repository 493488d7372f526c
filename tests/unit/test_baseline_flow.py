"""Unit tests for BaselineStepController."""

import pytest

from factories import make_snapshot
from pelekan.errors import InvalidLocalState, NetworkFailure
from pelekan.orchestration.baseline_flow import BaselineStepController, score_percent
from pelekan.schemas.baseline import BaselineState


def consent_state(index=0, total=5):
    return BaselineState.model_validate(
        {
            "status": "in_progress",
            "nav": {"index": index, "total": total, "canNext": True},
            "step": {"type": "consent", "id": f"c{index}", "text": "consent", "optionText": "ok"},
        }
    )


def question_state(index, total=5, selected=None):
    return BaselineState.model_validate(
        {
            "status": "in_progress",
            "nav": {"index": index, "total": total, "canNext": True, "canSubmit": index + 1 == total},
            "step": {
                "type": "question",
                "id": f"q{index}",
                "text": "question",
                "options": [{"index": i, "label": str(i)} for i in range(3)],
                "selectedIndex": selected,
            },
        }
    )


def completed_state(score=15.5):
    return BaselineState.model_validate(
        {"status": "completed", "result": {"totalScore": score, "level": "moderate"}}
    )


async def loaded(client, phone, state, consent_count=2):
    client.get_baseline_state.return_value = state
    controller = BaselineStepController(client, phone, consent_count=consent_count)
    await controller.load()
    return controller


class TestQuestionPosition:
    @pytest.mark.asyncio
    async def test_consent_steps_are_subtracted(self, client, phone):
        controller = await loaded(client, phone, question_state(3, total=5))
        assert controller.question_index == 1
        assert controller.question_total == 3
        assert controller.is_last_question is False

    @pytest.mark.asyncio
    async def test_last_question(self, client, phone):
        controller = await loaded(client, phone, question_state(4, total=5))
        assert controller.is_last_question is True

    @pytest.mark.asyncio
    async def test_no_position_on_consent(self, client, phone):
        controller = await loaded(client, phone, consent_state())
        assert controller.question_index is None
        assert controller.is_last_question is False

    @pytest.mark.asyncio
    async def test_preselected_option_restored(self, client, phone):
        controller = await loaded(client, phone, question_state(2, selected=1))
        assert controller.selected_index == 1


class TestAdvance:
    @pytest.mark.asyncio
    async def test_consent_acknowledged(self, client, phone):
        controller = await loaded(client, phone, consent_state(0))
        client.get_baseline_state.return_value = consent_state(1)

        assert await controller.advance() is True
        client.answer_baseline.assert_awaited_once_with(phone, "consent", "c0", {"acknowledged": True})
        assert controller.step.id == "c1"

    @pytest.mark.asyncio
    async def test_question_requires_selection(self, client, phone):
        controller = await loaded(client, phone, question_state(2))
        with pytest.raises(InvalidLocalState):
            await controller.advance()
        client.answer_baseline.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_question_posts_option(self, client, phone):
        controller = await loaded(client, phone, question_state(2))
        client.get_baseline_state.return_value = question_state(3)
        controller.select(2)

        assert await controller.advance() is True
        client.answer_baseline.assert_awaited_once_with(phone, "question", "q2", {"optionIndex": 2})
        client.submit_baseline.assert_not_awaited()
        assert controller.step.id == "q3"

    @pytest.mark.asyncio
    async def test_last_question_submits(self, client, phone):
        controller = await loaded(client, phone, question_state(4))
        client.get_baseline_state.return_value = completed_state(31)
        controller.select(0)

        assert await controller.advance() is True
        client.submit_baseline.assert_awaited_once_with(phone)
        assert controller.completed is True
        assert controller.percent == 100

    @pytest.mark.asyncio
    async def test_failed_submit_keeps_step(self, client, phone):
        controller = await loaded(client, phone, question_state(4))
        client.submit_baseline.side_effect = NetworkFailure("timeout")
        controller.select(0)

        assert await controller.advance() is False
        assert controller.step.id == "q4"
        assert isinstance(controller.error, NetworkFailure)

    @pytest.mark.asyncio
    async def test_review_missing_needs_reset(self, client, phone):
        state = BaselineState.model_validate(
            {"status": "in_progress", "step": {"type": "review_missing", "message": "answers missing"}}
        )
        controller = await loaded(client, phone, state)

        assert controller.needs_reset is True
        assert await controller.advance() is False
        client.answer_baseline.assert_not_awaited()

        client.get_baseline_state.return_value = consent_state(0)
        assert await controller.reset() is True
        client.reset_baseline.assert_awaited_once_with(phone)
        assert controller.needs_reset is False


class TestLoadAndLifecycle:
    @pytest.mark.asyncio
    async def test_step_missing(self, client, phone):
        controller = await loaded(client, phone, BaselineState(status="in_progress"))
        assert controller.error.code == "STEP_MISSING"

    @pytest.mark.asyncio
    async def test_step_missing_after_start_is_a_failure(self, client, phone):
        client.get_baseline_state.return_value = BaselineState(status="in_progress")
        controller = BaselineStepController(client, phone)

        assert await controller.start() is False
        assert controller.error.code == "STEP_MISSING"

    @pytest.mark.asyncio
    async def test_step_missing_after_advance_is_a_failure(self, client, phone):
        controller = await loaded(client, phone, consent_state(0))
        client.get_baseline_state.return_value = BaselineState(status="in_progress")

        assert await controller.advance() is False
        assert controller.error.code == "STEP_MISSING"

    @pytest.mark.asyncio
    async def test_load_failure_keeps_view(self, client, phone):
        controller = await loaded(client, phone, consent_state(0))
        client.get_baseline_state.side_effect = NetworkFailure("offline")

        assert await controller.load() is False
        assert controller.step.id == "c0"

    @pytest.mark.asyncio
    async def test_start(self, client, phone):
        client.get_baseline_state.return_value = consent_state(0)
        controller = BaselineStepController(client, phone)

        assert await controller.start() is True
        client.start_baseline.assert_awaited_once_with(phone)
        assert controller.step.type == "consent"

    @pytest.mark.asyncio
    async def test_mark_result_seen(self, client, phone):
        controller = await loaded(client, phone, completed_state())
        assert await controller.mark_result_seen() is True
        client.mark_baseline_seen.assert_awaited_once_with(phone)


class TestScorePercent:
    def test_rounds(self):
        assert score_percent(15.5, 31) == 50
        assert score_percent(10, 31) == 32

    def test_clamps(self):
        assert score_percent(40, 31) == 100
        assert score_percent(-3, 31) == 0

    def test_default_scale(self):
        assert score_percent(31) == 100
        assert score_percent(0, 0) == 0


class TestFromSnapshot:
    def test_reads_consents_and_scale(self, client, phone):
        snapshot = make_snapshot(
            tabState="baseline_assessment",
            baseline={"content": {"consentSteps": [{"id": "c0"}, {"id": "c1"}], "meta": {"maxScore": 40}}},
        )
        controller = BaselineStepController.from_snapshot(client, phone, snapshot)
        assert controller.consent_count == 2
        assert controller.max_score == 40

    def test_missing_block_uses_defaults(self, client, phone):
        controller = BaselineStepController.from_snapshot(client, phone, make_snapshot())
        assert controller.consent_count == 0
        assert controller.max_score is None

    @pytest.mark.asyncio
    async def test_last_question_detected_from_snapshot(self, client, phone):
        snapshot = make_snapshot(
            tabState="baseline_assessment",
            baseline={"content": {"consentSteps": [{"id": "c0"}, {"id": "c1"}]}},
        )
        client.get_baseline_state.return_value = question_state(4, total=5)
        controller = BaselineStepController.from_snapshot(client, phone, snapshot)
        await controller.load()

        assert controller.question_index == 2
        assert controller.is_last_question is True
