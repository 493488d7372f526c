"""Unit tests for ChoosePathController."""

import pytest

from pelekan.errors import InvalidLocalState, RejectedByServer
from pelekan.orchestration.choose_path import ChoosePathController
from pelekan.schemas.review import ChosenPath


class TestChoosePath:
    @pytest.mark.asyncio
    async def test_review_records_choice_only(self, client, phone):
        controller = ChoosePathController(client, phone)

        assert await controller.choose(ChosenPath.REVIEW) is True
        client.choose_path.assert_awaited_once_with(phone, ChosenPath.REVIEW)
        client.start_treatment.assert_not_awaited()
        assert controller.chosen == ChosenPath.REVIEW

    @pytest.mark.asyncio
    async def test_skip_review_starts_treatment(self, client, phone):
        controller = ChoosePathController(client, phone)

        assert await controller.choose("skip_review") is True
        client.start_treatment.assert_awaited_once_with(phone)
        assert controller.chosen == ChosenPath.SKIP_REVIEW

    @pytest.mark.asyncio
    async def test_failed_treatment_start_commits_nothing(self, client, phone):
        client.start_treatment.side_effect = RejectedByServer("NO_CONTENT")
        controller = ChoosePathController(client, phone)

        assert await controller.choose(ChosenPath.SKIP_REVIEW) is False
        assert controller.chosen is None
        assert controller.error.code == "NO_CONTENT"

    @pytest.mark.asyncio
    async def test_unknown_choice(self, client, phone):
        controller = ChoosePathController(client, phone)
        with pytest.raises(InvalidLocalState):
            await controller.choose("maybe")
        client.choose_path.assert_not_awaited()
