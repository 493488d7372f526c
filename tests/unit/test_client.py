"""Unit tests for ProgressionClient over httpx.MockTransport."""

import json

import httpx
import pytest

from pelekan.api.client import ProgressionClient
from pelekan.config import Settings
from pelekan.errors import NetworkFailure, RejectedByServer
from pelekan.schemas.review import ChosenPath
from pelekan.schemas.snapshot import ScreenState, TreatmentAccess

BASE = "http://pelekan.test/api/pelekan"


def make_client(handler):
    settings = Settings(api_base_url=BASE)
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url=BASE)
    return ProgressionClient(settings, http=http)


def ok(data):
    return httpx.Response(200, json={"ok": True, "data": data})


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_get_state_parses_snapshot(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["phone"] = request.url.params.get("phone")
            seen["cache"] = request.headers.get("cache-control")
            return ok(
                {
                    "tabState": "treating",
                    "user": {"planStatus": "pro", "daysLeft": 12},
                    "treatmentAccess": "frozen_current",
                    "ui": {"paywall": {"needed": True, "reason": "continue_treatment"}},
                    "stages": [],
                    "unknownField": {"ignored": True},
                }
            )

        async with make_client(handler) as client:
            snapshot = await client.get_state("0912")

        assert seen == {"path": "/api/pelekan/state", "phone": "0912", "cache": "no-store"}
        assert snapshot.screen_state == ScreenState.TREATING
        assert snapshot.treatment_access == TreatmentAccess.FROZEN_CURRENT
        assert snapshot.entitlement.days_left == 12
        assert snapshot.paywall.needed is True

    @pytest.mark.asyncio
    async def test_not_ok_raises_rejected(self):
        def handler(request):
            return httpx.Response(409, json={"ok": False, "error": "ALREADY_COMPLETED"})

        async with make_client(handler) as client:
            with pytest.raises(RejectedByServer) as exc:
                await client.start_review("0912")
        assert exc.value.code == "ALREADY_COMPLETED"

    @pytest.mark.asyncio
    async def test_not_ok_without_code_uses_status(self):
        def handler(request):
            return httpx.Response(500, json={"ok": False})

        async with make_client(handler) as client:
            with pytest.raises(RejectedByServer) as exc:
                await client.finish_review("0912")
        assert exc.value.code == "HTTP_500"

    @pytest.mark.asyncio
    async def test_non_json_body_is_network_failure(self):
        def handler(request):
            return httpx.Response(502, text="<html>bad gateway</html>")

        async with make_client(handler) as client:
            with pytest.raises(NetworkFailure) as exc:
                await client.get_state("0912")
        assert exc.value.code == "BAD_RESPONSE"

    @pytest.mark.asyncio
    async def test_transport_error_is_network_failure(self):
        def handler(request):
            raise httpx.ConnectTimeout("timed out", request=request)

        async with make_client(handler) as client:
            with pytest.raises(NetworkFailure):
                await client.get_state("0912")

    @pytest.mark.asyncio
    async def test_invalid_payload_is_rejected(self):
        def handler(request):
            return ok({"tabState": "somewhere_else"})

        async with make_client(handler) as client:
            with pytest.raises(RejectedByServer) as exc:
                await client.get_state("0912")
        assert exc.value.code == "INVALID_PAYLOAD"


class TestBodies:
    @pytest.mark.asyncio
    async def test_post_bodies(self):
        bodies = []

        def handler(request):
            bodies.append((request.url.path, json.loads(request.content)))
            return ok({"status": "ok"})

        async with make_client(handler) as client:
            await client.answer_review("0912", 2, 4, 3)
            await client.answer_baseline("0912", "question", "q1", {"optionIndex": 1})
            await client.choose_path("0912", ChosenPath.SKIP_REVIEW)
            await client.complete_test("0912", 1)

        assert bodies == [
            ("/api/pelekan/review/answer", {"phone": "0912", "testNo": 2, "index": 4, "value": 3}),
            ("/api/pelekan/baseline/answer", {"phone": "0912", "stepType": "question", "stepId": "q1", "optionIndex": 1}),
            ("/api/pelekan/review/choose", {"phone": "0912", "choice": "skip_review"}),
            ("/api/pelekan/review/complete-test", {"phone": "0912", "testNo": 1}),
        ]

    @pytest.mark.asyncio
    async def test_question_set_and_result(self):
        def handler(request):
            if request.url.path.endswith("/review/question-set"):
                return ok(
                    {
                        "questionSet": {"id": "qs", "code": "c", "version": 2, "titleFa": "t"},
                        "tests": {
                            "test1": [{"index": 0, "key": "k", "textFa": "q", "options": [{"value": 1, "labelFa": "y"}]}],
                            "test2": [],
                        },
                    }
                )
            return ok({"status": "unlocked", "canEnterPelekan": True, "result": {"meta": {"didSkipTest2": True}}})

        async with make_client(handler) as client:
            question_set = await client.get_question_set()
            result = await client.get_review_result("0912")

        assert question_set.set_id == "qs"
        assert question_set.test1[0].options[0].label == "y"
        assert question_set.test2 == []
        assert result.result.meta.did_skip_test2 is True
