"""
Progression Service Client - async HTTP access to the remote service.

Every endpoint answers with an ``{ok, data, error}`` envelope. Each call is
made exactly once: transport failures become NetworkFailure, ``ok: false``
becomes RejectedByServer. Nothing is retried or cached here; every request
carries ``Cache-Control: no-store`` so intermediaries cannot serve a stale
snapshot.
"""

from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pelekan.config import Settings, get_settings
from pelekan.errors import NetworkFailure, RejectedByServer
from pelekan.logging_config import get_logger
from pelekan.schemas.baseline import BaselineState
from pelekan.schemas.common import ActionAck, ApiEnvelope
from pelekan.schemas.review import (
    ChosenPath,
    FinishResult,
    QuestionSet,
    ReviewResult,
    ReviewState,
)
from pelekan.schemas.snapshot import ProgressSnapshot

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

NO_STORE_HEADERS = {"Cache-Control": "no-store"}


class ProgressionClient:
    """
    Thin async client for the progression service.

    Owns its httpx.AsyncClient unless one is injected (tests inject a client
    built on ``httpx.MockTransport`` or ``httpx.ASGITransport``).
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        *,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or get_settings()
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(
            base_url=self.settings.api_base_url,
            timeout=self.settings.request_timeout_seconds,
            headers=NO_STORE_HEADERS,
        )

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "ProgressionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Perform one request and return the envelope's ``data``."""
        try:
            resp = await self._http.request(
                method,
                path,
                params=params,
                json=json,
                headers=NO_STORE_HEADERS,
            )
        except httpx.HTTPError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise NetworkFailure(str(exc) or type(exc).__name__) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            logger.warning(
                "%s %s returned a non-JSON body",
                method,
                path,
                extra={"status_code": resp.status_code},
            )
            raise NetworkFailure(f"HTTP {resp.status_code}", code="BAD_RESPONSE") from exc

        if not isinstance(body, dict):
            raise NetworkFailure(f"HTTP {resp.status_code}", code="BAD_RESPONSE")

        envelope = ApiEnvelope.model_validate(body)
        if not envelope.ok:
            code = envelope.error or (
                f"HTTP_{resp.status_code}" if resp.status_code >= 400 else "REQUEST_FAILED"
            )
            logger.info("%s %s rejected", method, path, extra={"error_code": code})
            raise RejectedByServer(code, envelope.message)
        return envelope.data

    @staticmethod
    def _parse(model: Type[M], data: Any, path: str) -> M:
        try:
            return model.model_validate(data or {})
        except ValidationError as exc:
            logger.warning("Invalid payload from %s: %s", path, exc.error_count())
            raise RejectedByServer("INVALID_PAYLOAD", f"{path}: {exc.error_count()} invalid fields") from exc

    async def _get(self, model: Type[M], path: str, params: Optional[Dict[str, Any]] = None) -> M:
        data = await self._request("GET", path, params=params)
        return self._parse(model, data, path)

    async def _post(self, model: Type[M], path: str, body: Dict[str, Any]) -> M:
        data = await self._request("POST", path, json=body)
        return self._parse(model, data, path)

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def get_state(self, identity: str) -> ProgressSnapshot:
        """Fetch the full progress snapshot for an identity."""
        return await self._get(ProgressSnapshot, "/state", {"phone": identity})

    async def start_treatment(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/treatment/start", {"phone": identity})

    # ------------------------------------------------------------------
    # Baseline
    # ------------------------------------------------------------------

    async def get_baseline_state(self, identity: str) -> BaselineState:
        return await self._get(BaselineState, "/baseline/state", {"phone": identity})

    async def start_baseline(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/baseline/start", {"phone": identity})

    async def answer_baseline(
        self,
        identity: str,
        step_type: str,
        step_id: str,
        payload: Dict[str, Any],
    ) -> ActionAck:
        """Record a consent acknowledgement or a question answer."""
        body = {"phone": identity, "stepType": step_type, "stepId": step_id, **payload}
        return await self._post(ActionAck, "/baseline/answer", body)

    async def submit_baseline(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/baseline/submit", {"phone": identity})

    async def reset_baseline(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/baseline/reset", {"phone": identity})

    async def mark_baseline_seen(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/baseline/seen", {"phone": identity})

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    async def get_question_set(self) -> QuestionSet:
        return await self._get(QuestionSet, "/review/question-set")

    async def get_review_state(self, identity: str) -> ReviewState:
        return await self._get(ReviewState, "/review/state", {"phone": identity})

    async def choose_path(self, identity: str, choice: ChosenPath) -> ActionAck:
        body = {"phone": identity, "choice": ChosenPath(choice).value}
        return await self._post(ActionAck, "/review/choose", body)

    async def start_review(self, identity: str) -> ActionAck:
        return await self._post(ActionAck, "/review/start", {"phone": identity})

    async def answer_review(self, identity: str, test_no: int, index: int, value: int) -> ActionAck:
        body = {"phone": identity, "testNo": test_no, "index": index, "value": value}
        return await self._post(ActionAck, "/review/answer", body)

    async def complete_test(self, identity: str, test_no: int) -> ActionAck:
        body = {"phone": identity, "testNo": test_no}
        return await self._post(ActionAck, "/review/complete-test", body)

    async def skip_test2(self, identity: str) -> FinishResult:
        return await self._post(FinishResult, "/review/skip-test2", {"phone": identity})

    async def finish_review(self, identity: str) -> FinishResult:
        return await self._post(FinishResult, "/review/finish", {"phone": identity})

    async def get_review_result(self, identity: str) -> ReviewResult:
        return await self._get(ReviewResult, "/review/result", {"phone": identity})
