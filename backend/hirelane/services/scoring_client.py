import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from ..utils.error_handlers import UpstreamServiceError, get_error_message

logger = logging.getLogger(__name__)


class ScoringClientError(RuntimeError):
    pass


@dataclass(frozen=True)
class ScoringResponse:
    status_code: int
    body: Any
    latency_ms: int


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


class ScoringClient:
    """
    Thin proxy to the external scoring backend.

    Endpoint:
      POST {base_url}/score  {"job_id": ...}
    Auth:
      X-API-Key: {api_key}

    Single attempt, httpx default timeout.
    """

    def __init__(self, *, base_url: str, api_key: str, transport: httpx.AsyncBaseTransport | None = None):
        if not base_url or not api_key:
            raise ScoringClientError("Missing SCORING_BACKEND_URL or SCORING_API_KEY")
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self._transport = transport

    async def score(self, job_id: Any) -> ScoringResponse:
        url = f"{self.base_url}/score"
        headers = {
            "X-API-Key": self.api_key,
            "content-type": "application/json",
        }
        start = time.perf_counter()
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                r = await client.post(url, json={"job_id": job_id}, headers=headers)
        except httpx.HTTPError as e:
            logger.error("Scoring backend unreachable job_id=%s: %s", job_id, type(e).__name__)
            raise UpstreamServiceError(get_error_message("server_error")) from e

        latency_ms = int((time.perf_counter() - start) * 1000)
        try:
            data = r.json()
        except ValueError:
            logger.error(
                "Scoring backend returned non-JSON status=%s body=%s",
                r.status_code,
                _safe_truncate(r.text),
            )
            raise UpstreamServiceError(get_error_message("server_error")) from None

        if not r.is_success:
            logger.error("Scoring backend error status=%s body=%s", r.status_code, _safe_truncate(r.text))
            message = data.get("error") if isinstance(data, dict) else None
            raise UpstreamServiceError(
                message or get_error_message("scoring_failed"),
                status_code=r.status_code,
            )

        logger.info("Scoring ok job_id=%s status=%s latency_ms=%s", job_id, r.status_code, latency_ms)
        return ScoringResponse(status_code=r.status_code, body=data, latency_ms=latency_ms)
