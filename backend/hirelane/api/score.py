import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..services.scoring_client import ScoringClient
from ..utils.dependencies import get_current_user, get_scoring_client
from ..utils.error_handlers import get_error_message

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Scoring"])


class ScoreRequest(BaseModel):
    job_id: Any = None


@router.post("/score")
async def trigger_scoring(
    payload: ScoreRequest,
    client: ScoringClient | None = Depends(get_scoring_client),
    user=Depends(get_current_user),
):
    if not payload.job_id:
        raise HTTPException(status_code=400, detail=get_error_message("job_id_required"))

    if client is None:
        logger.error("Scoring backend configuration missing")
        raise HTTPException(status_code=500, detail=get_error_message("scoring_config_missing"))

    logger.info("Scoring requested job_id=%s by %s", payload.job_id, user["sub"])
    result = await client.score(payload.job_id)
    return JSONResponse(status_code=result.status_code, content=result.body)
