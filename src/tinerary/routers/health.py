import logging

from fastapi import APIRouter, Request, Response, status
from pydantic import BaseModel

router = APIRouter(tags=["health"])

logger = logging.getLogger(__name__)


class HealthResponse(BaseModel):
    status: str


@router.get("/health", response_model=HealthResponse, status_code=200)
async def healthcheck():
    return {"status": "ok"}


@router.get("/health/ready", response_model=HealthResponse)
async def readiness(request: Request, response: Response):
    """Report whether the record store answers a ping.

    Search degrades to empty results without the store, so this is the
    signal that results are real.
    """
    es = getattr(request.app.state, "es", None)
    reachable = False
    if es is not None:
        try:
            reachable = bool(await es.ping())
        except Exception:
            logger.exception("Elasticsearch ping failed")
    if not reachable:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return {"status": "unavailable"}
    return {"status": "ok"}
