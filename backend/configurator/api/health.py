"""Health check endpoint."""

import time

from fastapi import APIRouter, Request

from configurator import __version__
from configurator.models.responses import HealthResponse

router = APIRouter()

_start_time = time.time()


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Service health with the state of the loaded rule set."""
    rule_set = getattr(request.app.state, "rule_set", None)

    return HealthResponse(
        status="healthy" if rule_set is not None else "unhealthy",
        version=__version__,
        uptime_seconds=round(time.time() - _start_time, 2),
        rule_count=len(rule_set) if rule_set is not None else 0,
        rules_source=rule_set.source if rule_set is not None else None,
    )
