"""Validation API: the only place the authoritative rule set is consulted."""

from typing import Optional

import structlog
from fastapi import APIRouter, Body, Request

from configurator.models.requests import ConfigurationRequest
from configurator.models.responses import ValidationResponse
from configurator.rules.collector import ViolationCollector

logger = structlog.get_logger()

router = APIRouter()


def get_collector(request: Request) -> ViolationCollector:
    """Collector over the rule set loaded at startup."""
    return request.app.state.collector


@router.post("/validate", response_model=ValidationResponse)
def validate_configuration(
    request: Request,
    body: Optional[ConfigurationRequest] = Body(default=None),
):
    """Validate a configuration against the full rule set.

    Always answers 200 with {valid, violations}; a configuration that breaks
    rules is a normal outcome, not an HTTP error.
    """
    configuration = body.root if body is not None else {}
    result = get_collector(request).collect(configuration)

    logger.info(
        "configuration_validated",
        valid=result.valid,
        violation_count=len(result.violations),
        violation_ids=[v.id for v in result.violations],
        fields=sorted(configuration),
    )

    return ValidationResponse.from_result(result)
