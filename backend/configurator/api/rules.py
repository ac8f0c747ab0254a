"""Rules API: read-only listing of the loaded rule set."""

from fastapi import APIRouter, Request

from configurator.models.responses import RuleSummary

router = APIRouter()


@router.get("/rules", response_model=list[RuleSummary])
async def list_rules(request: Request):
    """List loaded rules in evaluation order, without their predicates."""
    return [
        RuleSummary(id=rule.id, field=rule.field, message=rule.message)
        for rule in request.app.state.rule_set
    ]
