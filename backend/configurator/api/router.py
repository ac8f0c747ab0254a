"""Main API router: combines all endpoint routers."""

from fastapi import APIRouter

from configurator.api.health import router as health_router
from configurator.api.rules import router as rules_router
from configurator.api.validate import router as validate_router

api_router = APIRouter()

# Health check
api_router.include_router(health_router, tags=["Health"])

# Rule listing
api_router.include_router(rules_router, tags=["Rules"])

# Configuration validation
api_router.include_router(validate_router, tags=["Validation"])
