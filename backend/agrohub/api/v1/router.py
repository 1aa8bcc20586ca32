"""
API v1 router aggregating all endpoints.
"""
from fastapi import APIRouter

from agrohub.api.v1.auth import router as auth_router
from agrohub.api.v1.tenants import router as tenants_router
from agrohub.schemas.common import ErrorResponse

# Documented error bodies shared by every endpoint
ERROR_RESPONSES = {
    401: {"model": ErrorResponse, "description": "Missing, invalid or expired session token"},
    402: {"model": ErrorResponse, "description": "Plan quota exhausted"},
    403: {"model": ErrorResponse, "description": "Caller lacks the required tenant role"},
    404: {"model": ErrorResponse, "description": "Tenant, membership or invitation not found"},
    503: {"model": ErrorResponse, "description": "Identity provider or database unavailable"},
}

api_router = APIRouter(responses=ERROR_RESPONSES)

api_router.include_router(auth_router)
api_router.include_router(tenants_router)
