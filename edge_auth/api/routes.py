from fastapi import APIRouter

from edge_auth.api.endpoints import auth
from edge_auth.core.config import ServiceName
from edge_auth.schemas import HealthCheckResponse

api_router = APIRouter()


@api_router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health Check",
)
async def health_check():
    return {"status": "healthy", "service": ServiceName.IDENTITY.value}


api_router.include_router(
    auth.router,
    prefix="/api/auth",
    tags=["Auth"],
)
