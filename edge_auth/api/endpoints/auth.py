from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from loguru import logger

from edge_auth.api.deps.services import get_registration_service
from edge_auth.core import responses
from edge_auth.core.exceptions.domain import DuplicateResourceError, ValidationError
from edge_auth.services.registration_service import RegistrationService

router = APIRouter()


@router.post(
    "/register",
    response_model=responses.RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        status.HTTP_400_BAD_REQUEST: {"model": responses.BadRequestResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "model": responses.InternalServerErrorResponse
        },
    },
    summary="Register user",
    description="Create a new account and return access and refresh tokens.",
)
async def register_user(
    request: Request,
    service: Annotated[RegistrationService, Depends(get_registration_service)],
):
    """
    Create a new account and return its token pair
    """
    logger.info("Registration endpoint hit...")

    # Parsed by hand so that validation failures keep the {success, message} shape
    try:
        payload = await request.json()
    except ValueError:
        payload = None

    try:
        tokens = await service.register_user(payload)
    except (ValidationError, DuplicateResourceError) as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=responses.ErrorResponse(message=e.message).model_dump(),
        )
    except Exception:
        logger.exception("Registration error occurred")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=responses.InternalServerErrorResponse().model_dump(),
        )

    return responses.RegistrationResponse(
        access_token=tokens["access_token"],
        refresh_token=tokens["refresh_token"],
    )
