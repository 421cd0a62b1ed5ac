from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from edge_auth.core.db import get_session
from edge_auth.repos.user import UserRepo
from edge_auth.services.registration_service import RegistrationService
from edge_auth.services.token_issuer import token_issuer


async def get_registration_service(
    db: Annotated[AsyncSession, Depends(get_session)],
) -> RegistrationService:
    """
    Build a RegistrationService bound to the request's database session

    Args:
        db: Database session

    Returns:
        RegistrationService for this request
    """
    return RegistrationService(user_repo=UserRepo(db), issuer=token_issuer)
