from typing import Any

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError

from edge_auth.core.constants import ResponseMessages
from edge_auth.core.exceptions.domain import (
    DuplicateResourceError,
    ProcessingError,
    ValidationError,
)
from edge_auth.core.types import TokenPairDict
from edge_auth.repos.user import UserRepo
from edge_auth.services.registration_validator import validate_registration
from edge_auth.services.token_issuer import TokenIssuer


class RegistrationService:
    """
    Account registration: validate, look up, create, issue tokens.
    Receives UserRepo via constructor and never sees database sessions.

    Raises domain exceptions (ValidationError, DuplicateResourceError, ProcessingError)
    and TokenSigningError, which the endpoint translates to HTTP responses.
    Each call ends in exactly one of: tokens returned, or one of those exceptions.
    """

    def __init__(self, user_repo: UserRepo, issuer: TokenIssuer):
        self.user_repo = user_repo
        self.issuer = issuer

    async def register_user(self, payload: Any) -> TokenPairDict:
        """
        Register a new account and return its token pair.

        Args:
            payload: Decoded request body with email, username and password.

        Returns:
            TokenPairDict with access and refresh tokens.

        Raises:
            ValidationError: With the first violation found in the payload.
            DuplicateResourceError: If the email or the username is taken. The message
                does not say which one.
            ProcessingError: If the user directory fails.
            TokenSigningError: If the tokens cannot be signed.
        """
        validation = validate_registration(payload)
        if not validation.valid or validation.data is None:
            logger.warning(f"Validation error: {validation.message}")
            raise ValidationError(validation.message or "Validation failed")

        request = validation.data

        try:
            existing = await self.user_repo.get_by_email_or_username(
                email=request.email, username=request.username
            )
        except SQLAlchemyError as e:
            raise ProcessingError("Failed to look up existing users", exception=e)

        if existing:
            logger.warning("User already exists")
            raise DuplicateResourceError(ResponseMessages.USER_ALREADY_EXISTS)

        try:
            user = await self.user_repo.create_user(
                username=request.username,
                email=request.email,
                password=request.password,
            )
        except DuplicateResourceError as e:
            # Lost a race against a concurrent registration of the same email or username
            logger.warning("User already exists (unique constraint)")
            raise DuplicateResourceError(ResponseMessages.USER_ALREADY_EXISTS, exception=e)
        except SQLAlchemyError as e:
            raise ProcessingError("Failed to save user", exception=e)

        logger.info(f"User saved successfully | user_id={user.id}")

        return self.issuer.issue(user.id)
