import re
from typing import Annotated, Any

from pydantic import EmailStr, Field, field_validator

from edge_auth.core.constants import FieldSizes
from edge_auth.schemas.base import BaseSchema

USER_USERNAME_REGEX = r"^[A-Za-z0-9_]+$"
USER_PASSWORD_REGEX = r"^(?=.*[A-Za-z])(?=.*[0-9]).+$"

# Reason shown after the quoted field name when a format rule fails
FIELD_RULE_MESSAGES = {
    "email": "must be a valid email",
    "username": "must only contain alpha-numeric and underscore characters",
    "password": "must contain at least one letter and one number",
}


class UserCreate(BaseSchema):
    """User creation schema, the password is already hashed"""

    username: str
    email: EmailStr
    hashed_password: str


class RegistrationRequest(BaseSchema):
    """
    Account creation payload.

    Field order is the order violations are reported in.
    """

    email: EmailStr
    username: Annotated[
        str,
        Field(
            min_length=FieldSizes.USERNAME_MIN,
            max_length=FieldSizes.USERNAME,
            pattern=USER_USERNAME_REGEX,
        ),
    ]
    password: Annotated[
        str,
        Field(
            min_length=FieldSizes.PASSWORD_MIN,
            max_length=FieldSizes.PASSWORD,
        ),
    ]

    @field_validator("email", mode="before")
    @classmethod
    def reject_display_name(cls, value: Any) -> Any:
        """Accept a bare address only, not the `Name <addr>` form."""
        if isinstance(value, str) and ("<" in value or ">" in value):
            raise ValueError(FIELD_RULE_MESSAGES["email"])

        return value

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        """Validate password to ensure it mixes letters and digits."""
        if re.match(USER_PASSWORD_REGEX, value) is None:
            raise ValueError(FIELD_RULE_MESSAGES["password"])

        return value


class RegistrationValidation(BaseSchema):
    """Outcome of validating a registration payload"""

    valid: bool
    message: str | None = None
    data: RegistrationRequest | None = None
