from typing import Any

from pydantic import ValidationError as PydanticValidationError
from pydantic_core import ErrorDetails

from edge_auth.schemas import RegistrationRequest, RegistrationValidation
from edge_auth.schemas.user import FIELD_RULE_MESSAGES


def describe_error(error: ErrorDetails) -> str:
    """
    Render one pydantic error as a client-facing message naming the field.

    Args:
        error: A single entry of ``ValidationError.errors()``.

    Returns:
        The message, e.g. ``"email" must be a valid email``.
    """
    loc = error["loc"]
    field = str(loc[0]) if loc else "value"
    error_type = error["type"]
    ctx = error.get("ctx") or {}

    if error_type in {"model_type", "model_attributes_type"}:
        return '"value" must be of type object'
    if error_type == "missing":
        return f'"{field}" is required'
    if error_type == "extra_forbidden":
        return f'"{field}" is not allowed'
    if error.get("input") == "":
        return f'"{field}" is not allowed to be empty'
    if error_type == "string_type":
        return f'"{field}" must be a string'
    if error_type == "string_too_short":
        return f'"{field}" length must be at least {ctx["min_length"]} characters long'
    if error_type == "string_too_long":
        return (
            f'"{field}" length must be less than or equal to '
            f'{ctx["max_length"]} characters long'
        )
    if error_type in {"string_pattern_mismatch", "value_error"} and field in FIELD_RULE_MESSAGES:
        return f'"{field}" {FIELD_RULE_MESSAGES[field]}'

    return f'"{field}" is invalid'


def validate_registration(payload: Any) -> RegistrationValidation:
    """
    Check an account creation payload and report the first violation only.

    Fields are checked in the order email, username, password; unknown keys
    are reported after them.

    Args:
        payload: The decoded JSON body, any type.

    Returns:
        RegistrationValidation with the parsed request when valid, or the
        violation message when not.
    """
    try:
        data = RegistrationRequest.model_validate(payload)
    except PydanticValidationError as e:
        return RegistrationValidation(valid=False, message=describe_error(e.errors()[0]))

    return RegistrationValidation(valid=True, data=data)
