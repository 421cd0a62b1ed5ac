from pydantic import BaseModel, ConfigDict, Field

from edge_auth.core.constants import ResponseMessages


class ErrorResponse(BaseModel):
    success: bool = False
    message: str


class BadRequestResponse(ErrorResponse):
    message: str = "\"email\" must be a valid email"


class InternalServerErrorResponse(ErrorResponse):
    message: str = ResponseMessages.INTERNAL_SERVER_ERROR


class TooManyRequestsResponse(ErrorResponse):
    message: str = ResponseMessages.TOO_MANY_REQUESTS


class ProxyErrorResponse(BaseModel):
    message: str = ResponseMessages.PROXY_ERROR
    error: str


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = ResponseMessages.USER_REGISTERED
    access_token: str = Field(alias="accessToken")
    refresh_token: str = Field(alias="refreshToken")
