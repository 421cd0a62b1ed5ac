from .base import BaseSchema
from .health_check import HealthCheckResponse
from .proxy import ProxyRoute
from .token import TokenData
from .user import RegistrationRequest, RegistrationValidation, UserCreate

__all__ = [
    "BaseSchema",
    "HealthCheckResponse",
    "ProxyRoute",
    "TokenData",
    "RegistrationRequest",
    "RegistrationValidation",
    "UserCreate",
]
