from classbook.services.courses import CourseService, FetchError
from classbook.services.identity import (
    AccountCreationError,
    IdentityService,
    IdentityServiceError,
    ProfileUpdateError,
    ProviderError,
    SessionError,
)

__all__ = [
    "AccountCreationError",
    "CourseService",
    "FetchError",
    "IdentityService",
    "IdentityServiceError",
    "ProfileUpdateError",
    "ProviderError",
    "SessionError",
]
