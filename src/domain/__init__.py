"""Domain layer: errors, schemas and constants."""

from .errors import (
    ConflictError,
    ErrorCodes,
    ForbiddenError,
    IndexFailureError,
    InvalidSlugError,
    NotFoundError,
    PublishError,
    StorageFailureError,
)
from .schemas import (
    AppRecord,
    FiddleSource,
    Identity,
    ParsedContent,
    PublishResult,
    UploadSource,
    UserRecord,
)

__all__ = [
    # errors
    "PublishError",
    "InvalidSlugError",
    "ConflictError",
    "ForbiddenError",
    "NotFoundError",
    "StorageFailureError",
    "IndexFailureError",
    "ErrorCodes",
    # schemas
    "AppRecord",
    "UserRecord",
    "Identity",
    "ParsedContent",
    "UploadSource",
    "FiddleSource",
    "PublishResult",
]
