"""HTTP translation of service-layer failures."""

from fastapi import HTTPException

from app.services.errors import (
    CatalogReadError,
    EntityNotFoundError,
    MergeServiceError,
    MergeValidationError,
    RelationshipMigrationError,
)


def http_error_for(exc: MergeServiceError) -> HTTPException:
    """Map a typed service failure onto an HTTP status with a readable detail."""

    if isinstance(exc, MergeValidationError):
        status_code = 400
    elif isinstance(exc, EntityNotFoundError):
        status_code = 404
    elif isinstance(exc, RelationshipMigrationError):
        status_code = 409
    elif isinstance(exc, CatalogReadError):
        status_code = 503
    else:
        status_code = 500
    return HTTPException(status_code=status_code, detail=str(exc))
