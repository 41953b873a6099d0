"""Typed failures raised by catalog, merge and reclassify services."""


class MergeServiceError(RuntimeError):
    """Base class for duplicate-resolution service failures."""


class EntityNotFoundError(MergeServiceError):
    """A referenced entity no longer exists (possibly merged concurrently)."""


class MergeValidationError(MergeServiceError):
    """Request rejected before any mutation."""


class RelationshipMigrationError(MergeServiceError):
    """Lecture links could not be moved; the source entity was left intact."""


class CatalogReadError(MergeServiceError):
    """A category read failed; no partial catalog is returned."""
