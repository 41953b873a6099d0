"""Manual merge and reclassify routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.entity_resolution.types import EntityRef
from app.routers.errors import http_error_for
from app.schemas.common import ApiResponse
from app.schemas.duplicates import (
    EntityRefRequest,
    ManualMergeRequest,
    MergeResultRead,
    ReclassifyRequest,
    ReclassifyResultRead,
)
from app.services.duplicates import DuplicateOrchestrator
from app.services.errors import MergeServiceError
from app.services.images import ImageStore, get_image_store
from app.services.merge import MergeResult, reclassify_entity
from app.services.merge_history import SqlMergeHistoryStore

router = APIRouter(prefix="/entities")


@router.post("/merge", response_model=ApiResponse[MergeResultRead])
def merge_pair(
    payload: ManualMergeRequest,
    db: Session = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store),
) -> ApiResponse[MergeResultRead]:
    """Merge two operator-picked entities."""

    orchestrator = DuplicateOrchestrator(db, image_store, SqlMergeHistoryStore(db))
    try:
        result = orchestrator.manual_merge(payload.keep.to_ref(), payload.delete.to_ref())
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(data=serialize_merge_result(result), warnings=result.warnings)


@router.post("/reclassify", response_model=ApiResponse[ReclassifyResultRead])
def reclassify(
    payload: ReclassifyRequest,
    db: Session = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store),
) -> ApiResponse[ReclassifyResultRead]:
    """Move one entity into another category."""

    source = EntityRef(id=payload.entity_id, category=payload.from_category.strip().lower())
    try:
        result = reclassify_entity(db, image_store, source, payload.to_category.strip().lower())
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(
        data=ReclassifyResultRead(
            source=_ref_payload(result.source),
            created=_ref_payload(result.created),
            moved_links=result.links.moved,
            image_status=result.image.status,
        ),
        warnings=result.warnings,
    )


def serialize_merge_result(result: MergeResult) -> MergeResultRead:
    return MergeResultRead(
        keep=_ref_payload(result.keep),
        deleted=_ref_payload(result.deleted),
        moved_links=result.links.moved,
        dropped_links=result.links.dropped,
        filled_fields=result.filled_fields,
        image_status=result.image.status,
    )


def _ref_payload(ref: EntityRef) -> EntityRefRequest:
    return EntityRefRequest(id=ref.id, category=ref.category)
