"""Duplicate detection and operator decision routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.routers.errors import http_error_for
from app.routers.merge import serialize_merge_result
from app.schemas.common import ApiResponse
from app.schemas.duplicates import (
    DeclineRequest,
    DuplicateGroupRead,
    DuplicateGroupsRead,
    DuplicateScanRead,
    MergeDecisionRequest,
    MergeResultRead,
)
from app.schemas.merge_history import MergeHistoryRead
from app.services.duplicates import DuplicateOrchestrator
from app.services.errors import MergeServiceError
from app.services.images import ImageStore, get_image_store
from app.services.merge_history import SqlMergeHistoryStore

router = APIRouter(prefix="/entities/duplicates")


def get_orchestrator(
    db: Session = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store),
) -> DuplicateOrchestrator:
    return DuplicateOrchestrator(db, image_store, SqlMergeHistoryStore(db))


@router.get("", response_model=ApiResponse[DuplicateGroupsRead])
def get_duplicates(
    orchestrator: DuplicateOrchestrator = Depends(get_orchestrator),
) -> ApiResponse[DuplicateGroupsRead]:
    """List exact and similar groups without applying merge history."""

    try:
        groups = orchestrator.find_groups()
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(
        data=DuplicateGroupsRead(
            exact=[DuplicateGroupRead.model_validate(group) for group in groups.exact],
            similar=[DuplicateGroupRead.model_validate(group) for group in groups.similar],
        )
    )


@router.post("/scan", response_model=ApiResponse[DuplicateScanRead])
def scan_duplicates(
    orchestrator: DuplicateOrchestrator = Depends(get_orchestrator),
) -> ApiResponse[DuplicateScanRead]:
    """Run a scan cycle: hide declined groups, replay approved ones, return the rest."""

    try:
        result = orchestrator.scan()
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(
        data=DuplicateScanRead(
            exact=[DuplicateGroupRead.model_validate(group) for group in result.exact],
            similar=[DuplicateGroupRead.model_validate(group) for group in result.similar],
            auto_merged=result.auto_merged,
            auto_merge_failures=result.auto_merge_failures,
        )
    )


@router.post("/decisions", response_model=ApiResponse[MergeResultRead])
def decide_group(
    payload: MergeDecisionRequest,
    orchestrator: DuplicateOrchestrator = Depends(get_orchestrator),
) -> ApiResponse[MergeResultRead]:
    """Merge the chosen pair of a group and remember the decision."""

    try:
        result = orchestrator.decide(
            payload.section,
            payload.group.to_group(),
            payload.keep_index,
            payload.delete_index,
        )
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(data=serialize_merge_result(result), warnings=result.warnings)


@router.post("/declines", response_model=ApiResponse[MergeHistoryRead])
def decline_group(
    payload: DeclineRequest,
    orchestrator: DuplicateOrchestrator = Depends(get_orchestrator),
) -> ApiResponse[MergeHistoryRead]:
    """Mark a group as not-a-duplicate so future scans skip it."""

    try:
        record = orchestrator.decline(payload.section, payload.group.to_group())
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(data=MergeHistoryRead.model_validate(record))
