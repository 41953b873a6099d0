"""Merge history ledger routes."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.schemas.common import ApiResponse
from app.schemas.merge_history import MergeHistoryRead, MergeHistoryResetResult, MergeHistoryUpsertRequest
from app.services.merge_history import SqlMergeHistoryStore, upsert_history

router = APIRouter(prefix="/entities/merge-history")


@router.get("", response_model=ApiResponse[list[MergeHistoryRead]])
def list_history(db: Session = Depends(get_db)) -> ApiResponse[list[MergeHistoryRead]]:
    """List every recorded approve/decline decision."""

    store = SqlMergeHistoryStore(db)
    return ApiResponse(data=[MergeHistoryRead.model_validate(record) for record in store.list()])


@router.post("", response_model=ApiResponse[MergeHistoryRead])
def upsert_history_entry(
    payload: MergeHistoryUpsertRequest,
    db: Session = Depends(get_db),
) -> ApiResponse[MergeHistoryRead]:
    """Insert or overwrite the decision for one group signature."""

    try:
        record = upsert_history(SqlMergeHistoryStore(db), payload.group_sig, payload.action, payload.keep_type)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ApiResponse(data=MergeHistoryRead.model_validate(record))


@router.delete("", response_model=ApiResponse[MergeHistoryResetResult])
def reset_history(db: Session = Depends(get_db)) -> ApiResponse[MergeHistoryResetResult]:
    """Clear the ledger so every group is offered again."""

    removed = SqlMergeHistoryStore(db).clear()
    return ApiResponse(data=MergeHistoryResetResult(removed=removed))
