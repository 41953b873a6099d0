"""Library entity listing routes."""

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from app.db.dependencies import get_db
from app.routers.errors import http_error_for
from app.schemas.common import ApiResponse
from app.schemas.entity import EntitySearchItem
from app.services.entities import search_entities
from app.services.errors import MergeServiceError
from app.services.images import ImageStore, get_image_store

router = APIRouter(prefix="/entities")


@router.get("/{category}", response_model=ApiResponse[list[EntitySearchItem]])
def list_category_entities(
    category: str = Path(..., min_length=1),
    search: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=500),
    db: Session = Depends(get_db),
    image_store: ImageStore = Depends(get_image_store),
) -> ApiResponse[list[EntitySearchItem]]:
    """Search one category by name for the manual merge picker."""

    try:
        items = search_entities(db, image_store, category, query=search, limit=limit)
    except MergeServiceError as exc:
        raise http_error_for(exc) from exc
    return ApiResponse(data=items)
