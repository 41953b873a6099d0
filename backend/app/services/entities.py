"""Category entity listing used by the manual merge picker."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.schema.categories import get_category_spec
from app.schemas.entity import EntitySearchItem
from app.services.errors import MergeValidationError
from app.services.images import ImageStore, category_prefix, parse_entity_id


def search_entities(
    db: Session,
    image_store: ImageStore,
    category: str,
    *,
    query: str | None = None,
    limit: int = 50,
) -> list[EntitySearchItem]:
    """List entities of one category ordered by name, optionally filtered by substring."""

    spec = get_category_spec(category)
    if spec is None:
        raise MergeValidationError(f"Unknown entity category: {category}")

    stmt = select(spec.model).order_by(spec.name_column.asc(), spec.model.id.asc()).limit(limit)
    clean_query = (query or "").strip()
    if clean_query:
        stmt = stmt.where(spec.name_column.ilike(f"%{clean_query}%"))
    rows = list(db.scalars(stmt).all())

    prefix = category_prefix(spec.key)
    with_images = {
        entity_id
        for entity_id in (parse_entity_id(key, prefix) for key in image_store.list_keys(prefix))
        if entity_id is not None
    }
    return [
        EntitySearchItem(
            id=row.id,
            category=spec.key,
            display_name=getattr(row, spec.name_field),
            hebrew_name=row.hebrew_name,
            description=row.description,
            has_image=row.id in with_images,
        )
        for row in rows
    ]
