"""Catalog snapshot reader feeding duplicate detection."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from time import perf_counter

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.entity_resolution.types import CatalogEntity
from app.schema.categories import MERGEABLE_CATEGORIES, CategorySpec, get_category_spec
from app.services.errors import CatalogReadError
from app.services.images import ImageStore, category_prefix, parse_entity_id

logger = logging.getLogger(__name__)


def load_catalog(
    db: Session,
    image_store: ImageStore,
    categories: Sequence[str] = MERGEABLE_CATEGORIES,
) -> list[CatalogEntity]:
    """Read every mergeable entity with connection counts and image flags.

    Any failing category aborts the whole read with ``CatalogReadError``.
    """

    started = perf_counter()
    specs = [_require_spec(category) for category in categories]

    image_ids = _list_image_ids(image_store, [spec.key for spec in specs])
    catalog: list[CatalogEntity] = []
    for spec in specs:
        try:
            rows = _fetch_entity_rows(db, spec)
            counts = _fetch_connection_counts(db, spec)
        except SQLAlchemyError as exc:
            logger.exception("catalog.read_failed category=%s", spec.key)
            raise CatalogReadError(f"Failed to read {spec.key}: {exc}") from exc
        with_images = image_ids.get(spec.key, set())
        for entity_id, display_name, hebrew_name in rows:
            catalog.append(
                CatalogEntity(
                    id=int(entity_id),
                    category=spec.key,
                    display_name=str(display_name or ""),
                    hebrew_name=hebrew_name,
                    connection_count=counts.get(int(entity_id), 0),
                    has_image=int(entity_id) in with_images,
                )
            )

    logger.info(
        "catalog.read_timing categories=%d entities=%d total_ms=%.2f",
        len(specs),
        len(catalog),
        (perf_counter() - started) * 1000.0,
    )
    return catalog


def _require_spec(category: str) -> CategorySpec:
    spec = get_category_spec(category)
    if spec is None:
        raise CatalogReadError(f"Unknown category: {category}")
    return spec


def _fetch_entity_rows(db: Session, spec: CategorySpec) -> list[tuple[int, str, str | None]]:
    stmt = select(spec.model.id, spec.name_column, spec.model.hebrew_name).order_by(spec.model.id.asc())
    return [tuple(row) for row in db.execute(stmt).all()]


def _fetch_connection_counts(db: Session, spec: CategorySpec) -> Counter[int]:
    fk_column = spec.link_fk_column
    if fk_column is None:
        return Counter()
    return Counter(int(value) for value in db.scalars(select(fk_column)).all())


def _list_image_ids(image_store: ImageStore, categories: list[str]) -> dict[str, set[int]]:
    settings = get_settings()
    workers = max(1, min(settings.catalog_image_list_workers, len(categories) or 1))

    def list_category(category: str) -> tuple[str, set[int]]:
        prefix = category_prefix(category, settings)
        ids: set[int] = set()
        for key in image_store.list_keys(prefix):
            entity_id = parse_entity_id(key, prefix)
            if entity_id is not None:
                ids.add(entity_id)
        return category, ids

    try:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return dict(pool.map(list_category, categories))
    except Exception as exc:
        logger.exception("catalog.image_listing_failed categories=%s", ",".join(categories))
        raise CatalogReadError(f"Failed to list stored images: {exc}") from exc
