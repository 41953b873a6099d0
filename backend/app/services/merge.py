"""Entity consolidation: lecture-link migration, row deletion and image carry-over."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from time import perf_counter
from typing import Any, Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import get_settings
from app.entity_resolution.types import EntityRef
from app.schema.categories import CategorySpec, get_category_spec
from app.services.errors import (
    EntityNotFoundError,
    MergeServiceError,
    MergeValidationError,
    RelationshipMigrationError,
)
from app.services.images import ImageStore, image_key

logger = logging.getLogger(__name__)

ImageCarryStatus = Literal["skipped", "copied", "discarded", "failed"]
_CARRIED_FIELDS: tuple[str, ...] = ("hebrew_name", "description")


@dataclass(slots=True)
class ImageCarryResult:
    """Outcome of the best-effort image step; never fails the merge itself."""

    status: ImageCarryStatus
    source_key: str | None = None
    dest_key: str | None = None
    detail: str | None = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"

    def warnings(self) -> list[str]:
        if self.ok:
            return []
        return [f"Image carry-over failed: {self.detail or 'unknown error'}"]


@dataclass(slots=True)
class LinkMigration:
    """Counts from moving lecture links between entities."""

    moved: int = 0
    dropped: int = 0


@dataclass(slots=True)
class MergeResult:
    """Successful merge; ``warnings`` carries non-fatal side-effect failures."""

    keep: EntityRef
    deleted: EntityRef
    links: LinkMigration
    image: ImageCarryResult
    filled_fields: list[str] = field(default_factory=list)

    @property
    def warnings(self) -> list[str]:
        return self.image.warnings()


@dataclass(slots=True)
class ReclassifyResult:
    """Entity moved to a new category under a new id."""

    source: EntityRef
    created: EntityRef
    links: LinkMigration
    image: ImageCarryResult

    @property
    def warnings(self) -> list[str]:
        return self.image.warnings()


def merge_entities(
    db: Session,
    image_store: ImageStore,
    keep: EntityRef,
    delete: EntityRef,
) -> MergeResult:
    """Fold ``delete`` into ``keep``.

    The losing row is removed only after its lecture links are committed
    against ``keep``. Re-running after an interrupted merge finds no links left
    and goes straight to deletion.
    """

    started = perf_counter()
    keep_spec, delete_spec = validate_merge_pair(keep, delete)

    delete_row = get_entity_row(db, delete_spec, delete.id)
    if delete_row is None:
        raise EntityNotFoundError(f"{delete_spec.label} #{delete.id} not found")
    keep_row = get_entity_row(db, keep_spec, keep.id)
    if keep_row is None:
        raise EntityNotFoundError(f"{keep_spec.label} #{keep.id} not found")

    filled_fields: list[str] = []
    if keep_spec.key != delete_spec.key:
        filled_fields = _fill_blank_fields(keep_row, map_entity_fields(delete_spec, delete_row, keep_spec))

    try:
        links = migrate_lecture_links(
            db,
            source_spec=delete_spec,
            source_id=delete.id,
            target_spec=keep_spec,
            target_id=keep.id,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("merge.link_migration_failed keep=%s delete=%s", keep.key, delete.key)
        raise RelationshipMigrationError(
            f"Could not move lecture links from {delete.key} to {keep.key}; nothing was deleted."
        ) from exc

    try:
        db.delete(delete_row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("merge.delete_failed keep=%s delete=%s", keep.key, delete.key)
        raise MergeServiceError(f"Links moved but {delete.key} could not be deleted: {exc}") from exc

    image = carry_image(image_store, source=delete, target=keep)
    logger.info(
        "merge.completed keep=%s delete=%s moved_links=%d dropped_links=%d image=%s total_ms=%.2f",
        keep.key,
        delete.key,
        links.moved,
        links.dropped,
        image.status,
        (perf_counter() - started) * 1000.0,
    )
    return MergeResult(keep=keep, deleted=delete, links=links, image=image, filled_fields=filled_fields)


def reclassify_entity(
    db: Session,
    image_store: ImageStore,
    entity: EntityRef,
    to_category: str,
) -> ReclassifyResult:
    """Move an entity into another category table, links and image included."""

    source_spec = get_category_spec(entity.category)
    target_spec = get_category_spec(to_category)
    if source_spec is None or target_spec is None:
        raise MergeValidationError("Invalid entity category.")
    if source_spec.key == target_spec.key:
        raise MergeValidationError("Source and target categories must differ.")

    source_row = get_entity_row(db, source_spec, entity.id)
    if source_row is None:
        raise EntityNotFoundError(f"{source_spec.label} #{entity.id} not found")

    created_row = target_spec.model(**map_entity_fields(source_spec, source_row, target_spec))
    try:
        db.add(created_row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("reclassify.insert_failed source=%s target=%s", entity.key, target_spec.key)
        raise MergeServiceError(f"Could not create the {target_spec.key} row for {entity.key}: {exc}") from exc
    created = EntityRef(id=int(created_row.id), category=target_spec.key)

    try:
        links = migrate_lecture_links(
            db,
            source_spec=source_spec,
            source_id=entity.id,
            target_spec=target_spec,
            target_id=created.id,
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("reclassify.link_migration_failed source=%s created=%s", entity.key, created.key)
        try:
            _discard_created_row(db, target_spec, created.id)
        except SQLAlchemyError as discard_exc:
            db.rollback()
            logger.exception("reclassify.discard_failed created=%s", created.key)
            raise RelationshipMigrationError(
                f"Could not move lecture links from {entity.key}, and the new row {created.key} "
                "could not be removed; delete it before retrying."
            ) from discard_exc
        raise RelationshipMigrationError(
            f"Could not move lecture links from {entity.key}; the new {target_spec.key} row was removed."
        ) from exc

    try:
        db.delete(source_row)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("reclassify.delete_failed source=%s created=%s", entity.key, created.key)
        raise MergeServiceError(f"Links moved but {entity.key} could not be deleted: {exc}") from exc

    image = carry_image(image_store, source=entity, target=created)
    logger.info(
        "reclassify.completed source=%s created=%s moved_links=%d image=%s",
        entity.key,
        created.key,
        links.moved,
        image.status,
    )
    return ReclassifyResult(source=entity, created=created, links=links, image=image)


def validate_merge_pair(keep: EntityRef, delete: EntityRef) -> tuple[CategorySpec, CategorySpec]:
    """Reject unknown categories and self-merges before any mutation."""

    keep_spec = get_category_spec(keep.category)
    delete_spec = get_category_spec(delete.category)
    if keep_spec is None or delete_spec is None:
        raise MergeValidationError("Invalid entity category.")
    if keep_spec.key == delete_spec.key and keep.id == delete.id:
        raise MergeValidationError("Cannot merge an entity with itself.")
    return keep_spec, delete_spec


def get_entity_row(db: Session, spec: CategorySpec, entity_id: int) -> Any | None:
    """Fetch one category row by id."""

    return db.scalar(select(spec.model).where(spec.model.id == entity_id))


def map_entity_fields(source_spec: CategorySpec, source_row: Any, target_spec: CategorySpec) -> dict[str, Any]:
    """Translate name/secondary-name/description onto the target category's columns."""

    mapped: dict[str, Any] = {target_spec.name_field: getattr(source_row, source_spec.name_field)}
    for name in _CARRIED_FIELDS:
        mapped[name] = getattr(source_row, name, None)
    return mapped


def migrate_lecture_links(
    db: Session,
    *,
    source_spec: CategorySpec,
    source_id: int,
    target_spec: CategorySpec,
    target_id: int,
) -> LinkMigration:
    """Point every lecture link of the source entity at the target entity.

    A lecture already linked to the target is dropped instead of duplicated
    (junction tables are unique on lecture and entity). Flushes; the caller
    commits.
    """

    source_model = source_spec.link_model
    target_model = target_spec.link_model
    if source_model is None or target_model is None:
        return LinkMigration()

    source_rows = list(
        db.scalars(
            select(source_model)
            .where(source_spec.link_fk_column == source_id)
            .order_by(source_model.id.asc())
        ).all()
    )
    if not source_rows:
        return LinkMigration()

    linked_lectures = set(
        db.scalars(select(target_model.lecture_id).where(target_spec.link_fk_column == target_id)).all()
    )
    result = LinkMigration()

    if source_spec.link_table == target_spec.link_table:
        for row in source_rows:
            if row.lecture_id in linked_lectures:
                db.delete(row)
                result.dropped += 1
                continue
            setattr(row, source_spec.link_fk, target_id)
            linked_lectures.add(row.lecture_id)
            result.moved += 1
        db.flush()
        return result

    copied_columns = [
        column.key
        for column in source_model.__table__.columns
        if column.key not in {"id", source_spec.link_fk} and column.key in target_model.__table__.columns
    ]
    copies = []
    for row in source_rows:
        if row.lecture_id in linked_lectures:
            result.dropped += 1
            continue
        linked_lectures.add(row.lecture_id)
        values = {name: getattr(row, name) for name in copied_columns}
        values[target_spec.link_fk] = target_id
        copies.append(target_model(**values))
        result.moved += 1

    # Inserts must land before the originals go.
    db.add_all(copies)
    db.flush()
    for row in source_rows:
        db.delete(row)
    db.flush()
    return result


def carry_image(image_store: ImageStore, *, source: EntityRef, target: EntityRef) -> ImageCarryResult:
    """Move the source image to the target key unless the target already has one."""

    settings = get_settings()
    source_key = image_key(source.category, source.id, settings)
    dest_key = image_key(target.category, target.id, settings)
    try:
        if not image_store.key_exists(source_key):
            return ImageCarryResult(status="skipped", source_key=source_key, dest_key=dest_key)
        if image_store.key_exists(dest_key):
            image_store.delete(source_key)
            return ImageCarryResult(status="discarded", source_key=source_key, dest_key=dest_key)
        image_store.copy(source_key, dest_key)
        image_store.delete(source_key)
        return ImageCarryResult(status="copied", source_key=source_key, dest_key=dest_key)
    except Exception as exc:
        logger.warning(
            "merge.image_carry_failed source=%s target=%s error=%s",
            source_key,
            dest_key,
            exc,
            exc_info=True,
        )
        return ImageCarryResult(status="failed", source_key=source_key, dest_key=dest_key, detail=str(exc))


def _fill_blank_fields(row: Any, values: dict[str, Any]) -> list[str]:
    filled: list[str] = []
    for name, value in values.items():
        if value is None or (isinstance(value, str) and not value.strip()):
            continue
        current = getattr(row, name, None)
        if current is None or (isinstance(current, str) and not current.strip()):
            setattr(row, name, value)
            filled.append(name)
    return filled


def _discard_created_row(db: Session, spec: CategorySpec, entity_id: int) -> None:
    row = get_entity_row(db, spec, entity_id)
    if row is None:
        return
    db.delete(row)
    db.commit()
