"""Schemas for duplicate detection and merge endpoints."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.entity_resolution.types import CatalogEntity, DuplicateGroup, EntityRef


class DuplicateEntityRead(BaseModel):
    """One member of a duplicate group."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(ge=1)
    category: str = Field(min_length=1)
    display_name: str
    hebrew_name: str | None = None
    connection_count: int = Field(default=0, ge=0)
    has_image: bool = False

    def to_entity(self) -> CatalogEntity:
        return CatalogEntity(
            id=self.id,
            category=self.category.strip().lower(),
            display_name=self.display_name,
            hebrew_name=self.hebrew_name,
            connection_count=self.connection_count,
            has_image=self.has_image,
        )


class DuplicateGroupPayload(BaseModel):
    """Group echoed back by the client when deciding or declining."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    entities: list[DuplicateEntityRead] = Field(min_length=2)
    match_type: Literal["exact", "similar"]
    similarity: float = Field(ge=0.0, le=1.0)

    def to_group(self) -> DuplicateGroup:
        return DuplicateGroup(
            name=self.name,
            entities=[entity.to_entity() for entity in self.entities],
            match_type=self.match_type,
            similarity=self.similarity,
        )


class DuplicateGroupRead(DuplicateGroupPayload):
    """Serialized duplicate group with its history signature."""

    signature: str


class DuplicateGroupsRead(BaseModel):
    """Raw scan output before history is applied."""

    exact: list[DuplicateGroupRead]
    similar: list[DuplicateGroupRead]


class DuplicateScanRead(BaseModel):
    """Pending groups after history filtering and auto-replay."""

    exact: list[DuplicateGroupRead]
    similar: list[DuplicateGroupRead]
    auto_merged: int
    auto_merge_failures: list[str]


class EntityRefRequest(BaseModel):
    """Category-scoped entity identity."""

    id: int = Field(ge=1)
    category: str = Field(min_length=1)

    def to_ref(self) -> EntityRef:
        return EntityRef(id=self.id, category=self.category.strip().lower())


class MergeDecisionRequest(BaseModel):
    """Operator keep/delete choice within one group."""

    section: Literal["exact", "similar"]
    group: DuplicateGroupPayload
    keep_index: int = Field(ge=0)
    delete_index: int = Field(ge=0)

    @model_validator(mode="after")
    def validate_indexes(self) -> "MergeDecisionRequest":
        size = len(self.group.entities)
        if self.keep_index >= size or self.delete_index >= size:
            raise ValueError("Member index out of range.")
        if self.keep_index == self.delete_index:
            raise ValueError("Keep and delete must be different entities.")
        return self


class DeclineRequest(BaseModel):
    """Operator rejection of one group."""

    section: Literal["exact", "similar"]
    group: DuplicateGroupPayload


class ManualMergeRequest(BaseModel):
    """Merge two entities picked outside any detected group."""

    keep: EntityRefRequest
    delete: EntityRefRequest

    @model_validator(mode="after")
    def validate_distinct(self) -> "ManualMergeRequest":
        if self.keep.to_ref() == self.delete.to_ref():
            raise ValueError("Cannot merge an entity with itself.")
        return self


class ReclassifyRequest(BaseModel):
    """Move one entity to another category."""

    entity_id: int = Field(ge=1)
    from_category: str = Field(min_length=1)
    to_category: str = Field(min_length=1)

    @model_validator(mode="after")
    def validate_categories(self) -> "ReclassifyRequest":
        if self.from_category.strip().lower() == self.to_category.strip().lower():
            raise ValueError("Source and target categories must differ.")
        return self


class MergeResultRead(BaseModel):
    """Merge outcome."""

    keep: EntityRefRequest
    deleted: EntityRefRequest
    moved_links: int
    dropped_links: int
    filled_fields: list[str]
    image_status: str


class ReclassifyResultRead(BaseModel):
    """Reclassify outcome with the new category-scoped id."""

    source: EntityRefRequest
    created: EntityRefRequest
    moved_links: int
    image_status: str

