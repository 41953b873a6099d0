"""Duplicate scan cycle, operator decisions and auto-replay of approved merges."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from time import perf_counter
from typing import Literal

from sqlalchemy.orm import Session

from app.entity_resolution.grouping import ComparePredicate, build_duplicate_groups
from app.entity_resolution.types import DuplicateGroup, DuplicateGroups, EntityRef, manual_merge_signature
from app.services.catalog import load_catalog
from app.services.errors import MergeServiceError, MergeValidationError
from app.services.images import ImageStore
from app.services.merge import MergeResult, merge_entities
from app.services.merge_history import HistoryRecord, MergeHistoryStore, upsert_history

logger = logging.getLogger(__name__)

Section = Literal["exact", "similar"]
SECTIONS: tuple[str, ...] = ("exact", "similar")


class ReviewState(str, Enum):
    """Client-visible progress of one pending group."""

    UNSELECTED = "unselected"
    KEEP_CHOSEN = "keep_chosen"
    READY = "ready"
    MERGING = "merging"
    RESOLVED = "resolved"


@dataclass(slots=True)
class GroupReview:
    """Keep/delete selection for one group; a failed merge returns to ``READY``."""

    group: DuplicateGroup
    section: Section
    state: ReviewState = ReviewState.UNSELECTED
    keep_index: int | None = None
    delete_index: int | None = None
    last_error: str | None = None

    def choose_keep(self, index: int) -> None:
        self._require_editable()
        self._require_index(index)
        if self.keep_index is not None and self.keep_index != index:
            self.reset()
        self.keep_index = index
        self.delete_index = None
        self.state = ReviewState.KEEP_CHOSEN

    def choose_delete(self, index: int) -> None:
        self._require_editable()
        self._require_index(index)
        if self.keep_index is None:
            raise MergeValidationError("Choose the entity to keep first.")
        if index == self.keep_index:
            raise MergeValidationError("Keep and delete must be different entities.")
        self.delete_index = index
        self.state = ReviewState.READY

    def reset(self) -> None:
        self._require_editable()
        self.keep_index = None
        self.delete_index = None
        self.state = ReviewState.UNSELECTED

    def begin_merge(self) -> tuple[EntityRef, EntityRef]:
        if self.state is not ReviewState.READY or self.keep_index is None or self.delete_index is None:
            raise MergeValidationError("Choose both a keep and a delete entity before merging.")
        self.state = ReviewState.MERGING
        self.last_error = None
        return self.group.entities[self.keep_index].ref, self.group.entities[self.delete_index].ref

    def resolve(self) -> None:
        self.state = ReviewState.RESOLVED

    def fail(self, message: str) -> None:
        self.state = ReviewState.READY
        self.last_error = message

    def _require_editable(self) -> None:
        if self.state in (ReviewState.MERGING, ReviewState.RESOLVED):
            raise MergeValidationError(f"Group is {self.state.value}; selection is locked.")

    def _require_index(self, index: int) -> None:
        if not 0 <= index < len(self.group.entities):
            raise MergeValidationError(f"Member index {index} is out of range.")


@dataclass(slots=True)
class DuplicateScanResult:
    """Groups still awaiting an operator, plus auto-replay feedback."""

    exact: list[DuplicateGroup] = field(default_factory=list)
    similar: list[DuplicateGroup] = field(default_factory=list)
    auto_merged: int = 0
    auto_merge_failures: list[str] = field(default_factory=list)


class DuplicateOrchestrator:
    """Drives scans and decisions against the catalog, executor and history."""

    def __init__(
        self,
        db: Session,
        image_store: ImageStore,
        history: MergeHistoryStore,
        *,
        can_compare: ComparePredicate | None = None,
    ) -> None:
        self._db = db
        self._image_store = image_store
        self._history = history
        self._can_compare = can_compare
        self.pending: dict[str, dict[str, GroupReview]] = {section: {} for section in SECTIONS}

    def find_groups(self) -> DuplicateGroups:
        """Build groups from a fresh catalog read without consulting history."""

        catalog = load_catalog(self._db, self._image_store)
        return build_duplicate_groups(catalog, can_compare=self._can_compare)

    def scan(self) -> DuplicateScanResult:
        """Run one scan cycle; returns only groups without a recorded decision."""

        started = perf_counter()
        groups = self.find_groups()

        approved: dict[str, str] = {}
        declined: set[str] = set()
        for record in self._history.list():
            if record.action == "approved" and record.keep_type:
                approved[record.group_sig] = record.keep_type
            elif record.action == "declined":
                declined.add(record.group_sig)

        sectioned: dict[str, list[DuplicateGroup]] = {
            "exact": [group for group in groups.exact if group.signature not in declined],
            "similar": [group for group in groups.similar if group.signature not in declined],
        }
        self.pending = {
            section: {
                group.member_key: GroupReview(group=group, section=section)  # type: ignore[arg-type]
                for group in section_groups
                if group.signature not in approved
            }
            for section, section_groups in sectioned.items()
        }

        result = DuplicateScanResult()
        for section_groups in sectioned.values():
            for group in section_groups:
                keep_type = approved.get(group.signature)
                if keep_type is None:
                    continue
                self._replay_approved(group, keep_type, result)

        result.exact = self.pending_groups("exact")
        result.similar = self.pending_groups("similar")
        logger.info(
            "duplicates.scan_timing exact=%d similar=%d declined=%d auto_merged=%d auto_merge_failed=%d total_ms=%.2f",
            len(result.exact),
            len(result.similar),
            len(declined),
            result.auto_merged,
            len(result.auto_merge_failures),
            (perf_counter() - started) * 1000.0,
        )
        return result

    def pending_groups(self, section: str) -> list[DuplicateGroup]:
        return [review.group for review in self.pending[_require_section(section)].values()]

    def decide(self, section: str, group: DuplicateGroup, keep_index: int, delete_index: int) -> MergeResult:
        """Execute an operator's keep/delete choice and record it as approved."""

        clean_section = _require_section(section)
        review = self.pending[clean_section].get(group.member_key)
        if review is None:
            review = GroupReview(group=group, section=clean_section)  # type: ignore[arg-type]
        review.choose_keep(keep_index)
        review.choose_delete(delete_index)
        keep, delete = review.begin_merge()
        try:
            result = merge_entities(self._db, self._image_store, keep, delete)
        except MergeServiceError as exc:
            review.fail(str(exc))
            raise

        upsert_history(self._history, group.signature, "approved", keep.category)
        review.resolve()
        self.pending[clean_section].pop(group.member_key, None)
        return result

    def decline(self, section: str, group: DuplicateGroup) -> HistoryRecord:
        """Suppress a group's signature from all future scans."""

        clean_section = _require_section(section)
        record = upsert_history(self._history, group.signature, "declined")
        self.pending[clean_section] = {
            key: review
            for key, review in self.pending[clean_section].items()
            if review.group.signature != record.group_sig
        }
        logger.info("duplicates.declined section=%s signature=%s", clean_section, record.group_sig)
        return record

    def manual_merge(self, keep: EntityRef, delete: EntityRef) -> MergeResult:
        """Merge two operator-picked entities outside any detected group."""

        result = merge_entities(self._db, self._image_store, keep, delete)
        upsert_history(self._history, manual_merge_signature(keep, delete), "approved", keep.category)
        return result

    def reset_history(self) -> int:
        removed = self._history.clear()
        logger.info("duplicates.history_reset removed=%d", removed)
        return removed

    def _replay_approved(self, group: DuplicateGroup, keep_type: str, result: DuplicateScanResult) -> None:
        """Re-apply a stored decision; skipped when no member has the kept category."""

        keep_index = next(
            (index for index, entity in enumerate(group.entities) if entity.category == keep_type),
            None,
        )
        if keep_index is None:
            logger.info("duplicates.auto_merge_skipped signature=%s keep_type=%s", group.signature, keep_type)
            return
        delete_index = next(index for index in range(len(group.entities)) if index != keep_index)
        keep = group.entities[keep_index].ref
        delete = group.entities[delete_index].ref
        try:
            merge_entities(self._db, self._image_store, keep, delete)
        except MergeServiceError as exc:
            logger.warning(
                "duplicates.auto_merge_failed signature=%s keep=%s delete=%s error=%s",
                group.signature,
                keep.key,
                delete.key,
                exc,
            )
            result.auto_merge_failures.append(f"{group.name}: {exc}")
            return
        upsert_history(self._history, group.signature, "approved", keep_type)
        result.auto_merged += 1


def _require_section(section: str) -> Section:
    if section not in SECTIONS:
        raise MergeValidationError(f"Unknown section: {section}")
    return section  # type: ignore[return-value]
