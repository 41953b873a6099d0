"""Merge history ledger schemas."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MergeHistoryRead(BaseModel):
    """Serialized merge history entry."""

    model_config = ConfigDict(from_attributes=True)

    group_sig: str
    action: Literal["approved", "declined"]
    keep_type: str | None


class MergeHistoryUpsertRequest(BaseModel):
    """Insert or overwrite the decision for one group signature."""

    group_sig: str = Field(min_length=1)
    action: Literal["approved", "declined"]
    keep_type: str | None = None

    @model_validator(mode="after")
    def validate_keep_type(self) -> "MergeHistoryUpsertRequest":
        if self.action == "approved" and not (self.keep_type or "").strip():
            raise ValueError("Approved entries must name the kept category.")
        return self


class MergeHistoryResetResult(BaseModel):
    """Outcome of clearing the ledger."""

    removed: int
