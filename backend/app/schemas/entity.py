"""Library entity response schemas."""

from pydantic import BaseModel


class EntitySearchItem(BaseModel):
    """Entity row for the manual merge picker."""

    id: int
    category: str
    display_name: str
    hebrew_name: str | None
    description: str | None
    has_image: bool
