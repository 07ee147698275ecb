"""Content extraction data models."""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ContentResult(BaseModel):
    """One per-URL record returned by the content-extraction API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    url: str
    title: Optional[str] = None
    published_date: Optional[str] = Field(default=None, alias="publishedDate")
    author: Optional[str] = None
    text: str = ""
    summary: Optional[str] = None
    highlights: list[str] = Field(default_factory=list)

    @field_validator("text", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("highlights", mode="before")
    @classmethod
    def _null_highlights(cls, value: Any) -> Any:
        return [] if value is None else value
