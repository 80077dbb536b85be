"""
Readlog Backend — Book Request/Response Schemas
=================================================

What:  Pydantic models for the book API contract.
How:   Wire names are camelCase (startTime, endTime); Python attributes are
       snake_case. `populate_by_name` lets services build models either way.

Models:
    BookCreate    body of POST /book (id and notes in the payload are ignored)
    BookPatch     typed sparse patch for POST /book/{id}
    BookResponse  one book document
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BookCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = Field(default="", description="Book title")
    author: str = Field(default="", description="Author name(s)")
    description: str = Field(default="", description="Free-text description")
    status: int = Field(default=0, description="Reading state")
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def empty_time_is_unset(cls, v: Any) -> Any:
        """An empty string leaves the time unset, as it does on edit."""
        return None if v == "" else v

    def to_document(self) -> Dict[str, Any]:
        """Store document without id/notes; the service assigns both."""
        return self.model_dump(by_alias=False)


class BookPatch(BaseModel):
    """
    Sparse patch: every editable field is optional.

    Only fields that are present and non-empty end up in the update.
    `id` and `notes` are not editable and are rejected (extra="forbid").
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    status: Optional[int] = None
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")

    def to_update(self) -> Dict[str, Any]:
        return {
            key: value
            for key, value in self.model_dump(exclude_unset=True).items()
            if value is not None and value != ""
        }


class BookResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(description="Book identifier (24 hex characters)")
    title: str
    author: str
    description: str
    status: int
    start_time: Optional[datetime] = Field(default=None, alias="startTime")
    end_time: Optional[datetime] = Field(default=None, alias="endTime")
    notes: List[str] = Field(default_factory=list, description="Ordered note identifiers")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "BookResponse":
        return cls(
            id=str(document["id"]),
            title=document.get("title") or "",
            author=document.get("author") or "",
            description=document.get("description") or "",
            status=document.get("status") or 0,
            start_time=document.get("start_time"),
            end_time=document.get("end_time"),
            notes=[str(note_id) for note_id in document.get("notes") or []],
        )
