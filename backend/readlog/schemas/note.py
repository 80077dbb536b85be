"""
Readlog Backend — Note Request/Response Schemas
=================================================

Identifier fields accept any JSON value and are decoded by the services, so
a malformed id, including a non-string one, produces the `invalid_identifier`
error (400) rather than FastAPI's generic 422.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from readlog.identifiers import Identifier, decode_optional_identifier


class NoteCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    book_id: Optional[Any] = Field(default=None, alias="bookID", description="Owning book id")
    content: str = Field(default="", description="Note text")
    reply_to: Optional[Any] = Field(
        default=None, alias="replyTo", description="Id of the note being replied to"
    )


class NotePatch(BaseModel):
    """
    Sparse patch for a note. `bookID` and `createTime` are fixed at creation
    and are rejected here (extra="forbid").
    """
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    content: Optional[str] = None
    reply_to: Optional[Any] = Field(default=None, alias="replyTo")

    def to_update(self) -> Dict[str, Any]:
        update: Dict[str, Any] = {}
        if self.content:
            update["content"] = self.content
        reply_to = decode_optional_identifier(self.reply_to, field="replyTo")
        if reply_to is not None:
            update["reply_to"] = reply_to
        return update


class IdentifierPayload(BaseModel):
    """Body of DELETE /book and DELETE /note: {"id": "..."}."""
    model_config = ConfigDict(extra="ignore")

    id: Optional[Any] = None


class NoteResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    book_id: str = Field(alias="bookID")
    content: str
    reply_to: Optional[str] = Field(default=None, alias="replyTo")
    create_time: Optional[datetime] = Field(default=None, alias="createTime")

    @classmethod
    def from_document(cls, document: Dict[str, Any]) -> "NoteResponse":
        reply_to = document.get("reply_to")
        return cls(
            id=str(document["id"]),
            book_id=str(document["book_id"]),
            content=document.get("content") or "",
            reply_to=str(reply_to) if reply_to else None,
            create_time=document.get("create_time"),
        )

    @classmethod
    def placeholder(cls) -> "NoteResponse":
        """Empty note returned in place of a referenced note that no longer exists."""
        nil = str(Identifier.NIL)
        return cls(id=nil, book_id=nil, content="", reply_to=None, create_time=None)
