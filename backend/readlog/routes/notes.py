"""
Readlog Backend — Note Route Handlers
=======================================

    GET    /note?bookid=                  notes of a book, in book.notes order
    GET    /note/{note_id}                one note
    POST   /note  {bookID, content, replyTo?}  create → new id
    DELETE /note  {"id": ...}             detach from book, then delete → count
    POST   /note/{note_id} {fields}       sparse edit → modified count
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from readlog.context import get_note_service
from readlog.routes.common import ERROR_RESPONSES, with_path_id
from readlog.schemas.envelope import Envelope, ErrorResponse
from readlog.schemas.note import IdentifierPayload, NoteCreate, NoteResponse
from readlog.services.note_service import NoteService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.get(
    "/note",
    response_model=Envelope[List[NoteResponse]],
    responses=ERROR_RESPONSES,
    summary="List the notes of a book",
    description=(
        "Notes are returned in the order the book references them. A referenced "
        "note that no longer exists is returned as an empty placeholder."
    ),
)
async def list_notes_by_book(
    bookid: Optional[str] = Query(default=None, description="Book identifier"),
    notes: NoteService = Depends(get_note_service),
) -> Envelope[List[NoteResponse]]:
    return Envelope(data=await notes.list_notes_by_book(bookid))


@router.get(
    "/note/{note_id}",
    response_model=Envelope[NoteResponse],
    responses=ERROR_RESPONSES,
    summary="Get a note by id",
)
async def get_note(
    note_id: str,
    notes: NoteService = Depends(get_note_service),
) -> Envelope[NoteResponse]:
    return Envelope(data=await notes.get_note(note_id))


@router.post(
    "/note",
    status_code=201,
    response_model=Envelope[str],
    responses=ERROR_RESPONSES,
    summary="Create a note on a book",
)
async def create_note(
    payload: NoteCreate,
    notes: NoteService = Depends(get_note_service),
) -> Envelope[str]:
    return Envelope(data=await notes.create_note(payload))


@router.delete(
    "/note",
    response_model=Envelope[int],
    responses={
        **ERROR_RESPONSES,
        409: {"description": "Note could not be detached from its book", "model": ErrorResponse},
    },
    summary="Delete a note",
)
async def delete_note(
    payload: IdentifierPayload,
    notes: NoteService = Depends(get_note_service),
) -> Envelope[int]:
    return Envelope(data=await notes.delete_note(payload.id))


@router.post(
    "/note/{note_id}",
    response_model=Envelope[int],
    responses=ERROR_RESPONSES,
    summary="Edit a note",
    description="Sets only the fields present in the body; the owning book is not touched.",
)
async def edit_note(
    note_id: str,
    fields: Dict[str, Any] = Body(..., description="Fields to change"),
    notes: NoteService = Depends(get_note_service),
) -> Envelope[int]:
    return Envelope(data=await notes.edit_note(with_path_id(fields, note_id)))
