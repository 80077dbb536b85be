"""
Readlog Backend — Book Route Handlers
=======================================

What:  /book endpoints (list, get, create, delete, edit).
How:   Thin handlers: bind the payload, call BookService, wrap the result in
       the success envelope. Errors become the error envelope in main.py.

    GET    /book?title=&author=&status=   list (exact-match, conjunctive filter)
    GET    /book/{book_id}                 one book
    POST   /book                           create → new id
    DELETE /book        {"id": ...}        delete book and its notes → count
    POST   /book/{book_id} {fields}        sparse edit → updated book
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, Query

from readlog.context import get_book_service
from readlog.routes.common import ERROR_RESPONSES, with_path_id
from readlog.schemas.book import BookCreate, BookResponse
from readlog.schemas.envelope import Envelope
from readlog.schemas.note import IdentifierPayload
from readlog.services.book_service import BookService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Books"])


@router.get(
    "/book",
    response_model=Envelope[List[BookResponse]],
    responses={500: ERROR_RESPONSES[500]},
    summary="List books",
    description=(
        "Returns every book matching all given filters (exact match). "
        "Without filters, returns all books. No sort order is guaranteed."
    ),
)
async def list_books(
    title: Optional[str] = Query(default=None, description="Exact title"),
    author: Optional[str] = Query(default=None, description="Exact author"),
    status: Optional[int] = Query(default=None, description="Reading state"),
    books: BookService = Depends(get_book_service),
) -> Envelope[List[BookResponse]]:
    return Envelope(data=await books.list_books(title=title, author=author, status=status))


@router.get(
    "/book/{book_id}",
    response_model=Envelope[BookResponse],
    responses=ERROR_RESPONSES,
    summary="Get a book by id",
)
async def get_book(
    book_id: str,
    books: BookService = Depends(get_book_service),
) -> Envelope[BookResponse]:
    return Envelope(data=await books.get_book(book_id))


@router.post(
    "/book",
    status_code=201,
    response_model=Envelope[str],
    responses={500: ERROR_RESPONSES[500]},
    summary="Create a book",
    description="Any `id` or `notes` in the payload are ignored; a new book starts with no notes.",
)
async def create_book(
    payload: BookCreate,
    books: BookService = Depends(get_book_service),
) -> Envelope[str]:
    return Envelope(data=await books.create_book(payload))


@router.delete(
    "/book",
    response_model=Envelope[int],
    responses=ERROR_RESPONSES,
    summary="Delete a book and all of its notes",
)
async def delete_book(
    payload: IdentifierPayload,
    books: BookService = Depends(get_book_service),
) -> Envelope[int]:
    return Envelope(data=await books.delete_book(payload.id))


@router.post(
    "/book/{book_id}",
    response_model=Envelope[BookResponse],
    responses=ERROR_RESPONSES,
    summary="Edit a book",
    description=(
        "Sets only the fields present in the body. Empty strings and nulls "
        "leave the field unchanged."
    ),
)
async def edit_book(
    book_id: str,
    fields: Dict[str, Any] = Body(..., description="Fields to change"),
    books: BookService = Depends(get_book_service),
) -> Envelope[BookResponse]:
    return Envelope(data=await books.edit_book(with_path_id(fields, book_id)))
