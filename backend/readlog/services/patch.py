"""
Readlog Backend — Partial-Update Translator
=============================================

What:  Turns a client-supplied field map ({"id": ..., <fields>}) into one
       targeted single-document update.
Why:   Edits only change what the client sent; everything else is untouched.

Rules:
    1. `id` is required and decoded first (InvalidIdentifierError otherwise),
       before any store access.
    2. Values that are None or "" are dropped: an empty string means
       "no change", not "clear this field". Known limitation.
    3. The rest is validated against a typed patch model (BookPatch /
       NotePatch); unknown or immutable fields raise ValidationError.
    4. Exactly one update against one collection. No relationship
       maintenance happens on this path.
"""

import logging
from typing import Any, Dict, Mapping, Optional, Tuple, Type, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from readlog.exceptions import NotFoundError, ValidationError
from readlog.identifiers import Identifier, decode_identifier
from readlog.schemas.book import BookPatch
from readlog.schemas.note import NotePatch
from readlog.store import Document, DocumentStore, UpdateResult

logger = logging.getLogger(__name__)

PatchModel = Union[BookPatch, NotePatch]


def translate_patch(
    fields: Mapping[str, Any],
    patch_model: Type[PatchModel],
) -> Tuple[Identifier, Dict[str, Any]]:
    """
    Decode the id and build the `$set` field map.

    Returns:
        (identifier, update) where update holds store field names
        (snake_case) mapped to their new values; it may be empty.
    """
    if not isinstance(fields, Mapping):
        raise ValidationError(message="Update payload must be a JSON object")

    identifier = decode_identifier(fields.get("id"), field="id")

    present = {
        key: value
        for key, value in fields.items()
        if key != "id" and value is not None and value != ""
    }
    try:
        patch: BaseModel = patch_model.model_validate(present)
    except PydanticValidationError as exc:
        raise ValidationError(
            message="Invalid update payload",
            context={
                "errors": [
                    {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
                    for err in exc.errors()
                ]
            },
        ) from None

    return identifier, patch.to_update()


async def apply_partial_update(
    store: DocumentStore,
    collection: str,
    fields: Mapping[str, Any],
    patch_model: Type[PatchModel],
    return_document: bool,
) -> Union[Document, int]:
    """
    Apply a sparse patch to one document.

    Returns:
        return_document=True:  the document as it is after the update
        return_document=False: the number of modified documents (0 or 1)

    Raises:
        InvalidIdentifierError, ValidationError: before any store access
        NotFoundError: no document has that id
        StoreError: the store failed
    """
    identifier, update = translate_patch(fields, patch_model)
    match = {"id": identifier}
    logger.info("Editing %s %s: %s", collection, identifier, sorted(update))

    if not update:
        # Nothing to set; still report NotFound for unknown ids
        document: Optional[Document] = await store.find_one(collection, match)
        if document is None:
            raise NotFoundError(resource=collection, resource_id=str(identifier))
        return document if return_document else 0

    if return_document:
        document = await store.find_one_and_update(collection, match, update)
        if document is None:
            raise NotFoundError(resource=collection, resource_id=str(identifier))
        return document

    result: UpdateResult = await store.update_one(collection, match, update)
    if result.matched_count == 0:
        raise NotFoundError(resource=collection, resource_id=str(identifier))
    return result.modified_count
