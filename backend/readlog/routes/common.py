"""Helpers shared by the book and note route handlers."""

from typing import Any, Dict

from readlog.exceptions import ValidationError
from readlog.schemas.envelope import ErrorResponse

# OpenAPI error responses common to every endpoint
ERROR_RESPONSES: Dict[int, Dict[str, Any]] = {
    400: {"description": "Malformed identifier or payload", "model": ErrorResponse},
    404: {"description": "Document not found", "model": ErrorResponse},
    500: {"description": "Store error", "model": ErrorResponse},
}


def with_path_id(fields: Dict[str, Any], path_id: str) -> Dict[str, Any]:
    """
    Merge the path id into an edit payload.

    The body may repeat the id; if it does, it must name the same document.
    """
    body_id = fields.get("id")
    if body_id not in (None, "") and str(body_id).lower() != path_id.lower():
        raise ValidationError(
            message="The id in the body does not match the id in the path",
            field="id",
        )
    return {**fields, "id": path_id}
