"""
HTTP Exception helpers to reduce code duplication in routes.

Usage:
    from coach.utils.exceptions import raise_bad_request, raise_not_found

    raise_bad_request("Missing required field")
"""

from typing import NoReturn

from fastapi import HTTPException, status


def raise_bad_request(detail: str) -> NoReturn:
    """Raise HTTP 400 Bad Request."""
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=detail,
    )


def raise_not_found(resource: str, id: int | str | None = None) -> NoReturn:
    """Raise HTTP 404 Not Found."""
    if id is not None:
        detail = f"{resource} with id {id} not found"
    else:
        detail = f"{resource} not found"
    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=detail,
    )
