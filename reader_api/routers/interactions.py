"""
Like and save endpoints.

Both flags share one router shape, built per kind by ``build_flag_router``:

* ``GET  /books/{kind}?user_id=``       books the user currently flags
* ``POST /books/{book_id}/{kind}``      toggle, body ``{"user_id": ...}``
* ``GET  /books/{book_id}/{kind}?user_id=``  current state
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from reader_api.catalog import CatalogService
from reader_api.database import FLAG_SPECS
from reader_api.dependencies import get_catalog_service, get_interaction_service
from reader_api.interactions import InteractionService
from reader_api.models import (
    BookCard, FlagKind, FlagToggleRequest, LikeStatusResponse, LikeToggleResponse,
    SaveStatusResponse, SaveToggleResponse,
)

logger = structlog.get_logger(__name__)

_RESPONSES = {
    FlagKind.LIKE: (LikeToggleResponse, LikeStatusResponse, "Like action failed", "Failed to get like status"),
    FlagKind.SAVE: (SaveToggleResponse, SaveStatusResponse, "Save action failed", "Failed to get save status"),
}


def build_flag_router(kind: FlagKind) -> APIRouter:
    """Create the list/toggle/status routes of one flag kind."""
    spec = FLAG_SPECS[kind]
    toggle_model, status_model, toggle_error, status_error = _RESPONSES[kind]
    router = APIRouter(prefix="/books", tags=[kind.value.capitalize()])

    @router.get(f"/{kind.value}", response_model=List[BookCard], name=f"list_{kind.value}d_books")
    async def list_flagged_books(
        user_id: Optional[str] = None,
        catalog: CatalogService = Depends(get_catalog_service)
    ):
        if not user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing user_id")

        try:
            return await catalog.flagged_books(kind, user_id)
        except Exception as e:
            logger.error("Failed to fetch flagged books", kind=kind.value, user_id=user_id, error=str(e))
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to fetch {kind.value}d books: {str(e)}"
            )

    @router.post(f"/{{book_id}}/{kind.value}", response_model=toggle_model, name=f"toggle_{kind.value}")
    async def toggle_flag(
        book_id: str,
        payload: Optional[FlagToggleRequest] = None,
        interactions: InteractionService = Depends(get_interaction_service)
    ):
        user_id = payload.user_id if payload else None
        if not user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")

        try:
            result = await interactions.toggle(kind, user_id, book_id)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"{toggle_error}: {str(e)}"
            )

        if result is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Book with ID '{book_id}' not found"
            )
        return result

    @router.get(f"/{{book_id}}/{kind.value}", response_model=status_model, name=f"{kind.value}_status")
    async def flag_status(
        book_id: str,
        user_id: Optional[str] = None,
        interactions: InteractionService = Depends(get_interaction_service)
    ):
        if not user_id:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")

        try:
            active = await interactions.status(kind, user_id, book_id)
        except Exception as e:
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"{status_error}: {str(e)}"
            )

        return status_model(**{spec.field: active})

    return router


like_router = build_flag_router(FlagKind.LIKE)
save_router = build_flag_router(FlagKind.SAVE)
