"""
Book, chapter and page read endpoints.
"""

from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, HTTPException, status

from reader_api.catalog import CatalogService
from reader_api.dependencies import get_catalog_service
from reader_api.models import (
    BookCard, BookDetailResponse, BookResponse, ChapterResponse, PageResponse,
)

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/books", tags=["Books"])


@router.get("", response_model=List[BookResponse])
async def list_books(catalog: CatalogService = Depends(get_catalog_service)):
    """Get all books with their genres."""
    try:
        return await catalog.list_books()
    except Exception as e:
        logger.error("Failed to list books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve books: {str(e)}"
        )


@router.get("/top-viewed", response_model=List[BookCard])
async def top_viewed_books(catalog: CatalogService = Depends(get_catalog_service)):
    """Get the top 10 most viewed books."""
    try:
        return await catalog.top_viewed_books()
    except Exception as e:
        logger.error("Failed to get top viewed books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve top viewed books: {str(e)}"
        )


@router.get("/latest", response_model=List[BookCard])
async def latest_books(catalog: CatalogService = Depends(get_catalog_service)):
    """Get the 10 most recently updated books."""
    try:
        return await catalog.latest_books()
    except Exception as e:
        logger.error("Failed to get latest books", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve latest books: {str(e)}"
        )


@router.get("/search", response_model=List[BookResponse])
async def search_books(
    keyword: Optional[str] = None,
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    Search books by title.

    - **keyword**: case-insensitive substring of the title (required)
    """
    if not keyword:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing keyword")

    try:
        return await catalog.search_books(keyword)
    except Exception as e:
        logger.error("Failed to search books", keyword=keyword, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to search books: {str(e)}"
        )


@router.get("/chapters/{chapter_id}/pages", response_model=List[PageResponse])
async def chapter_pages(chapter_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    """Fetch all pages of a chapter in page order."""
    try:
        pages = await catalog.chapter_pages(chapter_id)
    except Exception as e:
        logger.error("Failed to fetch pages", chapter_id=chapter_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch pages: {str(e)}"
        )

    if not pages:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No pages found for this chapter"
        )
    return pages


@router.get("/{book_id}", response_model=BookDetailResponse)
async def get_book(book_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    """
    Get a single book by ID.

    - **book_id**: Book identifier
    """
    try:
        book = await catalog.get_book_by_id(book_id)
    except Exception as e:
        logger.error("Failed to get book", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to retrieve book: {str(e)}"
        )

    if not book:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Book with ID '{book_id}' not found"
        )
    return book


@router.get("/{book_id}/chapters/first", response_model=ChapterResponse)
async def first_chapter(book_id: str, catalog: CatalogService = Depends(get_catalog_service)):
    """Fetch the first chapter of a book."""
    try:
        chapter = await catalog.first_chapter(book_id)
    except Exception as e:
        logger.error("Failed to fetch first chapter", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch first chapter: {str(e)}"
        )

    if not chapter:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No chapters found for this book"
        )
    return chapter


@router.get("/{book_id}/chapters/next", response_model=ChapterResponse)
async def next_chapter(
    book_id: str,
    current_order: Optional[int] = None,
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    Fetch the chapter following ``current_order``.

    - **current_order**: order key of the chapter being read (required)
    """
    if current_order is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current chapter order is required"
        )

    try:
        chapter = await catalog.next_chapter(book_id, current_order)
    except Exception as e:
        logger.error("Failed to fetch next chapter", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch next chapter: {str(e)}"
        )

    if not chapter:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No next chapter found")
    return chapter


@router.get("/{book_id}/chapters/previous", response_model=ChapterResponse)
async def previous_chapter(
    book_id: str,
    current_order: Optional[int] = None,
    catalog: CatalogService = Depends(get_catalog_service)
):
    """
    Fetch the chapter preceding ``current_order``.

    - **current_order**: order key of the chapter being read (required)
    """
    if current_order is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current chapter order is required"
        )

    try:
        chapter = await catalog.previous_chapter(book_id, current_order)
    except Exception as e:
        logger.error("Failed to fetch previous chapter", book_id=book_id, error=str(e))
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Failed to fetch previous chapter: {str(e)}"
        )

    if not chapter:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No previous chapter found")
    return chapter
