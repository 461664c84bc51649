"""
Read projections over books, chapters and pages.
"""

import re
from typing import Any, Dict, List, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase

from reader_api.database import (
    BOOK_GENRES, BOOKS, CHAPTERS, FLAG_SPECS, GENRES, PAGES, to_object_id,
)
from reader_api.models import (
    BookCard, BookDetailResponse, BookResponse, ChapterResponse,
    FlagKind, GenreResponse, PageResponse,
)

logger = structlog.get_logger(__name__)

CARD_FIELDS = {"title": 1, "cover_image": 1}
CHAPTER_FIELDS = {"title": 1, "chapter_order": 1}
PAGE_FIELDS = {"content": 1, "page_order": 1, "chapter_id": 1}

# book -> book_genres -> genres
GENRE_JOIN = [
    {"$lookup": {
        "from": BOOK_GENRES,
        "localField": "_id",
        "foreignField": "book_id",
        "as": "book_genres",
    }},
    {"$lookup": {
        "from": GENRES,
        "localField": "book_genres.genre_id",
        "foreignField": "_id",
        "as": "genres",
    }},
]


def _book(doc: Dict[str, Any], detail: bool = False) -> BookResponse:
    """Shape an aggregated book document."""
    fields = {
        "id": str(doc["_id"]),
        "title": doc["title"],
        "author": doc.get("author"),
        "views_count": doc.get("views_count") or 0,
        "total_likes": doc.get("total_likes") or 0,
        "total_chapters": doc.get("total_chapters") or 0,
        "cover_image": doc.get("cover_image"),
        "genres": [
            GenreResponse(id=str(genre["_id"]), name=genre["name"])
            for genre in doc.get("genres", [])
        ],
    }
    if detail:
        return BookDetailResponse(description=doc.get("description"), **fields)
    return BookResponse(**fields)


def _card(doc: Dict[str, Any]) -> BookCard:
    return BookCard(id=str(doc["_id"]), title=doc["title"], cover_image=doc.get("cover_image"))


def _chapter(doc: Dict[str, Any]) -> ChapterResponse:
    return ChapterResponse(id=str(doc["_id"]), title=doc["title"], chapter_order=doc["chapter_order"])


def _page(doc: Dict[str, Any]) -> PageResponse:
    return PageResponse(
        id=str(doc["_id"]),
        content=doc["content"],
        page_order=doc["page_order"],
        chapter_id=str(doc["chapter_id"]),
    )


class CatalogService:
    """Database service for the read-only book endpoints."""

    def __init__(self, database: AsyncIOMotorDatabase, top_limit: int = 10, latest_limit: int = 10):
        self.database = database
        self.books_collection = database[BOOKS]
        self.chapters_collection = database[CHAPTERS]
        self.pages_collection = database[PAGES]
        self.top_limit = top_limit
        self.latest_limit = latest_limit

    async def _aggregate_books(self, match: Optional[Dict] = None, limit: Optional[int] = None) -> List[Dict]:
        pipeline = []
        if match is not None:
            pipeline.append({"$match": match})
        if limit is not None:
            pipeline.append({"$limit": limit})
        pipeline.extend(GENRE_JOIN)
        cursor = self.books_collection.aggregate(pipeline)
        return await cursor.to_list(length=None)

    async def list_books(self) -> List[BookResponse]:
        """All books with their genres."""
        try:
            docs = await self._aggregate_books()
            return [_book(doc) for doc in docs]
        except Exception as e:
            logger.error("Failed to list books", error=str(e))
            raise

    async def _ranked_books(self, sort_field: str, limit: int) -> List[BookCard]:
        cursor = self.books_collection.find({}, CARD_FIELDS).sort(sort_field, -1).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [_card(doc) for doc in docs]

    async def top_viewed_books(self) -> List[BookCard]:
        """
        Get the most viewed books.

        Returns:
            Up to ``top_limit`` books ordered by views_count descending
        """
        try:
            return await self._ranked_books("views_count", self.top_limit)
        except Exception as e:
            logger.error("Failed to get top viewed books", error=str(e))
            raise

    async def latest_books(self) -> List[BookCard]:
        """
        Get the most recently updated books.

        Returns:
            Up to ``latest_limit`` books ordered by updated_at descending
        """
        try:
            return await self._ranked_books("updated_at", self.latest_limit)
        except Exception as e:
            logger.error("Failed to get latest books", error=str(e))
            raise

    async def flagged_books(self, kind: FlagKind, user_id: str) -> List[BookCard]:
        """
        Books a user currently likes or saves.

        Flags whose book no longer exists are skipped.

        Args:
            kind: Which flag to follow
            user_id: User identifier

        Returns:
            Books joined from the active flags
        """
        spec = FLAG_SPECS[kind]
        pipeline = [
            {"$match": {"user_id": user_id, spec.field: True}},
            {"$lookup": {
                "from": BOOKS,
                "localField": "book_id",
                "foreignField": "_id",
                "as": "book",
            }},
            {"$unwind": "$book"},
            {"$replaceRoot": {"newRoot": "$book"}},
            {"$project": CARD_FIELDS},
        ]
        try:
            cursor = self.database[spec.collection].aggregate(pipeline)
            docs = await cursor.to_list(length=None)
            return [_card(doc) for doc in docs]
        except Exception as e:
            logger.error("Failed to get flagged books", kind=kind.value, user_id=user_id, error=str(e))
            raise

    async def search_books(self, keyword: str) -> List[BookResponse]:
        """
        Case-insensitive substring search on the title.

        The keyword is matched literally, regex metacharacters included.
        """
        try:
            match = {"title": {"$regex": re.escape(keyword), "$options": "i"}}
            docs = await self._aggregate_books(match)
            return [_book(doc) for doc in docs]
        except Exception as e:
            logger.error("Failed to search books", keyword=keyword, error=str(e))
            raise

    async def get_book_by_id(self, book_id: str) -> Optional[BookDetailResponse]:
        """
        Get a single book by ID.

        Args:
            book_id: Book identifier

        Returns:
            BookDetailResponse if found, None otherwise
        """
        object_id = to_object_id(book_id)
        if object_id is None:
            return None

        try:
            docs = await self._aggregate_books({"_id": object_id}, limit=1)
        except Exception as e:
            logger.error("Failed to get book by ID", book_id=book_id, error=str(e))
            raise

        if not docs:
            return None
        return _book(docs[0], detail=True)

    async def _chapter_near(self, book_id: str, order_filter: Optional[Dict], direction: int) -> Optional[ChapterResponse]:
        object_id = to_object_id(book_id)
        if object_id is None:
            return None

        query: Dict[str, Any] = {"book_id": object_id}
        if order_filter:
            query["chapter_order"] = order_filter

        # Ties on chapter_order are left to the store
        doc = await self.chapters_collection.find_one(
            query, CHAPTER_FIELDS, sort=[("chapter_order", direction)]
        )
        return _chapter(doc) if doc else None

    async def first_chapter(self, book_id: str) -> Optional[ChapterResponse]:
        """Chapter with the lowest order key of a book."""
        try:
            return await self._chapter_near(book_id, None, 1)
        except Exception as e:
            logger.error("Failed to get first chapter", book_id=book_id, error=str(e))
            raise

    async def next_chapter(self, book_id: str, current_order: int) -> Optional[ChapterResponse]:
        """Chapter with the smallest order key greater than ``current_order``."""
        try:
            return await self._chapter_near(book_id, {"$gt": current_order}, 1)
        except Exception as e:
            logger.error("Failed to get next chapter", book_id=book_id, current_order=current_order, error=str(e))
            raise

    async def previous_chapter(self, book_id: str, current_order: int) -> Optional[ChapterResponse]:
        """Chapter with the largest order key smaller than ``current_order``."""
        try:
            return await self._chapter_near(book_id, {"$lt": current_order}, -1)
        except Exception as e:
            logger.error("Failed to get previous chapter", book_id=book_id, current_order=current_order, error=str(e))
            raise

    async def chapter_pages(self, chapter_id: str) -> List[PageResponse]:
        """All pages of a chapter in page order."""
        object_id = to_object_id(chapter_id)
        if object_id is None:
            return []

        try:
            cursor = self.pages_collection.find({"chapter_id": object_id}, PAGE_FIELDS).sort("page_order", 1)
            docs = await cursor.to_list(length=None)
            return [_page(doc) for doc in docs]
        except Exception as e:
            logger.error("Failed to get chapter pages", chapter_id=chapter_id, error=str(e))
            raise
