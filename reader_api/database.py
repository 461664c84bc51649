"""
MongoDB connection management for the reading API.
Handles connection, indexing, health checks and the generic insert path.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import ConnectionFailure

from reader_api.models import FlagKind

logger = structlog.get_logger(__name__)

BOOKS = "books"
GENRES = "genres"
BOOK_GENRES = "book_genres"
CHAPTERS = "chapters"
PAGES = "pages"
USERS = "users"


@dataclass(frozen=True)
class FlagSpec:
    """Where a per-user book flag lives and which book counter it maintains."""
    kind: FlagKind
    collection: str
    field: str
    counter_field: Optional[str] = None
    active_message: str = ""
    inactive_message: str = ""


FLAG_SPECS: Dict[FlagKind, FlagSpec] = {
    FlagKind.LIKE: FlagSpec(
        kind=FlagKind.LIKE,
        collection="likes",
        field="is_liked",
        counter_field="total_likes",
        active_message="Liked",
        inactive_message="Unliked",
    ),
    FlagKind.SAVE: FlagSpec(
        kind=FlagKind.SAVE,
        collection="saved_books",
        field="is_saved",
        active_message="Saved",
        inactive_message="Unsaved",
    ),
}


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Parse a wire identifier; anything that is not an ObjectId matches nothing."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LibraryDatabase:
    """
    Async MongoDB manager for the reading library.
    Owns the client; services receive the database handle it exposes.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize the manager.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and ensure indexes."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.database = self.client[self.database_name]

            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self.create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def create_indexes(self) -> None:
        """
        Create indexes backing the uniqueness invariants and the hot queries.
        """
        try:
            db = self.database

            # One flag document per (user, book)
            for spec in FLAG_SPECS.values():
                await db[spec.collection].create_index(
                    [("user_id", ASCENDING), ("book_id", ASCENDING)], unique=True
                )
                await db[spec.collection].create_index([("book_id", ASCENDING), (spec.field, ASCENDING)])
                await db[spec.collection].create_index([("user_id", ASCENDING), (spec.field, ASCENDING)])

            await db[USERS].create_index("email", unique=True)

            await db[CHAPTERS].create_index(
                [("book_id", ASCENDING), ("chapter_order", ASCENDING)], unique=True
            )
            await db[PAGES].create_index(
                [("chapter_id", ASCENDING), ("page_order", ASCENDING)], unique=True
            )
            await db[BOOK_GENRES].create_index(
                [("book_id", ASCENDING), ("genre_id", ASCENDING)], unique=True
            )
            await db[GENRES].create_index("name", unique=True)

            await db[BOOKS].create_index([("views_count", DESCENDING)])
            await db[BOOKS].create_index([("updated_at", DESCENDING)])

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }

    async def get_stats(self) -> Dict[str, int]:
        """Count documents in every collection the API touches."""
        names = [BOOKS, GENRES, CHAPTERS, PAGES, USERS] + [s.collection for s in FLAG_SPECS.values()]
        stats = {}
        for name in names:
            stats[name] = await self.database[name].count_documents({})
        return stats

    async def _genre_ids(self, names: List[str]) -> List[ObjectId]:
        """Resolve genre names to ids, creating genres that do not exist yet."""
        ids = []
        for name in names:
            genre = await self.database[GENRES].find_one_and_update(
                {"name": name},
                {"$setOnInsert": {"name": name}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
            ids.append(genre["_id"])
        return ids

    async def seed_library(self, data: Dict[str, Any]) -> Dict[str, int]:
        """
        Insert books with their genres, chapters and pages.

        Chapter and page order keys follow list position (starting at 1)
        unless the entry carries an explicit ``chapter_order``/``page_order``.

        Args:
            data: ``{"books": [{"title", "author", "description", "cover_image",
                  "views_count", "genres": [str], "chapters": [{"title",
                  "pages": [str | {"content", "page_order"}]}]}]}``

        Returns:
            Counts of inserted books, chapters and pages
        """
        counts = {"books": 0, "chapters": 0, "pages": 0}

        for book in data.get("books", []):
            chapters = book.get("chapters", [])
            book_doc = {
                "title": book["title"],
                "author": book.get("author"),
                "description": book.get("description"),
                "cover_image": book.get("cover_image"),
                "views_count": int(book.get("views_count", 0)),
                "total_likes": 0,
                "total_chapters": len(chapters),
                "updated_at": utcnow(),
            }
            result = await self.database[BOOKS].insert_one(book_doc)
            book_id = result.inserted_id
            counts["books"] += 1

            genre_ids = await self._genre_ids(book.get("genres", []))
            if genre_ids:
                await self.database[BOOK_GENRES].insert_many(
                    [{"book_id": book_id, "genre_id": genre_id} for genre_id in genre_ids]
                )

            for position, chapter in enumerate(chapters, start=1):
                chapter_result = await self.database[CHAPTERS].insert_one({
                    "book_id": book_id,
                    "title": chapter["title"],
                    "chapter_order": int(chapter.get("chapter_order", position)),
                })
                counts["chapters"] += 1

                pages = []
                for page_position, page in enumerate(chapter.get("pages", []), start=1):
                    if isinstance(page, str):
                        page = {"content": page}
                    pages.append({
                        "chapter_id": chapter_result.inserted_id,
                        "content": page["content"],
                        "page_order": int(page.get("page_order", page_position)),
                    })
                if pages:
                    await self.database[PAGES].insert_many(pages)
                    counts["pages"] += len(pages)

            logger.debug("Seeded book", title=book["title"], book_id=str(book_id), chapters=len(chapters))

        logger.info("Library seed completed", **counts)
        return counts
