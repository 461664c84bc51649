"""
Per-user like/save flags on books and the like counter they maintain.

A toggle is two single-document atomic writes: the flag is flipped with an
upserting update pipeline, then the book counter moves by +1 or -1 in the
direction of the new state. Concurrent toggles on one book never lose a
counter update; a failure between the two writes leaves the counter off by
one until ``recount`` runs.
"""

from typing import Dict, Optional, Union

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from reader_api.database import BOOKS, FLAG_SPECS, FlagSpec, to_object_id, utcnow
from reader_api.models import FlagKind, LikeToggleResponse, SaveToggleResponse
from utilities.logger import InteractionLogger

logger = structlog.get_logger(__name__)

ToggleResponse = Union[LikeToggleResponse, SaveToggleResponse]


class InteractionService:
    """Toggle and status operations for like and save flags."""

    def __init__(self, database: AsyncIOMotorDatabase, interaction_logger: Optional[InteractionLogger] = None):
        self.database = database
        self.books_collection = database[BOOKS]
        self.interaction_logger = interaction_logger or InteractionLogger()

    def _flags(self, spec: FlagSpec):
        return self.database[spec.collection]

    async def _flip(self, spec: FlagSpec, user_id: str, book_id: ObjectId) -> bool:
        """Invert the flag, creating it as active when absent. Returns the new state."""
        now = utcnow()
        flag = await self._flags(spec).find_one_and_update(
            {"user_id": user_id, "book_id": book_id},
            [{"$set": {
                spec.field: {"$not": [{"$ifNull": [f"${spec.field}", False]}]},
                "created_at": {"$ifNull": ["$created_at", now]},
                "updated_at": now,
            }}],
            projection={spec.field: 1},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return flag[spec.field] is True

    async def _bump_counter(self, spec: FlagSpec, book_id: ObjectId, delta: int) -> int:
        """Move the book counter by ``delta``, never below zero."""
        field = spec.counter_field
        book = await self.books_collection.find_one_and_update(
            {"_id": book_id},
            [{"$set": {
                field: {"$max": [0, {"$add": [{"$ifNull": [f"${field}", 0]}, delta]}]},
            }}],
            projection={field: 1},
            return_document=ReturnDocument.AFTER,
        )
        if book is None:
            # Book removed after the existence check
            return await self._count_active(spec, book_id)
        return book[field]

    async def _count_active(self, spec: FlagSpec, book_id: ObjectId) -> int:
        return await self._flags(spec).count_documents({"book_id": book_id, spec.field: True})

    async def toggle(self, kind: FlagKind, user_id: str, book_id: str) -> Optional[ToggleResponse]:
        """
        Flip a user's flag on a book.

        Args:
            kind: Like or save
            user_id: User performing the toggle
            book_id: Book identifier

        Returns:
            The new state (and like counter), or None when the book does not exist
        """
        spec = FLAG_SPECS[kind]
        object_id = to_object_id(book_id)
        if object_id is None:
            return None

        try:
            book = await self.books_collection.find_one({"_id": object_id}, {"_id": 1})
            if book is None:
                return None

            active = await self._flip(spec, user_id, object_id)

            counter = None
            if spec.counter_field:
                counter = await self._bump_counter(spec, object_id, 1 if active else -1)

        except Exception as e:
            self.interaction_logger.log_error(kind.value, str(e), user_id=user_id, book_id=book_id)
            raise

        self.interaction_logger.log_toggle(kind.value, user_id, book_id, active, counter)

        message = spec.active_message if active else spec.inactive_message
        if kind is FlagKind.LIKE:
            return LikeToggleResponse(message=message, is_liked=active, total_likes=counter)
        return SaveToggleResponse(message=message, is_saved=active)

    async def status(self, kind: FlagKind, user_id: str, book_id: str) -> bool:
        """
        Whether the user's flag on the book is active.

        A missing flag and an inactive one both report False.
        """
        spec = FLAG_SPECS[kind]
        object_id = to_object_id(book_id)
        if object_id is None:
            return False

        try:
            flag = await self._flags(spec).find_one(
                {"user_id": user_id, "book_id": object_id}, {spec.field: 1}
            )
        except Exception as e:
            logger.error("Failed to get flag status", kind=kind.value, user_id=user_id, book_id=book_id, error=str(e))
            raise

        return bool(flag) and flag.get(spec.field) is True

    async def recount(self, book_id: str, kind: FlagKind = FlagKind.LIKE) -> Optional[int]:
        """
        Recompute a book counter from its active flags.

        Args:
            book_id: Book identifier
            kind: Flag kind whose counter is rebuilt

        Returns:
            The recomputed count, or None when the book does not exist
        """
        spec = FLAG_SPECS[kind]
        if not spec.counter_field:
            raise ValueError(f"{kind.value} flags do not maintain a counter")

        object_id = to_object_id(book_id)
        if object_id is None:
            return None

        count = await self._count_active(spec, object_id)
        previous = await self.books_collection.find_one_and_update(
            {"_id": object_id},
            {"$set": {spec.counter_field: count}},
            projection={spec.counter_field: 1},
            return_document=ReturnDocument.BEFORE,
        )
        if previous is None:
            return None

        self.interaction_logger.log_recount(book_id, previous.get(spec.counter_field), count)
        return count

    async def recount_all(self, kind: FlagKind = FlagKind.LIKE) -> Dict[str, int]:
        """Recompute the counter of every book."""
        results = {}
        async for book in self.books_collection.find({}, {"_id": 1}):
            book_id = str(book["_id"])
            count = await self.recount(book_id, kind)
            if count is not None:
                results[book_id] = count
        return results
