"""
API models and schemas for the FastAPI application.
"""

from datetime import datetime
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, Field, field_validator


class FlagKind(str, Enum):
    """Kinds of per-user book flags."""
    LIKE = "like"
    SAVE = "save"


class GenreResponse(BaseModel):
    """Genre joined onto a book."""
    id: str = Field(..., description="Genre identifier")
    name: str = Field(..., description="Genre name")


class BookCard(BaseModel):
    """Compact book projection used by ranked and per-user listings."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    cover_image: Optional[str] = Field(None, description="Cover image URL")


class BookResponse(BaseModel):
    """Book listing projection with its genres."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: Optional[str] = Field(None, description="Book author")
    views_count: int = Field(0, description="Number of views")
    total_likes: int = Field(0, description="Number of users currently liking the book")
    total_chapters: int = Field(0, description="Number of chapters")
    cover_image: Optional[str] = Field(None, description="Cover image URL")
    genres: List[GenreResponse] = Field(default_factory=list, description="Book genres")


class BookDetailResponse(BookResponse):
    """Single book projection, including the description."""
    description: Optional[str] = Field(None, description="Book description")


class ChapterResponse(BaseModel):
    """Chapter projection used for traversal."""
    id: str = Field(..., description="Chapter identifier")
    title: str = Field(..., description="Chapter title")
    chapter_order: int = Field(..., description="Order key of the chapter within its book")


class PageResponse(BaseModel):
    """Page projection."""
    id: str = Field(..., description="Page identifier")
    content: str = Field(..., description="Page content")
    page_order: int = Field(..., description="Order key of the page within its chapter")
    chapter_id: str = Field(..., description="Owning chapter identifier")


class FlagToggleRequest(BaseModel):
    """Body of a like/save toggle."""
    user_id: Optional[str] = Field(None, description="User performing the toggle")

    @field_validator("user_id", mode="before")
    @classmethod
    def coerce_numeric_id(cls, v):
        """Accept numeric ids the same way the query string does."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


class LikeToggleResponse(BaseModel):
    """Result of a like toggle."""
    message: str = Field(..., description="Liked or Unliked")
    is_liked: bool = Field(..., description="New like state")
    total_likes: int = Field(..., description="Refreshed like counter of the book")


class SaveToggleResponse(BaseModel):
    """Result of a save toggle."""
    message: str = Field(..., description="Saved or Unsaved")
    is_saved: bool = Field(..., description="New save state")


class LikeStatusResponse(BaseModel):
    is_liked: bool


class SaveStatusResponse(BaseModel):
    is_saved: bool


class RegisterRequest(BaseModel):
    """Registration body. Presence is checked by the route, not the schema."""
    username: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class UserResponse(BaseModel):
    """Public user fields."""
    id: str = Field(..., description="User identifier")
    email: str = Field(..., description="User email")
    username: str = Field(..., description="User name")


class AuthResponse(BaseModel):
    """Envelope returned by login and register."""
    message: str
    user: UserResponse


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")
