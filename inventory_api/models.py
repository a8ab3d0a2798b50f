"""
API models and schemas for the Book Inventory API.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Book(BaseModel):
    """Book record held by the inventory store."""
    id: str = Field(..., description="Unique book identifier")
    title: str = Field(..., min_length=3, description="Book title")
    author: Optional[str] = Field(None, description="Book author, null when unknown")
    quantity: int = Field(..., ge=0, description="Number of copies available")


class BookCreateInput(BaseModel):
    """Request body for creating a book."""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., min_length=1, description="Caller-supplied book identifier")
    title: str = Field(..., min_length=3, description="Book title")
    author: Optional[str] = Field(..., description="Book author, key required but may be null")
    quantity: int = Field(..., ge=1, strict=True, description="Initial number of copies")

    def to_book(self) -> Book:
        """Build the Book record to hand to the store."""
        return Book(id=self.id, title=self.title, author=self.author, quantity=self.quantity)


class BookPutInput(BaseModel):
    """Request body for replacing all mutable fields of a book."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=3, description="Book title")
    author: Optional[str] = Field(..., description="Book author, key required but may be null")
    quantity: int = Field(..., ge=1, strict=True, description="Number of copies")


class BookPatchInput(BaseModel):
    """
    Request body for partial updates.

    Each field is tri-state: absent (not in ``model_fields_set``), null, or
    a value. Only ``author`` accepts null; it clears the stored author.
    """
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(None, min_length=3, description="New book title")
    author: Optional[str] = Field(None, description="New book author, null clears it")
    quantity: Optional[int] = Field(None, ge=1, strict=True, description="New number of copies")

    @field_validator("title", "quantity")
    @classmethod
    def reject_null(cls, v, info):
        """Title and quantity may be omitted but not set to null."""
        if v is None:
            raise ValueError(f"{info.field_name} may not be null")
        return v

    def supplied_fields(self) -> Dict[str, Any]:
        """Return only the fields present in the request body."""
        return self.model_dump(include=self.model_fields_set)


class BookActionResponse(BaseModel):
    """Response model for checkout and return actions."""
    message: str = Field(..., description="Outcome of the action")
    book: Book = Field(..., description="Book after the action")


class ErrorResponse(BaseModel):
    """Error response model for not-found and conflict errors."""
    message: str = Field(..., description="Error message")


class ValidationErrorResponse(BaseModel):
    """Error response model for rejected request bodies."""
    error: str = Field(..., description="Validation error details")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    books_count: int = Field(..., description="Number of books in the store")
