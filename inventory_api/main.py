"""
FastAPI main application for the Book Inventory API.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

import structlog
from fastapi import Depends, FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from inventory_api.config import APIConfig, config as default_config
from inventory_api.exceptions import (
    BookNotFoundError, DuplicateBookError, InventoryError, OutOfStockError
)
from inventory_api.models import (
    Book, BookActionResponse, BookCreateInput, BookPatchInput, BookPutInput,
    ErrorResponse, HealthResponse, ValidationErrorResponse
)
from inventory_api.store import InventoryStore

# Setup logging
logger = structlog.get_logger(__name__)

ERROR_STATUS = {
    BookNotFoundError: status.HTTP_404_NOT_FOUND,
    DuplicateBookError: status.HTTP_409_CONFLICT,
    OutOfStockError: status.HTTP_409_CONFLICT,
}

NOT_FOUND = {"model": ErrorResponse, "description": "Book not found"}
BAD_REQUEST = {"model": ValidationErrorResponse, "description": "Invalid request body"}
CONFLICT = {"model": ErrorResponse, "description": "Conflicts with current state"}


def get_store(request: Request) -> InventoryStore:
    """Dependency returning the store owned by the running application."""
    return request.app.state.store


def format_validation_errors(exc: RequestValidationError) -> str:
    """Flatten pydantic errors into one human-readable line."""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error['msg']}" if location else error["msg"])
    return "; ".join(messages)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Starting Book Inventory API", books_count=app.state.store.count())
    yield
    logger.info("Shutting down Book Inventory API")


def register_exception_handlers(app: FastAPI, settings: APIConfig) -> None:
    """Map store, validation and framework errors onto JSON responses."""

    @app.exception_handler(InventoryError)
    async def inventory_exception_handler(request: Request, exc: InventoryError):
        return JSONResponse(
            status_code=ERROR_STATUS.get(type(exc), status.HTTP_409_CONFLICT),
            content=ErrorResponse(message=exc.message).model_dump()
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=ValidationErrorResponse(error=format_validation_errors(exc)).model_dump()
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(message=str(exc.detail)).model_dump(),
            headers=getattr(exc, "headers", None)
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error("Unhandled exception", error=str(exc), path=request.url.path)
        message = f"Internal server error: {exc}" if settings.debug else "Internal server error"
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(message=message).model_dump()
        )


def register_routes(app: FastAPI, settings: APIConfig) -> None:
    """Attach health and book endpoints to the application."""

    # Every endpoint touching the store is a plain function so FastAPI runs it
    # on its worker threadpool; the store lock never blocks the event loop.
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    def health_check(store: InventoryStore = Depends(get_store)):
        """Health check endpoint."""
        return HealthResponse(
            status="healthy",
            timestamp=datetime.now(timezone.utc),
            version=settings.api_version,
            books_count=store.count()
        )

    # Book endpoints
    @app.get("/books", response_model=List[Book], tags=["Books"])
    def list_books(store: InventoryStore = Depends(get_store)):
        """Get all books in insertion order."""
        return store.list_books()

    @app.get("/books/{book_id}", response_model=Book, tags=["Books"],
             responses={404: NOT_FOUND})
    def get_book(book_id: str, store: InventoryStore = Depends(get_store)):
        """
        Get a single book by ID.

        - **book_id**: Book identifier
        """
        return store.get_book(book_id)

    @app.post("/books", response_model=Book, status_code=status.HTTP_201_CREATED,
              tags=["Books"], responses={400: BAD_REQUEST, 409: CONFLICT})
    def create_book(payload: BookCreateInput, store: InventoryStore = Depends(get_store)):
        """
        Create a new book.

        - **id**: Caller-supplied identifier, must not already exist
        - **title**: At least 3 characters
        - **author**: Required key, may be null
        - **quantity**: At least 1
        """
        return store.create_book(payload.to_book())

    @app.put("/books/{book_id}", response_model=Book, tags=["Books"],
             responses={400: BAD_REQUEST, 404: NOT_FOUND})
    def replace_book(book_id: str, payload: BookPutInput,
                     store: InventoryStore = Depends(get_store)):
        """Replace the title, author and quantity of a book."""
        return store.replace_book(book_id, payload.title, payload.author, payload.quantity)

    @app.patch("/books/{book_id}", response_model=Book, tags=["Books"],
               responses={400: BAD_REQUEST, 404: NOT_FOUND})
    def update_book(book_id: str, payload: BookPatchInput,
                    store: InventoryStore = Depends(get_store)):
        """Update only the fields present in the request body."""
        return store.update_book(book_id, payload.supplied_fields())

    @app.delete("/books/{book_id}", status_code=status.HTTP_204_NO_CONTENT,
                response_class=Response, tags=["Books"], responses={404: NOT_FOUND})
    def delete_book(book_id: str, store: InventoryStore = Depends(get_store)):
        """Delete a book."""
        store.delete_book(book_id)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/books/checkout/{book_id}", response_model=BookActionResponse,
              tags=["Inventory"], responses={404: NOT_FOUND, 409: CONFLICT})
    def checkout_book(book_id: str, store: InventoryStore = Depends(get_store)):
        """Check out one copy of a book, failing with 409 when none are left."""
        book = store.checkout_book(book_id)
        return BookActionResponse(message="Book checked out successfully", book=book)

    @app.post("/books/return/{book_id}", response_model=BookActionResponse,
              tags=["Inventory"], responses={404: NOT_FOUND})
    def return_book(book_id: str, store: InventoryStore = Depends(get_store)):
        """Return one copy of a book."""
        book = store.return_book(book_id)
        return BookActionResponse(message="Book returned successfully", book=book)


def create_app(
    store: Optional[InventoryStore] = None,
    settings: Optional[APIConfig] = None
) -> FastAPI:
    """
    Build the FastAPI application around an inventory store.

    Args:
        store: Store to serve; a new one is created when omitted
        settings: Configuration; the environment-derived config by default

    Returns:
        Configured FastAPI application
    """
    settings = settings or default_config
    if store is None:
        store = InventoryStore.with_seed_data() if settings.seed_books else InventoryStore()

    app = FastAPI(
        title=settings.api_title,
        description=settings.api_description,
        version=settings.api_version,
        lifespan=lifespan
    )
    app.state.store = store

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    register_exception_handlers(app, settings)
    register_routes(app, settings)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "inventory_api.main:app",
        host=default_config.host,
        port=default_config.port,
        reload=default_config.debug,
        log_level=default_config.log_level.lower()
    )
