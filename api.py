import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from book_inventory.book import Book
from book_inventory.database import Database
from book_inventory.inventory import (
    DuplicateItemError,
    InvalidInputError,
    InventoryError,
    InventoryStore,
    ItemNotFoundError,
    ItemUnavailableError,
    StorageUnavailableError,
)
from config import settings

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

# Status code for each inventory failure kind
ERROR_STATUS_CODES = {
    InvalidInputError: 400,
    DuplicateItemError: 409,
    ItemNotFoundError: 404,
    ItemUnavailableError: 400,
    StorageUnavailableError: 500,
}


# Largest value a SQLite INTEGER column can hold
MAX_QUANTITY = 2**63 - 1

# --- Models ---
class BookModel(BaseModel):
    id: str
    title: str
    author: str
    quantity: int


class BookCreateModel(BaseModel):
    id: str = Field(min_length=1, description="Caller-supplied unique identifier")
    title: str
    author: str
    quantity: int = Field(ge=0, le=MAX_QUANTITY, description="Units available for checkout")


class BookIdModel(BaseModel):
    id: Optional[str] = None


class HealthModel(BaseModel):
    status: str
    database: bool
    timestamp: str


# --- Dependencies ---
def get_inventory(request: Request) -> InventoryStore:
    """Dependency returning the store built in the app lifespan."""
    return request.app.state.inventory


# --- Endpoints ---
router = APIRouter(tags=["items"])


@router.post("", response_model=BookModel, status_code=201)
def create_item(payload: BookCreateModel, inventory: InventoryStore = Depends(get_inventory)):
    """Register a new book in the catalog."""
    book = Book(id=payload.id, title=payload.title, author=payload.author, quantity=payload.quantity)
    stored = inventory.create_item(book)
    return BookModel(**stored.to_dict())


@router.get("", response_model=List[BookModel])
def list_items(inventory: InventoryStore = Depends(get_inventory)):
    """Get every book in the catalog."""
    return [BookModel(**b.to_dict()) for b in inventory.list_items()]


@router.patch("/checkout", response_model=BookModel)
def checkout_item(payload: BookIdModel, inventory: InventoryStore = Depends(get_inventory)):
    """Check out one unit. The body reflects the book before the decrement."""
    book = inventory.checkout_item(payload.id)
    return BookModel(**book.to_dict())


@router.patch("/return", response_model=BookModel)
def return_item(payload: BookIdModel, inventory: InventoryStore = Depends(get_inventory)):
    """Return one unit. The body reflects the book before the increment."""
    book = inventory.return_item(payload.id)
    return BookModel(**book.to_dict())


@router.get("/{item_id}", response_model=BookModel)
def get_item(item_id: str, inventory: InventoryStore = Depends(get_inventory)):
    """Get a single book by its ID."""
    book = inventory.get_item(item_id)
    return BookModel(**book.to_dict())


# --- Error handlers ---
async def inventory_error_handler(request: Request, exc: InventoryError):
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    return JSONResponse(status_code=status_code, content={"message": str(exc)})


async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Invalid request body for {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"message": "Invalid data"})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


def create_app(database: Optional[Database] = None) -> FastAPI:
    """Build the application. Pass a Database to override the configured file."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Storage handle is owned by the app for its whole lifetime
        db = database or Database(settings.database_file, timeout=settings.database_timeout)
        db.initialize()
        app.state.database = db
        app.state.inventory = InventoryStore(db)
        logger.info(f"{settings.app_name} started with database {db.db_file}")
        yield
        logger.info(f"{settings.app_name} shutting down")

    app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug, lifespan=lifespan)

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(InventoryError, inventory_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)

    app.include_router(router, prefix="/items")
    if settings.mount_legacy_routes:
        app.include_router(router, prefix="/books", include_in_schema=False)

    # --- Health check ---
    @app.get("/health", response_model=HealthModel)
    def health(request: Request):
        """Lightweight health endpoint: tries a database round-trip."""
        db_ok = request.app.state.database.ping()
        return HealthModel(
            status="healthy" if db_ok else "degraded",
            database=db_ok,
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    return app


app = create_app()
