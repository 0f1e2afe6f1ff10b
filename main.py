import logging
from datetime import datetime, timezone
from typing import Optional, Type

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from admission import (
    FixedWindowRateLimiter,
    OriginGateMiddleware,
    OriginPolicy,
    PolicyCORSMiddleware,
    RateLimitMiddleware,
)
from config import Settings, load_settings
from database import Store, StoreError, create_store, get_store
from schemas import BookingIn, ContactIn, GalleryItemIn, RowSchema, TestimonialIn

logger = logging.getLogger(__name__)

GALLERY_TABLE = "gallery"
TESTIMONIALS_TABLE = "testimonials"
BOOKINGS_TABLE = "bookings"
CONTACT_TABLE = "contact_submissions"

router = APIRouter()

FORM_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


def parsed_body(schema: Type[RowSchema]):
    """Dependency reading a JSON or HTML form body into ``schema``."""

    async def parse(request: Request) -> RowSchema:
        content_type = request.headers.get("content-type", "")
        try:
            if content_type.startswith(FORM_TYPES):
                data = dict(await request.form())
            else:
                data = await request.json()
        except ValueError:
            raise RequestValidationError(
                [{"loc": ("body",), "msg": "Body is not valid JSON", "type": "json_invalid"}]
            ) from None
        try:
            return schema.model_validate(data)
        except ValidationError as e:
            raise RequestValidationError(
                [{**err, "loc": ("body",) + tuple(err.get("loc", ()))} for err in e.errors()]
            ) from None

    return parse


# --- Store helpers: exactly one store call per request ---

def _list(store: Store, table: str):
    return store.select(table, "*", order_by="created_at", descending=True)


def _create(store: Store, table: str, body: RowSchema):
    rows = store.insert(table, [body.to_row()])
    if not rows:
        raise StoreError(f"Insert into {table} returned no row")
    return rows[0]


def _update(store: Store, table: str, record_id: str, body: RowSchema, label: str):
    row = store.update(table, record_id, body.to_row())
    if row is None:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return row


def _delete(store: Store, table: str, record_id: str, label: str):
    store.delete(table, record_id)
    return {"message": f"{label} deleted successfully"}


@router.get("/health")
def health():
    return {"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()}


# Gallery endpoints
@router.get("/api/gallery")
def list_gallery(store: Store = Depends(get_store)):
    return _list(store, GALLERY_TABLE)


@router.post("/api/gallery", status_code=201)
def create_gallery_item(
    item: GalleryItemIn = Depends(parsed_body(GalleryItemIn)),
    store: Store = Depends(get_store),
):
    return _create(store, GALLERY_TABLE, item)


@router.put("/api/gallery/{item_id}")
def update_gallery_item(
    item_id: str,
    item: GalleryItemIn = Depends(parsed_body(GalleryItemIn)),
    store: Store = Depends(get_store),
):
    return _update(store, GALLERY_TABLE, item_id, item, "Gallery item")


@router.delete("/api/gallery/{item_id}")
def delete_gallery_item(item_id: str, store: Store = Depends(get_store)):
    return _delete(store, GALLERY_TABLE, item_id, "Gallery item")


# Testimonials endpoints
@router.get("/api/testimonials")
def list_testimonials(store: Store = Depends(get_store)):
    return _list(store, TESTIMONIALS_TABLE)


@router.post("/api/testimonials", status_code=201)
def create_testimonial(
    testimonial: TestimonialIn = Depends(parsed_body(TestimonialIn)),
    store: Store = Depends(get_store),
):
    return _create(store, TESTIMONIALS_TABLE, testimonial)


@router.put("/api/testimonials/{testimonial_id}")
def update_testimonial(
    testimonial_id: str,
    testimonial: TestimonialIn = Depends(parsed_body(TestimonialIn)),
    store: Store = Depends(get_store),
):
    return _update(store, TESTIMONIALS_TABLE, testimonial_id, testimonial, "Testimonial")


@router.delete("/api/testimonials/{testimonial_id}")
def delete_testimonial(testimonial_id: str, store: Store = Depends(get_store)):
    return _delete(store, TESTIMONIALS_TABLE, testimonial_id, "Testimonial")


# Bookings endpoints (append-only)
@router.get("/api/bookings")
def list_bookings(store: Store = Depends(get_store)):
    return _list(store, BOOKINGS_TABLE)


@router.post("/api/bookings", status_code=201)
def create_booking(
    booking: BookingIn = Depends(parsed_body(BookingIn)),
    store: Store = Depends(get_store),
):
    return _create(store, BOOKINGS_TABLE, booking)


# Contact form endpoint
@router.post("/api/contact", status_code=201)
def create_contact_submission(
    contact: ContactIn = Depends(parsed_body(ContactIn)),
    store: Store = Depends(get_store),
):
    return _create(store, CONTACT_TABLE, contact)


# --- Error mapping: every error body is {"error": ...} ---

async def store_error_handler(request: Request, exc: StoreError):
    logger.error("Store error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=500, content={"error": exc.message})


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    # Unknown method on a known path is treated like an unknown route.
    if exc.status_code in (404, 405) and exc.detail in ("Not Found", "Method Not Allowed"):
        return JSONResponse(status_code=404, content={"error": "Not found"})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    details = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg"), "type": err.get("type")}
        for err in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Invalid request body", "details": details})


def create_app(settings: Optional[Settings] = None, store: Optional[Store] = None) -> FastAPI:
    settings = settings or load_settings()

    app = FastAPI(title="Studio Backend API")
    app.state.settings = settings
    app.state.store = store if store is not None else create_store(settings)

    policy = OriginPolicy(settings.allowed_origins, production=settings.is_production)
    limiter = FixedWindowRateLimiter(settings.rate_limit_max, settings.rate_limit_window_seconds)

    # Last added runs first: CORS -> origin gate -> rate limit -> routes
    app.add_middleware(RateLimitMiddleware, limiter=limiter)
    app.add_middleware(OriginGateMiddleware, policy=policy)
    app.add_middleware(PolicyCORSMiddleware, policy=policy)

    app.add_exception_handler(StoreError, store_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    settings = app.state.settings
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server running on port %s", settings.port)
    logger.info("Health check: http://localhost:%s/health", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)
