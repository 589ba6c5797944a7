from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.openapi.utils import get_openapi
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
from pathlib import Path
import logging

from storefront.config import settings
from storefront.db.database import init_db
from storefront.api import health, auth, categories, products, cart, photos, checkout, orders, admin, images
from storefront.kafka.producer import event_producer

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api/storefront"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting Storefront Service...")
    await init_db()
    logger.info(
        f"Storefront Service started (image provider: {settings.image_provider}, "
        f"kafka: {'enabled' if settings.kafka_enabled else 'disabled'})"
    )
    yield
    # Shutdown
    logger.info("Shutting down Storefront Service...")
    event_producer.flush()


app = FastAPI(
    title="Storefront Service",
    description="""
    Customer storefront for a photobox and photo-printing shop.

    **Features:**
    - Catalog browsing with category, price, featured and text filters
    - Per-user cart with variant pricing
    - Photo uploads for printed products
    - Checkout into orders with photo references
    - Order history and cancellation
    - Admin product, category and order management

    **Authentication:**
    Sign in at `/api/storefront/auth/sign-in` and include the token in the Authorization header:
    ```
    Authorization: Bearer <your-jwt-token>
    ```

    **Roles:**
    - **customer**: cart, checkout, own orders
    - **admin**: everything under `/api/storefront/admin`
    """,
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json"
)

# When allow_credentials=True the headers must be listed explicitly
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["Authorization", "Content-Type", "Accept", "Origin", "X-Requested-With"],
    expose_headers=["Content-Disposition"],
    max_age=3600,
)


def custom_openapi():
    """Custom OpenAPI schema with JWT Bearer authentication"""
    if app.openapi_schema:
        return app.openapi_schema

    openapi_schema = get_openapi(
        title=app.title,
        version=app.version,
        description=app.description,
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Access token from /auth/sign-in. Format: Bearer <token>"
        }
    }

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


# Global exception handler for unhandled exceptions
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Catch all unhandled exceptions and log them properly"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {str(exc)}",
        exc_info=True,
        extra={
            "path": request.url.path,
            "method": request.method,
        }
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal server error",
            "error_type": type(exc).__name__,
            "message": str(exc)
        }
    )


# Validation error handler
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle request validation errors"""
    logger.warning(
        f"Validation error on {request.method} {request.url.path}: {exc.errors()}"
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_errors(exc)}
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may hold exception instances, which are not JSON serializable
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        error.pop("input", None)
        errors.append(error)
    return errors


# Include routers
app.include_router(health.router)
for module in (auth, categories, products, cart, photos, checkout, orders, admin, images):
    app.include_router(module.router, prefix=API_PREFIX)

if settings.image_provider == "local":
    media_root = Path(settings.local_storage_dir)
    media_root.mkdir(parents=True, exist_ok=True)
    app.mount("/media", StaticFiles(directory=str(media_root)), name="media")


@app.get("/")
async def root():
    return {"service": settings.app_name, "version": settings.app_version}
