import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from marketplace.core.app_logging import configure_logging
from marketplace.core.config import Settings, get_settings
from marketplace.core.errors import AppError, ErrorKind, InvalidInputError, UnauthorizedError
from marketplace.core.security import TokenIssuer
from marketplace.database import create_db_engine, init_db
from marketplace.routers.auth import router as auth_router
from marketplace.routers.forms import router as forms_router
from marketplace.routers.users import router as users_router
from marketplace.services.upload_service import PhotoIntake

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message, exc_info=exc)
    body = {"error": exc.message}
    if isinstance(exc, InvalidInputError) and exc.field_errors:
        body["fieldErrors"] = exc.field_errors
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    field_errors = {}
    for error in exc.errors():
        loc = error.get("loc") or ("body",)
        field_errors.setdefault(str(loc[-1]), error.get("msg", "invalid value"))
    return JSONResponse(
        status_code=400,
        content={"error": "Validation failed", "fieldErrors": field_errors},
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = "unknown endpoint" if exc.status_code == 404 else exc.detail
    return JSONResponse(status_code=exc.status_code, content={"error": message}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    engine = create_db_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)
    upload_dir = Path(settings.UPLOAD_DIR)
    upload_dir.mkdir(parents=True, exist_ok=True)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        init_db(engine)
        yield
        engine.dispose()

    app = FastAPI(
        title="Marketplace API",
        version="0.1.0",
        lifespan=lifespan,
    )

    # built once, read-only for the lifetime of the app
    app.state.settings = settings
    app.state.engine = engine
    app.state.tokens = TokenIssuer.from_settings(settings)
    app.state.photos = PhotoIntake.from_settings(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        response = await call_next(request)
        logger.info("%s %s -> %d", request.method, request.url.path, response.status_code)
        return response

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    app.include_router(users_router)
    app.include_router(auth_router)
    app.include_router(forms_router)

    # stored photos are served read-only
    app.mount("/uploads", StaticFiles(directory=str(upload_dir)), name="uploads")

    return app
