# htverse/main.py
import logging
import traceback
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from htverse.config import (
    APP_DEBUG,
    APP_VERSION,
    CORS_ORIGIN_REGEX,
    CORS_ORIGINS,
    SEED_DEMO_ACCOUNTS,
    validate_config,
)
from htverse.errors import AppError
from htverse.metrics import REGISTRY
from htverse.routes import routers
from htverse.store import RecordStore, connect
from htverse.users import UserService

# ----------------------------------------------------------------------
# Logger configuration
# ----------------------------------------------------------------------
logger = logging.getLogger("htverse")
logger.setLevel(logging.INFO)
handler = logging.StreamHandler()
formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(name)s | %(message)s")
handler.setFormatter(formatter)

if not logger.handlers:
    logger.addHandler(handler)
else:
    for h in logger.handlers:
        h.setFormatter(formatter)


# ----------------------------------------------------------------------
# Startup / shutdown
# ----------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    validate_config()

    client = None
    if app.state.store is None:
        client, db = await run_in_threadpool(connect)
        app.state.store = RecordStore(db)

    store: RecordStore = app.state.store
    store.ensure_indexes()

    if app.state.seed_demo_accounts:
        try:
            created = UserService(store).seed_demo_accounts()
            logger.info(f"Demo accounts seeding completed ({created} created)")
        except PyMongoError as exc:
            logger.error(f"Error seeding demo accounts: {exc}")

    yield

    if client is not None:
        client.close()


def create_app(
    store: Optional[RecordStore] = None,
    clock: Optional[Callable] = None,
    seed_demo_accounts: bool = SEED_DEMO_ACCOUNTS,
) -> FastAPI:
    """
    Build the application.

    `store` and `clock` are injectable (tests pass a mongomock-backed store
    and a fixed clock); without a store, one is connected at startup from
    MONGODB_URI.
    """
    app = FastAPI(title="HTVerse Hackathon Platform API", version=APP_VERSION, debug=APP_DEBUG, lifespan=lifespan)
    app.state.store = store
    app.state.clock = clock
    app.state.seed_demo_accounts = seed_demo_accounts

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_origin_regex=CORS_ORIGIN_REGEX or None,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Routers (single source of truth: htverse/routes/__init__.py)
    # ------------------------------------------------------------------
    for r in routers:
        app.include_router(r)

    # ------------------------------------------------------------------
    # Metrics
    # ------------------------------------------------------------------
    app.mount("/metrics", make_asgi_app(registry=REGISTRY))

    _register_exception_handlers(app)
    return app


# ----------------------------------------------------------------------
# Exception handlers
# ----------------------------------------------------------------------
def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.code} on {request.url.path}: {exc.message}")
        content = {"success": False, "message": exc.message, "error": exc.code}
        if exc.data is not None:
            content["data"] = exc.data
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Validation failed",
                "error": "validation_error",
                "data": {"details": details},
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse(
                status_code=404,
                content={"success": False, "message": "Route not found", "path": request.url.path},
            )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(PyMongoError)
    async def store_error_handler(request: Request, exc: PyMongoError):
        logger.error(f"Store error on {request.url.path}: {exc}")
        detail = str(exc) if app.debug else "Internal server error"
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Database error", "error": detail},
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception on {request.url.path}: {exc}\n{traceback.format_exc()}"
        )
        detail = str(exc) if app.debug else "Internal server error"
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Something went wrong!", "error": detail},
        )


app = create_app()
