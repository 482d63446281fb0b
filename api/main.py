import logging
from contextlib import asynccontextmanager

import asyncpg
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from blog import router as blog_router
from captcha import router as captcha_router
from contact import router as contact_router
from core import config, db
from core.errors import ServiceError, ValidationFailed
from core.validation import field_errors
from newsletters import router as newsletters_router
from notifications.dispatcher import build_dispatcher

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    config.configure_logging()
    config.warn_missing_env()

    # Initialize the DB pool once per process. Without a store the API still
    # starts; store-backed routes then answer `store_unavailable`.
    try:
        await db.init_pool()
    except (RuntimeError, ValueError, OSError, asyncpg.PostgresError, asyncpg.InterfaceError) as exc:
        logger.warning("store_init_failed error=%s", exc)

    # One mail relay client for the whole process.
    app.state.dispatcher = build_dispatcher()
    try:
        yield
    finally:
        await db.close_pool()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ServiceError)
async def service_error_handler(_: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
    error = ValidationFailed("Validation failed", errors=field_errors(list(exc.errors())))
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


app.include_router(blog_router.router, prefix="/api", tags=["blog"])
app.include_router(newsletters_router.router, prefix="/api", tags=["newsletters"])
app.include_router(captcha_router.router, prefix="/api", tags=["captcha"])
app.include_router(contact_router.router, prefix="/api", tags=["contact"])


@app.get("/health")
def health() -> dict:
    return {"status": "ok", "store": "ready" if db.is_ready() else "unavailable"}


@app.get("/api/")
def root() -> str:
    return "root api route"
