import logging
import traceback
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from app.core.config import settings
from app.core.logging import configure_logging
from app.db.store import DirectoryStore
from app.api.http_errors import request_validation_error_handler
from app.api.routes.health import router as health_router
from app.api.routes.auth import router as auth_router
from app.api.routes.profile import router as profile_router
from app.api.routes.friends import router as friends_router


configure_logging()
logger = logging.getLogger(__name__)


def build_store() -> DirectoryStore:
    return DirectoryStore(
        session_ttl=timedelta(hours=settings.session_ttl_hours),
        friend_code_max_attempts=settings.friend_code_max_attempts,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.store = build_store()
    logger.info("Directory store initialized %s", app.state.store.stats())
    yield
    logger.info("Directory store discarded %s", app.state.store.stats())


app = FastAPI(title="Friend Directory API", version="0.1.0", lifespan=lifespan)

local_cors_origin_regex = (
    r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$"
    if settings.env in {"local", "test"}
    else None
)

@app.exception_handler(Exception)
async def debug_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception for %s %s", request.method, request.url.path)
    if settings.debug_errors:
        return PlainTextResponse(
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
            status_code=500,
        )
    return PlainTextResponse("Internal Server Error", status_code=500)

app.add_exception_handler(RequestValidationError, request_validation_error_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list(),
    allow_origin_regex=local_cors_origin_regex,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(friends_router)
