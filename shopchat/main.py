"""FastAPI application wiring the chat service."""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.responses import JSONResponse

from . import replies
from .chat import ChatService
from .config import settings
from .dependencies import get_chat_service
from .errors import RateLimitExceeded
from .es_stores import get_client
from .importer import import_if_empty, reindex_data
from .indexing import ensure_indices, index_is_empty
from .models import ChatRequest, ChatResponse
from .orders import CallerContext
from .ratelimit import Admission, RateLimiter, get_rate_limiter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_LEVEL = logging.getLevelName(settings.log_level.upper())

# ``force=True`` replaces uvicorn's default handlers so classifier and cascade
# statements share one format.
logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT, force=True)
for name in ("uvicorn", "uvicorn.error", "uvicorn.access", "elastic_transport"):
    logging.getLogger(name).setLevel(LOG_LEVEL)

logger = logging.getLogger(__name__)
logger.info("Logging configured at %s", settings.log_level.upper())


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    if settings.store_backend == "elasticsearch":
        es = get_client()
        await ensure_indices(es)
        if settings.load_on_startup:
            imported = await import_if_empty(es)
            if imported:
                logger.info("Imported %s products on startup", imported)
    yield


app = FastAPI(title="Catalog Chat Service", lifespan=lifespan)


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded path=%s retry_after=%s", request.url.path, exc.retry_after)
    return JSONResponse(
        status_code=429,
        content={"reply": exc.message},
        headers=exc.details.get("headers", {"Retry-After": str(exc.retry_after)}),
    )


def client_key(request: Request) -> str:
    """Identify the caller by network address."""

    if settings.trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "global"


def rate_limited(key_func: Callable[[Request], str] = client_key):
    async def dependency(
        request: Request,
        response: Response,
        limiter: RateLimiter = Depends(get_rate_limiter),
    ) -> Admission:
        admission = await asyncio.to_thread(limiter.admit, key_func(request))
        if not admission.allowed:
            raise RateLimitExceeded(
                replies.RATE_LIMITED,
                admission.retry_after or 0,
                {"headers": admission.headers()},
            )
        response.headers.update(admission.headers())
        return admission

    return dependency


def caller_context(
    x_user_id: Optional[str] = Header(default=None),
    x_user_roles: Optional[str] = Header(default=None),
) -> CallerContext:
    """Caller identity as forwarded by the authenticating gateway."""

    roles = {role.strip().lower() for role in (x_user_roles or "").split(",") if role.strip()}
    return CallerContext(user_id=x_user_id or None, is_admin="admin" in roles)


@app.get("/health")
async def health() -> dict:
    if settings.store_backend != "elasticsearch":
        return {"store": settings.store_backend}
    es = get_client()
    status = await asyncio.to_thread(es.cluster.health)
    empty = await index_is_empty(es)
    return {
        "elasticsearch": status.get("status"),
        "index": settings.products_index,
        "empty": empty,
    }


@app.post("/chat", response_model=ChatResponse, dependencies=[Depends(rate_limited())])
async def chat(
    payload: ChatRequest,
    caller: CallerContext = Depends(caller_context),
    service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    if caller.user_id is None and payload.userId:
        caller = CallerContext(user_id=payload.userId, is_admin=caller.is_admin)
    reply = await service.respond(payload.message, caller)
    return ChatResponse(reply=reply)


@app.post("/reindex")
async def reindex() -> dict:
    if settings.store_backend != "elasticsearch":
        raise HTTPException(status_code=400, detail="Reindex requires the elasticsearch store")
    es = get_client()
    count = await reindex_data(es)
    return {"indexed": count}
