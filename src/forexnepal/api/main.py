import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from forexnepal.api.deps import AccessDenied
from forexnepal.api.rates import router as rates_router
from forexnepal.container import Container
from forexnepal.exceptions import ChunkFetchError, FetchCancelled, InvalidDateRange, RateLimitExceeded, UnknownCurrency

logger = logging.getLogger("forexnepal.api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    yield
    await container.usage_ledger().drain()
    await container.http_client().close()
    await container.redis().aclose()
    engine = container.engine()
    await engine.dispose()


app = FastAPI(title="ForexNepal", version="0.1.0", lifespan=lifespan)


@app.exception_handler(AccessDenied)
async def access_denied_handler(request: Request, exc: AccessDenied):
    return JSONResponse(status_code=exc.denial.status, content=exc.denial.body)


@app.exception_handler(InvalidDateRange)
@app.exception_handler(UnknownCurrency)
async def bad_request_handler(request: Request, exc: Exception):
    return JSONResponse(status_code=400, content={"error": str(exc)})


@app.exception_handler(RateLimitExceeded)
async def rate_limited_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"error": exc.reason, "cooldown_seconds": exc.cooldown_seconds},
        headers={"Retry-After": str(exc.cooldown_seconds)},
    )


@app.exception_handler(ChunkFetchError)
async def upstream_failed_handler(request: Request, exc: ChunkFetchError):
    logger.error("Historical fetch failed on %s: %s", request.url.path, exc)
    return JSONResponse(
        status_code=502,
        content={
            "error": str(exc),
            "kind": exc.kind,
            "chunk": exc.chunk_index + 1,
            "total_chunks": exc.total_chunks,
        },
    )


@app.exception_handler(FetchCancelled)
async def cancelled_handler(request: Request, exc: FetchCancelled):
    return JSONResponse(status_code=499, content={"error": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"error": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(rates_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
