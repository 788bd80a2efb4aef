import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from tokenoracle.api.prices import router as prices_router
from tokenoracle.container import Container
from tokenoracle.exceptions import (
    CreationDateNotFoundError,
    ExternalServiceError,
    InvalidRequestError,
    PriceResolutionError,
    StoreUnavailableError,
    TokenOracleError,
)

logger = logging.getLogger("tokenoracle.api")

ERROR_STATUS: list[tuple[type[TokenOracleError], int]] = [
    (InvalidRequestError, 400),
    (CreationDateNotFoundError, 404),
    (PriceResolutionError, 502),
    (ExternalServiceError, 502),
    (StoreUnavailableError, 503),
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = Container()
    app.state.container = container
    yield
    await container.http_client().close()
    await container.price_cache().close()
    await container.engine().dispose()


app = FastAPI(title="Token Oracle", version="0.1.0", lifespan=lifespan)


@app.exception_handler(TokenOracleError)
async def token_oracle_error_handler(request: Request, exc: TokenOracleError):
    status_code = next((code for cls, code in ERROR_STATUS if isinstance(exc, cls)), 500)
    if status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled error on %s %s:\n%s", request.method, request.url.path, "".join(tb))
    return JSONResponse(status_code=500, content={"detail": str(exc)})


app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": "0.1.0"}
