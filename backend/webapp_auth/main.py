from contextlib import asynccontextmanager
import logging
import time
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .config import settings
from .errors import InitDataError
from .routers import auth, health, users


logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    force=True,
)
logger = logging.getLogger("webapp_auth.api")


def _auth_mode(request: Request) -> str:
    if request.headers.get("x-telegram-init-data"):
        return "telegram"
    if request.headers.get("authorization", "")[:4].lower() == "tma ":
        return "telegram"
    if request.headers.get("x-tg-user-id"):
        return "dev"
    return "-"


class ApiAuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        request_id = uuid4().hex[:8]
        started_at = time.perf_counter()

        method = request.method
        path = request.url.path
        auth_mode = _auth_mode(request)

        try:
            response = await call_next(request)
        except Exception:
            elapsed_ms = (time.perf_counter() - started_at) * 1000
            logger.exception(
                "API %s %s | status=500 | auth=%s | t=%.1fms | req_id=%s",
                method,
                path,
                auth_mode,
                elapsed_ms,
                request_id,
            )
            raise

        elapsed_ms = (time.perf_counter() - started_at) * 1000
        logger.info(
            "API %s %s | status=%s | auth=%s | t=%.1fms | req_id=%s",
            method,
            path,
            response.status_code,
            auth_mode,
            elapsed_ms,
            request_id,
        )
        response.headers["X-Request-ID"] = request_id
        return response


logging.getLogger("uvicorn.access").disabled = True
logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.bot_token is None:
        logger.warning("BOT_TOKEN is not set; initData verification requests will fail with 500")
    if settings.allow_insecure_dev_auth:
        logger.warning("Insecure dev auth is enabled (app_env=%s)", settings.app_env)
    yield


app = FastAPI(title="WebApp Auth API", version="0.1.0", lifespan=lifespan)


@app.exception_handler(InitDataError)
async def init_data_error_handler(request: Request, exc: InitDataError) -> JSONResponse:
    logger.warning("Rejected initData on %s: kind=%s reason=%s", request.url.path, exc.kind.value, exc.reason)
    return JSONResponse(status_code=401, content={"detail": exc.reason, "kind": exc.kind.value})


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.add_middleware(ApiAuditMiddleware)

if settings.cors_origins():
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-TG-User-Id", "X-Telegram-Init-Data"],
    )

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())
