from contextlib import asynccontextmanager
import os
import time

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.db.repo import init_db
from app.routers import metrics, recommend
from app.utils import slog
from app.utils.logging import configure_logging
from app.utils.metrics import record_request

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    init_db()
    port = os.getenv("PORT", "3001")
    logger.info(f"Swagger documentation available at: http://localhost:{port}/api")
    logger.info(f"Health check available at: http://localhost:{port}/monitoring/health")
    yield


app = FastAPI(
    title="Life Insurance Recommendation API",
    description="API for generating personalized life insurance recommendations",
    version="1.0.0",
    docs_url="/api",
    redoc_url=None,
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


def _allowed_origins() -> list[str]:
    raw = os.getenv("ALLOWED_ORIGINS", "http://localhost:3000")
    return [o.strip() for o in raw.split(",") if o.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=_allowed_origins(),
    allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
    allow_headers=["Content-Type", "Authorization", "X-User-Id"],
    allow_credentials=True,
)


def _record(success: bool, latency_ms: float) -> None:
    # telemetry must never fail the request it observes
    try:
        record_request(success=success, response_time_ms=latency_ms)
    except Exception:
        logger.exception("metrics recording failed")


@app.middleware("http")
async def _logging_middleware(request, call_next):
    start = time.perf_counter()
    req_id = slog.new_request_id()
    log_fields = {
        "request_id": req_id,
        "method": request.method,
        "path": str(request.url.path),
        "client_ip": request.client.host if request.client else None,
    }
    try:
        response = await call_next(request)
    except Exception as e:
        latency_ms = round((time.perf_counter() - start) * 1000, 3)
        slog.log_request(
            latency_ms=latency_ms,
            error=str(e),
            ctx=getattr(request.state, "log_context", None),
            **log_fields,
        )
        _record(False, latency_ms)
        raise
    latency_ms = round((time.perf_counter() - start) * 1000, 3)
    slog.log_request(
        latency_ms=latency_ms,
        status=response.status_code,
        ctx=getattr(request.state, "log_context", None),
        **log_fields,
    )
    _record(slog.is_success(response.status_code), latency_ms)
    response.headers["X-Request-ID"] = req_id
    return response


@app.get("/health")
def health():
    return {"status": "ok"}


app.include_router(recommend.router)
app.include_router(metrics.router)


def run() -> None:
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "3001")),
    )


if __name__ == "__main__":
    run()
