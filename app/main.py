"""FastAPI application entry point with FastMCP mounted."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import get_settings
from app.exceptions import TaskLifecycleError

logger = logging.getLogger(__name__)
settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.APP_DEBUG else logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s  %(message)s",
)

# FastMCP ASGI sub-app
from app.mcp.server import mcp  # noqa: E402

mcp_app = mcp.http_app(path="/mcp")


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Code Task Agent...")
    if not settings.llm_configured:
        logger.warning("LLM_API_KEY not set – submissions will end in error status")
    async with mcp_app.lifespan(app):
        yield
    logger.info("Code Task Agent stopped")


app = FastAPI(
    title="Code Task Agent",
    description="Daily coding tasks with AI-scored submissions",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TaskLifecycleError)
async def lifecycle_error_handler(request: Request, exc: TaskLifecycleError):
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    details = f"{location}: {first.get('msg', 'invalid')}" if location else first.get("msg")
    return JSONResponse({"error": "Invalid request", "details": details}, status_code=422)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse({"error": "Internal server error"}, status_code=500)


# REST API router
from app.api.v1.router import router as api_router  # noqa: E402

app.include_router(api_router, prefix="/api/v1")
app.mount("/mcp", mcp_app)


@app.get("/health")
async def health():
    """Basic liveness probe."""
    return {"status": "ok", "service": "code-task-agent"}


@app.get("/health/ready")
async def health_ready():
    """Readiness probe with database check."""
    from app.database import engine
    from sqlalchemy import text

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "ready", "database": "ok"}
    except Exception as e:
        logger.error("Health ready check failed: %s", e)
        return JSONResponse(
            {"status": "not_ready", "database": "error"},
            status_code=503
        )
