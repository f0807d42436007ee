"""FastAPI application entry point."""
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sitetasks.api import admin, contractors, emails, projects, subcontractors, tasks
from sitetasks.core.exceptions import SiteTasksError
from sitetasks.dependencies import get_settings
from sitetasks.logging_setup import setup_logging
from sitetasks.middleware.metrics import setup_metrics

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    yield


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/docs",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["GET", "POST", "PUT", "OPTIONS"],
    allow_headers=["Content-Type"],
)

setup_metrics(app)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"success": False, "error": exc.detail})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        messages.append(f"{location}: {error.get('msg')}" if location else str(error.get("msg")))
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "; ".join(messages) or "Invalid request", "errorType": "ValidationError"},
    )


@app.exception_handler(SiteTasksError)
async def site_tasks_exception_handler(request: Request, exc: SiteTasksError):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail, "errorType": exc.error_type},
    )


# Include routers
app.include_router(tasks.router, prefix=f"{settings.API_PREFIX}/tasks", tags=["tasks"])
app.include_router(
    subcontractors.router, prefix=f"{settings.API_PREFIX}/subcontractor", tags=["subcontractors"]
)
app.include_router(projects.router, prefix=f"{settings.API_PREFIX}/projects", tags=["projects"])
app.include_router(
    contractors.router, prefix=f"{settings.API_PREFIX}/contractors", tags=["contractors"]
)
app.include_router(emails.router, prefix=f"{settings.API_PREFIX}/emails", tags=["emails"])
app.include_router(admin.router, prefix=settings.API_PREFIX, tags=["admin"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
