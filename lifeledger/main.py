import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
import asyncio
import logging

# Import all models to ensure Base.metadata is populated before create_all
from lifeledger.db import base_models  # noqa: F401

from lifeledger.api.v1.router import api_router
from lifeledger.core.config import settings
from lifeledger.core.errors import ScheduleError
from lifeledger.core.logging import configure_logging
from lifeledger.db.session import engine
from lifeledger.db.init_db import init_database
from lifeledger.services.recurring_transaction_scheduler import run_recurring_transactions_scheduler

logger = logging.getLogger(__name__)


def create_app(start_scheduler: bool | None = None) -> FastAPI:
    tags_metadata = [
        {"name": "recurring-transactions", "description": "Recurring income/expense rules and their execution"},
        {"name": "categories", "description": "Categories for ledger entries"},
    ]

    app = FastAPI(
        title="LifeLedger Backend",
        version="1.0.0",
        description="Recurring transaction scheduler for personal ledgers",
        openapi_url="/openapi.json",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=tags_metadata,
        redirect_slashes=False,  # Disable automatic 307 redirects between /route and /route/
    )

    from sqlalchemy.exc import IntegrityError
    from fastapi.exceptions import RequestValidationError

    @app.exception_handler(ScheduleError)
    async def schedule_error_handler(request: Request, exc: ScheduleError):
        """Translate scheduler errors to their HTTP status"""
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.message, "error": type(exc).__name__},
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        """Handle database integrity errors (unique constraints, foreign keys)"""
        error_msg = str(exc.orig) if exc.orig else str(exc)
        if "unique" in error_msg.lower():
            detail = "The record already exists."
            status_code = 409
        elif "foreign key" in error_msg.lower():
            detail = "The record depends on another record that is missing or in use."
            status_code = 400
        else:
            detail = "Database error."
            status_code = 400

        logger.warning("Integrity error at %s: %s - %s", request.url.path, detail, error_msg)
        return JSONResponse(
            status_code=status_code,
            content={"detail": detail},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Handle Pydantic validation errors with cleaner messages"""
        errors = []
        for error in exc.errors():
            field = ".".join(str(x) for x in error["loc"] if x != "body")
            msg = error["msg"]
            errors.append(f"{field}: {msg}")

        return JSONResponse(
            status_code=422,
            content={"detail": "Validation error", "errors": errors},
        )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH", "HEAD"],
        allow_headers=["*"],
        max_age=3600,  # Cache preflight requests for 1 hour
    )

    @app.middleware("http")
    async def resolve_trailing_slash(request, call_next):
        """
        Ensure routes defined with a trailing slash still work without it,
        without issuing an HTTP redirect.
        """
        path = request.scope.get("path", "")
        if path and not path.endswith("/"):
            alt_path = f"{path}/"
            available_paths = {
                getattr(route, "path", None)
                for route in app.router.routes
                if getattr(route, "path", None)
            }
            if alt_path in available_paths:
                request.scope["path"] = alt_path
        response = await call_next(request)
        return response

    run_scheduler = settings.SCHEDULER_ENABLED if start_scheduler is None else start_scheduler

    @app.on_event("startup")
    async def on_startup() -> None:
        configure_logging()
        # Initialize database - creates all tables, enums, indexes, and foreign keys
        await init_database(engine)

        if run_scheduler:
            app.state.scheduler_task = asyncio.create_task(run_recurring_transactions_scheduler())
            logger.info("Recurring transaction scheduler started (every %ss)", settings.SCHEDULER_INTERVAL_SECONDS)

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        task = getattr(app.state, "scheduler_task", None)
        if task is not None:
            task.cancel()

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        return {"status": "healthy", "message": f"{settings.PROJECT_NAME} is running"}

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
