"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from royalty_ledger import __version__
from royalty_ledger.api.routes import batches_router, health_router, ledger_router
from royalty_ledger.database import dispose_db, init_db
from royalty_ledger.reconciliation.completeness import BatchProcessError, ProcessErrorKind
from royalty_ledger.services.cache import InMemoryLedgerCache
from royalty_ledger.services.reconciliation_service import BatchNotFoundError

logger = logging.getLogger(__name__)

PROCESS_ERROR_STATUS = {
    ProcessErrorKind.NOT_READY: status.HTTP_409_CONFLICT,
    ProcessErrorKind.INVALID_PERIOD: status.HTTP_422_UNPROCESSABLE_ENTITY,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    init_db()
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Royalty Ledger API",
        description="Quarterly balance ledger and batch reconciliation",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.ledger_cache = InMemoryLedgerCache()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(BatchNotFoundError)
    async def batch_not_found_handler(
        request: Request, exc: BatchNotFoundError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"detail": "Reconciliation batch not found", "code": "NOT_FOUND"},
        )

    @app.exception_handler(BatchProcessError)
    async def batch_process_error_handler(
        request: Request, exc: BatchProcessError
    ) -> JSONResponse:
        """Map processing refusals to 409 (not ready) or 422 (bad period)."""
        return JSONResponse(
            status_code=PROCESS_ERROR_STATUS[exc.kind],
            content={"detail": exc.message, "code": exc.kind.value},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    app.include_router(health_router)
    app.include_router(ledger_router, prefix="/api/v1")
    app.include_router(batches_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
