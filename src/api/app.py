import logging
import time
from contextlib import asynccontextmanager
from typing import Optional
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlmodel import SQLModel
import src.domain  # noqa: F401  registers every table on SQLModel.metadata
from src.api.error import ClientError, client_error_handler
from src.api.routes.invoices import router as invoices_router
from src.app.use_cases.invoicing.errors import ManualReconciliationRequired

logger = logging.getLogger(__name__)


async def manual_reconciliation_handler(
    request: Request, exc: ManualReconciliationRequired
) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": {
                "code": "MANUAL_RECONCILIATION_REQUIRED",
                "message": str(exc),
                "details": {
                    "operation": exc.operation,
                    "invoice_id": exc.invoice_id,
                    "fne_reference": exc.fne_reference,
                },
            }
        },
    )


async def create_tables(engine: AsyncEngine):
    """Create missing tables; existing tables are left untouched"""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


def create_app(config, engine: Optional[AsyncEngine] = None) -> FastAPI:
    logging.basicConfig(
        level=getattr(logging, str(config.LOG_LEVEL).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if engine is None:
        from src.depends import engine

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if config.DB_CREATE_TABLES:
            await create_tables(engine)
            logger.info("Database tables initialized")
        yield
        await engine.dispose()
        logger.info("FNE certification service stopped")

    app = FastAPI(
        title="FNE Certification Service",
        description="Invoice certification and refunds with the FNE authority",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=config.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if config.ENABLE_LOGGING_MIDDLEWARE:
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            start_time = time.time()
            response = await call_next(request)
            elapsed_ms = int((time.time() - start_time) * 1000)
            logger.info(
                f"{request.method} {request.url.path} -> {response.status_code} ({elapsed_ms}ms)"
            )
            return response

    app.add_exception_handler(ClientError, client_error_handler)
    app.add_exception_handler(ManualReconciliationRequired, manual_reconciliation_handler)

    app.include_router(invoices_router, prefix=config.API_PREFIX)

    @app.get("/health", tags=["Health"])
    async def health():
        return {"status": "ok"}

    return app
