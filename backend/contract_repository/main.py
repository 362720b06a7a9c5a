# ruff: noqa: I001

import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import OperationalError

from contract_repository import models  # noqa: F401  (registers mappers)
from contract_repository.api.router import api_router
from contract_repository.config import settings
from contract_repository.core.errors import ContractRepositoryError
from contract_repository.core.observability import (
    business_error_handler,
    global_exception_handler,
    request_logging_middleware,
)
from contract_repository.database import SessionLocal, engine
from contract_repository.services.contract_types import seed_standard_contract_types

api_prefix = (
    settings.api_prefix
    if settings.api_prefix.startswith("/")
    else f"/{settings.api_prefix}"
    if settings.api_prefix
    else ""
)

logger = logging.getLogger("contract_repository")
logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

app = FastAPI(
    title=settings.app_name,
    docs_url="/docs" if settings.enable_docs else None,
    redoc_url="/redoc" if settings.enable_docs else None,
    openapi_url=(f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
    if settings.enable_docs
    else None,
)

# Expose logger for middleware without creating circular imports.
app.state.logger = logger

app.add_exception_handler(ContractRepositoryError, business_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Request-level logging + request correlation id.
app.middleware("http")(request_logging_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=api_prefix)


def _run_migrations_if_configured() -> None:
    if not settings.run_migrations_on_start:
        return

    # Tests build their schema from the models.
    if (settings.environment or "").lower() == "test":
        return

    from alembic import command
    from alembic.config import Config

    backend_root = Path(__file__).resolve().parents[1]
    alembic_cfg = Config(str(backend_root / "alembic.ini"))

    try:
        from sqlalchemy.engine.url import make_url

        url_obj = make_url(str(settings.database_url))
        logger.info(
            "migrations_db_target driver=%s host=%s port=%s db=%s",
            url_obj.drivername,
            url_obj.host,
            url_obj.port,
            url_obj.database,
        )
        command.upgrade(alembic_cfg, "head")
        logger.info("migrations_applied")
    except Exception as e:
        # Don't crash the API if migrations fail; endpoints that need the DB will error out.
        logger.error("migrations_failed error=%s", str(e))


def _seed_reference_data() -> None:
    env = str(settings.environment or "dev").lower()
    if not settings.seed_reference_data or env == "test":
        return

    db = SessionLocal()
    try:
        created = seed_standard_contract_types(db)
        if created:
            logger.info(
                "contract_types_seeded",
                extra={"type_codes": [t.type_code for t in created]},
            )
    except OperationalError as e:
        # Tables not created yet; don't block startup.
        logger.warning("contract_type_seed_failed", extra={"error": str(e)})
        db.rollback()
    finally:
        db.close()


@app.on_event("startup")
def _startup():
    logger.info(
        "runtime_config",
        extra={
            "pid": os.getpid(),
            "environment": settings.environment,
            "core_banking_type": settings.core_banking_type,
            "db_dialect": engine.dialect.name,
        },
    )
    _run_migrations_if_configured()
    _seed_reference_data()


@app.get("/", tags=["meta"])
def root():
    docs_path = (
        (f"{api_prefix}/openapi.json" if api_prefix else "/openapi.json")
        if settings.enable_docs
        else None
    )
    return {"message": settings.app_name, "docs": docs_path}
