# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Database engine for the gate store.

One pooled engine per process. Each connection is tagged with the service
name and a statement timeout so a slow query cannot hold a guard's request
open indefinitely.
"""

from sqlalchemy import create_engine
from gatepass.core.config import settings

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.DB_POOL_SIZE,
    max_overflow=settings.DB_MAX_OVERFLOW,
    pool_recycle=settings.DB_POOL_RECYCLE,
    connect_args={
        "application_name": settings.SERVICE_NAME,
        "options": f"-c statement_timeout={settings.DB_STATEMENT_TIMEOUT_MS}",
    },
)
