# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Repository base — engine handle and SQLAlchemy error translation.
"""

from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from gatepass.core.errors import ConflictError, PersistenceError
from gatepass.core.logging import get_logger

logger = get_logger(__name__)


class BaseRepository:
    """Holds the injected engine; subclasses own one table each."""

    def __init__(self, engine: Engine):
        self._engine = engine

    @contextmanager
    def _guard(self, action: str):
        """Translate driver errors into ConflictError / PersistenceError."""
        try:
            yield
        except IntegrityError as exc:
            logger.warning("Constraint violated during %s: %s", action, exc.orig)
            raise ConflictError(f"{action} violates a uniqueness constraint") from exc
        except SQLAlchemyError as exc:
            logger.error("Store failure during %s: %s", action, exc)
            raise PersistenceError(f"{action} failed") from exc

    def verify_connection(self) -> None:
        with self._guard("connectivity check"):
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))

    def dispose(self):
        self._engine.dispose()
