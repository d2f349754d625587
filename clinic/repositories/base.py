"""Shared helpers for SQLAlchemy-backed repositories."""

from contextlib import contextmanager

from sqlalchemy.exc import InterfaceError, OperationalError

from clinic.core.exceptions import DataSourceUnavailableError
from clinic.core.logging_config import get_logger

logger = get_logger(__name__)


@contextmanager
def translate_db_errors(session, operation: str):
    """Re-raise connectivity failures as DataSourceUnavailableError.

    The session is rolled back first so it stays usable by the caller.
    IntegrityError and other statement errors pass through untouched.
    """
    try:
        yield
    except (OperationalError, InterfaceError) as e:
        session.rollback()
        logger.error(
            f"Data source unavailable during {operation}: {e}",
            extra={"context": {"operation": operation}},
        )
        raise DataSourceUnavailableError(
            f"Data source unavailable during {operation}"
        ) from e
