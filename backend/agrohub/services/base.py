"""
Shared helpers for database-backed services.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from agrohub.core.exceptions import UnavailableError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def translate_db_errors(operation: str) -> AsyncIterator[None]:
    """Wrap unexpected database failures as UnavailableError.

    IntegrityError propagates unchanged so callers can map constraint
    violations to domain errors.
    """
    try:
        yield
    except IntegrityError:
        raise
    except SQLAlchemyError as e:
        logger.error(f"Database error during {operation}: {e}")
        raise UnavailableError(f"Database error during {operation}: {e}") from e
