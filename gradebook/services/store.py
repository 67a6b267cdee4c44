"""Transaction helpers shared by the services.

Store outages surface as ``TransientFailure`` so callers can tell a
connectivity problem from a rejected request.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import DBAPIError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from gradebook.errors import TransientFailure

logger = logging.getLogger(__name__)


def _is_outage(exc: Exception) -> bool:
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    return isinstance(exc, DBAPIError) and exc.connection_invalidated


@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """Commit on success; roll back everything on any failure."""

    try:
        yield db
        db.commit()
    except Exception as exc:
        db.rollback()
        if _is_outage(exc):
            logger.warning("Store unavailable during write", exc_info=True)
            raise TransientFailure() from exc
        raise


@contextmanager
def reading(db: Session) -> Iterator[Session]:
    """Read-only scope with the same outage translation as ``transaction``."""

    try:
        yield db
    except Exception as exc:
        if _is_outage(exc):
            db.rollback()
            logger.warning("Store unavailable during read", exc_info=True)
            raise TransientFailure() from exc
        raise
