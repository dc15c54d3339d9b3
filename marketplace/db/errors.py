import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from marketplace.core.errors import ProviderError

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(db: Session, operation: str) -> Iterator[None]:
    """Roll back and raise ``ProviderError`` when the store fails unexpectedly."""
    try:
        yield
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Store failure during %s", operation)
        raise ProviderError() from None
