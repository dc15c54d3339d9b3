"""Lazy listings of reviewable entities by status."""

from typing import Iterator, Type

from sqlalchemy.orm import Session

from .states import ReviewState


class StatusListing:
    """
    Finite, restartable sequence of entities in one review state.

    Nothing is queried until iteration starts; every new iteration re-runs
    the query page by page, so a listing reflects the store at the time it
    is walked. Pending queues are ordered newest submission first, decided
    entities most recently decided first.
    """

    def __init__(self, db: Session, model: Type, status: ReviewState, *, page_size: int = 50):
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self.db = db
        self.model = model
        self.status = ReviewState(status)
        self.page_size = page_size

    def _query(self):
        query = self.db.query(self.model).filter(self.model.status == self.status.value)
        if self.status == ReviewState.PENDING:
            return query.order_by(self.model.created_at.desc(), self.model.id)
        return query.order_by(self.model.updated_at.desc(), self.model.id)

    def __iter__(self) -> Iterator:
        offset = 0
        while True:
            batch = self._query().offset(offset).limit(self.page_size).all()
            yield from batch
            if len(batch) < self.page_size:
                return
            offset += self.page_size

    def count(self) -> int:
        return self.db.query(self.model).filter(self.model.status == self.status.value).count()

    def page(self, page: int = 1, per_page: int = 20) -> list:
        """Return one page (1-based) of the listing."""
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be positive")
        return self._query().offset((page - 1) * per_page).limit(per_page).all()

    def __repr__(self) -> str:
        return f"<StatusListing {self.model.__name__} [{self.status.value}]>"
