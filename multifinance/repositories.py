"""Data access for consumers, limits and transactions."""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, Optional, TypeVar

from sqlalchemy import Select, literal_column, select
from sqlalchemy.orm import Session

from multifinance.models import Base, Konsumen, Limit, RecordTransaction

_DIGITS = re.compile(r"[+-]?[0-9]+")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INT64_LIMIT = 2**63

ModelT = TypeVar("ModelT", bound=Base)


class RecordNotFound(LookupError):
    """Raised when a requested record does not exist."""

    def __init__(self, message: str = "record not found") -> None:
        super().__init__(message)


def _atoi(text: Optional[str]) -> int:
    if not text or not _DIGITS.fullmatch(text):
        return 0
    value = int(text)
    return value if -_INT64_LIMIT <= value < _INT64_LIMIT else 0


@dataclass(frozen=True)
class PageParams:
    """Pagination and ordering of a listing."""

    page: int = 1
    page_size: int = 10
    sort: str = "id"
    direction: str = "desc"

    MAX_PAGE_SIZE: ClassVar[int] = 100

    def __post_init__(self) -> None:
        if not _IDENTIFIER.fullmatch(self.sort):
            raise ValueError(f"invalid sort column: {self.sort!r}")
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"invalid sort direction: {self.direction!r}")

    @classmethod
    def from_query(cls, args: Mapping[str, str]) -> "PageParams":
        """Read page, page_size, sort and direction from query arguments."""
        page = _atoi(args.get("page"))
        if page <= 0:
            page = 1
        page_size = _atoi(args.get("page_size"))
        if page_size > cls.MAX_PAGE_SIZE:
            page_size = cls.MAX_PAGE_SIZE
        elif page_size <= 0:
            page_size = 10
        sort = args.get("sort") or "id"
        direction = args.get("direction")
        if direction not in ("asc", "desc"):
            direction = "desc"
        return cls(page=page, page_size=page_size, sort=sort, direction=direction)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def apply(self, statement: Select) -> Select:
        """Add ordering, offset and limit to a select statement."""
        column = literal_column(self.sort)
        order = column.asc() if self.direction == "asc" else column.desc()
        return statement.order_by(order).offset(self.offset).limit(self.page_size)


class _Repository(Generic[ModelT]):
    model: ClassVar[type[Base]]

    def __init__(self, session: Session) -> None:
        self.session = session

    def _all(self, statement: Optional[Select] = None) -> list[ModelT]:
        if statement is None:
            statement = select(self.model).order_by(self.model.id)
        return list(self.session.scalars(statement))

    def _get(self, pk: int) -> ModelT:
        found = self.session.get(self.model, pk)
        if found is None:
            raise RecordNotFound()
        return found

    def _commit(self) -> None:
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise

    def _store(self, instance: ModelT) -> ModelT:
        try:
            merged = self.session.merge(instance)
        except Exception:
            self.session.rollback()
            raise
        self._commit()
        return merged

    def _remove(self, instance: ModelT) -> None:
        pk: Any = instance.id
        if pk is None:
            raise ValueError("cannot delete a record without a primary key")
        target = self.session.get(self.model, pk)
        if target is None:
            return
        self.session.delete(target)
        self._commit()


class KonsumenRepository(_Repository[Konsumen]):
    """Storage of consumers."""

    model = Konsumen

    def find_all(self, page: Optional[PageParams] = None) -> list[Konsumen]:
        """Return one page of consumers."""
        page = page or PageParams()
        return self._all(page.apply(select(Konsumen)))

    def find_by_id(self, konsumen_id: int) -> Konsumen:
        """Return the consumer with this id or raise RecordNotFound."""
        return self._get(konsumen_id)

    def save(self, konsumen: Konsumen) -> Konsumen:
        """Insert or update a consumer and return the stored instance."""
        return self._store(konsumen)

    def update(self, konsumen: Konsumen) -> Konsumen:
        """Persist changes to a consumer and return the stored instance."""
        return self._store(konsumen)

    def delete(self, konsumen: Konsumen) -> None:
        """Delete a consumer by its primary key."""
        self._remove(konsumen)

    def find_by_nik(self, nik: str) -> Optional[Konsumen]:
        """Return the consumer with this NIK, or None when there is none."""
        statement = select(Konsumen).where(Konsumen.nik == nik).order_by(Konsumen.id).limit(1)
        return self.session.scalars(statement).first()


class LimitRepository(_Repository[Limit]):
    """Storage of credit limits."""

    model = Limit

    def find_all(self) -> list[Limit]:
        """Return every limit."""
        return self._all()

    def find_by_id(self, limit_id: int) -> Limit:
        """Return the limit with this id or raise RecordNotFound."""
        return self._get(limit_id)

    def save(self, limit: Limit) -> Limit:
        """Insert or update a limit and return the stored instance."""
        return self._store(limit)

    def update(self, limit: Limit) -> Limit:
        """Persist changes to a limit and return the stored instance."""
        return self._store(limit)

    def delete(self, limit: Limit) -> None:
        """Delete a limit by its primary key."""
        self._remove(limit)

    def find_by_konsumen_tenor(self, konsumen_id: int, tenor: int) -> Limit:
        """Return the consumer's limit for a tenor or raise RecordNotFound."""
        statement = (
            select(Limit)
            .where(Limit.konsumen_id == konsumen_id, Limit.tenor == tenor)
            .order_by(Limit.id)
            .limit(1)
        )
        found = self.session.scalars(statement).first()
        if found is None:
            raise RecordNotFound()
        return found


class RecordTransactionRepository(_Repository[RecordTransaction]):
    """Storage of recorded transactions."""

    model = RecordTransaction

    def find_all(self) -> list[RecordTransaction]:
        """Return every transaction."""
        return self._all()

    def find_by_id(self, transaction_id: int) -> RecordTransaction:
        """Return the transaction with this id or raise RecordNotFound."""
        return self._get(transaction_id)

    def save(self, transaction: RecordTransaction) -> RecordTransaction:
        """Insert or update a transaction and return the stored instance."""
        return self._store(transaction)

    def find_by_konsumen_id(self, konsumen_id: int) -> list[RecordTransaction]:
        """Return all transactions of a consumer."""
        statement = (
            select(RecordTransaction)
            .where(RecordTransaction.konsumen_id == konsumen_id)
            .order_by(RecordTransaction.id)
        )
        return self._all(statement)