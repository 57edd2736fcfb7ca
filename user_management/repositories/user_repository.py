"""Persistence gateway for ``User`` rows."""

import math
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from user_management.models.user import User, UserRole

T = TypeVar('T')
R = TypeVar('R')

SORT_ASC = 'asc'
SORT_DESC = 'desc'

# Largest row offset a signed 64-bit SQL OFFSET can hold.
MAX_OFFSET = 2**63 - 1


@dataclass(frozen=True)
class PageRequest:
    page: int
    size: int
    sort_by: str = 'id'
    direction: str = SORT_ASC

    def __post_init__(self) -> None:
        if self.page < 0:
            raise ValueError('Page index must not be negative.')
        if self.size < 1:
            raise ValueError('Page size must be at least 1.')
        if self.page * self.size > MAX_OFFSET:
            raise ValueError('Page index is too large for the page size.')
        if self.direction not in (SORT_ASC, SORT_DESC):
            raise ValueError(f'Unknown sort direction: {self.direction}')

    @property
    def offset(self) -> int:
        return self.page * self.size


@dataclass
class Page(Generic[T]):
    content: list[T]
    total_elements: int
    page: int
    size: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_elements / self.size)

    def map(self, converter: Callable[[T], R]) -> 'Page[R]':
        return Page(
            content=[converter(item) for item in self.content],
            total_elements=self.total_elements,
            page=self.page,
            size=self.size,
        )


class UserRepository:
    """Lookups and writes against the ``users`` table."""

    def __init__(self, db: Session):
        self.db = db

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def find_by_email(self, email: str) -> User | None:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int) -> User | None:
        return self.db.query(User).filter(User.id == user_id).first()

    def exists_by_id(self, user_id: int) -> bool:
        return self.db.query(User.id).filter(User.id == user_id).first() is not None

    def find_all(self) -> list[User]:
        return self.db.query(User).all()

    def find_all_paged(self, page_request: PageRequest) -> Page[User]:
        return self._paginate(self.db.query(User), page_request)

    def find_paged_by_active(self, active: bool, page_request: PageRequest) -> Page[User]:
        query = self.db.query(User).filter(User.active.is_(active))
        return self._paginate(query, page_request)

    def find_paged_by_role(self, role: UserRole, page_request: PageRequest) -> Page[User]:
        query = self.db.query(User).filter(User.role == role)
        return self._paginate(query, page_request)

    def find_paged_by_active_and_role(
        self,
        active: bool,
        role: UserRole,
        page_request: PageRequest,
    ) -> Page[User]:
        query = self.db.query(User).filter(
            User.active.is_(active),
            User.role == role,
        )
        return self._paginate(query, page_request)

    def save(self, user: User) -> User:
        """Insert or update ``user`` and commit.

        The session is rolled back on failure; a unique email violation
        surfaces as ``IntegrityError``.
        """
        try:
            self.db.add(user)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def delete_by_id(self, user_id: int) -> None:
        user = self.find_by_id(user_id)
        if user is None:
            return

        try:
            self.db.delete(user)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def _paginate(self, query: Query, page_request: PageRequest) -> Page[User]:
        total = query.order_by(None).count()

        column = getattr(User, page_request.sort_by)
        ordering = column.desc() if page_request.direction == SORT_DESC else column.asc()
        order_by = [ordering]
        if page_request.sort_by != 'id':
            order_by.append(User.id.asc())

        rows = (
            query.order_by(*order_by)
            .offset(page_request.offset)
            .limit(page_request.size)
            .all()
        )
        return Page(content=rows, total_elements=total, page=page_request.page, size=page_request.size)
