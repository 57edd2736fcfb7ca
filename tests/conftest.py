import os

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

from user_management.database import Base  # noqa: E402
from user_management.models.user import User, UserRole  # noqa: E402


@pytest.fixture
def session_factory():
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine, tables=[User.__table__])
    try:
        yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    finally:
        Base.metadata.drop_all(bind=engine, tables=[User.__table__])
        engine.dispose()


@pytest.fixture
def user_db(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def seeded_users(user_db):
    """Users A (active USER), B (inactive ADMIN) and C (active ADMIN), inserted in that order."""
    users = [
        User(name='Alice', email='alice@example.com', role=UserRole.USER, active=True),
        User(name='Bob', email='bob@example.com', role=UserRole.ADMIN, active=False),
        User(name='Carol', email='carol@example.com', role=UserRole.ADMIN, active=True),
    ]
    user_db.add_all(users)
    user_db.commit()
    for user in users:
        user_db.refresh(user)
    return users
