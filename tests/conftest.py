"""Pytest fixtures for testing"""

import itertools
import pytest
from datetime import date, datetime, timedelta, timezone
from typing import Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from lufashion_ledger.api.main import create_app
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.domain.exceptions import PersistenceUnavailableError
from lufashion_ledger.domain.models import Customer, Transaction
from lufashion_ledger.infrastructure.database.models import Base
from lufashion_ledger.infrastructure.database.repositories import SqlLedgerRepository


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 6, 15)


class StepClock:
    """Deterministic clock: each call is one second after the previous"""

    def __init__(self, start: datetime = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)):
        self.start = start
        self._ticks = itertools.count()

    def __call__(self) -> datetime:
        return self.start + timedelta(seconds=next(self._ticks))


class FailingRepository:
    """Store that is always down"""

    def __init__(self) -> None:
        self.calls = 0

    def load_customers(self) -> List[Customer]:
        raise PersistenceUnavailableError("store offline")

    def save_change(
        self,
        customer: Customer,
        transaction: Optional[Transaction] = None,
        removed_transaction_id: Optional[str] = None,
    ) -> None:
        self.calls += 1
        raise PersistenceUnavailableError("store offline")

    def delete_customer(self, customer_id: str) -> None:
        self.calls += 1
        raise PersistenceUnavailableError("store offline")


@pytest.fixture
def db_tables() -> Generator[None, None, None]:
    """Create test database tables"""
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def repository(db_tables) -> SqlLedgerRepository:
    return SqlLedgerRepository(TestingSessionLocal)


@pytest.fixture
def book(repository: SqlLedgerRepository) -> LedgerBook:
    """Book backed by the SQLite test database"""
    return LedgerBook(repository=repository, today=lambda: TODAY, clock=StepClock())


@pytest.fixture
def memory_book() -> LedgerBook:
    """Book with no store behind it"""
    return LedgerBook(today=lambda: TODAY, clock=StepClock())


@pytest.fixture
def offline_book() -> LedgerBook:
    return LedgerBook(repository=FailingRepository(), today=lambda: TODAY, clock=StepClock())


@pytest.fixture
def client(book: LedgerBook) -> TestClient:
    """Create FastAPI test client with a SQLite-backed book"""
    return TestClient(create_app(book))
