"""Unit tests for the SQL repository against the SQLite test database"""

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.domain.exceptions import PersistenceUnavailableError
from lufashion_ledger.domain.models import TransactionKind
from lufashion_ledger.infrastructure.database.models import CustomerRecord, TransactionRecord
from lufashion_ledger.infrastructure.database.repositories import SqlLedgerRepository


def reload(repository: SqlLedgerRepository) -> LedgerBook:
    fresh = LedgerBook(repository=repository, today=lambda: date(2024, 6, 15))
    fresh.load()
    return fresh


def test_changes_survive_reload(book: LedgerBook, repository: SqlLedgerRepository):
    customer_id = book.create_customer("Ana", 20000, phone="77 98108-8587", due_date=date(2024, 6, 20)).customer_id
    charge = book.record_charge(customer_id, 3000, "blusa")
    payment = book.record_payment(customer_id, 5000)
    book.edit_transaction(customer_id, charge.transaction_id, 4000, "blusa + cinto")

    assert payment.persisted is True

    stored = reload(repository).get_customer(customer_id)
    original = book.get_customer(customer_id)

    assert stored.name == "Ana"
    assert stored.phone == "77 98108-8587"
    assert stored.due_date == date(2024, 6, 20)
    assert stored.total_billed_cents == 24000
    assert stored.pending_balance_cents == 19000
    assert stored.settled_amount_cents == 5000
    assert [t.id for t in stored.transactions] == [t.id for t in original.transactions]
    assert stored.transactions[1].description == "blusa + cinto"
    assert stored.transactions[0].kind == TransactionKind.PAYMENT
    assert stored.transactions[0].occurred_at == original.transactions[0].occurred_at


def test_removed_transaction_is_deleted(book: LedgerBook, repository: SqlLedgerRepository):
    customer_id = book.create_customer("Ana", 20000).customer_id
    charge = book.record_charge(customer_id, 3000)

    book.remove_transaction(customer_id, charge.transaction_id)

    db: Session = repository.session_factory()
    try:
        assert db.get(TransactionRecord, charge.transaction_id) is None
        assert db.get(CustomerRecord, customer_id).total_billed_cents == 20000
    finally:
        db.close()


def test_delete_customer_cascades_to_transactions(book: LedgerBook, repository: SqlLedgerRepository):
    customer_id = book.create_customer("Ana", 20000).customer_id
    book.record_charge(customer_id, 3000)

    result = book.remove_customer(customer_id)

    assert result.persisted is True
    db: Session = repository.session_factory()
    try:
        assert db.get(CustomerRecord, customer_id) is None
        assert db.query(TransactionRecord).filter(TransactionRecord.customer_id == customer_id).count() == 0
    finally:
        db.close()


def test_profile_updates_are_stored(book: LedgerBook, repository: SqlLedgerRepository):
    customer_id = book.create_customer("Ana", 1000, phone="123", due_date=date(2024, 7, 1)).customer_id
    book.rename_customer(customer_id, "Ana Clara")
    book.set_phone(customer_id, None)
    book.set_due_date(customer_id, None)

    stored = reload(repository).get_customer(customer_id)
    assert stored.name == "Ana Clara"
    assert stored.phone is None
    assert stored.due_date is None


def test_load_orders_customers_newest_first(book: LedgerBook, repository: SqlLedgerRepository):
    for name in ["Ana", "Bia", "Carla"]:
        book.create_customer(name, 1000)

    assert [c.name for c in reload(repository).list_customers()] == ["Carla", "Bia", "Ana"]


def test_database_errors_become_persistence_unavailable():
    """Tables missing: every call fails, the book keeps working locally"""
    broken = SqlLedgerRepository(sessionmaker(bind=create_engine("sqlite://")))

    with pytest.raises(PersistenceUnavailableError):
        broken.load_customers()

    book = LedgerBook(repository=broken, today=lambda: date(2024, 6, 15))
    created = book.create_customer("Ana", 1000)
    charge = book.record_charge(created.customer_id, 500)

    assert created.persisted is False
    assert charge.persisted is False
    assert "OperationalError" in charge.persistence_error
    assert book.get_customer(created.customer_id).total_billed_cents == 1500
