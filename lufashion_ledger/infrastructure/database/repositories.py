"""Data access layer for customers and transactions"""

import logging
from typing import List, Optional
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload, sessionmaker
from lufashion_ledger.infrastructure.database.models import CustomerRecord, TransactionRecord
from lufashion_ledger.domain.exceptions import PersistenceUnavailableError
from lufashion_ledger.domain.models import Customer, Transaction, TransactionKind
from lufashion_ledger.utils.date_utils import ensure_utc

logger = logging.getLogger(__name__)


def _to_domain(record: CustomerRecord) -> Customer:
    transactions = [
        Transaction(
            id=t.id,
            occurred_at=ensure_utc(t.occurred_at),
            amount_cents=t.amount_cents,
            kind=TransactionKind(t.kind),
            description=t.description,
        )
        for t in record.transactions
    ]
    transactions.sort(key=lambda t: t.occurred_at, reverse=True)

    return Customer(
        id=record.id,
        name=record.name,
        created_at=ensure_utc(record.created_at),
        total_billed_cents=record.total_billed_cents,
        pending_balance_cents=record.pending_balance_cents,
        settled_amount_cents=record.settled_amount_cents,
        phone=record.phone,
        due_date=record.due_date,
        transactions=transactions,
    )


class SqlLedgerRepository:
    """
    Repository for customer notas.

    Each call runs in its own session and commits on success. Any database
    failure is rolled back and raised as PersistenceUnavailableError.
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def _write(self, action: str, work) -> None:
        db: Session = self.session_factory()
        try:
            work(db)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Database error during {action}: {e}")
            raise PersistenceUnavailableError(f"Could not {action}: {e.__class__.__name__}") from e
        finally:
            db.close()

    def load_customers(self) -> List[Customer]:
        """Fetch every customer with its transactions attached"""
        db: Session = self.session_factory()
        try:
            records = (
                db.query(CustomerRecord)
                .options(selectinload(CustomerRecord.transactions))
                .order_by(CustomerRecord.created_at.desc())
                .all()
            )
            return [_to_domain(r) for r in records]
        except SQLAlchemyError as e:
            logger.error(f"Database error while loading customers: {e}")
            raise PersistenceUnavailableError(f"Could not load customers: {e.__class__.__name__}") from e
        finally:
            db.close()

    def save_change(
        self,
        customer: Customer,
        transaction: Optional[Transaction] = None,
        removed_transaction_id: Optional[str] = None,
    ) -> None:
        """Upsert the customer row plus the touched transaction in one commit"""

        def work(db: Session) -> None:
            db_customer = db.get(CustomerRecord, customer.id)
            if db_customer is None:
                db_customer = CustomerRecord(id=customer.id, created_at=customer.created_at)
                db.add(db_customer)

            db_customer.name = customer.name
            db_customer.phone = customer.phone
            db_customer.due_date = customer.due_date
            db_customer.total_billed_cents = customer.total_billed_cents
            db_customer.pending_balance_cents = customer.pending_balance_cents
            db_customer.settled_amount_cents = customer.settled_amount_cents
            db.flush()  # Customer row must exist before its transactions

            if transaction is not None:
                db_txn = db.get(TransactionRecord, transaction.id)
                if db_txn is None:
                    db_txn = TransactionRecord(
                        id=transaction.id,
                        customer_id=customer.id,
                        occurred_at=transaction.occurred_at,
                        kind=transaction.kind.value,
                    )
                    db.add(db_txn)
                db_txn.amount_cents = transaction.amount_cents
                db_txn.description = transaction.description

            if removed_transaction_id is not None:
                db.query(TransactionRecord).filter(TransactionRecord.id == removed_transaction_id).delete()

        self._write("save customer", work)

    def delete_customer(self, customer_id: str) -> None:
        """Delete a customer; transactions go with it"""

        def work(db: Session) -> None:
            db_customer = db.get(CustomerRecord, customer_id)
            if db_customer is not None:
                db.delete(db_customer)

        self._write("delete customer", work)
