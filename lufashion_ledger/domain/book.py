"""
Ledger book: the in-memory set of customer notas for one application session.

Every mutation runs in two phases under the customer's lock:
1. Compute the new customer value with the pure ledger functions
2. Try the durable write, then commit the new value locally whether or not
   the write succeeded

The returned LedgerResult says whether the write went through, so callers can
warn the user. Reloading from the store only happens on load()/refresh().
"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterator, List, Optional, Protocol

from lufashion_ledger.domain import ledger
from lufashion_ledger.domain.aggregation import compute_stats
from lufashion_ledger.domain.exceptions import CustomerNotFoundError, PersistenceUnavailableError
from lufashion_ledger.domain.models import (
    AggregateStats,
    Customer,
    LedgerChange,
    LedgerOutcome,
    LedgerResult,
    OverdueEntry,
    Transaction,
)
from lufashion_ledger.domain.overdue import (
    DEFAULT_DUE_SOON_DAYS,
    OverdueWatcher,
    list_due_soon,
    list_overdue,
)

logger = logging.getLogger(__name__)


class LedgerRepository(Protocol):
    """Durable store for customers and their transactions"""

    def load_customers(self) -> List[Customer]: ...

    def save_change(
        self,
        customer: Customer,
        transaction: Optional[Transaction] = None,
        removed_transaction_id: Optional[str] = None,
    ) -> None: ...

    def delete_customer(self, customer_id: str) -> None: ...


class LedgerBook:
    """Customer notas with per-customer locking and best-effort persistence"""

    def __init__(
        self,
        repository: Optional[LedgerRepository] = None,
        today: Optional[Callable[[], date]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
        opening_charge_description: str = "Nota inicial",
    ):
        self.repository = repository
        self._today = today or date.today
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.due_soon_days = due_soon_days
        self.opening_charge_description = opening_charge_description

        self._customers: Dict[str, Customer] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._registry_lock = threading.Lock()
        self._watcher = OverdueWatcher()

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def load(self) -> int:
        """
        Replace in-memory state with the store's contents.

        Raises:
            PersistenceUnavailableError: If the store cannot be read; the
                current in-memory state is kept in that case
        """
        if self.repository is None:
            return len(self._customers)

        customers = self.repository.load_customers()
        with self._registry_lock:
            self._customers = {c.id: c for c in customers}
            self._locks = {c.id: self._locks.get(c.id) or threading.Lock() for c in customers}

        logger.info("Loaded customers from store", extra={"customer_count": len(customers)})
        return len(customers)

    refresh = load

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self, customer_id: str) -> Iterator[Customer]:
        with self._registry_lock:
            lock = self._locks.get(customer_id)
        if lock is None:
            raise CustomerNotFoundError(customer_id)

        with lock:
            # Customer may have been removed while we waited for the lock
            customer = self._customers.get(customer_id)
            if customer is None:
                raise CustomerNotFoundError(customer_id)
            yield customer

    def _persist(self, operation: str, customer_id: str, write: Callable[[], None]) -> Optional[str]:
        if self.repository is None:
            return None
        try:
            write()
        except PersistenceUnavailableError as e:
            logger.warning(
                f"Persistence failed, keeping local state: {e}",
                extra={"operation": operation, "customer_id": customer_id},
            )
            return str(e)
        return None

    def _commit(self, operation: str, change: LedgerChange) -> LedgerResult:
        customer = change.customer
        txn_id = change.transaction.id if change.transaction else change.removed_transaction_id

        if change.outcome != LedgerOutcome.APPLIED:
            return LedgerResult(outcome=change.outcome, customer_id=customer.id, transaction_id=txn_id)

        error = self._persist(
            operation,
            customer.id,
            lambda: self.repository.save_change(
                customer,
                transaction=change.transaction,
                removed_transaction_id=change.removed_transaction_id,
            ),
        )
        with self._registry_lock:
            self._customers[customer.id] = customer

        problems = ledger.balance_discrepancies(customer)
        if problems:
            logger.warning(
                "Customer balances inconsistent after update",
                extra={"operation": operation, "customer_id": customer.id, "problems": problems},
            )

        return LedgerResult(
            outcome=change.outcome,
            customer_id=customer.id,
            transaction_id=txn_id,
            persisted=error is None,
            persistence_error=error,
        )

    # ------------------------------------------------------------------
    # Customer operations
    # ------------------------------------------------------------------

    def create_customer(
        self,
        name: str,
        opening_amount_cents: int,
        phone: Optional[str] = None,
        due_date: Optional[date] = None,
    ) -> LedgerResult:
        change = ledger.open_account(
            name,
            opening_amount_cents,
            description=self.opening_charge_description,
            phone=phone,
            due_date=due_date,
            now=self._clock(),
        )
        # The id is fresh, nobody else can contend for this lock yet
        with self._registry_lock:
            self._locks[change.customer.id] = threading.Lock()
        return self._commit("create_customer", change)

    def remove_customer(self, customer_id: str) -> LedgerResult:
        with self._locked(customer_id):
            error = self._persist(
                "remove_customer",
                customer_id,
                lambda: self.repository.delete_customer(customer_id),
            )
            with self._registry_lock:
                del self._customers[customer_id]
                del self._locks[customer_id]

        return LedgerResult(
            outcome=LedgerOutcome.APPLIED,
            customer_id=customer_id,
            persisted=error is None,
            persistence_error=error,
        )

    def _update_profile(self, operation: str, customer_id: str, **fields) -> LedgerResult:
        with self._locked(customer_id) as customer:
            updated = replace(customer, **fields)
            outcome = LedgerOutcome.UNCHANGED if updated == customer else LedgerOutcome.APPLIED
            return self._commit(operation, LedgerChange(customer=updated, outcome=outcome))

    def rename_customer(self, customer_id: str, name: str) -> LedgerResult:
        return self._update_profile("rename_customer", customer_id, name=ledger.validate_name(name))

    def set_phone(self, customer_id: str, phone: Optional[str]) -> LedgerResult:
        return self._update_profile("set_phone", customer_id, phone=phone or None)

    def set_due_date(self, customer_id: str, due_date: Optional[date]) -> LedgerResult:
        return self._update_profile("set_due_date", customer_id, due_date=due_date)

    # ------------------------------------------------------------------
    # Ledger operations
    # ------------------------------------------------------------------

    def record_charge(self, customer_id: str, amount_cents: int, description: Optional[str] = None) -> LedgerResult:
        ledger.validate_amount(amount_cents)
        with self._locked(customer_id) as customer:
            change = ledger.record_charge(customer, amount_cents, description, now=self._clock())
            return self._commit("record_charge", change)

    def record_payment(self, customer_id: str, amount_cents: int, description: Optional[str] = None) -> LedgerResult:
        ledger.validate_amount(amount_cents)
        with self._locked(customer_id) as customer:
            change = ledger.record_payment(customer, amount_cents, description, now=self._clock())
            return self._commit("record_payment", change)

    def edit_transaction(
        self,
        customer_id: str,
        transaction_id: str,
        new_amount_cents: int,
        new_description: Optional[str] = None,
    ) -> LedgerResult:
        ledger.validate_amount(new_amount_cents)
        with self._locked(customer_id) as customer:
            change = ledger.edit_transaction(customer, transaction_id, new_amount_cents, new_description)
            return self._commit("edit_transaction", change)

    def remove_transaction(self, customer_id: str, transaction_id: str) -> LedgerResult:
        with self._locked(customer_id) as customer:
            change = ledger.remove_transaction(customer, transaction_id)
            return self._commit("remove_transaction", change)

    # ------------------------------------------------------------------
    # Read accessors
    # ------------------------------------------------------------------

    def today(self) -> date:
        return self._today()

    def _snapshot(self) -> List[Customer]:
        with self._registry_lock:
            return list(self._customers.values())

    def get_customer(self, customer_id: str) -> Customer:
        with self._registry_lock:
            customer = self._customers.get(customer_id)
        if customer is None:
            raise CustomerNotFoundError(customer_id)
        return customer

    def list_customers(self, name_filter: Optional[str] = None) -> List[Customer]:
        """Customers newest first, optionally filtered by case-insensitive name match"""
        customers = self._snapshot()
        if name_filter:
            needle = name_filter.lower()
            customers = [c for c in customers if needle in c.name.lower()]
        return sorted(customers, key=lambda c: c.created_at, reverse=True)

    def list_overdue(self, today: Optional[date] = None) -> List[OverdueEntry]:
        return list_overdue(self._snapshot(), today or self._today())

    def list_due_soon(self, today: Optional[date] = None) -> List[Customer]:
        return list_due_soon(self._snapshot(), today or self._today(), self.due_soon_days)

    def newly_overdue(self, today: Optional[date] = None) -> List[OverdueEntry]:
        """Customers that became overdue since the previous call"""
        return self._watcher.poll(self._snapshot(), today or self._today())

    def release_overdue(self, customer_id: str) -> None:
        """Report the customer again on the next newly_overdue call"""
        self._watcher.release(customer_id)

    def get_aggregate_stats(self) -> AggregateStats:
        return compute_stats(self._snapshot())
