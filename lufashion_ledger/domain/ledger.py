"""
Ledger engine: how charges and payments move a customer's balances.

All functions are pure. They take a Customer value and return a LedgerChange
holding the new Customer value; the input is never modified. Committing the
change (and persisting it) is the book's job.

Balance rules:
- Charge: total_billed += amount, pending += amount
- Payment: clamped to the pending balance; pending -= paid, settled += paid
- Edit: applies the difference between new and old amount, no clamping
- Removal: reverses the original contribution, no clamping
"""

import uuid
from dataclasses import replace
from datetime import date, datetime, timezone
from typing import List, Optional

from lufashion_ledger.domain.exceptions import (
    InvalidAmountError,
    InvalidCustomerDataError,
    TransactionNotFoundError,
)
from lufashion_ledger.domain.models import (
    Customer,
    LedgerChange,
    LedgerOutcome,
    Transaction,
    TransactionKind,
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


def validate_amount(amount_cents) -> int:
    """
    Check that an amount is a strictly positive integer number of cents.

    Raises:
        InvalidAmountError: On zero, negative, non-integer or boolean input
    """
    if isinstance(amount_cents, bool) or not isinstance(amount_cents, int):
        raise InvalidAmountError(f"Amount must be an integer number of cents, got {amount_cents!r}")
    if amount_cents <= 0:
        raise InvalidAmountError(f"Amount must be positive, got {amount_cents}")
    return amount_cents


def validate_name(name: Optional[str]) -> str:
    if name is None or not name.strip():
        raise InvalidCustomerDataError("Customer name must not be blank")
    return name.strip()


def find_transaction(customer: Customer, transaction_id: str) -> Transaction:
    for txn in customer.transactions:
        if txn.id == transaction_id:
            return txn
    raise TransactionNotFoundError(customer.id, transaction_id)


def open_account(
    name: str,
    opening_amount_cents: int,
    description: str,
    phone: Optional[str] = None,
    due_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> LedgerChange:
    """
    Create a customer whose nota starts with one opening charge.

    Raises:
        InvalidCustomerDataError: If the name is blank
        InvalidAmountError: If the opening amount is not positive
    """
    name = validate_name(name)
    amount = validate_amount(opening_amount_cents)
    now = now or _now()

    opening = Transaction(
        id=_new_id(),
        occurred_at=now,
        amount_cents=amount,
        kind=TransactionKind.CHARGE,
        description=description,
    )
    customer = Customer(
        id=_new_id(),
        name=name,
        created_at=now,
        total_billed_cents=amount,
        pending_balance_cents=amount,
        settled_amount_cents=0,
        phone=phone,
        due_date=due_date,
        transactions=[opening],
    )
    return LedgerChange(customer=customer, outcome=LedgerOutcome.APPLIED, transaction=opening)


def record_charge(
    customer: Customer,
    amount_cents: int,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LedgerChange:
    """Add a charge ("adição") to the customer's nota"""
    amount = validate_amount(amount_cents)

    txn = Transaction(
        id=_new_id(),
        occurred_at=now or _now(),
        amount_cents=amount,
        kind=TransactionKind.CHARGE,
        description=description,
    )
    updated = replace(
        customer,
        total_billed_cents=customer.total_billed_cents + amount,
        pending_balance_cents=customer.pending_balance_cents + amount,
        transactions=[txn] + customer.transactions,
    )
    return LedgerChange(customer=updated, outcome=LedgerOutcome.APPLIED, transaction=txn)


def record_payment(
    customer: Customer,
    amount_cents: int,
    description: Optional[str] = None,
    now: Optional[datetime] = None,
) -> LedgerChange:
    """
    Register a payment ("pagamento") against the pending balance.

    The stored amount is min(requested, pending). When nothing is pending
    the outcome is NOTHING_PENDING and no transaction is created.

    Example:
        pending 150, pay 1000 -> payment of 150 stored, pending 0
    """
    requested = validate_amount(amount_cents)

    effective = min(requested, customer.pending_balance_cents)
    if effective <= 0:
        return LedgerChange(customer=customer, outcome=LedgerOutcome.NOTHING_PENDING)

    txn = Transaction(
        id=_new_id(),
        occurred_at=now or _now(),
        amount_cents=effective,
        kind=TransactionKind.PAYMENT,
        description=description,
    )
    updated = replace(
        customer,
        pending_balance_cents=customer.pending_balance_cents - effective,
        settled_amount_cents=customer.settled_amount_cents + effective,
        transactions=[txn] + customer.transactions,
    )
    return LedgerChange(customer=updated, outcome=LedgerOutcome.APPLIED, transaction=txn)


def edit_transaction(
    customer: Customer,
    transaction_id: str,
    new_amount_cents: int,
    new_description: Optional[str] = None,
) -> LedgerChange:
    """
    Change a transaction's amount and/or description in place.

    Kind and occurred_at never change. A None description keeps the current
    one. Unlike payment creation, no clamping is applied here: lowering a
    charge below what was already paid leaves a negative pending balance.
    """
    new_amount = validate_amount(new_amount_cents)
    old = find_transaction(customer, transaction_id)

    description = old.description if new_description is None else new_description
    delta = new_amount - old.amount_cents
    if delta == 0 and description == old.description:
        return LedgerChange(customer=customer, outcome=LedgerOutcome.UNCHANGED, transaction=old)

    edited = replace(old, amount_cents=new_amount, description=description)
    transactions = [edited if t.id == old.id else t for t in customer.transactions]

    if old.kind == TransactionKind.CHARGE:
        updated = replace(
            customer,
            total_billed_cents=customer.total_billed_cents + delta,
            pending_balance_cents=customer.pending_balance_cents + delta,
            transactions=transactions,
        )
    else:
        updated = replace(
            customer,
            pending_balance_cents=customer.pending_balance_cents - delta,
            settled_amount_cents=customer.settled_amount_cents + delta,
            transactions=transactions,
        )

    return LedgerChange(customer=updated, outcome=LedgerOutcome.APPLIED, transaction=edited)


def remove_transaction(customer: Customer, transaction_id: str) -> LedgerChange:
    """Delete a transaction and reverse what it contributed to the balances"""
    txn = find_transaction(customer, transaction_id)
    transactions = [t for t in customer.transactions if t.id != txn.id]

    if txn.kind == TransactionKind.CHARGE:
        updated = replace(
            customer,
            total_billed_cents=customer.total_billed_cents - txn.amount_cents,
            pending_balance_cents=customer.pending_balance_cents - txn.amount_cents,
            transactions=transactions,
        )
    else:
        updated = replace(
            customer,
            pending_balance_cents=customer.pending_balance_cents + txn.amount_cents,
            settled_amount_cents=customer.settled_amount_cents - txn.amount_cents,
            transactions=transactions,
        )

    return LedgerChange(
        customer=updated,
        outcome=LedgerOutcome.APPLIED,
        removed_transaction_id=txn.id,
    )


def balance_discrepancies(customer: Customer) -> List[str]:
    """
    List integrity problems in a customer's balances.

    Edits and removals are allowed to produce these; callers report them,
    they are never corrected here.
    """
    problems = []

    billed = sum(t.amount_cents for t in customer.transactions if t.kind == TransactionKind.CHARGE)
    settled = sum(t.amount_cents for t in customer.transactions if t.kind == TransactionKind.PAYMENT)

    if customer.total_billed_cents != billed:
        problems.append(f"total_billed {customer.total_billed_cents} != sum of charges {billed}")
    if customer.settled_amount_cents != settled:
        problems.append(f"settled_amount {customer.settled_amount_cents} != sum of payments {settled}")
    if customer.pending_balance_cents != customer.total_billed_cents - customer.settled_amount_cents:
        problems.append("pending_balance != total_billed - settled_amount")
    if customer.pending_balance_cents < 0:
        problems.append(f"negative pending_balance {customer.pending_balance_cents}")
    if customer.settled_amount_cents < 0:
        problems.append(f"negative settled_amount {customer.settled_amount_cents}")

    return problems
