"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class TransactionKind(str, Enum):
    CHARGE = "charge"  # "adição"
    PAYMENT = "payment"  # "pagamento"


class LedgerOutcome(str, Enum):
    APPLIED = "applied"
    NOTHING_PENDING = "nothing_pending"
    UNCHANGED = "unchanged"


class DueStatus(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    NORMAL = "normal"


@dataclass(frozen=True)
class Transaction:
    """Single charge or payment on a customer's nota"""

    id: str
    occurred_at: datetime
    amount_cents: int
    kind: TransactionKind
    description: Optional[str] = None


@dataclass(frozen=True)
class Customer:
    """Customer account with its running balances"""

    id: str
    name: str
    created_at: datetime
    total_billed_cents: int = 0
    pending_balance_cents: int = 0
    settled_amount_cents: int = 0
    phone: Optional[str] = None
    due_date: Optional[date] = None
    transactions: List[Transaction] = field(default_factory=list)  # newest first


@dataclass
class LedgerChange:
    """Result of a pure ledger computation, not yet committed"""

    customer: Customer
    outcome: LedgerOutcome
    transaction: Optional[Transaction] = None
    removed_transaction_id: Optional[str] = None


@dataclass
class LedgerResult:
    """Outcome of a committed book operation"""

    outcome: LedgerOutcome
    customer_id: str
    transaction_id: Optional[str] = None
    persisted: bool = True
    persistence_error: Optional[str] = None


@dataclass
class AggregateStats:
    """Store-wide totals across all customers"""

    total_billed_cents: int
    total_pending_cents: int
    total_settled_cents: int
    customer_count: int


@dataclass
class OverdueEntry:
    customer: Customer
    days_overdue: int
