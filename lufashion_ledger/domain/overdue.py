"""Due-date classification: overdue, due soon, normal"""

import threading
from datetime import date
from typing import Iterable, List, Set

from lufashion_ledger.domain.models import Customer, DueStatus, OverdueEntry
from lufashion_ledger.utils.date_utils import days_between

DEFAULT_DUE_SOON_DAYS = 3


def days_overdue(due_date: date, today: date) -> int:
    """Whole days past the due date (yesterday -> 1)"""
    return days_between(due_date, today)


def classify(customer: Customer, today: date, due_soon_days: int = DEFAULT_DUE_SOON_DAYS) -> DueStatus:
    """
    Bucket a customer by due date.

    - OVERDUE: due date before today and something still pending
    - DUE_SOON: due within the next `due_soon_days` days, whatever the balance
    - NORMAL: everything else, including no due date and due today
    """
    if customer.due_date is None:
        return DueStatus.NORMAL

    days_left = days_between(today, customer.due_date)
    if days_left < 0 and customer.pending_balance_cents > 0:
        return DueStatus.OVERDUE
    if 0 < days_left <= due_soon_days:
        return DueStatus.DUE_SOON
    return DueStatus.NORMAL


def list_overdue(customers: Iterable[Customer], today: date) -> List[OverdueEntry]:
    """Overdue customers, oldest due date first"""
    overdue = [c for c in customers if classify(c, today) == DueStatus.OVERDUE]
    overdue.sort(key=lambda c: (c.due_date, c.name.lower()))
    return [OverdueEntry(customer=c, days_overdue=days_overdue(c.due_date, today)) for c in overdue]


def list_due_soon(
    customers: Iterable[Customer],
    today: date,
    due_soon_days: int = DEFAULT_DUE_SOON_DAYS,
) -> List[Customer]:
    due_soon = [c for c in customers if classify(c, today, due_soon_days) == DueStatus.DUE_SOON]
    due_soon.sort(key=lambda c: (c.due_date, c.name.lower()))
    return due_soon


class OverdueWatcher:
    """
    Turns the overdue view into "customer became overdue" events.

    Each poll returns only customers that were not overdue on the previous
    poll. Customers that leave the overdue set (paid off, due date moved,
    removed) are forgotten, so they fire again if they come back.

    A customer returned by poll counts as notified. Call release() when the
    notification could not be delivered so the next poll returns it again.
    """

    def __init__(self) -> None:
        self._seen: Set[str] = set()
        self._lock = threading.Lock()

    def poll(self, customers: Iterable[Customer], today: date) -> List[OverdueEntry]:
        current = list_overdue(customers, today)
        with self._lock:
            fresh = [entry for entry in current if entry.customer.id not in self._seen]
            self._seen = {entry.customer.id for entry in current}
        return fresh

    def release(self, customer_id: str) -> None:
        with self._lock:
            self._seen.discard(customer_id)
