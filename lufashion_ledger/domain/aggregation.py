"""Store-wide statistics over all customer notas"""

from typing import Iterable

from lufashion_ledger.domain.models import AggregateStats, Customer


def compute_stats(customers: Iterable[Customer]) -> AggregateStats:
    """
    Sum billed, pending and settled amounts across customers.

    Recomputed from scratch on every call; an empty collection yields zeros.
    """
    billed = pending = settled = count = 0
    for customer in customers:
        billed += customer.total_billed_cents
        pending += customer.pending_balance_cents
        settled += customer.settled_amount_cents
        count += 1

    return AggregateStats(
        total_billed_cents=billed,
        total_pending_cents=pending,
        total_settled_cents=settled,
        customer_count=count,
    )
