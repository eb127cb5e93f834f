"""Store-wide views: statistics, overdue and due-soon lists, store reload"""

import logging
from fastapi import APIRouter, Depends, Request

from lufashion_ledger.api.v1.schemas import (
    DueSoonResponse,
    OverdueResponse,
    RefreshResponse,
    StatsResponse,
    to_overdue_item,
    to_summary,
)
from lufashion_ledger.api.dependencies import get_book, get_request_id
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.infrastructure.observability.metrics import record_stats

router = APIRouter()


@router.get("/stats", response_model=StatsResponse)
def get_stats(book: LedgerBook = Depends(get_book)):
    """Totals billed, pending and settled across all customers"""
    stats = book.get_aggregate_stats()
    record_stats(stats)
    return StatsResponse(
        total_billed_cents=stats.total_billed_cents,
        total_pending_cents=stats.total_pending_cents,
        total_settled_cents=stats.total_settled_cents,
        customer_count=stats.customer_count,
    )


@router.get("/overdue", response_model=OverdueResponse)
def list_overdue(book: LedgerBook = Depends(get_book)):
    """Overdue customers (past due with something pending), oldest due date first"""
    today = book.today()
    return OverdueResponse(
        today=today,
        customers=[to_overdue_item(e, today, book.due_soon_days) for e in book.list_overdue(today)],
    )


@router.get("/due-soon", response_model=DueSoonResponse)
def list_due_soon(book: LedgerBook = Depends(get_book)):
    today = book.today()
    return DueSoonResponse(
        today=today,
        customers=[to_summary(c, today, book.due_soon_days) for c in book.list_due_soon(today)],
    )


@router.post("/refresh", response_model=RefreshResponse)
def refresh(request: Request, book: LedgerBook = Depends(get_book)):
    """Reload every customer from the store, discarding local-only changes"""
    count = book.refresh()
    logging.info("Ledger reloaded from store", extra={"request_id": get_request_id(request), "customer_count": count})
    return RefreshResponse(customer_count=count)
