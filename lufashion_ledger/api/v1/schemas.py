"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import List, Optional

from lufashion_ledger.domain.models import Customer, DueStatus, LedgerResult, OverdueEntry
from lufashion_ledger.domain.overdue import classify, days_overdue


class CustomerCreateRequest(BaseModel):
    """Request body for POST /v1/customers"""

    name: str = Field(..., description="Customer display name")
    opening_amount_cents: int = Field(..., description="Opening nota balance in cents")
    phone: Optional[str] = Field(None, description="Contact phone for notifications")
    due_date: Optional[date] = None


class CustomerUpdateRequest(BaseModel):
    """Request body for PATCH /v1/customers/{customer_id}

    Only fields present in the body are applied; send null to clear
    phone or due_date.
    """

    name: Optional[str] = None
    phone: Optional[str] = None
    due_date: Optional[date] = None


class AmountRequest(BaseModel):
    """Request body for charges and payments"""

    amount_cents: int = Field(..., description="Amount in cents, must be positive")
    description: Optional[str] = None


class TransactionEditRequest(BaseModel):
    """Request body for PATCH /v1/customers/{customer_id}/transactions/{transaction_id}"""

    amount_cents: int = Field(..., description="New amount in cents, must be positive")
    description: Optional[str] = Field(None, description="New description; omitted keeps the current one")


class TransactionSchema(BaseModel):
    id: str
    occurred_at: datetime
    amount_cents: int
    kind: str
    description: Optional[str] = None


class CustomerSummary(BaseModel):
    id: str
    name: str
    phone: Optional[str] = None
    due_date: Optional[date] = None
    total_billed_cents: int
    pending_balance_cents: int
    settled_amount_cents: int
    due_status: DueStatus
    created_at: datetime


class CustomerDetail(CustomerSummary):
    days_overdue: Optional[int] = None
    transactions: List[TransactionSchema]


class CustomerListResponse(BaseModel):
    customers: List[CustomerSummary]


class LedgerResultResponse(BaseModel):
    """Response for every mutating endpoint"""

    outcome: str
    customer_id: str
    transaction_id: Optional[str] = None
    persisted: bool
    persistence_error: Optional[str] = None
    customer: Optional[CustomerDetail] = None


class StatsResponse(BaseModel):
    """Response for GET /v1/stats"""

    total_billed_cents: int
    total_pending_cents: int
    total_settled_cents: int
    customer_count: int


class OverdueItem(BaseModel):
    customer: CustomerSummary
    days_overdue: int


class OverdueResponse(BaseModel):
    today: date
    customers: List[OverdueItem]


class DueSoonResponse(BaseModel):
    today: date
    customers: List[CustomerSummary]


class NotificationDispatchResponse(BaseModel):
    queued: int
    customer_ids: List[str]


class RefreshResponse(BaseModel):
    customer_count: int


def to_summary(customer: Customer, today: date, due_soon_days: int) -> CustomerSummary:
    return CustomerSummary(
        id=customer.id,
        name=customer.name,
        phone=customer.phone,
        due_date=customer.due_date,
        total_billed_cents=customer.total_billed_cents,
        pending_balance_cents=customer.pending_balance_cents,
        settled_amount_cents=customer.settled_amount_cents,
        due_status=classify(customer, today, due_soon_days),
        created_at=customer.created_at,
    )


def to_detail(customer: Customer, today: date, due_soon_days: int) -> CustomerDetail:
    summary = to_summary(customer, today, due_soon_days)
    overdue_days = days_overdue(customer.due_date, today) if summary.due_status == DueStatus.OVERDUE else None
    return CustomerDetail(
        **summary.model_dump(),
        days_overdue=overdue_days,
        transactions=[
            TransactionSchema(
                id=t.id,
                occurred_at=t.occurred_at,
                amount_cents=t.amount_cents,
                kind=t.kind.value,
                description=t.description,
            )
            for t in customer.transactions
        ],
    )


def to_overdue_item(entry: OverdueEntry, today: date, due_soon_days: int) -> OverdueItem:
    return OverdueItem(customer=to_summary(entry.customer, today, due_soon_days), days_overdue=entry.days_overdue)


def to_result_response(result: LedgerResult, customer: Optional[CustomerDetail]) -> LedgerResultResponse:
    return LedgerResultResponse(
        outcome=result.outcome.value,
        customer_id=result.customer_id,
        transaction_id=result.transaction_id,
        persisted=result.persisted,
        persistence_error=result.persistence_error,
        customer=customer,
    )
