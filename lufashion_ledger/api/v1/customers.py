"""Customer and transaction endpoints under /v1/customers"""

import time
from fastapi import APIRouter, Depends, Query, Request, status

from lufashion_ledger.api.v1.schemas import (
    AmountRequest,
    CustomerCreateRequest,
    CustomerDetail,
    CustomerListResponse,
    CustomerUpdateRequest,
    LedgerResultResponse,
    TransactionEditRequest,
    to_detail,
    to_result_response,
    to_summary,
)
from lufashion_ledger.api.dependencies import get_book, get_request_id
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.domain.exceptions import CustomerNotFoundError
from lufashion_ledger.domain.models import LedgerOutcome, LedgerResult
from lufashion_ledger.infrastructure.observability.logging import log_ledger_operation
from lufashion_ledger.infrastructure.observability.metrics import record_ledger_operation

router = APIRouter()


def _respond(
    operation: str,
    result: LedgerResult,
    request: Request,
    book: LedgerBook,
    start_time: float,
    count: bool = True,
) -> LedgerResultResponse:
    """
    Record metrics and logs, then attach the customer's current state.

    Pass count=False when the caller already counted each underlying operation.
    """
    duration_ms = (time.time() - start_time) * 1000
    if count:
        record_ledger_operation(operation, result)
    log_ledger_operation(
        get_request_id(request),
        operation,
        result.customer_id,
        result.outcome.value,
        result.persisted,
        duration_ms,
        transaction_id=result.transaction_id,
    )

    try:
        customer = to_detail(book.get_customer(result.customer_id), book.today(), book.due_soon_days)
    except CustomerNotFoundError:
        customer = None  # removed by this operation

    return to_result_response(result, customer)


@router.post("/customers", response_model=LedgerResultResponse, status_code=status.HTTP_201_CREATED)
def create_customer(body: CustomerCreateRequest, request: Request, book: LedgerBook = Depends(get_book)):
    """Create a customer with an opening charge for the initial nota"""
    start_time = time.time()
    result = book.create_customer(
        name=body.name,
        opening_amount_cents=body.opening_amount_cents,
        phone=body.phone,
        due_date=body.due_date,
    )
    return _respond("create_customer", result, request, book, start_time)


@router.get("/customers", response_model=CustomerListResponse)
def list_customers(
    name: str | None = Query(None, description="Case-insensitive name filter"),
    book: LedgerBook = Depends(get_book),
):
    today = book.today()
    return CustomerListResponse(
        customers=[to_summary(c, today, book.due_soon_days) for c in book.list_customers(name)]
    )


@router.get("/customers/{customer_id}", response_model=CustomerDetail)
def get_customer(customer_id: str, book: LedgerBook = Depends(get_book)):
    """Customer balances with transactions, newest first"""
    return to_detail(book.get_customer(customer_id), book.today(), book.due_soon_days)


@router.patch("/customers/{customer_id}", response_model=LedgerResultResponse)
def update_customer(
    customer_id: str,
    body: CustomerUpdateRequest,
    request: Request,
    book: LedgerBook = Depends(get_book),
):
    """
    Rename, change phone, or change due date.

    Each field present in the body is applied as its own operation.
    """
    start_time = time.time()
    fields = body.model_fields_set

    # Fail fast on an unknown id even if the body is empty
    book.get_customer(customer_id)

    result = LedgerResult(outcome=LedgerOutcome.UNCHANGED, customer_id=customer_id)
    operations = []
    if "name" in fields:
        operations.append(("rename_customer", lambda: book.rename_customer(customer_id, body.name)))
    if "phone" in fields:
        operations.append(("set_phone", lambda: book.set_phone(customer_id, body.phone)))
    if "due_date" in fields:
        operations.append(("set_due_date", lambda: book.set_due_date(customer_id, body.due_date)))

    persisted = True
    errors = []
    applied = False
    for operation, run in operations:
        step = run()
        record_ledger_operation(operation, step)
        applied = applied or step.outcome == LedgerOutcome.APPLIED
        if not step.persisted:
            persisted = False
            errors.append(step.persistence_error)

    if applied:
        result = LedgerResult(
            outcome=LedgerOutcome.APPLIED,
            customer_id=customer_id,
            persisted=persisted,
            persistence_error="; ".join(errors) or None,
        )
    return _respond("update_customer", result, request, book, start_time, count=False)


@router.delete("/customers/{customer_id}", response_model=LedgerResultResponse)
def remove_customer(customer_id: str, request: Request, book: LedgerBook = Depends(get_book)):
    """Delete a customer and all of its transactions"""
    start_time = time.time()
    result = book.remove_customer(customer_id)
    return _respond("remove_customer", result, request, book, start_time)


@router.post("/customers/{customer_id}/charges", response_model=LedgerResultResponse, status_code=status.HTTP_201_CREATED)
def record_charge(
    customer_id: str,
    body: AmountRequest,
    request: Request,
    book: LedgerBook = Depends(get_book),
):
    start_time = time.time()
    result = book.record_charge(customer_id, body.amount_cents, body.description)
    return _respond("record_charge", result, request, book, start_time)


@router.post("/customers/{customer_id}/payments", response_model=LedgerResultResponse)
def record_payment(
    customer_id: str,
    body: AmountRequest,
    request: Request,
    book: LedgerBook = Depends(get_book),
):
    """
    Register a payment, clamped to the pending balance.

    Returns outcome "nothing_pending" (not an error) when the customer owes nothing.
    """
    start_time = time.time()
    result = book.record_payment(customer_id, body.amount_cents, body.description)
    return _respond("record_payment", result, request, book, start_time)


@router.patch("/customers/{customer_id}/transactions/{transaction_id}", response_model=LedgerResultResponse)
def edit_transaction(
    customer_id: str,
    transaction_id: str,
    body: TransactionEditRequest,
    request: Request,
    book: LedgerBook = Depends(get_book),
):
    start_time = time.time()
    result = book.edit_transaction(customer_id, transaction_id, body.amount_cents, body.description)
    return _respond("edit_transaction", result, request, book, start_time)


@router.delete("/customers/{customer_id}/transactions/{transaction_id}", response_model=LedgerResultResponse)
def remove_transaction(
    customer_id: str,
    transaction_id: str,
    request: Request,
    book: LedgerBook = Depends(get_book),
):
    """Delete a transaction and reverse its effect on the balances"""
    start_time = time.time()
    result = book.remove_transaction(customer_id, transaction_id)
    return _respond("remove_transaction", result, request, book, start_time)
