"""Due-date notification dispatch"""

import logging
from typing import Callable, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status

from lufashion_ledger.api.v1.schemas import NotificationDispatchResponse
from lufashion_ledger.api.dependencies import get_book, get_notification_client, get_request_id
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.domain.exceptions import NotificationError
from lufashion_ledger.domain.models import Customer
from lufashion_ledger.infrastructure.clients.notifier import NotificationClient

router = APIRouter()


async def deliver(
    client: NotificationClient,
    customer: Customer,
    request_id: str,
    on_failure: Optional[Callable[[str], None]] = None,
) -> None:
    """Background task: send one message, log the result"""
    try:
        await client.send_due_notification(customer)
    except NotificationError as e:
        logging.error(f"Notification failed: {e}", extra={"request_id": request_id, "customer_id": customer.id})
        if on_failure is not None:
            on_failure(customer.id)
        return
    logging.info("Notification sent", extra={"request_id": request_id, "customer_id": customer.id})


@router.post(
    "/notifications/overdue",
    response_model=NotificationDispatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def notify_overdue(
    background_tasks: BackgroundTasks,
    request: Request,
    only_new: bool = Query(False, description="Only customers that became overdue since the last dispatch"),
    book: LedgerBook = Depends(get_book),
    client: NotificationClient = Depends(get_notification_client),
):
    """Queue due-date messages for overdue customers"""
    request_id = get_request_id(request)
    entries = book.newly_overdue() if only_new else book.list_overdue()
    # Undelivered "became overdue" events are retried on the next only_new dispatch
    on_failure = book.release_overdue if only_new else None

    for entry in entries:
        background_tasks.add_task(deliver, client, entry.customer, request_id, on_failure)

    return NotificationDispatchResponse(
        queued=len(entries),
        customer_ids=[e.customer.id for e in entries],
    )


@router.post(
    "/customers/{customer_id}/notify",
    response_model=NotificationDispatchResponse,
    status_code=status.HTTP_202_ACCEPTED,
)
def notify_customer(
    customer_id: str,
    background_tasks: BackgroundTasks,
    request: Request,
    book: LedgerBook = Depends(get_book),
    client: NotificationClient = Depends(get_notification_client),
):
    """Queue the due-date message for one customer"""
    customer = book.get_customer(customer_id)
    if customer.due_date is None:
        raise HTTPException(status_code=422, detail="Customer has no due date")

    background_tasks.add_task(deliver, client, customer, get_request_id(request))
    return NotificationDispatchResponse(queued=1, customer_ids=[customer.id])
