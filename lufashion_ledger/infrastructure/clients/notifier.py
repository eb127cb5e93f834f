"""Due-date notification webhook client with exponential backoff retry logic"""

import asyncio
import re
from typing import Any, Dict

import httpx

from lufashion_ledger.config import settings
from lufashion_ledger.domain.exceptions import NotificationError
from lufashion_ledger.domain.models import Customer
from lufashion_ledger.infrastructure.observability.metrics import (
    notification_failure_counter,
    notification_latency_histogram,
)
from lufashion_ledger.utils.money import format_brl


def normalize_phone(phone: str | None, default_phone: str) -> str:
    """Digits only; fall back to the store's number when the customer has none"""
    digits = re.sub(r"\D", "", phone or "")
    return digits or default_phone


def format_due_message(customer: Customer) -> str:
    """WhatsApp message sent to the customer (pt-BR, as shown to them)"""
    due = customer.due_date.strftime("%d/%m/%Y") if customer.due_date else "sem data"
    return (
        "*Notificação de Vencimento* 📣\n\n"
        f"*Cliente:* {customer.name}\n"
        f"*Data de Vencimento:* {due}\n"
        f"*Valor Total:* {format_brl(customer.total_billed_cents)}\n"
        f"*Valor Pendente:* {format_brl(customer.pending_balance_cents)}"
    )


def build_due_notification(customer: Customer, default_phone: str) -> Dict[str, Any]:
    return {
        "customer_id": customer.id,
        "phone": normalize_phone(customer.phone, default_phone),
        "message": format_due_message(customer),
    }


class NotificationClient:
    """Client for the WhatsApp notification webhook"""

    def __init__(
        self,
        webhook_url: str | None = None,
        default_phone: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.webhook_url = webhook_url or settings.notifier_webhook_url
        self.default_phone = default_phone or settings.default_notification_phone
        self.timeout = settings.http_timeout_seconds
        self.max_retries = settings.notifier_max_retries
        self.backoff_base = settings.notifier_backoff_base
        self.transport = transport

    async def send_due_notification(self, customer: Customer) -> Dict[str, Any]:
        """
        Send the due-date message for one customer.

        Retry strategy:
        - Exponential backoff: 1s, 2s, 4s, 8s (base * 2^attempt)
        - Retries on 5xx/4xx responses and network failures
        - Tracks latency histogram and failure counter

        Returns:
            The payload that was delivered

        Raises:
            NotificationError: After the last attempt fails
        """
        payload = build_due_notification(customer, self.default_phone)
        attempt = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            while True:
                try:
                    with notification_latency_histogram.time():
                        response = await client.post(self.webhook_url, json=payload)
                        response.raise_for_status()
                        return payload

                except (httpx.HTTPStatusError, httpx.RequestError) as e:
                    attempt += 1
                    notification_failure_counter.inc()

                    if attempt >= self.max_retries:
                        raise NotificationError(
                            f"Notification for customer {customer.id} failed after {attempt} attempts"
                        ) from e

                    backoff = self.backoff_base * (2 ** (attempt - 1))
                    await asyncio.sleep(backoff)
