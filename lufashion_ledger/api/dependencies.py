"""Dependency injection for FastAPI endpoints"""

from fastapi import Request
from lufashion_ledger.domain.book import LedgerBook
from lufashion_ledger.infrastructure.clients.notifier import NotificationClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_book(request: Request) -> LedgerBook:
    """Provide the session's ledger book"""
    return request.app.state.book


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()
