"""Dependency injection for FastAPI endpoints"""

from datetime import date
from fastapi import Header, Request
from finflow_gateway.infrastructure.clients.webhook import PaymentWebhookClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_space_id(x_space_id: str = Header(..., min_length=1, description="Active space (tenant) identifier")) -> str:
    """Every read and write is scoped to the space given in X-Space-ID"""
    return x_space_id


def get_today() -> date:
    """Reference date for due-date arithmetic (overridden in tests)"""
    return date.today()


def get_webhook_client() -> PaymentWebhookClient:
    """Provide payment webhook client instance"""
    return PaymentWebhookClient()
