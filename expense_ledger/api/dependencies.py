"""Dependency injection for FastAPI endpoints"""

import uuid
from fastapi import HTTPException, Request

from expense_ledger.config import settings


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_current_user_id(request: Request) -> str:
    """
    Authenticated user id, forwarded by the upstream auth gateway.

    Sessions and CSRF are verified before requests reach this service.
    """
    user_id = request.headers.get(settings.user_header)
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user_id


def parse_id(value: str, entity: str) -> uuid.UUID:
    try:
        return uuid.UUID(value)
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {entity} ID format")
