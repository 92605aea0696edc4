"""Dependency injection for FastAPI endpoints"""

from typing import Optional
from fastapi import Header, HTTPException, Request
from ravehub_gateway.config import settings
from ravehub_gateway.infrastructure.clients.revalidation import RevalidationClient


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_revalidation_client() -> RevalidationClient:
    """Provide storefront revalidation client instance"""
    return RevalidationClient()


def get_admin_principal(authorization: Optional[str] = Header(None)) -> str:
    """Resolve the admin bearer token to the principal recorded on reviews"""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Admin authentication required")

    token = authorization[len("bearer "):].strip()
    principal = settings.admin_tokens.get(token)
    if not principal:
        raise HTTPException(status_code=401, detail="Invalid admin token")
    return principal


async def get_raw_body(request: Request) -> bytes:
    """Raw request bytes, read on the event loop so sync handlers can verify signatures"""
    return await request.body()
