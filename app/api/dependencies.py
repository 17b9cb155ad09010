"""
app/api/dependencies.py

Purpose: Request-scoped dependencies

- The UserService created at startup (stored on app.state)
- A TraceContext built from the request's B3 headers
"""

from fastapi import Request

from app.core.exceptions import ConnectivityError
from app.core.tracing import TraceContext
from app.services.user_service import UserService


def get_user_service(request: Request) -> UserService:
    service = getattr(request.app.state, "user_service", None)
    if service is None:
        raise ConnectivityError("User store not initialized")
    return service


def get_trace_context(request: Request) -> TraceContext:
    return TraceContext.from_headers(request.headers)
