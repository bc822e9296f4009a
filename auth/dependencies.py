"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_request_context() is the only place a bearer token is read. It hands the
raw Authorization header to IdentityGate and converts an Err outcome into the
AuthenticationError exception that api/main.py renders as 401. On success it
returns a fresh RequestContext that route handlers receive as a parameter;
nothing is written to request.state.

Layer rule: auth/dependencies.py may import from fastapi (for Request)
because this module is part of the FastAPI dependency injection system.
Nothing else in auth/ does.
"""

from __future__ import annotations

from fastapi import Request

from auth.models import RequestContext
from core.result import unwrap


async def get_request_context(request: Request) -> RequestContext:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(ctx: RequestContext = Depends(get_request_context)): ...
    """
    gate = request.app.state.services.gate
    identity = unwrap(await gate.authenticate(request.headers.get("Authorization")))
    return RequestContext(identity=identity)
