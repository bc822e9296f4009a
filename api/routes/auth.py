"""
api/routes/auth.py -- Registration, login and current-identity endpoints.

Routes:
  POST /register  -- create an account; 201
  POST /login     -- exchange email + password for a bearer token; 200
  GET  /me        -- the account behind the presented token (requires auth)

Security:
  [H2] POST /login and POST /register are rate-limited per IP.
  [C1] AccountService.login() provides timing equalization -- use it, never
       inline store lookup + bcrypt here.
  [M5] Cache-Control: no-store on login responses (they carry a token).
  Unknown email and wrong password return the same 401 body.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from api.limiter import AUTH_RATE_LIMIT, limiter
from api.models import (
    IdentityOut,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    UserOut,
    UserResponse,
)
from api.services import get_services
from auth.dependencies import get_request_context
from auth.models import RequestContext
from core.result import unwrap

# Auth policy:
# - POST /register: public
# - POST /login:    public
# - GET  /me:       requires auth (get_request_context)
router = APIRouter()


@limiter.limit(AUTH_RATE_LIMIT)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/register", response_model=UserResponse, status_code=201)
async def register(request: Request, body: RegisterRequest) -> UserResponse:
    """Create an account. The password is stored only as a bcrypt hash."""
    accounts = get_services(request).accounts
    record = unwrap(await accounts.register(body.email, body.password))
    return UserResponse(user=UserOut.from_record(record))


@limiter.limit(AUTH_RATE_LIMIT)  # [H2]
@router.post("/login", response_model=LoginResponse)
async def login(request: Request, response: Response, body: LoginRequest) -> LoginResponse:
    """Authenticate with email and password; return a bearer token."""
    accounts = get_services(request).accounts
    result = unwrap(await accounts.login(body.email, body.password))
    response.headers["Cache-Control"] = "no-store"  # [M5]
    return LoginResponse(token=result.token, user=IdentityOut.from_identity(result.identity))


@router.get("/me", response_model=UserResponse)
async def me(request: Request, ctx: RequestContext = Depends(get_request_context)) -> UserResponse:
    """Return the stored account for the authenticated identity.

    404 if the account was removed after the token was issued.
    """
    accounts = get_services(request).accounts
    record = unwrap(await accounts.profile(ctx.identity.id))
    return UserResponse(user=UserOut.from_record(record))
