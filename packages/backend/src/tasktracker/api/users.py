"""Account API — registration, login, current user.

Learn: Routes for the account lifecycle:
- POST /users    → create an account (400 if the email is taken)
- POST /token    → email/password → bearer token (401 on any mismatch)
- GET  /users/me → who the presented token belongs to

The login body calls the email field ``username``, matching the OAuth2
password-flow convention clients already speak.
"""

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession

from tasktracker.auth.dependencies import AuthenticatedUser, get_current_user
from tasktracker.db.engine import get_db
from tasktracker.services.auth_service import AuthService

router = APIRouter()


# ─── Schemas ─────────────────────────────────────────────


class RegisterRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(..., min_length=1, max_length=1024)


class LoginRequest(BaseModel):
    username: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserRead(BaseModel):
    id: int
    email: str
    is_active: bool

    model_config = {"from_attributes": True}


def _auth_svc(request: Request, db: AsyncSession = Depends(get_db)) -> AuthService:
    state = request.app.state
    return AuthService(db, hasher=state.password_hasher, issuer=state.token_issuer)


# ─── Register ────────────────────────────────────────────


@router.post("/users", response_model=UserRead)
async def register(body: RegisterRequest, svc: AuthService = Depends(_auth_svc)):
    """Create a new user account."""
    return await svc.register(body.email, body.password)


# ─── Login ───────────────────────────────────────────────


@router.post("/token", response_model=TokenResponse)
async def login(body: LoginRequest, svc: AuthService = Depends(_auth_svc)):
    """Login with email and password → JWT access token."""
    token = await svc.login(body.username, body.password)
    return TokenResponse(access_token=token)


# ─── Current user ───────────────────────────────────────


@router.get("/users/me", response_model=UserRead)
async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    """Get the current authenticated user's info."""
    return user
