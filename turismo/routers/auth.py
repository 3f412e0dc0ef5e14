from __future__ import annotations

import logging
import secrets
from urllib.parse import urlencode

from fastapi import APIRouter, Cookie, Depends, HTTPException, Query, status
from fastapi.responses import RedirectResponse
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.orm import Session

from turismo.core.config import settings
from turismo.core.deps import get_current_user
from turismo.core.rate_limit import rate_limit
from turismo.core.security import check_password, hash_password, issue_token
from turismo.db.session import get_db
from turismo.models.users import Profile, User
from turismo.routers.users import to_account_response
from turismo.schemas.auth import AuthResponse, LoginRequest, OAuthConfigResponse, RegisterRequest, TokenResponse, UserPublic
from turismo.schemas.users import AccountResponse
from turismo.services.oauth import OAuthError, fetch_google_identity, find_or_create_google_user, google_authorization_url

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)

_OAUTH_STATE_COOKIE = "oauth_state"


def to_user_public(user: User) -> UserPublic:
    return UserPublic(
        id=user.id,
        username=user.username,
        email=user.email,
        provider=user.provider,
        is_verified=user.is_verified,
        avatar_url=user.avatar_url,
        created_at=user.created_at,
    )


def _authenticate(db: Session, email: str, password: str) -> User:
    user = db.scalar(select(User).where(User.email == email.lower()))
    if not user or not check_password(password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return user


@router.post("/register", response_model=AuthResponse, status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> AuthResponse:
    email = payload.email.lower()
    existing = db.scalar(select(User).where(User.email == email))
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    user = User(
        email=email,
        username=(payload.username or "").strip() or email.split("@")[0],
        password_hash=hash_password(payload.password),
    )
    user.profile = Profile()

    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered user %s", user.id)

    token = issue_token(user.id, email=user.email)
    return AuthResponse(message="User registered", access_token=token, user=to_user_public(user))


@router.post(
    "/login",
    response_model=AuthResponse,
    dependencies=[rate_limit("auth_login", limit=settings.login_rate_limit)],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> AuthResponse:
    user = _authenticate(db, payload.email, payload.password)
    token = issue_token(user.id, email=user.email)
    return AuthResponse(message="Login successful", access_token=token, user=to_user_public(user))


@router.post(
    "/token",
    response_model=TokenResponse,
    dependencies=[rate_limit("auth_token", limit=settings.login_rate_limit)],
)
def token(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)) -> TokenResponse:
    user = _authenticate(db, form.username, form.password)
    return TokenResponse(access_token=issue_token(user.id, email=user.email))


@router.get("/profile", response_model=AccountResponse)
def profile(current: User = Depends(get_current_user)) -> AccountResponse:
    return to_account_response(current)


@router.get("/config", response_model=OAuthConfigResponse)
def oauth_config() -> OAuthConfigResponse:
    return OAuthConfigResponse(
        google_configured=settings.google_configured,
        google_client_id=bool(settings.google_client_id),
        google_callback=settings.google_callback_url,
        frontend_url=settings.frontend_url,
    )


@router.get("/google", include_in_schema=False)
def google_login() -> RedirectResponse:
    state = secrets.token_urlsafe(24)
    try:
        url = google_authorization_url(state)
    except OAuthError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Google login is not configured")

    response = RedirectResponse(url=url, status_code=status.HTTP_302_FOUND)
    response.set_cookie(_OAUTH_STATE_COOKIE, state, max_age=600, httponly=True, samesite="lax")
    return response


def _frontend_redirect(path: str, **params: str) -> RedirectResponse:
    base = settings.frontend_url.rstrip("/")
    response = RedirectResponse(url=f"{base}{path}?{urlencode(params)}", status_code=status.HTTP_302_FOUND)
    response.delete_cookie(_OAUTH_STATE_COOKIE)
    return response


@router.get("/google/callback", include_in_schema=False)
async def google_callback(
    code: str | None = Query(default=None),
    state: str | None = Query(default=None),
    oauth_state: str | None = Cookie(default=None),
    db: Session = Depends(get_db),
) -> RedirectResponse:
    if not code or not state or not oauth_state or not secrets.compare_digest(state, oauth_state):
        logger.warning("Google callback rejected: missing code or state mismatch")
        return _frontend_redirect("/login", error="google_auth_failed")

    try:
        identity = await fetch_google_identity(code)
        user = find_or_create_google_user(db, identity)
    except OAuthError:
        logger.exception("Google login failed")
        return _frontend_redirect("/login", error="google_auth_failed")

    logger.info("Google login for user %s", user.id)
    return _frontend_redirect(
        "/oauth-callback",
        token=issue_token(user.id, email=user.email),
        user=to_user_public(user).model_dump_json(),
    )
