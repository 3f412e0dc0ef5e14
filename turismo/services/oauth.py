from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from urllib.parse import urlencode

import aiohttp
from fastapi import status
from sqlalchemy import select
from sqlalchemy.orm import Session

from turismo.core.config import settings
from turismo.models.enums import AuthProvider
from turismo.models.users import Profile, User

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://www.googleapis.com/oauth2/v3/userinfo"


class OAuthError(Exception):
    pass


@dataclass
class GoogleIdentity:
    provider_id: str
    email: str
    name: str | None
    picture: str | None
    email_verified: bool


def google_authorization_url(state: str | None = None) -> str:
    if not settings.google_configured:
        raise OAuthError("Google OAuth is not configured")
    params = {
        "client_id": settings.google_client_id,
        "redirect_uri": settings.google_callback_url,
        "response_type": "code",
        "scope": "openid email profile",
        "access_type": "online",
        "prompt": "select_account",
    }
    if state:
        params["state"] = state
    return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"


async def fetch_google_identity(code: str) -> GoogleIdentity:
    """Exchange an authorization code and read the Google profile."""
    if not settings.google_configured:
        raise OAuthError("Google OAuth is not configured")

    form = {
        "code": code,
        "client_id": settings.google_client_id,
        "client_secret": settings.google_client_secret,
        "redirect_uri": settings.google_callback_url,
        "grant_type": "authorization_code",
    }
    timeout = aiohttp.ClientTimeout(total=20)

    try:
        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(GOOGLE_TOKEN_URL, data=form) as response:
                if response.status != status.HTTP_200_OK:
                    raise OAuthError(f"Token exchange failed with HTTP {response.status}")
                token_data = await response.json()

            access_token = token_data.get("access_token")
            if not access_token:
                raise OAuthError("Token response has no access_token")

            headers = {"Authorization": f"Bearer {access_token}"}
            async with session.get(GOOGLE_USERINFO_URL, headers=headers) as response:
                if response.status != status.HTTP_200_OK:
                    raise OAuthError(f"Userinfo request failed with HTTP {response.status}")
                info = await response.json()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise OAuthError(f"Google request error: {e}") from e

    if not info.get("sub") or not info.get("email"):
        raise OAuthError("Google profile lacks sub/email")

    return GoogleIdentity(
        provider_id=str(info["sub"]),
        email=str(info["email"]).lower(),
        name=info.get("name"),
        picture=info.get("picture"),
        email_verified=bool(info.get("email_verified")),
    )


def find_or_create_google_user(db: Session, identity: GoogleIdentity) -> User:
    """Link by Google id first, then by email; create the account otherwise.

    An existing account is only linked by email when Google reports the email
    as verified; otherwise OAuthError is raised.
    """
    user = db.scalar(
        select(User).where(User.provider == AuthProvider.google.value, User.provider_id == identity.provider_id)
    )
    if user is None:
        user = db.scalar(select(User).where(User.email == identity.email))
        if user is not None and not identity.email_verified:
            logger.warning("Refusing to link account %s to an unverified Google email", user.id)
            raise OAuthError("Google email is not verified")

    if user:
        if not user.provider_id:
            user.provider_id = identity.provider_id
        if not user.avatar_url and identity.picture:
            user.avatar_url = identity.picture
        user.is_verified = user.is_verified or identity.email_verified
        db.commit()
        return user

    user = User(
        username=identity.name or identity.email.split("@")[0],
        email=identity.email,
        password_hash=None,
        provider=AuthProvider.google.value,
        provider_id=identity.provider_id,
        is_verified=identity.email_verified,
        avatar_url=identity.picture,
    )
    user.profile = Profile(full_name=identity.name, avatar_url=identity.picture)
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Created Google account %s", user.id)
    return user
