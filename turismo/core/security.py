from __future__ import annotations

from datetime import datetime, timedelta

from jose import JWTError, jwt
from passlib.context import CryptContext

from turismo.core.config import settings

ALGORITHM = "HS256"

_hasher = CryptContext(schemes=["bcrypt"], deprecated="auto")


class InvalidToken(Exception):
    pass


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def check_password(plain: str, stored_hash: str | None) -> bool:
    # Google accounts are created without a local password
    return bool(stored_hash) and _hasher.verify(plain, stored_hash)


def issue_token(user_id: str, *, email: str | None = None, minutes: int | None = None) -> str:
    """Signed session token carrying the user id (and email when known)."""
    lifetime = timedelta(minutes=minutes or settings.access_token_exp_minutes)
    claims: dict = {"sub": user_id, "exp": datetime.utcnow() + lifetime}
    if email:
        claims["email"] = email
    return jwt.encode(claims, settings.app_secret_key, algorithm=ALGORITHM)


def token_user_id(token: str) -> str:
    """User id from a session token; raises InvalidToken when expired, forged or empty."""
    try:
        claims = jwt.decode(token, settings.app_secret_key, algorithms=[ALGORITHM])
    except JWTError as e:
        raise InvalidToken(str(e)) from e

    user_id = claims.get("sub")
    if not user_id:
        raise InvalidToken("Token has no subject")
    return user_id
