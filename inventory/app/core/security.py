"""JWT issuing and validation for the mutation endpoints."""

import hmac
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt import PyJWTError

from inventory.app.core.config import Settings, settings as default_settings
from inventory.app.exceptions import AuthenticationError


def verify_admin_credentials(
    username: str, password: str, config: Optional[Settings] = None
) -> bool:
    """Check login credentials against the configured admin account.

    Both comparisons always run so timing does not reveal which field failed.
    """
    config = config or default_settings
    user_ok = hmac.compare_digest(username.encode(), config.admin_username.encode())
    pass_ok = hmac.compare_digest(password.encode(), config.admin_password.encode())
    return user_ok and pass_ok


def create_access_token(
    subject: str,
    expires_delta: timedelta | None = None,
    config: Optional[Settings] = None,
) -> str:
    """Issue a signed access token for ``subject``.

    Args:
        subject: Value of the ``sub`` claim (the username)
        expires_delta: Token lifetime, defaults to config.jwt_expire_minutes
        config: Settings holding the JWT secret, defaults to the global settings

    Returns:
        Encoded JWT string
    """
    config = config or default_settings
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=config.jwt_expire_minutes))
    payload = {
        "sub": subject,
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(payload, config.jwt_secret, algorithm=config.jwt_algorithm)


def decode_access_token(token: str, config: Optional[Settings] = None) -> dict:
    """Decode and validate an access token.

    Raises:
        AuthenticationError: If the token is expired, malformed or has no subject
    """
    config = config or default_settings
    try:
        payload = jwt.decode(
            token, config.jwt_secret, algorithms=[config.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise AuthenticationError("Token expired")
    except PyJWTError:
        raise AuthenticationError("Invalid token")
    if not payload.get("sub"):
        raise AuthenticationError("Invalid token")
    return payload
