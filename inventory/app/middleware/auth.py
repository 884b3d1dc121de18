from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from inventory.app.core.config import SettingsDep
from inventory.app.core.security import decode_access_token
from inventory.app.exceptions import AuthenticationError

bearer_scheme = HTTPBearer(auto_error=False)


def require_jwt(
    config: SettingsDep,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Validate the bearer token on mutation endpoints.

    Returns:
        The authenticated subject (username)

    Raises:
        AuthenticationError: 401 if the header is missing or the token is invalid
    """
    if creds is None:
        raise AuthenticationError("Authorization header required")
    if creds.scheme.lower() != "bearer":
        raise AuthenticationError("Invalid auth scheme")

    payload = decode_access_token(creds.credentials, config)
    return str(payload["sub"])


CurrentUser = Annotated[str, Depends(require_jwt)]
