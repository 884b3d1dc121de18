"""Login endpoint issuing JWTs for the mutation endpoints."""

from fastapi import APIRouter
from pydantic import BaseModel

from inventory.app.core.config import SettingsDep
from inventory.app.core.logging import get_logger
from inventory.app.core.security import create_access_token, verify_admin_credentials
from inventory.app.exceptions import AuthenticationError

router = APIRouter(prefix="/api/v1", tags=["auth"])
logger = get_logger(__name__)


class LoginRequest(BaseModel):
    username: str
    password: str


class LoginResponse(BaseModel):
    token: str


@router.post("/login", response_model=LoginResponse)
async def login(req: LoginRequest, config: SettingsDep) -> LoginResponse:
    """Exchange admin credentials for an access token."""
    if not verify_admin_credentials(req.username, req.password, config):
        logger.warning("Failed login attempt")
        raise AuthenticationError("Invalid credentials")
    return LoginResponse(token=create_access_token(req.username, config=config))
