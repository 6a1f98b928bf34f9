"""Bearer token authentication and caller identity."""
from __future__ import annotations

from fastapi import Header, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

security = HTTPBearer()


async def verify_token(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Security(security),
) -> str:
    """Validate the Bearer token against the configured admin token."""
    if credentials.credentials != request.app.state.settings.admin_token:
        raise HTTPException(status_code=401, detail="Invalid token")
    return credentials.credentials


async def get_actor(x_actor: str = Header(default="unknown")) -> str:
    """Caller identity recorded in the audit trail (not authenticated here)."""
    return x_actor
