"""Bearer token authentication dependency.

Requests must carry the configured FEEDBACK_AUTH_TOKEN. The editor host
identifies the acting user with an X-User-Id header; the returned user key
is what the review rate limit counts against. Unauthenticated requests
receive a 401 with a structured error body.
"""

from fastapi import Depends, Header, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings

_bearer = HTTPBearer(auto_error=False)

ANONYMOUS_USER = "anonymous"


async def require_auth(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    x_user_id: str | None = Header(default=None),
) -> str:
    if credentials is None or credentials.credentials != settings.auth_token:
        raise HTTPException(
            status_code=401,
            detail={"code": "AUTH_FAILED", "message": "Invalid or missing bearer token"},
        )
    return (x_user_id or "").strip() or ANONYMOUS_USER
