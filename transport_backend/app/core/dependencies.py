"""
Bearer-token authentication for operator routes.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from transport_backend.app.core.jwt import decode_access_token
from transport_backend.app.core.token_revocation import is_token_revoked
from transport_backend.app.db.session import get_db
from transport_backend.app.models.user import User

security = HTTPBearer()


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> dict:
    """
    Token payload of an active operator.

    Rejects bad or expired tokens, tokens revoked at logout and accounts
    that were deleted or deactivated after the token was issued.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise _unauthorized("Could not validate credentials")
    if not payload.get("user_id"):
        raise _unauthorized("Invalid token payload")
    if await is_token_revoked(credentials.credentials):
        raise _unauthorized("Token has been revoked")

    user = (await db.execute(select(User).where(User.id == payload["user_id"]))).scalar_one_or_none()
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")

    return payload
