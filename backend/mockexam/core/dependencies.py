"""Authentication and role dependencies for the learner and admin routers.

Tokens are issued by the identity provider (or `mockexam-jobs issue-token`);
this service only verifies them and loads the matching user row.
"""

from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.orm import Session

from mockexam.core.security import verify_access_token
from mockexam.db.session import get_db
from mockexam.models.user import User, UserRole


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def bearer_token(authorization: str | None) -> str:
    """Token part of an `Authorization: Bearer <token>` header."""
    if not authorization:
        raise _unauthorized("Authorization header missing")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise _unauthorized("Invalid authorization header format. Expected: Bearer <token>")
    return token.strip()


def get_current_user(
    authorization: Annotated[str | None, Header()] = None,
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to an active user whose role still matches the token."""
    try:
        payload = verify_access_token(bearer_token(authorization))
        user_id = UUID(payload["sub"])
    except HTTPException:
        raise
    except Exception as e:
        raise _unauthorized(f"Invalid or expired token: {e}") from e

    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("User not found")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")
    # Role changed since the token was issued
    if user.role != payload.get("role"):
        raise _unauthorized("Token role mismatch. Please request a new token.")
    return user


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: 403 unless the current user holds one of `allowed_roles`."""
    allowed = {role.value for role in allowed_roles}

    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. Required roles: {sorted(allowed)}",
            )
        return current_user

    return role_checker


CurrentUser = Annotated[User, Depends(get_current_user)]
# Admins may take tests too; enrollment still gates them
StudentUser = Annotated[User, Depends(require_roles(UserRole.STUDENT, UserRole.ADMIN))]
AdminUser = Annotated[User, Depends(require_roles(UserRole.ADMIN))]
