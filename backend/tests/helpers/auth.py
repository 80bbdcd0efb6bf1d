"""Bearer-token headers for test users."""

from mockexam.core.security import create_access_token
from mockexam.models.user import User


def auth_headers_for(user: User) -> dict[str, str]:
    token = create_access_token(str(user.id), user.role)
    return {"Authorization": f"Bearer {token}"}
