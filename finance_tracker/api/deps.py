"""Request-scoped dependencies shared by every router."""

from typing import Any, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finance_tracker.models.user import User
from finance_tracker.orchestrator import AppComponents


bearer_scheme = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    components: AppComponents = Depends(get_components),
) -> User:
    token = credentials.credentials if credentials else None
    return await components.identity.resolve(token)


def envelope(message: str, data: Any = None) -> dict[str, Any]:
    """Success body: `{message, data}`."""
    return {"message": message, "data": data}
