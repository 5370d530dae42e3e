from typing import Optional
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.auth.constants import ROLE_CAPABILITIES, logger
from gamekeys.auth.utils import decode_token
from gamekeys.db.dependencies import get_session
from gamekeys.schema.full_schema import Role
from gamekeys.user.repository import get_user_role


class Authentication(HTTPBearer):
    def __init__(self,auto_error=True):
        super().__init__(auto_error=auto_error)

    async def __call__(self, request:Request) -> Optional[dict]:
        auth_creds=await super().__call__(request)
        if auth_creds is None:
            return None
        token=auth_creds.credentials

        decoded_token=decode_token(token)

        if not decoded_token or not decoded_token.get("sub"):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED,detail="Invalid or expired token provided.")

        return decoded_token


class CurrentUser(BaseModel):
    id: str
    role: Role
    email: Optional[str] = None

    def can(self, capability: str) -> bool:
        return capability in ROLE_CAPABILITIES.get(self.role, frozenset())


async def current_user(request: Request, session: AsyncSession = Depends(get_session)) -> Optional[CurrentUser]:
    """Resolve the caller set by the auth middleware, None for anonymous requests."""
    user_id = getattr(request.state, "user_identifier", None)
    if not user_id:
        return None
    role = await get_user_role(session, user_id)
    return CurrentUser(id=user_id, role=role, email=getattr(request.state, "user_email", None))


async def require_user(user: Optional[CurrentUser] = Depends(current_user)) -> CurrentUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Login required")
    return user


def require_capability(capability: str):
    async def _checker(user: CurrentUser = Depends(require_user)) -> CurrentUser:
        if not user.can(capability):
            logger.warning("auth.capability.denied", extra={"user_id": user.id, "role": user.role.value, "capability": capability})
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
        return user

    return Depends(_checker)
