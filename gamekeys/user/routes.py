from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.auth.constants import USERS_MANAGE
from gamekeys.auth.dependencies import CurrentUser, require_capability, require_user
from gamekeys.common.utils import success_response
from gamekeys.db.dependencies import get_session
from gamekeys.schema.full_schema import Role
from gamekeys.user.constants import logger
from gamekeys.user.models import ProfileIn, RoleIn
from gamekeys.user.repository import get_profile, list_users_with_roles, set_user_role, upsert_profile

user_router=APIRouter()
user_admin_router=APIRouter()


def _profile_out(user: CurrentUser, profile) -> dict:
    return {
        "id": user.id,
        "role": user.role.value,
        "email": profile.email if profile else user.email,
        "display_name": profile.display_name if profile else None,
        "preferred_language": profile.preferred_language if profile else None,
    }


@user_router.get("/me")
async def get_user_profile(user: CurrentUser = Depends(require_user), session: AsyncSession = Depends(get_session)):
    profile = await get_profile(session, user.id)
    return success_response(_profile_out(user, profile))


@user_router.put("/me")
async def sync_user_profile(payload: ProfileIn, user: CurrentUser = Depends(require_user),
                            session: AsyncSession = Depends(get_session)):
    fields = payload.model_dump(exclude_unset=True)
    if "email" not in fields and user.email:
        fields["email"] = user.email
    profile = await upsert_profile(session, user.id, fields)
    await session.commit()
    return success_response(_profile_out(user, profile))


@user_admin_router.get("")
async def admin_list_users(q: Optional[str] = Query(None, max_length=320),
                           limit: int = Query(50, ge=1, le=200), offset: int = Query(0, ge=0),
                           user: CurrentUser = require_capability(USERS_MANAGE),
                           session: AsyncSession = Depends(get_session)):
    items, total = await list_users_with_roles(session, q, limit, offset)
    return success_response({"items": items, "total": total})


@user_admin_router.patch("/{target_user_id}/role")
async def change_user_role(target_user_id: str, payload: RoleIn,
                           user: CurrentUser = require_capability(USERS_MANAGE),
                           session: AsyncSession = Depends(get_session)):

    if user.id == target_user_id and user.role == Role.ADMIN and payload.role != Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="An admin cannot downgrade their role")

    await set_user_role(session, target_user_id, payload.role)
    await session.commit()

    logger.info("user.role.changed", extra={"actor_user_id": user.id, "target_user_id": target_user_id,
                                            "role": payload.role.value})
    return success_response({"user_id": target_user_id, "role": payload.role.value})
