from typing import Optional
from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from gamekeys.common.utils import LIKE_ESCAPE, contains_pattern, now
from gamekeys.schema.full_schema import Profile, Role, UserRole
from gamekeys.user.constants import logger


async def get_user_role(session, user_id: str) -> Role:
    stmt=select(UserRole.role).where(UserRole.user_id==user_id)
    res=await session.execute(stmt)
    role=res.scalar_one_or_none()
    if role is None:
        return Role.USER
    try:
        return Role(role)
    except ValueError:
        logger.warning("user.role.unknown", extra={"user_id": user_id, "role": role})
        return Role.USER


async def set_user_role(session, user_id: str, role: Role):
    """`user` is the default, so it is stored as the absence of a row."""
    if role == Role.USER:
        await session.execute(delete(UserRole).where(UserRole.user_id==user_id))
        return

    stmt=update(UserRole).where(UserRole.user_id==user_id).values(role=role.value)
    res=await session.execute(stmt)
    if res.rowcount:
        return

    session.add(UserRole(user_id=user_id, role=role.value))
    try:
        await session.flush()
    except IntegrityError:
        # concurrent insert for the same user, last write wins
        await session.rollback()
        await session.execute(update(UserRole).where(UserRole.user_id==user_id).values(role=role.value))


async def get_profile(session, user_id: str) -> Optional[Profile]:
    res=await session.execute(select(Profile).where(Profile.user_id==user_id))
    return res.scalar_one_or_none()


async def upsert_profile(session, user_id: str, fields: dict) -> Profile:
    profile=await get_profile(session, user_id)
    if profile is None:
        profile=Profile(user_id=user_id, **fields)
        session.add(profile)
    else:
        for k, v in fields.items():
            setattr(profile, k, v)
        profile.updated_at=now()
    await session.flush()
    return profile


async def list_users_with_roles(session, q: Optional[str], limit: int, offset: int):
    stmt=(
        select(Profile.user_id, Profile.email, Profile.display_name, Profile.created_at, UserRole.role)
        .outerjoin(UserRole, UserRole.user_id==Profile.user_id)
    )
    count_stmt=select(func.count(Profile.id))
    if q:
        pattern=contains_pattern(q)
        cond=or_(func.lower(Profile.email).like(pattern, escape=LIKE_ESCAPE), func.lower(Profile.display_name).like(pattern, escape=LIKE_ESCAPE))
        stmt=stmt.where(cond)
        count_stmt=count_stmt.where(cond)

    stmt=stmt.order_by(Profile.created_at.desc(), Profile.id.desc()).limit(limit).offset(offset)
    rows=(await session.execute(stmt)).all()
    total=(await session.execute(count_stmt)).scalar_one()

    items=[
        {
            "user_id": r.user_id,
            "email": r.email,
            "display_name": r.display_name,
            "role": r.role or Role.USER.value,
            "created_at": r.created_at,
        }
        for r in rows
    ]
    return items, total
