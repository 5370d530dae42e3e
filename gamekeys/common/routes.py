from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from gamekeys.common.retries import retry_with_db_circuit
from gamekeys.common.utils import success_response
from gamekeys.db.dependencies import get_session

home_router=APIRouter()


@retry_with_db_circuit(attempts=2)
async def _ping(session):
    await session.execute(text("SELECT 1"))


@home_router.get("/health")
async def health(session: AsyncSession = Depends(get_session)):
    await _ping(session)
    return success_response({"status": "ok"})
