from typing import Annotated
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from lifeledger.db.session import get_db
from lifeledger.services.schedule_engine import ScheduleEngine


DBSessionDep = Annotated[AsyncSession, Depends(get_db)]


async def get_schedule_engine(db: DBSessionDep) -> ScheduleEngine:
    return ScheduleEngine(db)


ScheduleEngineDep = Annotated[ScheduleEngine, Depends(get_schedule_engine)]
