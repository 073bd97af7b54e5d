"""Cron trigger endpoints, guarded by the shared X-Cron-Secret header."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import get_db
from ..dependencies import get_services, verify_cron_secret
from ..services import Services

router = APIRouter(
    prefix="/api/cron",
    tags=["cron"],
    dependencies=[Depends(verify_cron_secret)],
)


@router.post("/remind-next-month-schedule")
async def remind_next_month_schedule(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    summary = await services.reminders.remind_next_month_schedule(db)
    return summary.as_dict()


@router.post("/remind-service-songs-entry")
async def remind_service_songs_entry(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    summary = await services.reminders.remind_service_songs_entry(db)
    return summary.as_dict()


@router.post("/remind-upcoming-service-members")
async def remind_upcoming_service_members(
    db: AsyncSession = Depends(get_db),
    services: Services = Depends(get_services),
):
    summary = await services.reminders.remind_upcoming_service_members(db)
    return summary.as_dict()
