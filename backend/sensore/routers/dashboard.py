from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sensore.database import get_db
from sensore.auth import SessionPrincipal, require_account_type
from sensore.schemas.dashboard import DashboardStats
from sensore.services.dashboard_service import dashboard_service

router = APIRouter()


@router.get("/stats", response_model=DashboardStats)
async def get_dashboard_stats(
    db: AsyncSession = Depends(get_db),
    current_user: SessionPrincipal = Depends(require_account_type("admin")),
):
    stats = await dashboard_service.get_dashboard_stats(db)
    return DashboardStats(**stats)
