from sqlalchemy.ext.asyncio import AsyncSession
from sensore.services.user_store import UserStore


class DashboardService:
    async def get_dashboard_stats(self, db: AsyncSession) -> dict:
        """Account counts, recomputed on every call."""
        store = UserStore(db)
        return {
            "total_users": await store.count(),
            "clinicians": await store.count("clinician"),
            "patients": await store.count("patient"),
            # Clinician link requests are not tracked yet
            "pending_requests": 0,
        }


dashboard_service = DashboardService()
