from pydantic import BaseModel, ConfigDict, Field


class DashboardStats(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_users: int = Field(alias="totalUsers")
    clinicians: int
    patients: int
    pending_requests: int = Field(default=0, alias="pendingRequests")
