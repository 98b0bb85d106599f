from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from dealership.api.deps import get_current_active_user
from dealership.db.session_async import get_async_db
from dealership.models.user import User
from dealership.schemas.dashboard import CustomerDashboard
from dealership.services import dashboard_service

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("", response_model=CustomerDashboard)
async def my_dashboard(
    db: AsyncSession = Depends(get_async_db),
    current_user: User = Depends(get_current_active_user),
):
    return await dashboard_service.customer_dashboard(db, current_user)
