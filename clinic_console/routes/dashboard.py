from fastapi import APIRouter, Depends

from clinic_console.dependencies.services import get_dashboard_service
from clinic_console.schemas.dashboard import DashboardSummary
from clinic_console.services import DashboardService

router = APIRouter()


@router.get("", response_model=DashboardSummary)
async def dashboard(service: DashboardService = Depends(get_dashboard_service)):
    return await service.load()
