from fastapi import APIRouter, Depends

from clinic_console.config import Settings, get_settings
from clinic_console.dependencies.services import get_session
from clinic_console.session import SessionContext

router = APIRouter()


@router.get("/health")
def health(
    settings: Settings = Depends(get_settings),
    session: SessionContext = Depends(get_session),
):
    return {
        "ok": True,
        "mockData": settings.use_mock_data,
        "authenticated": session.is_authenticated,
    }
