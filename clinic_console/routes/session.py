from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from clinic_console.dependencies.services import get_auth_service, get_session
from clinic_console.routes.errors import http_error
from clinic_console.schemas.auth import AuthResponse, LoginRequest, User
from clinic_console.services import AuthService
from clinic_console.services.exceptions import ServiceError, UnauthorizedError
from clinic_console.session import SessionContext

router = APIRouter()


class SessionStatus(BaseModel):
    authenticated: bool
    user: Optional[User] = None


@router.get("", response_model=SessionStatus)
async def session_status(session: SessionContext = Depends(get_session)):
    return SessionStatus(authenticated=session.is_authenticated, user=session.user)


@router.post("/login", response_model=AuthResponse)
async def login(req: LoginRequest, service: AuthService = Depends(get_auth_service)):
    try:
        return await service.login(req)
    except UnauthorizedError:
        raise
    except ServiceError as exc:
        raise http_error(exc) from exc


@router.post("/logout", response_model=SessionStatus)
async def logout(service: AuthService = Depends(get_auth_service)):
    service.logout()
    return SessionStatus(authenticated=False)
