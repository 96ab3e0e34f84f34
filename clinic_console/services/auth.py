from __future__ import annotations

import logging
import secrets
from typing import Any, Dict

from pydantic import ValidationError

from clinic_console.clients.http import ServiceClient
from clinic_console.schemas.auth import AuthResponse, LoginRequest, RegisterRequest, User
from clinic_console.services.exceptions import TransportError

logger = logging.getLogger(__name__)


class AuthService:
    """Signs operators in against the authentication service.

    A successful login stores the issued token and user in the client's
    session, which every other client shares.
    """

    def __init__(self, client: ServiceClient) -> None:
        self._client = client

    async def login(self, request: LoginRequest) -> AuthResponse:
        logger.info("Logging in %s", request.email)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            response = AuthResponse(
                token=f"mock-{secrets.token_hex(16)}",
                user=User(id=1, email=request.email, name=request.email.split("@")[0], role="Admin"),
            )
        else:
            data = await self._client.post("/api/auth/login", request.to_payload())
            response = _decode(data)

        self._client.session.authenticate(response.token, response.user)
        return response

    async def register(self, request: RegisterRequest) -> Dict[str, Any]:
        logger.info("Registering %s", request.email)
        if self._client.use_mock_data:
            await self._client.simulate_latency()
            return {"email": request.email, "name": request.name}
        return await self._client.post("/api/auth/register", request.to_payload()) or {}

    def logout(self) -> None:
        logger.info("Logging out")
        self._client.session.clear()


def _decode(data: Any) -> AuthResponse:
    try:
        return AuthResponse.model_validate(data)
    except ValidationError as exc:
        logger.exception("Login payload could not be decoded")
        raise TransportError("Unparseable login response", cause=exc) from exc
