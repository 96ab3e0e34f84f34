from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field

from clinic_console.schemas.common import CamelModel


class User(CamelModel):
    id: int
    email: str
    name: str
    role: Literal["Admin", "Manager", "Dentist", "Customer"]


class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RegisterRequest(CamelModel):
    name: str
    email: str
    password: str
    role: Optional[Literal["Admin", "Manager", "Dentist", "Customer"]] = None


class AuthResponse(CamelModel):
    token: str
    user: User
