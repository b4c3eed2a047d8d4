from typing import Optional

from pydantic import BaseModel

from users.models import UserResponse


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class AuthResponse(BaseModel):
    token: str
    expiresIn: int
    user: UserResponse
