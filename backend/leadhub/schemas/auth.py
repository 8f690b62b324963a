from pydantic import BaseModel, EmailStr, Field
from typing import List, Optional, Literal

Role = Literal[
    "admin",
    "handle_customer",
    "super_admin",
]

class SignUpRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1, max_length=200)

class LoginRequest(BaseModel):
    email: EmailStr
    password: str

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserPublic(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool
    whatsapp_number: Optional[str] = None
    whatsapp_active: bool = False

class Session(BaseModel):
    user: UserPublic
    capabilities: List[str]
