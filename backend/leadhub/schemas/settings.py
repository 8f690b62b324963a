from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .auth import Role


class ProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    slug: Optional[str] = None  # generated from name when omitted
    is_active: bool = True


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    slug: Optional[str] = None
    is_active: Optional[bool] = None


class Product(BaseModel):
    id: int
    name: str
    slug: str
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class SubProductCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    price: float = Field(ge=0)
    is_active: bool = True


class SubProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    price: Optional[float] = Field(default=None, ge=0)
    is_active: Optional[bool] = None


class SubProduct(BaseModel):
    id: int
    product_id: int
    name: str
    price: float
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AdminCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role = "admin"
    whatsapp_number: Optional[str] = None
    whatsapp_active: bool = False


class AdminUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    role: Optional[Role] = None
    is_active: Optional[bool] = None
    whatsapp_number: Optional[str] = None
    whatsapp_active: Optional[bool] = None


class Admin(BaseModel):
    id: int
    name: str
    email: str
    role: Role
    is_active: bool
    whatsapp_number: Optional[str] = None
    whatsapp_active: bool = False
    # Denormalized caches; see POST /settings/admins/reconcile
    total_leads: int = 0
    total_closings: int = 0
    total_revenue: float = 0
    created_at: Optional[datetime] = None


class TargetUpsert(BaseModel):
    admin_id: int
    month: int = Field(ge=1, le=12)
    year: int = Field(ge=2000, le=2100)
    monthly_target: int = Field(ge=0)
    daily_target: int = Field(default=0, ge=0)


class TargetUpdate(BaseModel):
    monthly_target: Optional[int] = Field(default=None, ge=0)
    daily_target: Optional[int] = Field(default=None, ge=0)


class AdminTarget(BaseModel):
    id: int
    admin_id: int
    admin_name: Optional[str] = None
    month: int
    year: int
    monthly_target: int
    daily_target: int = 0
