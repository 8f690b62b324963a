from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Stage = Literal["on_progress", "loss", "closing"]
PaymentType = Literal["full_transfer", "cod", "dp"]
LeadSource = Literal["TikTok", "Instagram", "YouTube", "Lainnya"]
Temperature = Literal["Hot", "Warm", "Cold"]
FollowUpStatus = Literal["Belum Difollow", "Dalam Proses", "Sudah Difollow"]

CLOSING: Stage = "closing"


class Lead(BaseModel):
    """A lead row joined to its product, package and assigned staff member."""

    id: int
    name: str
    phone: str
    source: Optional[str] = None
    product_id: Optional[int] = None
    product_name: Optional[str] = None
    sub_product_id: Optional[int] = None
    sub_product_name: Optional[str] = None
    sub_product_price: Optional[float] = None
    assigned_admin_id: Optional[int] = None
    assigned_admin_name: Optional[str] = None
    follow_up_status: Optional[str] = None
    follow_up_notes: Optional[str] = None
    stage: Stage = "on_progress"
    payment_type: Optional[PaymentType] = None
    dp_amount: Optional[float] = None
    final_price: Optional[float] = None
    temperature: Optional[str] = None
    package_taken: bool = False
    closing_date: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class LeadUpdate(BaseModel):
    assigned_admin_id: Optional[int] = None
    follow_up_status: Optional[FollowUpStatus] = None
    follow_up_notes: Optional[str] = None
    stage: Optional[Stage] = None
    payment_type: Optional[PaymentType] = None
    dp_amount: Optional[float] = Field(default=None, ge=0)
    final_price: Optional[float] = Field(default=None, ge=0)
    temperature: Optional[Temperature] = None
    closing_date: Optional[datetime] = None

    @field_validator("stage", "follow_up_status", "temperature")
    @classmethod
    def not_null(cls, value):
        # omit the field to keep the stored value; these columns are NOT NULL
        if value is None:
            raise ValueError("must not be null")
        return value


class LeadList(BaseModel):
    total: int
    count: int
    leads: List[Lead]


class Assignee(BaseModel):
    id: int
    name: str
    role: str


# ==============================
# PUBLIC INTAKE FORM
# ==============================
class ProductPublic(BaseModel):
    id: int
    name: str
    slug: str
    is_active: bool = True


class SubProductPublic(BaseModel):
    id: int
    product_id: int
    name: str
    price: float
    is_active: bool = True


class ProductForm(BaseModel):
    product: ProductPublic
    sub_products: List[SubProductPublic]


class IntakeSubmission(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    phone: str = Field(min_length=1, max_length=50)
    sub_product_id: int
    source: LeadSource

    @field_validator("name", "phone")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class IntakeConfirmation(BaseModel):
    lead_id: int
    product_name: str
    sub_product_name: str
    message: str


# ==============================
# HANDLE CUSTOMERS
# ==============================
class HandleCustomer(BaseModel):
    id: int
    lead_id: int
    name: str
    phone: str
    sub_product_name: Optional[str] = None
    source: Optional[str] = None
    assigned_hc_id: Optional[int] = None
    assigned_hc_name: Optional[str] = None
    is_contacted: bool = False
    contacted_at: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class HandleCustomerUpdate(BaseModel):
    is_contacted: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("is_contacted")
    @classmethod
    def not_null(cls, value):
        if value is None:
            raise ValueError("must not be null")
        return value


class HandleCustomerList(BaseModel):
    total: int
    count: int
    customers: List[HandleCustomer]
