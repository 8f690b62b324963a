import logging
from datetime import datetime, timezone
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.security import require_capability
from ..repositories import handle_customers as handle_customers_repo
from ..schemas.crm import HandleCustomer, HandleCustomerList, HandleCustomerUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/handle-customers", tags=["handle-customers"])


def filter_customers(
    customers: List[HandleCustomer],
    search: Optional[str] = None,
    contacted: Optional[str] = None,
) -> List[HandleCustomer]:
    filtered = customers
    if search:
        term = search.lower()
        filtered = [
            c for c in filtered
            if term in c.name.lower()
            or search in c.phone
            or term in (c.sub_product_name or "").lower()
        ]
    if contacted:
        wanted = contacted == "contacted"
        filtered = [c for c in filtered if c.is_contacted == wanted]
    return filtered


def contact_values(current: HandleCustomer, payload: HandleCustomerUpdate, now: datetime) -> dict:
    values = payload.model_dump(exclude_unset=True)
    if values.get("is_contacted") and not current.contacted_at:
        values["contacted_at"] = now
    values["updated_at"] = now
    return values


@router.get("", response_model=HandleCustomerList)
async def get_handle_customers(
    search: Optional[str] = None,
    contacted: Optional[Literal["contacted", "not_contacted"]] = None,
    current_user=Depends(require_capability("handle_customers")),
):
    try:
        customers = [HandleCustomer(**row) for row in await handle_customers_repo.list_handle_customers()]
    except Exception:
        logger.exception("Failed to fetch handle customers")
        customers = []

    filtered = filter_customers(customers, search, contacted)
    return HandleCustomerList(total=len(customers), count=len(filtered), customers=filtered)


async def _write(customer_id: int, values: dict, action: str) -> HandleCustomer:
    try:
        await handle_customers_repo.update_handle_customer(customer_id, values)
    except Exception:
        logger.exception("Failed to %s for handle customer %s", action, customer_id)
        raise HTTPException(status_code=500, detail=f"Failed to {action}")
    return HandleCustomer(**await handle_customers_repo.get_handle_customer(customer_id))


@router.patch("/{customer_id}", response_model=HandleCustomer)
async def update_handle_customer(
    customer_id: int,
    payload: HandleCustomerUpdate,
    current_user=Depends(require_capability("handle_customers")),
):
    row = await handle_customers_repo.get_handle_customer(customer_id)
    if not row:
        raise HTTPException(status_code=404, detail="Customer not found")

    values = contact_values(HandleCustomer(**row), payload, datetime.now(timezone.utc))
    return await _write(customer_id, values, "update customer")


@router.post("/{customer_id}/contacted", response_model=HandleCustomer)
async def mark_as_contacted(
    customer_id: int,
    current_user=Depends(require_capability("handle_customers")),
):
    row = await handle_customers_repo.get_handle_customer(customer_id)
    if not row:
        raise HTTPException(status_code=404, detail="Customer not found")

    now = datetime.now(timezone.utc)
    values = {"is_contacted": True, "contacted_at": now, "updated_at": now}
    return await _write(customer_id, values, "update contact status")
