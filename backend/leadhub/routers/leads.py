import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from ..core.security import require_capability
from ..repositories import admins as admins_repo
from ..repositories import handle_customers as handle_customers_repo
from ..repositories import leads as leads_repo
from ..schemas.crm import Assignee, Lead, LeadList, LeadUpdate
from ..services.lifecycle import apply_lead_update

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/leads", tags=["leads"])


def filter_leads(
    leads: List[Lead],
    search: Optional[str] = None,
    stage: Optional[str] = None,
    temperature: Optional[str] = None,
    follow_up_status: Optional[str] = None,
    assigned_admin_id: Optional[int] = None,
) -> List[Lead]:
    filtered = leads
    if search:
        term = search.lower()
        filtered = [
            lead for lead in filtered
            if term in lead.name.lower()
            or search in lead.phone
            or term in (lead.product_name or "").lower()
        ]
    if stage:
        filtered = [lead for lead in filtered if lead.stage == stage]
    if temperature:
        filtered = [lead for lead in filtered if lead.temperature == temperature]
    if follow_up_status:
        filtered = [lead for lead in filtered if lead.follow_up_status == follow_up_status]
    if assigned_admin_id is not None:
        filtered = [lead for lead in filtered if lead.assigned_admin_id == assigned_admin_id]
    return filtered


# ==============================
# LIST LEADS
# ==============================
@router.get("", response_model=LeadList)
async def get_leads(
    search: Optional[str] = None,
    stage: Optional[str] = None,
    temperature: Optional[str] = None,
    follow_up_status: Optional[str] = None,
    assigned_admin_id: Optional[int] = None,
    current_user=Depends(require_capability("leads")),
):
    try:
        leads = [Lead(**row) for row in await leads_repo.list_leads()]
    except Exception:
        logger.exception("Failed to fetch leads")
        leads = []

    filtered = filter_leads(leads, search, stage, temperature, follow_up_status, assigned_admin_id)
    return LeadList(total=len(leads), count=len(filtered), leads=filtered)


@router.get("/assignees", response_model=List[Assignee])
async def get_assignees(current_user=Depends(require_capability("leads"))):
    try:
        admins = await admins_repo.list_admins(active_only=True)
    except Exception:
        logger.exception("Failed to fetch assignable staff")
        admins = []
    return [Assignee(**admin) for admin in admins]


@router.get("/{lead_id}", response_model=Lead)
async def get_lead(lead_id: int, current_user=Depends(require_capability("leads"))):
    row = await leads_repo.get_lead(lead_id)
    if not row:
        raise HTTPException(status_code=404, detail="Lead not found")
    return Lead(**row)


# ==============================
# UPDATE LEAD
# ==============================
@router.patch("/{lead_id}", response_model=Lead)
async def update_lead(
    lead_id: int,
    payload: LeadUpdate,
    current_user=Depends(require_capability("leads")),
):
    row = await leads_repo.get_lead(lead_id)
    if not row:
        raise HTTPException(status_code=404, detail="Lead not found")

    transition = apply_lead_update(Lead(**row), payload)

    try:
        await leads_repo.update_lead(lead_id, transition.values)
        # Every save of a closed lead ensures its handle-customer record exists;
        # create_from_lead skips leads that already have one
        if transition.is_closing:
            agent = await admins_repo.pick_handle_customer_agent()
            await handle_customers_repo.create_from_lead(lead_id, agent["id"] if agent else None)
    except Exception:
        logger.exception("Failed to update lead %s", lead_id)
        raise HTTPException(status_code=500, detail="Failed to update lead")

    logger.info(
        "Lead %s updated by admin %s (stage=%s)",
        lead_id, current_user["id"], transition.values["stage"],
    )
    return Lead(**await leads_repo.get_lead(lead_id))
