import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from ..repositories import admins as admins_repo
from ..repositories import leads as leads_repo
from ..repositories import products as products_repo
from ..schemas.crm import (
    IntakeConfirmation,
    IntakeSubmission,
    Lead,
    ProductForm,
    ProductPublic,
    SubProductPublic,
)
from ..services.catalog import RESERVED_SLUGS
from ..services.notifications import get_whatsapp_sender, notify_assigned_admin

logger = logging.getLogger(__name__)

# Mounted last: "/{slug}" would otherwise shadow the console routes
router = APIRouter(tags=["intake"])


async def resolve_product(slug: str):
    """Active product for a public slug, or 404."""
    if slug in RESERVED_SLUGS:
        raise HTTPException(status_code=404, detail="Not found")
    try:
        product = await products_repo.get_active_product_by_slug(slug)
    except Exception:
        logger.exception("Product lookup failed for slug %s", slug)
        product = None
    if not product:
        raise HTTPException(status_code=404, detail="Not found")
    return product


@router.get("/{slug}", response_model=ProductForm)
async def get_product_form(slug: str):
    product = await resolve_product(slug)
    try:
        sub_products = await products_repo.list_active_sub_products(product["id"])
    except Exception:
        logger.exception("Failed to load packages for product %s", product["id"])
        sub_products = []
    return ProductForm(
        product=ProductPublic(**product),
        sub_products=[SubProductPublic(**sp) for sp in sub_products],
    )


@router.post("/{slug}", response_model=IntakeConfirmation, status_code=status.HTTP_201_CREATED)
async def submit_product_form(
    slug: str,
    payload: IntakeSubmission,
    background_tasks: BackgroundTasks,
    sender=Depends(get_whatsapp_sender),
):
    product = await resolve_product(slug)

    sub_product = await products_repo.get_sub_product(payload.sub_product_id)
    if not sub_product or sub_product["product_id"] != product["id"] or not sub_product["is_active"]:
        raise HTTPException(status_code=400, detail="Invalid package selection")

    try:
        assignee = await admins_repo.pick_lead_assignee()
        row = await leads_repo.create_lead(
            name=payload.name,
            phone=payload.phone,
            source=payload.source,
            product_id=product["id"],
            sub_product_id=sub_product["id"],
            assigned_admin_id=assignee["id"] if assignee else None,
        )
    except Exception:
        logger.exception("Failed to submit lead for product %s", product["id"])
        raise HTTPException(status_code=500, detail="Failed to submit form")

    lead = Lead(**row)
    logger.info("Lead %s created for product %s, assigned to %s", lead.id, product["id"], lead.assigned_admin_id)

    if assignee:
        background_tasks.add_task(notify_assigned_admin, sender, assignee, lead)

    return IntakeConfirmation(
        lead_id=lead.id,
        product_name=product["name"],
        sub_product_name=sub_product["name"],
        message=f"Thank you! Our team will contact you shortly about {product['name']} ({sub_product['name']}).",
    )
