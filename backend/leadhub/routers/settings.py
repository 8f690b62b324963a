import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from psycopg.errors import ForeignKeyViolation

from ..core.security import hash_password, require_capability
from ..repositories import admins as admins_repo
from ..repositories import leads as leads_repo
from ..repositories import products as products_repo
from ..repositories import targets as targets_repo
from ..schemas.analytics import ReconcileReport
from ..schemas.crm import Lead
from ..schemas.settings import (
    Admin,
    AdminCreate,
    AdminTarget,
    AdminUpdate,
    Product,
    ProductCreate,
    ProductUpdate,
    SubProduct,
    SubProductCreate,
    SubProductUpdate,
    TargetUpdate,
    TargetUpsert,
)
from ..services.analytics import reconcile_admin_totals
from ..services.catalog import generate_slug, validate_slug

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/settings",
    tags=["settings"],
    dependencies=[Depends(require_capability("settings"))],
)


def _write_failed(action: str):
    logger.exception("Failed to %s", action)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


async def _check_slug(slug: str, exclude_id: Optional[int] = None):
    error = validate_slug(slug)
    if error:
        raise HTTPException(status_code=400, detail=error)
    if await products_repo.slug_taken(slug, exclude_id):
        raise HTTPException(status_code=409, detail="Slug already in use")


# ==============================
# PRODUCTS
# ==============================
@router.get("/products", response_model=List[Product])
async def list_products():
    try:
        return await products_repo.list_products()
    except Exception:
        logger.exception("Failed to fetch products")
        return []


@router.post("/products", response_model=Product, status_code=status.HTTP_201_CREATED)
async def create_product(payload: ProductCreate):
    slug = payload.slug or generate_slug(payload.name)
    await _check_slug(slug)
    try:
        product = await products_repo.create_product(payload.name.strip(), slug, payload.is_active)
    except Exception:
        raise _write_failed("add product")
    logger.info("Product %s created with slug %s", product["id"], slug)
    return product


@router.patch("/products/{product_id}", response_model=Product)
async def update_product(product_id: int, payload: ProductUpdate):
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields provided to update")
    if "slug" in fields:
        await _check_slug(fields["slug"], exclude_id=product_id)
    try:
        product = await products_repo.update_product(product_id, fields)
    except Exception:
        raise _write_failed("update product")
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(product_id: int):
    try:
        deleted = await products_repo.delete_product(product_id)
    except ForeignKeyViolation:
        raise HTTPException(status_code=409, detail="Product has leads")
    except Exception:
        raise _write_failed("delete product")
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info("Product %s deleted", product_id)
    return None


# ==============================
# SUB PRODUCTS
# ==============================
@router.get("/products/{product_id}/sub-products", response_model=List[SubProduct])
async def list_sub_products(product_id: int):
    try:
        return await products_repo.list_sub_products(product_id)
    except Exception:
        logger.exception("Failed to fetch packages for product %s", product_id)
        return []


@router.post("/products/{product_id}/sub-products", response_model=SubProduct, status_code=status.HTTP_201_CREATED)
async def create_sub_product(product_id: int, payload: SubProductCreate):
    if not await products_repo.get_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    try:
        return await products_repo.create_sub_product(product_id, payload.name.strip(), payload.price, payload.is_active)
    except Exception:
        raise _write_failed("add package")


@router.patch("/sub-products/{sub_product_id}", response_model=SubProduct)
async def update_sub_product(sub_product_id: int, payload: SubProductUpdate):
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields provided to update")
    try:
        sub_product = await products_repo.update_sub_product(sub_product_id, fields)
    except Exception:
        raise _write_failed("update package")
    if not sub_product:
        raise HTTPException(status_code=404, detail="Package not found")
    return sub_product


@router.delete("/sub-products/{sub_product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_sub_product(sub_product_id: int):
    try:
        deleted = await products_repo.delete_sub_product(sub_product_id)
    except Exception:
        raise _write_failed("delete package")
    if not deleted:
        raise HTTPException(status_code=404, detail="Package not found")
    return None


# ==============================
# ADMINS
# ==============================
@router.get("/admins", response_model=List[Admin])
async def list_admins():
    try:
        return await admins_repo.list_admins()
    except Exception:
        logger.exception("Failed to fetch admins")
        return []


@router.post("/admins", response_model=Admin, status_code=status.HTTP_201_CREATED)
async def create_admin(payload: AdminCreate):
    if await admins_repo.get_admin_credentials(payload.email):
        raise HTTPException(status_code=409, detail="Email already registered")
    try:
        admin = await admins_repo.create_admin(
            name=payload.name.strip(),
            email=payload.email,
            password_hash=hash_password(payload.password),
            role=payload.role,
            whatsapp_number=payload.whatsapp_number,
            whatsapp_active=payload.whatsapp_active,
        )
    except Exception:
        raise _write_failed("add admin")
    logger.info("Admin %s created with role %s", admin["id"], payload.role)
    return admin


@router.patch("/admins/{admin_id}", response_model=Admin)
async def update_admin(admin_id: int, payload: AdminUpdate):
    fields = {
        key: value for key, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or key == "whatsapp_number"
    }
    if not fields:
        raise HTTPException(status_code=400, detail="No fields provided to update")
    try:
        admin = await admins_repo.update_admin(admin_id, fields)
    except Exception:
        raise _write_failed("update admin")
    if not admin:
        raise HTTPException(status_code=404, detail="Admin not found")
    return admin


@router.post("/admins/reconcile", response_model=ReconcileReport)
async def reconcile_admins():
    """Recompute each admin's cached lead/closing/revenue totals from the leads table."""
    try:
        admins = [Admin(**row) for row in await admins_repo.list_admins()]
        leads = [Lead(**row) for row in await leads_repo.list_leads()]
    except Exception:
        raise _write_failed("load data for reconciliation")

    corrections = reconcile_admin_totals(admins, leads)
    try:
        for fix in corrections:
            await admins_repo.write_totals(fix.admin_id, fix.total_leads, fix.total_closings, fix.total_revenue)
    except Exception:
        raise _write_failed("write admin totals")

    logger.info("Reconciled %s admins, %s corrected", len(admins), len(corrections))
    return ReconcileReport(checked=len(admins), corrections=corrections)


# ==============================
# TARGETS
# ==============================
@router.get("/targets", response_model=List[AdminTarget])
async def list_targets(
    month: Optional[int] = Query(default=None, ge=1, le=12),
    year: Optional[int] = Query(default=None, ge=2000, le=2100),
):
    try:
        return await targets_repo.list_targets(month, year)
    except Exception:
        logger.exception("Failed to fetch targets")
        return []


@router.put("/targets", response_model=AdminTarget)
async def upsert_target(payload: TargetUpsert):
    if not await admins_repo.get_admin(payload.admin_id):
        raise HTTPException(status_code=404, detail="Admin not found")
    try:
        return await targets_repo.upsert_target(
            payload.admin_id, payload.month, payload.year, payload.monthly_target, payload.daily_target,
        )
    except Exception:
        raise _write_failed("save target")


@router.patch("/targets/{target_id}", response_model=AdminTarget)
async def update_target(target_id: int, payload: TargetUpdate):
    fields = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        raise HTTPException(status_code=400, detail="No fields provided to update")
    try:
        target = await targets_repo.update_target(target_id, fields)
    except Exception:
        raise _write_failed("update target")
    if not target:
        raise HTTPException(status_code=404, detail="Target not found")
    return target


@router.delete("/targets/{target_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_target(target_id: int):
    try:
        deleted = await targets_repo.delete_target(target_id)
    except Exception:
        raise _write_failed("delete target")
    if not deleted:
        raise HTTPException(status_code=404, detail="Target not found")
    return None
