import textwrap
from typing import Optional

from ..db.pool import build_set_clause, fetch_all, fetch_one

HANDLE_CUSTOMER_SELECT = textwrap.dedent("""
    SELECT
        hc.id, hc.lead_id, hc.name, hc.phone, hc.sub_product_name, hc.source,
        hc.assigned_hc_id, a.name AS assigned_hc_name,
        hc.is_contacted, hc.contacted_at, hc.notes,
        hc.created_at, hc.updated_at
    FROM handle_customers hc
    LEFT JOIN admins a ON hc.assigned_hc_id = a.id
""")


async def list_handle_customers():
    return await fetch_all(HANDLE_CUSTOMER_SELECT + "ORDER BY hc.created_at DESC", None)


async def get_handle_customer(customer_id: int):
    return await fetch_one(HANDLE_CUSTOMER_SELECT + "WHERE hc.id = %s", (customer_id,))


async def create_from_lead(lead_id: int, assigned_hc_id: Optional[int]):
    """Spawn the post-closing record for a lead; does nothing if one already exists."""
    query = textwrap.dedent("""
        INSERT INTO handle_customers (lead_id, name, phone, sub_product_name, source, assigned_hc_id, created_at, updated_at)
        SELECT l.id, l.name, l.phone, sp.name, l.source, %s, NOW(), NOW()
        FROM leads l
        LEFT JOIN sub_products sp ON l.sub_product_id = sp.id
        WHERE l.id = %s
        ON CONFLICT (lead_id) DO NOTHING
        RETURNING id
    """)
    return await fetch_one(query, (assigned_hc_id, lead_id))


async def update_handle_customer(customer_id: int, values: dict):
    set_sql, params = build_set_clause(values)
    return await fetch_one(
        f"UPDATE handle_customers SET {set_sql} WHERE id = %s RETURNING id",
        (*params, customer_id),
    )
