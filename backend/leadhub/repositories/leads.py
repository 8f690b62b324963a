import textwrap
from typing import Optional

from ..db.pool import build_set_clause, fetch_all, fetch_one

LEAD_SELECT = textwrap.dedent("""
    SELECT
        l.id, l.name, l.phone, l.source,
        l.product_id, p.name AS product_name,
        l.sub_product_id, sp.name AS sub_product_name, sp.price AS sub_product_price,
        l.assigned_admin_id, a.name AS assigned_admin_name,
        l.follow_up_status, l.follow_up_notes,
        l.stage, l.payment_type, l.dp_amount, l.final_price,
        l.temperature, l.package_taken, l.closing_date,
        l.created_at, l.updated_at
    FROM leads l
    LEFT JOIN products p ON l.product_id = p.id
    LEFT JOIN sub_products sp ON l.sub_product_id = sp.id
    LEFT JOIN admins a ON l.assigned_admin_id = a.id
""")


async def list_leads(limit: Optional[int] = None):
    query = LEAD_SELECT + "ORDER BY l.created_at DESC"
    if limit is not None:
        return await fetch_all(query + " LIMIT %s", (limit,))
    return await fetch_all(query, None)


async def get_lead(lead_id: int):
    return await fetch_one(LEAD_SELECT + "WHERE l.id = %s", (lead_id,))


async def create_lead(name: str, phone: str, source: str, product_id: int,
                      sub_product_id: int, assigned_admin_id: Optional[int]):
    # stage, temperature and follow_up_status take their column defaults
    row = await fetch_one(
        textwrap.dedent("""
            INSERT INTO leads (name, phone, source, product_id, sub_product_id, assigned_admin_id, created_at, updated_at)
            VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
            RETURNING id
        """),
        (name, phone, source, product_id, sub_product_id, assigned_admin_id),
    )
    return await get_lead(row["id"])


async def update_lead(lead_id: int, values: dict):
    set_sql, params = build_set_clause(values)
    return await fetch_one(
        f"UPDATE leads SET {set_sql} WHERE id = %s RETURNING id",
        (*params, lead_id),
    )
