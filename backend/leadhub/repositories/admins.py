import textwrap
from typing import Optional

from ..db.pool import build_set_clause, fetch_all, fetch_one

ADMIN_COLUMNS = """
    id, name, email, role, is_active, whatsapp_number, whatsapp_active,
    total_leads, total_closings, total_revenue, created_at
"""


async def get_admin(admin_id: int):
    return await fetch_one(f"SELECT {ADMIN_COLUMNS} FROM admins WHERE id = %s", (admin_id,))


async def get_admin_credentials(email: str):
    return await fetch_one(
        "SELECT id, email, password_hash, role, is_active FROM admins WHERE LOWER(email) = LOWER(%s)",
        (email,),
    )


async def count_admins() -> int:
    row = await fetch_one("SELECT COUNT(1) AS c FROM admins", None)
    return row["c"]


async def list_admins(active_only: bool = False):
    where = "WHERE is_active = true" if active_only else ""
    return await fetch_all(f"SELECT {ADMIN_COLUMNS} FROM admins {where} ORDER BY created_at DESC", None)


async def create_admin(name: str, email: str, password_hash: str, role: str,
                       whatsapp_number: Optional[str] = None, whatsapp_active: bool = False):
    query = textwrap.dedent(f"""
        INSERT INTO admins (name, email, password_hash, role, whatsapp_number, whatsapp_active, created_at, updated_at)
        VALUES (%s, %s, %s, %s, %s, %s, NOW(), NOW())
        RETURNING {ADMIN_COLUMNS}
    """)
    return await fetch_one(query, (name, email, password_hash, role, whatsapp_number, whatsapp_active))


async def update_admin(admin_id: int, fields: dict):
    set_sql, params = build_set_clause(fields)
    query = textwrap.dedent(f"""
        UPDATE admins SET {set_sql}, updated_at = NOW()
        WHERE id = %s
        RETURNING {ADMIN_COLUMNS}
    """)
    return await fetch_one(query, (*params, admin_id))


async def pick_lead_assignee():
    """Active agent with the fewest leads; oldest account wins a tie."""
    query = textwrap.dedent("""
        SELECT a.id, a.name, a.whatsapp_number, a.whatsapp_active
        FROM admins a
        LEFT JOIN leads l ON l.assigned_admin_id = a.id
        WHERE a.role = 'admin' AND a.is_active = true
        GROUP BY a.id
        ORDER BY COUNT(l.id) ASC, a.created_at ASC, a.id ASC
        LIMIT 1
    """)
    return await fetch_one(query, None)


async def pick_handle_customer_agent():
    query = textwrap.dedent("""
        SELECT a.id, a.name
        FROM admins a
        LEFT JOIN handle_customers hc ON hc.assigned_hc_id = a.id
        WHERE a.role = 'handle_customer' AND a.is_active = true
        GROUP BY a.id
        ORDER BY COUNT(hc.id) ASC, a.created_at ASC, a.id ASC
        LIMIT 1
    """)
    return await fetch_one(query, None)


async def write_totals(admin_id: int, total_leads: int, total_closings: int, total_revenue: float):
    return await fetch_one(
        textwrap.dedent("""
            UPDATE admins
            SET total_leads = %s, total_closings = %s, total_revenue = %s, updated_at = NOW()
            WHERE id = %s
            RETURNING id
        """),
        (total_leads, total_closings, total_revenue, admin_id),
    )
