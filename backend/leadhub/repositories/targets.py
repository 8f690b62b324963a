import textwrap
from typing import Optional

from ..db.pool import build_set_clause, fetch_all, fetch_one

TARGET_SELECT = textwrap.dedent("""
    SELECT t.id, t.admin_id, a.name AS admin_name, t.month, t.year, t.monthly_target, t.daily_target
    FROM admin_targets t
    LEFT JOIN admins a ON t.admin_id = a.id
""")


async def list_targets(month: Optional[int] = None, year: Optional[int] = None):
    if month is not None and year is not None:
        return await fetch_all(TARGET_SELECT + "WHERE t.month = %s AND t.year = %s ORDER BY a.name", (month, year))
    return await fetch_all(TARGET_SELECT + "ORDER BY t.year DESC, t.month DESC, a.name", None)


async def get_target(target_id: int):
    return await fetch_one(TARGET_SELECT + "WHERE t.id = %s", (target_id,))


async def upsert_target(admin_id: int, month: int, year: int, monthly_target: int, daily_target: int):
    row = await fetch_one(
        textwrap.dedent("""
            INSERT INTO admin_targets (admin_id, month, year, monthly_target, daily_target)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (admin_id, month, year)
            DO UPDATE SET monthly_target = EXCLUDED.monthly_target, daily_target = EXCLUDED.daily_target
            RETURNING id
        """),
        (admin_id, month, year, monthly_target, daily_target),
    )
    return await get_target(row["id"])


async def update_target(target_id: int, fields: dict):
    set_sql, params = build_set_clause(fields)
    row = await fetch_one(f"UPDATE admin_targets SET {set_sql} WHERE id = %s RETURNING id", (*params, target_id))
    if row is None:
        return None
    return await get_target(row["id"])


async def delete_target(target_id: int):
    return await fetch_one("DELETE FROM admin_targets WHERE id = %s RETURNING id", (target_id,))
