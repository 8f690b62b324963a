import textwrap

from ..db.pool import build_set_clause, fetch_all, fetch_one

PRODUCT_COLUMNS = "id, name, slug, is_active, created_at, updated_at"
SUB_PRODUCT_COLUMNS = "id, product_id, name, price, is_active, created_at, updated_at"


# ==============================
# PRODUCTS
# ==============================
async def get_active_product_by_slug(slug: str):
    return await fetch_one(
        f"SELECT {PRODUCT_COLUMNS} FROM products WHERE slug = %s AND is_active = true",
        (slug,),
    )


async def get_product(product_id: int):
    return await fetch_one(f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id = %s", (product_id,))


async def slug_taken(slug: str, exclude_id: int = None) -> bool:
    row = await fetch_one(
        "SELECT id FROM products WHERE slug = %s AND (%s::bigint IS NULL OR id <> %s)",
        (slug, exclude_id, exclude_id),
    )
    return row is not None


async def list_products():
    return await fetch_all(f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY created_at DESC", None)


async def create_product(name: str, slug: str, is_active: bool = True):
    query = textwrap.dedent(f"""
        INSERT INTO products (name, slug, is_active, created_at, updated_at)
        VALUES (%s, %s, %s, NOW(), NOW())
        RETURNING {PRODUCT_COLUMNS}
    """)
    return await fetch_one(query, (name, slug, is_active))


async def update_product(product_id: int, fields: dict):
    set_sql, params = build_set_clause(fields)
    query = textwrap.dedent(f"""
        UPDATE products SET {set_sql}, updated_at = NOW()
        WHERE id = %s
        RETURNING {PRODUCT_COLUMNS}
    """)
    return await fetch_one(query, (*params, product_id))


async def delete_product(product_id: int):
    return await fetch_one("DELETE FROM products WHERE id = %s RETURNING id", (product_id,))


# ==============================
# SUB PRODUCTS
# ==============================
async def list_active_sub_products(product_id: int):
    return await fetch_all(
        textwrap.dedent(f"""
            SELECT {SUB_PRODUCT_COLUMNS}
            FROM sub_products
            WHERE product_id = %s AND is_active = true
            ORDER BY price ASC, id ASC
        """),
        (product_id,),
    )


async def list_sub_products(product_id: int):
    return await fetch_all(
        f"SELECT {SUB_PRODUCT_COLUMNS} FROM sub_products WHERE product_id = %s ORDER BY price ASC, id ASC",
        (product_id,),
    )


async def get_sub_product(sub_product_id: int):
    return await fetch_one(f"SELECT {SUB_PRODUCT_COLUMNS} FROM sub_products WHERE id = %s", (sub_product_id,))


async def create_sub_product(product_id: int, name: str, price: float, is_active: bool = True):
    query = textwrap.dedent(f"""
        INSERT INTO sub_products (product_id, name, price, is_active, created_at, updated_at)
        VALUES (%s, %s, %s, %s, NOW(), NOW())
        RETURNING {SUB_PRODUCT_COLUMNS}
    """)
    return await fetch_one(query, (product_id, name, price, is_active))


async def update_sub_product(sub_product_id: int, fields: dict):
    set_sql, params = build_set_clause(fields)
    query = textwrap.dedent(f"""
        UPDATE sub_products SET {set_sql}, updated_at = NOW()
        WHERE id = %s
        RETURNING {SUB_PRODUCT_COLUMNS}
    """)
    return await fetch_one(query, (*params, sub_product_id))


async def delete_sub_product(sub_product_id: int):
    return await fetch_one("DELETE FROM sub_products WHERE id = %s RETURNING id", (sub_product_id,))
