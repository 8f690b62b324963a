import re
from typing import Optional

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")

# First path segments owned by the API itself; a product slug may not shadow them
RESERVED_SLUGS = {
    "login",
    "register",
    "logout",
    "me",
    "dashboard",
    "leads",
    "handle-customers",
    "analytics",
    "settings",
    "health",
    "docs",
    "redoc",
    "openapi.json",
    "404",
}


def generate_slug(name: str) -> str:
    """'Course A' -> 'course-a'"""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def validate_slug(slug: str) -> Optional[str]:
    """Return an error message for an unusable slug, None when it is fine."""
    if not slug:
        return "Slug must not be empty"
    if not SLUG_RE.match(slug):
        return "Slug may only contain lowercase letters, digits and single hyphens"
    if slug in RESERVED_SLUGS:
        return f"Slug '{slug}' is reserved"
    return None
