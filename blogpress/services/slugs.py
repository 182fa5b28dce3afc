"""Slug derivation and lookup helpers shared by posts and categories."""
import re

from sqlalchemy import case, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

_SLUG_STRIP_RE = re.compile(r"[^\w\s-]")
_SLUG_SPACE_RE = re.compile(r"[\s_]+")
_SLUG_DASH_RE = re.compile(r"-+")

# A concurrent writer can take a free slug between the check and the INSERT.
SLUG_ATTEMPTS = 2


def slugify(text: str, fallback: str = "item") -> str:
    """Return a URL-safe, lowercase slug derived from *text*."""
    text = _SLUG_STRIP_RE.sub("", text.lower().strip())
    text = _SLUG_SPACE_RE.sub("-", text)
    slug = _SLUG_DASH_RE.sub("-", text).strip("-")
    return slug or fallback


async def unique_slug(db: AsyncSession, model, base: str, exclude_id: int | None = None) -> str:
    """
    Return *base*, or *base* with the first free ``-N`` suffix when another
    row of *model* already owns it.
    """
    slug = base
    suffix = 2
    while True:
        q = select(model.id).where(model.slug == slug)
        if exclude_id is not None:
            q = q.where(model.id != exclude_id)
        if (await db.execute(q.limit(1))).first() is None:
            return slug
        slug = f"{base}-{suffix}"
        suffix += 1


def id_or_slug_filter(model, value: str):
    """
    WHERE clause and ORDER BY key for a lookup by id or slug.

    Numeric values match either column, preferring the id; anything else
    can only be a slug.
    """
    if value.isdigit():
        record_id = int(value)
        clause = or_(model.id == record_id, model.slug == value)
        return clause, case((model.id == record_id, 0), else_=1)
    return model.slug == value, model.id
