"""
Category service: CRUD for the Category aggregate.

Admin-only access for writes is enforced by the router (``require_admin``),
not here.  Deleting a category is unconditional: posts that reference it
stay and lose their category (``ON DELETE SET NULL``).
"""
import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from blogpress.cache import cache
from blogpress.exceptions import DuplicateNameError, NotFoundError
from blogpress.models import Category
from blogpress.schemas import CategoryWrite
from blogpress.services.serializers import category_to_dict
from blogpress.services.slugs import SLUG_ATTEMPTS, id_or_slug_filter, slugify, unique_slug

logger = logging.getLogger(__name__)

DUPLICATE_NAME_MESSAGE = "Category with this name already exists"


async def _ensure_name_available(
    db: AsyncSession, name: str, exclude_id: int | None = None
) -> None:
    q = select(Category.id).where(Category.name == name)
    if exclude_id is not None:
        q = q.where(Category.id != exclude_id)
    if (await db.execute(q.limit(1))).first() is not None:
        raise DuplicateNameError(DUPLICATE_NAME_MESSAGE, context={"name": name})


async def _apply_changes(db: AsyncSession, category: Category, data: CategoryWrite) -> None:
    changes = data.model_dump(exclude_unset=True)
    if changes.get("color") is None:
        changes.pop("color", None)
    if changes["name"] != category.name:
        category.slug = await unique_slug(
            db, Category, slugify(changes["name"], "category"), exclude_id=category.id
        )
    for field, value in changes.items():
        setattr(category, field, value)


async def list_categories(db: AsyncSession) -> list[dict]:
    """Return all categories sorted by name."""
    result = await db.execute(select(Category).order_by(Category.name.asc()))
    return [category_to_dict(c) for c in result.scalars().all()]


async def get_category(db: AsyncSession, id_or_slug: str) -> dict:
    clause, preference = id_or_slug_filter(Category, id_or_slug)
    q = select(Category).where(clause).order_by(preference).limit(1)
    category = (await db.execute(q)).scalars().first()
    if category is None:
        raise NotFoundError("Category", id_or_slug)
    return category_to_dict(category)


async def create_category(db: AsyncSession, data: CategoryWrite) -> dict:
    """
    Insert a category.  The name must be free; the slug is derived from it
    and suffixed on collision.

    A unique-index failure at flush time means a concurrent writer got in
    first.  The next pass tells the two indexes apart: a taken name raises
    DuplicateNameError, a taken slug is re-derived.
    """
    for attempt in range(SLUG_ATTEMPTS):
        await _ensure_name_available(db, data.name)
        category = Category(
            name=data.name,
            slug=await unique_slug(db, Category, slugify(data.name, "category")),
            description=data.description,
        )
        if data.color is not None:
            category.color = data.color

        try:
            async with db.begin_nested():
                db.add(category)
                await db.flush()
            break
        except IntegrityError:
            if attempt + 1 == SLUG_ATTEMPTS:
                await _ensure_name_available(db, data.name)
                raise
            logger.warning("Category slug %r taken concurrently, retrying", category.slug)

    logger.info("Category %s created (name=%r)", category.id, category.name)
    return category_to_dict(category)


async def update_category(db: AsyncSession, category_id: int, data: CategoryWrite) -> dict:
    """
    Write the fields present in *data* onto the category.  The slug follows
    the name.  Cached post pages are purged since they embed category
    name and colour.
    """
    for attempt in range(SLUG_ATTEMPTS):
        category = await db.get(Category, category_id, populate_existing=True)
        if category is None:
            raise NotFoundError("Category", category_id)
        await _ensure_name_available(db, data.name, exclude_id=category_id)

        try:
            async with db.begin_nested():
                await _apply_changes(db, category, data)
                await db.flush()
            break
        except StaleDataError as exc:
            raise NotFoundError("Category", category_id) from exc
        except IntegrityError:
            if attempt + 1 == SLUG_ATTEMPTS:
                await _ensure_name_available(db, data.name, exclude_id=category_id)
                raise
            logger.warning("Category %s update rejected by a constraint, retrying", category_id)

    logger.info("Category %s updated", category_id)

    await cache.invalidate_posts()
    return category_to_dict(category)


async def delete_category(db: AsyncSession, category_id: int) -> None:
    category = await db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)

    await db.delete(category)
    await db.flush()
    logger.info("Category %s deleted", category_id)

    await cache.invalidate_posts()
