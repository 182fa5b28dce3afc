"""
Post service: business logic for the Post aggregate.

Design notes
------------
- Only published posts are visible through list and search.  Both share
  one filter: a case-insensitive substring match over title, content and
  any tag.  LIKE wildcards in the user's text are escaped, so ``50%``
  matches literally.
- List and search pages go through the cache-aside pattern (Redis →
  fallback to DB).  Cache keys encode every dimension that affects the
  result.  Any post write, and any category write, purges them.
- Eager loading via ``joinedload`` (many-to-one: author, category) and
  ``selectinload`` (one-to-many: tags, comments) is used throughout;
  relationships are ``lazy="noload"`` so nothing loads implicitly.
- The view counter is bumped with a single ``UPDATE ... SET view_count =
  view_count + 1`` so concurrent readers never lose increments.
- Creates and updates flush inside a SAVEPOINT.  A constraint failure
  (slug taken, post or category deleted meanwhile) rolls back only that
  attempt, and the write is re-checked and retried once.
- Service functions flush but do not commit; the transaction boundary
  is owned by the ``get_db`` dependency in the router layer.
"""
import logging
import math

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload
from sqlalchemy.orm.attributes import set_committed_value
from sqlalchemy.orm.exc import StaleDataError

from blogpress.cache import POST_LIST_PREFIX, POST_SEARCH_PREFIX, cache
from blogpress.config import settings
from blogpress.exceptions import (
    ForbiddenError,
    InvalidReferenceError,
    NotFoundError,
    ValidationError,
)
from blogpress.models import ROLE_ADMIN, Category, Comment, Post, PostTag
from blogpress.schemas import Pagination, PostPage, PostWrite
from blogpress.services.serializers import post_detail_to_dict, post_to_dict
from blogpress.services.slugs import SLUG_ATTEMPTS, id_or_slug_filter, slugify, unique_slug

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Query helpers
# ---------------------------------------------------------------------------


def _like_pattern(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def search_filter(text: str):
    """Case-insensitive substring match against title OR content OR any tag."""
    pattern = _like_pattern(text)
    return or_(
        Post.title.ilike(pattern, escape="\\"),
        Post.content.ilike(pattern, escape="\\"),
        Post.tags.any(PostTag.name.ilike(pattern, escape="\\")),
    )


def _post_query(detail: bool = False):
    q = select(Post).options(
        joinedload(Post.author),
        joinedload(Post.category),
        selectinload(Post.tags),
    )
    if detail:
        q = q.options(selectinload(Post.comments).joinedload(Comment.user))
    return q


def _newest_first(q):
    # id breaks ties between posts created within the same clock tick
    return q.order_by(Post.created_at.desc(), Post.id.desc())


async def _load_post(db: AsyncSession, post_id: int, detail: bool = False) -> Post | None:
    q = (
        _post_query(detail)
        .where(Post.id == post_id)
        .execution_options(populate_existing=True)
    )
    result = await db.execute(q)
    return result.unique().scalar_one_or_none()


def _build_tags(names: list[str]) -> list[PostTag]:
    return [PostTag(name=name, position=i) for i, name in enumerate(names)]


async def _ensure_category(db: AsyncSession, category_id: int) -> None:
    if await db.get(Category, category_id) is None:
        raise InvalidReferenceError(
            "Category not found", context={"category_id": category_id}
        )


async def _apply_changes(db: AsyncSession, post: Post, data: PostWrite) -> None:
    changes = data.model_dump(exclude_unset=True)
    tags = changes.pop("tags", None)
    post.category_id = changes.pop("category")

    if changes["title"] != post.title:
        post.slug = await unique_slug(
            db, Post, slugify(changes["title"], "post"), exclude_id=post.id
        )
    for field, value in changes.items():
        setattr(post, field, value)
    if tags is not None:
        post.tags = _build_tags(tags)


def _ensure_can_modify(post: Post, requester_id: int, requester_role: str, action: str) -> None:
    if post.author_id != requester_id and requester_role != ROLE_ADMIN:
        raise ForbiddenError(
            f"Not authorized to {action} this post",
            context={"post_id": post.id, "requester_id": requester_id},
        )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def list_posts(
    db: AsyncSession,
    page: int = 1,
    limit: int = 10,
    category_id: int | None = None,
    search: str | None = None,
) -> PostPage:
    """
    Return one page of published posts, newest first, with pagination
    metadata.

    Two SQL statements are issued on a cache miss (plus the tag
    ``selectinload``):
    1. COUNT: total matching posts.
    2. SELECT with LIMIT/OFFSET and author/category JOINs.
    """
    cache_key = f"{POST_LIST_PREFIX}:{page}:{limit}:{category_id or ''}:{search or ''}"
    cached = await cache.get(cache_key)
    if cached:
        return PostPage(**cached)

    filters = [Post.is_published.is_(True)]
    if category_id is not None:
        filters.append(Post.category_id == category_id)
    if search:
        filters.append(search_filter(search))

    # 1. Total count
    count_q = select(func.count()).select_from(Post).where(*filters)
    total: int = (await db.execute(count_q)).scalar_one()

    # 2. Requested page
    posts_q = _newest_first(_post_query().where(*filters)).offset((page - 1) * limit).limit(limit)
    result = await db.execute(posts_q)
    posts = result.unique().scalars().all()

    total_pages = math.ceil(total / limit)
    response = PostPage(
        items=[post_to_dict(p) for p in posts],
        pagination=Pagination(
            current_page=page,
            total_pages=total_pages,
            total_posts=total,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )
    await cache.set(cache_key, response.model_dump(), ttl=settings.CACHE_TTL_LIST)
    return response


async def get_post(db: AsyncSession, id_or_slug: str) -> dict:
    """
    Return the full detail dict for a post looked up by id or slug,
    incrementing its view counter by one first.

    Raises NotFoundError when nothing matches.
    """
    clause, preference = id_or_slug_filter(Post, id_or_slug)
    q = _post_query(detail=True).where(clause).order_by(preference).limit(1)
    result = await db.execute(q)
    post = result.unique().scalars().first()
    if post is None:
        raise NotFoundError("Post", id_or_slug)

    increment = (
        update(Post)
        .where(Post.id == post.id)
        .values(view_count=Post.view_count + 1)
        .returning(Post.view_count, Post.updated_at)
        .execution_options(synchronize_session=False)
    )
    view_count, updated_at = (await db.execute(increment)).one()
    set_committed_value(post, "view_count", view_count)
    set_committed_value(post, "updated_at", updated_at)

    return post_detail_to_dict(post)


async def create_post(db: AsyncSession, author_id: int, data: PostWrite) -> dict:
    """
    Create a post owned by *author_id* and return it with author and
    category attached.

    Raises InvalidReferenceError when the category does not exist.
    """
    for attempt in range(SLUG_ATTEMPTS):
        await _ensure_category(db, data.category)
        post = Post(
            title=data.title,
            slug=await unique_slug(db, Post, slugify(data.title, "post")),
            content=data.content,
            excerpt=data.excerpt,
            category_id=data.category,
            is_published=data.is_published,
            view_count=0,
            author_id=author_id,
        )
        post.tags = _build_tags(data.tags)

        try:
            async with db.begin_nested():
                db.add(post)
                await db.flush()
            break
        except IntegrityError:
            # Slug taken or category deleted meanwhile; the next pass re-checks both.
            if attempt + 1 == SLUG_ATTEMPTS:
                await _ensure_category(db, data.category)
                raise
            logger.warning("Post insert rejected by a constraint, retrying (slug=%r)", post.slug)

    logger.info("Post %s created by user %s (slug=%s)", post.id, author_id, post.slug)

    await cache.invalidate_posts()
    return post_to_dict(await _load_post(db, post.id))


async def update_post(
    db: AsyncSession,
    requester_id: int,
    requester_role: str,
    post_id: int,
    data: PostWrite,
) -> dict:
    """
    Overwrite a post with a re-validated body and return the result.

    Every field present in the body is written; optional fields the
    client omitted keep their stored value.  Tags are replaced as a whole
    and the slug follows the title.  The author never changes.

    Raises NotFoundError, ForbiddenError (neither author nor admin) or
    InvalidReferenceError (unknown category), in that order.
    """
    for attempt in range(SLUG_ATTEMPTS):
        post = await _load_post(db, post_id)
        if post is None:
            raise NotFoundError("Post", post_id)
        _ensure_can_modify(post, requester_id, requester_role, "update")
        await _ensure_category(db, data.category)

        try:
            async with db.begin_nested():
                await _apply_changes(db, post, data)
                await db.flush()
            break
        except StaleDataError as exc:
            # Deleted by a concurrent request between our read and this write.
            raise NotFoundError("Post", post_id) from exc
        except IntegrityError:
            # Either the slug was taken or the post or category vanished;
            # the next pass re-reads both.
            if attempt + 1 == SLUG_ATTEMPTS:
                raise
            logger.warning("Post %s update rejected by a constraint, retrying", post_id)

    # An unchanged body writes nothing, so a concurrent delete shows up here.
    post = await _load_post(db, post_id)
    if post is None:
        raise NotFoundError("Post", post_id)
    logger.info("Post %s updated by user %s", post_id, requester_id)

    await cache.invalidate_posts()
    return post_to_dict(post)


async def delete_post(
    db: AsyncSession, requester_id: int, requester_role: str, post_id: int
) -> None:
    """
    Hard-delete a post.  Its comments and tags go with it (ON DELETE
    CASCADE).  Same NotFound/Forbidden rules as ``update_post``.
    """
    post = await db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post", post_id)
    _ensure_can_modify(post, requester_id, requester_role, "delete")

    await db.delete(post)
    await db.flush()
    logger.info("Post %s deleted by user %s", post_id, requester_id)

    await cache.invalidate_posts()


async def search_posts(db: AsyncSession, query: str | None) -> list[dict]:
    """
    Return up to ``SEARCH_RESULT_LIMIT`` published posts matching *query*,
    newest first, without pagination metadata.

    Raises ValidationError when the query is empty or only whitespace.
    """
    text = (query or "").strip()
    if not text:
        raise ValidationError("Search query is required", field="q")

    cache_key = f"{POST_SEARCH_PREFIX}:{text}"
    cached = await cache.get(cache_key)
    if cached is not None:
        return cached

    q = _newest_first(
        _post_query().where(Post.is_published.is_(True), search_filter(text))
    ).limit(settings.SEARCH_RESULT_LIMIT)
    result = await db.execute(q)
    posts = [post_to_dict(p) for p in result.unique().scalars().all()]

    await cache.set(cache_key, posts, ttl=settings.CACHE_TTL_LIST)
    return posts
