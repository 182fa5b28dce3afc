"""
User service: read-only profiles.

Users are provisioned outside this API (see ``scripts/seed.py``); the
service only exposes them.  A public profile lists published posts; the
owner's own profile also shows drafts and the email address.
"""
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload, selectinload

from blogpress.exceptions import NotFoundError
from blogpress.models import Post, User
from blogpress.services.serializers import iso, post_summary_to_dict


async def get_profile(db: AsyncSession, user_id: int, include_private: bool = False) -> dict:
    """
    Return the profile dict for *user_id* with a summary of their posts,
    newest first.

    Raises NotFoundError when the user does not exist.
    """
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)

    q = (
        select(Post)
        .where(Post.author_id == user_id)
        .options(joinedload(Post.category), selectinload(Post.tags))
        .order_by(Post.created_at.desc(), Post.id.desc())
    )
    if not include_private:
        q = q.where(Post.is_published.is_(True))
    posts = (await db.execute(q)).unique().scalars().all()

    data = {
        "id": user.id,
        "name": user.name,
        "avatar": user.avatar,
        "bio": user.bio,
        "role": user.role,
        "createdAt": iso(user.created_at),
        "posts": [post_summary_to_dict(p) for p in posts],
    }
    if include_private:
        data["email"] = user.email
    return data
