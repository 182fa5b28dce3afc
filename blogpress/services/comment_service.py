"""
Comment service: append-only comment creation for the Post aggregate.

Comments cannot be edited or deleted through the API; they disappear only
together with their post.  Post list pages do not embed comments, so no
cache invalidation is needed here.
"""
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import joinedload

from blogpress.exceptions import NotFoundError
from blogpress.models import Comment, Post
from blogpress.schemas import CommentCreate
from blogpress.services.serializers import comment_to_dict

logger = logging.getLogger(__name__)


async def add_comment(
    db: AsyncSession,
    post_id: int,
    user_id: int,
    data: CommentCreate,
) -> list[dict]:
    """
    Append a comment by *user_id* to the post identified by *post_id*.

    Returns the post's whole comment thread in posting order, each entry
    with its user's name and avatar attached.  Raises NotFoundError when
    the post does not exist.
    """
    if await db.get(Post, post_id) is None:
        raise NotFoundError("Post", post_id)

    comment = Comment(post_id=post_id, user_id=user_id, content=data.content)
    db.add(comment)
    await db.flush()
    logger.info("Comment %s added to post %s by user %s", comment.id, post_id, user_id)

    q = (
        select(Comment)
        .where(Comment.post_id == post_id)
        .options(joinedload(Comment.user))
        .order_by(Comment.id)
    )
    result = await db.execute(q)
    return [comment_to_dict(c) for c in result.unique().scalars().all()]
