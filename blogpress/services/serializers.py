"""
Serialisation helpers turning ORM instances into camelCase dicts.

Related records are "attached" as small reference dicts holding only the
fields each view exposes (e.g. author name and avatar on list items).
Relationships must already be eager-loaded by the caller.
"""
from datetime import datetime

from blogpress.models import Category, Comment, Post, User


def iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def user_ref(user: User | None, with_bio: bool = False) -> dict | None:
    if user is None:
        return None
    data = {"id": user.id, "name": user.name, "avatar": user.avatar}
    if with_bio:
        data["bio"] = user.bio
    return data


def category_ref(category: Category | None) -> dict | None:
    if category is None:
        return None
    return {"id": category.id, "name": category.name, "color": category.color}


def category_to_dict(category: Category) -> dict:
    return {
        "id": category.id,
        "name": category.name,
        "slug": category.slug,
        "description": category.description,
        "color": category.color,
        "createdAt": iso(category.created_at),
        "updatedAt": iso(category.updated_at),
    }


def comment_to_dict(comment: Comment) -> dict:
    return {
        "id": comment.id,
        "user": user_ref(comment.user),
        "content": comment.content,
        "createdAt": iso(comment.created_at),
    }


def post_to_dict(post: Post, author_bio: bool = False) -> dict:
    """List/write view: every stored field plus author and category references."""
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "content": post.content,
        "excerpt": post.excerpt,
        "author": user_ref(post.author, with_bio=author_bio),
        "category": category_ref(post.category),
        "tags": [tag.name for tag in post.tags],
        "isPublished": post.is_published,
        "viewCount": post.view_count,
        "createdAt": iso(post.created_at),
        "updatedAt": iso(post.updated_at),
    }


def post_detail_to_dict(post: Post) -> dict:
    """Detail view: adds the author bio and the comment thread."""
    data = post_to_dict(post, author_bio=True)
    data["comments"] = [comment_to_dict(c) for c in post.comments]
    return data


def post_summary_to_dict(post: Post) -> dict:
    """
    Lightweight post dict for embedding inside a user profile.

    Content and author are omitted; the profile already is the author.
    """
    return {
        "id": post.id,
        "title": post.title,
        "slug": post.slug,
        "excerpt": post.excerpt,
        "category": category_ref(post.category),
        "tags": [tag.name for tag in post.tags],
        "isPublished": post.is_published,
        "viewCount": post.view_count,
        "createdAt": iso(post.created_at),
    }
