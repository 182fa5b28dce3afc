from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from blogpress.database import get_db
from blogpress.dependencies import PaginationParams, get_current_user
from blogpress.models import User
from blogpress.schemas import CommentCreate, PostWrite
from blogpress.services import comment_service, post_service

router = APIRouter(prefix="/api/posts", tags=["posts"])


@router.get("")
async def list_posts(
    pagination: PaginationParams = Depends(),
    category: int | None = Query(None, description="Only posts in this category id."),
    search: str | None = Query(None, description="Substring of title, content or a tag."),
    db: AsyncSession = Depends(get_db),
):
    page = await post_service.list_posts(
        db, pagination.page, pagination.limit, category_id=category, search=search
    )
    return {
        "success": True,
        "count": len(page.items),
        "data": page.items,
        "pagination": page.pagination.model_dump(by_alias=True),
    }


# Declared before "/{id_or_slug}" so "search" is never read as a slug.
@router.get("/search")
async def search_posts(q: str | None = Query(None), db: AsyncSession = Depends(get_db)):
    posts = await post_service.search_posts(db, q)
    return {"success": True, "count": len(posts), "data": posts}


@router.get("/{id_or_slug}")
async def get_post(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await post_service.get_post(db, id_or_slug)}


@router.post("", status_code=201)
async def create_post(
    data: PostWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return {"success": True, "data": await post_service.create_post(db, user.id, data)}


@router.put("/{post_id}")
async def update_post(
    post_id: int,
    data: PostWrite,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    post = await post_service.update_post(db, user.id, user.role, post_id, data)
    return {"success": True, "data": post}


@router.delete("/{post_id}")
async def delete_post(
    post_id: int,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await post_service.delete_post(db, user.id, user.role, post_id)
    return {"success": True, "data": {}}


@router.post("/{post_id}/comments", status_code=201)
async def add_comment(
    post_id: int,
    data: CommentCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comments = await comment_service.add_comment(db, post_id, user.id, data)
    return {"success": True, "count": len(comments), "data": comments}
