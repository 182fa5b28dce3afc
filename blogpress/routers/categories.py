from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogpress.database import get_db
from blogpress.dependencies import require_admin
from blogpress.schemas import CategoryWrite
from blogpress.services import category_service

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(db: AsyncSession = Depends(get_db)):
    categories = await category_service.list_categories(db)
    return {"success": True, "count": len(categories), "data": categories}


@router.get("/{id_or_slug}")
async def get_category(id_or_slug: str, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await category_service.get_category(db, id_or_slug)}


@router.post("", status_code=201, dependencies=[Depends(require_admin)])
async def create_category(data: CategoryWrite, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await category_service.create_category(db, data)}


@router.put("/{category_id}", dependencies=[Depends(require_admin)])
async def update_category(
    category_id: int, data: CategoryWrite, db: AsyncSession = Depends(get_db)
):
    category = await category_service.update_category(db, category_id, data)
    return {"success": True, "data": category}


@router.delete("/{category_id}", dependencies=[Depends(require_admin)])
async def delete_category(category_id: int, db: AsyncSession = Depends(get_db)):
    await category_service.delete_category(db, category_id)
    return {"success": True, "data": {}}
