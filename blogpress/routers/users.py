from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from blogpress.database import get_db
from blogpress.dependencies import get_current_user
from blogpress.models import User
from blogpress.services import user_service

router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me")
async def get_own_profile(
    user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)
):
    profile = await user_service.get_profile(db, user.id, include_private=True)
    return {"success": True, "data": profile}


@router.get("/{user_id}")
async def get_user_profile(user_id: int, db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await user_service.get_profile(db, user_id)}
