from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import get_session
from app.core.deps import require_auth
from app.schemas.dashboard import StoreOption
from app.services.stores import list_stores

router = APIRouter(prefix="/stores", tags=["stores"], dependencies=[Depends(require_auth)])


@router.get("", response_model=List[StoreOption])
async def get_stores(session: AsyncSession = Depends(get_session)) -> List[StoreOption]:
    try:
        stores = await list_stores(session)
    except Exception as e:
        raise HTTPException(status_code=500, detail=f"Error loading stores: {e}")
    return [StoreOption(id=s.id, name=s.name, brand=s.brand) for s in stores]
