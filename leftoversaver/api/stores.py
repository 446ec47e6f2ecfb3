"""
LeftoverSaver — Store profile routes
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from leftoversaver.db.database import get_db
from leftoversaver.models.offer import Store
from leftoversaver.schemas.offer import StoreIn, StoreOut
from leftoversaver.core.security import get_current_user_id

router = APIRouter(prefix="/stores", tags=["stores"])


@router.put("/me", response_model=StoreOut)
async def upsert_my_store(
    payload: StoreIn,
    uid: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """Create or update the caller's store. Fields left out are kept."""
    store = await db.get(Store, uid)
    if store is None:
        store = Store(id=uid, address="", contact="", categories=[])
        db.add(store)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(store, field, value)

    await db.commit()
    await db.refresh(store)
    return StoreOut.model_validate(store)


@router.get("/me", response_model=StoreOut)
async def get_my_store(uid: str = Depends(get_current_user_id), db: AsyncSession = Depends(get_db)):
    return await get_store(uid, db)


@router.get("/{store_id}", response_model=StoreOut)
async def get_store(store_id: str, db: AsyncSession = Depends(get_db)):
    store = await db.get(Store, store_id)
    if store is None:
        raise HTTPException(status_code=404, detail="Store not found.")
    return StoreOut.model_validate(store)
