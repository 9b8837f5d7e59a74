from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from database import get_db
from schemas.asset import AssetOut, AssetUpdate
from services import asset_service
from services.auth import get_current_user

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/{asset_id}", response_model=AssetOut)
def get_asset(asset_id: int, db: Session = Depends(get_db)):
    return asset_service.get_asset(db, asset_id)


@router.put("/{asset_id}", response_model=AssetOut)
def update_asset(asset_id: int, payload: AssetUpdate, db: Session = Depends(get_db)):
    return asset_service.update_asset(
        db,
        asset_id,
        name=payload.name,
        type_=payload.type,
        amount=payload.amount,
        unit=payload.unit,
        description=payload.description,
    )


@router.delete("/{asset_id}")
def delete_asset(asset_id: int, db: Session = Depends(get_db)):
    asset_service.delete_asset(db, asset_id)
    return {"success": True}
