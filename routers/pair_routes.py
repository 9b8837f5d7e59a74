# routers/pair_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from database import get_db
from schemas.pair import PairOut, PairUpdate, PairWithCompanyOut
from services import pair_service
from services.auth import get_current_user

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=List[PairWithCompanyOut])
def trading_history(
    company_id: Optional[int] = Query(None, alias="companyId"),
    status: str = Query("all"),
    db: Session = Depends(get_db),
):
    return pair_service.list_trading_history(db, company_id=company_id, status=status)


@router.get("/{pair_id}", response_model=PairWithCompanyOut)
def get_pair(pair_id: int, db: Session = Depends(get_db)):
    return pair_service.get_pair(db, pair_id, with_company=True)


@router.put("/{pair_id}", response_model=PairOut)
def update_pair(pair_id: int, payload: PairUpdate, db: Session = Depends(get_db)):
    values = payload.model_dump(exclude={"current_buy_price", "current_sell_price"})
    return pair_service.update_pair(
        db,
        pair_id,
        values,
        current_buy_price=payload.current_buy_price,
        current_sell_price=payload.current_sell_price,
    )


@router.delete("/{pair_id}")
def delete_pair(pair_id: int, db: Session = Depends(get_db)):
    pair_service.delete_pair(db, pair_id)
    return {"success": True}


@router.post("/{pair_id}/settle", response_model=PairOut)
def settle_pair(pair_id: int, db: Session = Depends(get_db)):
    return pair_service.settle_pair(db, pair_id)
