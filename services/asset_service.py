from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session

from models.asset import ASSET_TYPES, DEFAULT_ASSET_UNIT, Asset
from services.company_service import get_company
from services.errors import NotFoundError, ValidationError


def _check_asset_fields(type_: str, amount: float) -> None:
    if type_ not in ASSET_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(ASSET_TYPES)}")
    if amount is None or amount < 0:
        raise ValidationError("amount must be zero or greater")


def list_assets(db: Session, company_id: int) -> List[Asset]:
    get_company(db, company_id)
    return (
        db.query(Asset)
        .filter(Asset.company_id == company_id)
        .order_by(Asset.created_at.desc(), Asset.id.desc())
        .all()
    )


def get_asset(db: Session, asset_id: int) -> Asset:
    asset = db.query(Asset).filter(Asset.id == asset_id).first()
    if not asset:
        raise NotFoundError("Asset")
    return asset


def create_asset(
    db: Session,
    company_id: int,
    *,
    name: str,
    type_: str,
    amount: float,
    unit: Optional[str] = None,
    description: Optional[str] = None,
) -> Asset:
    get_company(db, company_id)
    _check_asset_fields(type_, amount)

    asset = Asset(
        name=name,
        type=type_,
        amount=amount,
        unit=unit or DEFAULT_ASSET_UNIT,
        description=description,
        company_id=company_id,
    )
    db.add(asset)
    db.commit()
    db.refresh(asset)
    return asset


def update_asset(
    db: Session,
    asset_id: int,
    *,
    name: str,
    type_: str,
    amount: float,
    unit: Optional[str] = None,
    description: Optional[str] = None,
) -> Asset:
    asset = get_asset(db, asset_id)
    _check_asset_fields(type_, amount)

    asset.name = name
    asset.type = type_
    asset.amount = amount
    asset.unit = unit or DEFAULT_ASSET_UNIT
    asset.description = description
    db.commit()
    db.refresh(asset)
    return asset


def delete_asset(db: Session, asset_id: int) -> None:
    asset = get_asset(db, asset_id)
    db.delete(asset)
    db.commit()
