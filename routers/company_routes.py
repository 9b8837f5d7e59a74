# routers/company_routes.py
from typing import List

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import QUOTE_RATE_LIMIT, limiter
from schemas.asset import AssetCreate, AssetOut
from schemas.company import (
    CompaniesPage,
    CompanyCreate,
    CompanyDetailOut,
    CompanyOut,
    CompanyUpdate,
    CompanyWithPairsOut,
)
from schemas.pair import PairCreate, PairOut
from schemas.profit_loss import CompanyProfitLoss, RecalcSummary
from services import asset_service, company_service, pair_service, profit_loss_service
from services.auth import get_current_user
from services.jquants.client import JQuantsClient, get_jquants_client

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("", response_model=CompaniesPage)
def list_companies(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    companies, total = company_service.list_companies(db, page=page, limit=limit)
    items = []
    for company in companies:
        dto = CompanyWithPairsOut.model_validate(company)
        dto.total_profit_loss = company_service.company_total_profit_loss(company)
        items.append(dto)
    return {
        "companies": items,
        "pagination": company_service.create_pagination_info(page, limit, total),
    }


@router.post("", response_model=CompanyOut, status_code=status.HTTP_201_CREATED)
def create_company(payload: CompanyCreate, db: Session = Depends(get_db)):
    return company_service.create_company(db, name=payload.name)


@router.get("/{company_id}", response_model=CompanyDetailOut)
def get_company(company_id: int, db: Session = Depends(get_db)):
    return company_service.get_company(db, company_id, with_children=True)


@router.put("/{company_id}", response_model=CompanyOut)
def update_company(company_id: int, payload: CompanyUpdate, db: Session = Depends(get_db)):
    return company_service.update_company(db, company_id, name=payload.name)


@router.delete("/{company_id}")
def delete_company(company_id: int, db: Session = Depends(get_db)):
    company_service.delete_company(db, company_id)
    return {"success": True}


# ─── Pairs under a company ─────────────────────────────────────────

@router.get("/{company_id}/pairs", response_model=List[PairOut])
def list_company_pairs(company_id: int, db: Session = Depends(get_db)):
    return pair_service.list_pairs(db, company_id)


@router.post("/{company_id}/pairs", response_model=PairOut, status_code=status.HTTP_201_CREATED)
def create_company_pair(company_id: int, payload: PairCreate, db: Session = Depends(get_db)):
    return pair_service.create_pair(db, company_id, payload.model_dump())


# ─── Assets under a company ────────────────────────────────────────

@router.get("/{company_id}/assets", response_model=List[AssetOut])
def list_company_assets(company_id: int, db: Session = Depends(get_db)):
    return asset_service.list_assets(db, company_id)


@router.post("/{company_id}/assets", response_model=AssetOut, status_code=status.HTTP_201_CREATED)
def create_company_asset(company_id: int, payload: AssetCreate, db: Session = Depends(get_db)):
    return asset_service.create_asset(
        db,
        company_id,
        name=payload.name,
        type_=payload.type,
        amount=payload.amount,
        unit=payload.unit,
        description=payload.description,
    )


# ─── P/L for one company ───────────────────────────────────────────

@router.get("/{company_id}/calculate-profit-loss", response_model=CompanyProfitLoss)
@limiter.limit(QUOTE_RATE_LIMIT)
async def company_profit_loss(
    request: Request,
    company_id: int,
    db: Session = Depends(get_db),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    return await profit_loss_service.compute_company_profit_loss(db, company_id, jquants)


@router.post("/{company_id}/calculate-profit-loss", response_model=RecalcSummary)
@limiter.limit(QUOTE_RATE_LIMIT)
async def recalculate_company_profit_loss(
    request: Request,
    company_id: int,
    db: Session = Depends(get_db),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    return await profit_loss_service.recalculate_profit_loss(db, company_id, jquants)
