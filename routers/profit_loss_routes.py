# routers/profit_loss_routes.py
from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from database import get_db
from middleware.rate_limit import QUOTE_RATE_LIMIT, limiter
from schemas.profit_loss import AllCompaniesProfitLoss, DuplicatePairsReport, RecalcSummary
from services.auth import get_current_user
from services.duplicate_pair_service import build_duplicate_pair_report
from services.jquants.client import JQuantsClient, get_jquants_client
from services.profit_loss_service import compute_all_profit_loss, recalculate_profit_loss

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/calculate-profit-loss", response_model=AllCompaniesProfitLoss)
@limiter.limit(QUOTE_RATE_LIMIT)
async def calculate_all_profit_loss(
    request: Request,
    db: Session = Depends(get_db),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    return await compute_all_profit_loss(db, jquants)


@router.post("/calculate-profit-loss", response_model=RecalcSummary, response_model_exclude_none=True)
@limiter.limit(QUOTE_RATE_LIMIT)
async def recalculate_all_profit_loss(
    request: Request,
    db: Session = Depends(get_db),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    return await recalculate_profit_loss(db, None, jquants)


@router.get("/duplicate-pairs", response_model=DuplicatePairsReport)
@limiter.limit(QUOTE_RATE_LIMIT)
async def duplicate_pairs(
    request: Request,
    db: Session = Depends(get_db),
    jquants: JQuantsClient = Depends(get_jquants_client),
):
    return await build_duplicate_pair_report(db, jquants)
