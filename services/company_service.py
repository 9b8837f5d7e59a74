from __future__ import annotations

import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session, selectinload

from models.company import Company
from services.errors import NotFoundError


def create_pagination_info(page: int, limit: int, total_count: int) -> Dict[str, Any]:
    total_pages = math.ceil(total_count / limit) if limit > 0 else 0
    return {
        "current_page": page,
        "total_pages": total_pages,
        "total_count": total_count,
        "limit": limit,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def company_total_profit_loss(company: Company) -> float:
    return sum(p.profit_loss for p in company.pairs if p.profit_loss is not None)


def list_companies(db: Session, page: int = 1, limit: int = 10) -> Tuple[List[Company], int]:
    total = db.query(Company).count()
    companies = (
        db.query(Company)
        .options(selectinload(Company.pairs))
        .order_by(Company.id.asc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return companies, total


def get_company(db: Session, company_id: int, *, with_children: bool = False) -> Company:
    query = db.query(Company)
    if with_children:
        query = query.options(selectinload(Company.pairs), selectinload(Company.assets))
    company = query.filter(Company.id == company_id).first()
    if not company:
        raise NotFoundError("Company")
    return company


def create_company(db: Session, *, name: str) -> Company:
    company = Company(name=name)
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


def update_company(db: Session, company_id: int, *, name: str) -> Company:
    company = get_company(db, company_id)
    company.name = name
    db.commit()
    db.refresh(company)
    return company


def delete_company(db: Session, company_id: int) -> None:
    """Deletes the company together with its pairs and assets."""
    company = get_company(db, company_id)
    db.delete(company)
    db.commit()
