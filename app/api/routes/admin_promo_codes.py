"""
Admin management of promo codes.
Restricted to the account configured as ADMIN_EMAIL.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.dependencies.auth import require_admin
from app.models.promo_code import PromoCode
from app.models.promo_usage import PromoUsage
from app.models.user import User
from app.schemas.promo_code import PromoCodeCreate, PromoCodeResponse, PromoCodeUpdate
from app.services.promo_codes import (
    PromoCodeError,
    create_promo_code,
    delete_promo_code,
    update_promo_code,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Fields an update may explicitly set back to null
CLEARABLE_FIELDS = {"description", "min_order_value", "max_discount", "usage_limit", "per_user_limit"}


def _serialize(promo: PromoCode, usage_count: int = 0) -> dict:
    data = PromoCodeResponse.model_validate(promo).model_dump()
    data["usage_count"] = usage_count
    return data


def _get_or_404(db: Session, promo_id: int) -> PromoCode:
    promo = db.query(PromoCode).filter(PromoCode.id == promo_id).first()
    if not promo:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Promo code not found"
        )
    return promo


def _bad_request(e: PromoCodeError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"error": e.reason.value, "message": e.message}
    )


@router.get("")
def list_promo_codes(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = None,
    active: Optional[bool] = None,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    query = db.query(PromoCode)
    if search:
        pattern = f"%{search.strip()}%"
        query = query.filter(or_(PromoCode.code.ilike(pattern), PromoCode.name.ilike(pattern)))
    if active is not None:
        query = query.filter(PromoCode.is_active.is_(active))

    total = query.count()
    promos = (
        query.order_by(PromoCode.created_at.desc(), PromoCode.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )

    usage_counts = dict(
        db.query(PromoUsage.promo_code_id, func.count(PromoUsage.id))
        .filter(PromoUsage.promo_code_id.in_([p.id for p in promos]))
        .group_by(PromoUsage.promo_code_id)
        .all()
    ) if promos else {}

    return {
        "promo_codes": [_serialize(p, usage_counts.get(p.id, 0)) for p in promos],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": (total + limit - 1) // limit,
        },
    }


@router.get("/{promo_id}")
def get_promo_code(
    promo_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    promo = _get_or_404(db, promo_id)
    usages = (
        db.query(PromoUsage, User.email)
        .join(User, User.id == PromoUsage.user_id)
        .filter(PromoUsage.promo_code_id == promo.id)
        .order_by(PromoUsage.used_at.desc())
        .all()
    )

    data = _serialize(promo, len(usages))
    data["usages"] = [
        {
            "user_id": usage.user_id,
            "email": email,
            "payment_id": usage.payment_id,
            "discount_applied": float(usage.discount_applied),
            "used_at": usage.used_at,
        }
        for usage, email in usages
    ]
    return data


@router.post("", status_code=status.HTTP_201_CREATED)
def create(
    promo_data: PromoCodeCreate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    try:
        promo = create_promo_code(db, promo_data.model_dump(), created_by=admin.id)
    except PromoCodeError as e:
        raise _bad_request(e)
    return _serialize(promo)


@router.put("/{promo_id}")
def update(
    promo_id: int,
    promo_data: PromoCodeUpdate,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    promo = _get_or_404(db, promo_id)
    changes = {
        field: value
        for field, value in promo_data.model_dump(exclude_unset=True).items()
        if value is not None or field in CLEARABLE_FIELDS
    }
    try:
        promo = update_promo_code(db, promo, changes)
    except PromoCodeError as e:
        raise _bad_request(e)

    usage_count = db.query(PromoUsage).filter(PromoUsage.promo_code_id == promo.id).count()
    return _serialize(promo, usage_count)


@router.delete("/{promo_id}")
def delete(
    promo_id: int,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin)
):
    promo = _get_or_404(db, promo_id)
    try:
        delete_promo_code(db, promo)
    except PromoCodeError as e:
        raise _bad_request(e)
    return {"message": "Promo code deleted successfully"}
