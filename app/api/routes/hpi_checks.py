import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.errors import rejection_message
from app.core.pricing import HPI_CHECK_COST
from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_entitlement_resolver
from app.models.hpi_check import HpiCheck, HpiCheckStatus
from app.models.user import User
from app.schemas.hpi_check import HpiCheckCreate, HpiCheckResponse
from app.services.entitlements import EntitlementResolver, normalize_registration

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=HpiCheckResponse, status_code=status.HTTP_201_CREATED)
def create_hpi_check(
    check_data: HpiCheckCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver)
):
    """
    Request a vehicle history check.
    Free on an active annual plan; otherwise one prepaid credit is spent.
    """
    if resolver.has_active_subscription(user):
        paid_with = "subscription"
    else:
        reason = resolver.consume_hpi_credit(user)
        if reason is not None:
            raise HTTPException(
                status_code=status.HTTP_402_PAYMENT_REQUIRED,
                detail={"error": reason.value, "message": rejection_message(reason)}
            )
        paid_with = "credit"

    check = HpiCheck(
        user_id=user.id,
        registration=normalize_registration(check_data.registration),
        status=HpiCheckStatus.PENDING.value,
        cost=HPI_CHECK_COST,
        paid_with=paid_with,
    )
    db.add(check)
    db.commit()
    db.refresh(check)
    logger.info("HPI check %s requested by account %s via %s", check.id, user.id, paid_with)
    return check


@router.get("", response_model=List[HpiCheckResponse])
def list_hpi_checks(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return (
        db.query(HpiCheck)
        .filter(HpiCheck.user_id == user.id)
        .order_by(HpiCheck.created_at.desc())
        .all()
    )
