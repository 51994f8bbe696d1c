from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.pricing import ServiceType
from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_entitlement_resolver
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.schemas.auth import CreditsResponse, UsageAccessRequest, UserResponse
from app.services.entitlements import EntitlementResolver

router = APIRouter()


@router.get("/me", response_model=UserResponse)
def get_me(user: User = Depends(get_current_user)):
    """Get current user profile"""
    return user


@router.get("/credits", response_model=CreditsResponse)
def get_credits(user: User = Depends(get_current_user)):
    return {"hpi_credits": user.hpi_credits or 0}


@router.get("/usage")
def get_usage(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver)
):
    """
    Summary of what the account can currently do.
    Read-only: nothing here consumes the trial.
    """
    completed_types = {
        row[0]
        for row in db.query(Payment.type).filter(
            Payment.user_id == user.id,
            Payment.status == PaymentStatus.COMPLETED.value
        ).all()
    }
    completed_count = db.query(Payment).filter(
        Payment.user_id == user.id,
        Payment.status == PaymentStatus.COMPLETED.value
    ).count()

    has_active_subscription = resolver.has_active_subscription(user)
    limit_reason, _ = resolver.check_appeal_limit(user)

    return {
        "has_active_subscription": has_active_subscription,
        "subscription_type": user.subscription_type,
        "subscription_ends_at": user.subscription_end,
        "appeal_trial_used": user.appeal_trial_used,
        "appeal_trial_reg": user.appeal_trial_reg,
        "appeal_trial_used_at": user.appeal_trial_used_at,
        "hpi_credits": user.hpi_credits,
        "completed_payments": completed_count,
        "usage": {
            "can_access_hpi": has_active_subscription or (user.hpi_credits or 0) >= 1,
            "can_access_appeals": limit_reason is None and (
                has_active_subscription
                or not user.appeal_trial_used
                or ServiceType.SINGLE_APPEAL.value in completed_types
            ),
            "appeals_in_last_365_days": resolver.count_recent_appeals(user),
        },
    }


@router.post("/usage")
def check_access(
    request: UsageAccessRequest,
    user: User = Depends(get_current_user),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver)
):
    """
    Resolve access for a paid action.
    For service=appeal this consumes the free trial when it is still unused.
    """
    registration = (request.data or {}).get("registration")

    if request.service == "appeal":
        return resolver.resolve_appeal_access(user, registration).to_dict()
    if request.service == "hpi":
        return resolver.resolve_hpi_access(user).to_dict()

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Invalid service type"
    )
