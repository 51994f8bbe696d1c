import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.db.session import get_db
from app.dependencies.auth import get_current_user
from app.dependencies.services import get_clock, get_entitlement_resolver
from app.models.appeal import Appeal, AppealOutcome, AppealStatus, OUTCOME_STATUS
from app.models.user import User
from app.schemas.appeal import AppealCreate, AppealOutcomeUpdate, AppealResponse
from app.services.entitlements import EntitlementResolver, normalize_registration

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("", response_model=AppealResponse, status_code=status.HTTP_201_CREATED)
def create_appeal(
    appeal_data: AppealCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    resolver: EntitlementResolver = Depends(get_entitlement_resolver)
):
    """
    Submit a parking fine appeal.
    The plan cap is checked first, then entitlement (which may consume the free trial,
    or honour a trial a usage check already took for this plate).
    """
    reason, message = resolver.check_appeal_limit(user)
    if reason is not None:
        logger.info("Appeal refused for account %s: %s", user.id, reason.value)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"error": reason.value, "message": message}
        )

    decision = resolver.authorize_appeal(user, appeal_data.vehicle_registration)
    if not decision.granted:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=decision.to_dict()
        )

    appeal = Appeal(
        user_id=user.id,
        ticket_number=appeal_data.ticket_number,
        vehicle_registration=normalize_registration(appeal_data.vehicle_registration),
        fine_amount=appeal_data.fine_amount,
        issue_date=appeal_data.issue_date,
        due_date=appeal_data.due_date,
        location=appeal_data.location,
        reason=appeal_data.reason,
        description=appeal_data.description,
        status=AppealStatus.SUBMITTED.value,
        ai_generated=appeal_data.ai_generated,
        created_at=resolver.clock(),
    )
    db.add(appeal)
    db.commit()
    db.refresh(appeal)
    logger.info("Appeal %s created for account %s (%s)", appeal.id, user.id, decision.reason.value)
    return appeal


@router.get("", response_model=List[AppealResponse])
def list_appeals(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return (
        db.query(Appeal)
        .filter(Appeal.user_id == user.id)
        .order_by(Appeal.created_at.desc())
        .all()
    )


@router.post("/outcome", response_model=AppealResponse)
def report_outcome(
    update: AppealOutcomeUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    clock: Clock = Depends(get_clock)
):
    """Record the result the driver received for an appeal."""
    appeal = db.query(Appeal).filter(
        Appeal.id == update.appeal_id,
        Appeal.user_id == user.id
    ).first()
    if not appeal:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Appeal not found"
        )

    appeal.user_reported_outcome = update.outcome.value
    appeal.user_reported_at = clock()
    appeal.outcome_notes = update.notes
    appeal.status = OUTCOME_STATUS[update.outcome].value
    db.commit()
    db.refresh(appeal)
    logger.info("Appeal %s outcome reported as %s", appeal.id, update.outcome.value)
    return appeal


@router.get("/outcome")
def outcome_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Outcome counts and success rate across the account's appeals."""
    appeals = db.query(Appeal).filter(Appeal.user_id == user.id).all()

    successful = sum(1 for a in appeals if a.user_reported_outcome == AppealOutcome.SUCCESSFUL.value)
    unsuccessful = sum(1 for a in appeals if a.user_reported_outcome == AppealOutcome.UNSUCCESSFUL.value)
    decided = successful + unsuccessful

    return {
        "total": len(appeals),
        "successful": successful,
        "unsuccessful": unsuccessful,
        "pending": len(appeals) - decided,
        "success_rate": round(successful / decided * 100, 1) if decided else 0.0,
    }
