"""
Account store used by the entitlement logic.

Every check-then-act on an account (trial consumption, credit decrement) is a
single conditional UPDATE; the statement's rowcount tells the caller whether
it won. Storage errors propagate unchanged.
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from app.models.appeal import Appeal
from app.models.user import User


class AccountRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, account_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == account_id).first()

    def get_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email.strip().lower()).first()

    def consume_appeal_trial(self, account_id: int, registration: Optional[str], used_at: datetime) -> bool:
        """Mark the trial used for this plate unless it already was. Returns True for the winner."""
        result = self.db.execute(
            update(User)
            .where(User.id == account_id, User.appeal_trial_used.is_(False))
            .values(
                appeal_trial_used=True,
                appeal_trial_used_at=used_at,
                appeal_trial_reg=registration,
            )
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def get_trial_registration(self, account_id: int) -> Optional[str]:
        return self.db.query(User.appeal_trial_reg).filter(User.id == account_id).scalar()

    def consume_hpi_credit(self, account_id: int) -> bool:
        """Take one prepaid HPI credit if there is one. Returns False when none were left."""
        result = self.db.execute(
            update(User)
            .where(User.id == account_id, User.hpi_credits >= 1)
            .values(hpi_credits=User.hpi_credits - 1)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def add_hpi_credits(self, account_id: int, quantity: int) -> None:
        """Increment credits in the caller's transaction (committed by payment confirmation)."""
        if quantity < 1:
            raise ValueError("quantity must be at least 1")
        self.db.execute(
            update(User)
            .where(User.id == account_id)
            .values(hpi_credits=User.hpi_credits + quantity)
            .execution_options(synchronize_session=False)
        )

    def get_hpi_credits(self, account_id: int) -> int:
        return self.db.query(User.hpi_credits).filter(User.id == account_id).scalar() or 0

    def count_appeals_since(self, account_id: int, since: datetime) -> int:
        return (
            self.db.query(func.count(Appeal.id))
            .filter(Appeal.user_id == account_id, Appeal.created_at >= since)
            .scalar()
        ) or 0
