from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from app.models.promo_code import PromoCode
from app.models.promo_usage import PromoUsage


class PromoCodeRepository:
    """Promo code lookups and redemption counts."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_code(self, code: str) -> Optional[PromoCode]:
        return self.db.query(PromoCode).filter(PromoCode.code == code.strip().upper()).first()

    def get(self, promo_code_id: int) -> Optional[PromoCode]:
        return self.db.query(PromoCode).filter(PromoCode.id == promo_code_id).first()

    def get_for_update(self, promo_code_id: int) -> Optional[PromoCode]:
        """Load the code with a row lock held until the caller's transaction ends."""
        return self.db.query(PromoCode).filter(PromoCode.id == promo_code_id).with_for_update().first()

    def count_usages(self, promo_code_id: int) -> int:
        return (
            self.db.query(func.count(PromoUsage.id))
            .filter(PromoUsage.promo_code_id == promo_code_id)
            .scalar()
        ) or 0

    def count_user_usages(self, promo_code_id: int, user_id: int) -> int:
        return (
            self.db.query(func.count(PromoUsage.id))
            .filter(PromoUsage.promo_code_id == promo_code_id, PromoUsage.user_id == user_id)
            .scalar()
        ) or 0

    def record_usage(self, promo_code_id: int, user_id: int, payment_id: int, discount_applied) -> PromoUsage:
        """Add a usage row in the caller's transaction."""
        usage = PromoUsage(
            promo_code_id=promo_code_id,
            user_id=user_id,
            payment_id=payment_id,
            discount_applied=discount_applied,
        )
        self.db.add(usage)
        return usage
