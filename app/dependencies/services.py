"""
FastAPI providers for the entitlement and discount services.
Tests override get_clock to freeze time.
"""
from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.clock import Clock, utcnow
from app.db.session import get_db
from app.repositories.accounts import AccountRepository
from app.repositories.promo_codes import PromoCodeRepository
from app.services.entitlements import EntitlementResolver
from app.services.promo_codes import DiscountCalculator


def get_clock() -> Clock:
    return utcnow


def get_entitlement_resolver(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> EntitlementResolver:
    return EntitlementResolver(AccountRepository(db), clock=clock)


def get_discount_calculator(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
) -> DiscountCalculator:
    return DiscountCalculator(PromoCodeRepository(db), clock=clock)
