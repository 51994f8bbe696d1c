from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Dict


class SubscriptionType(str, Enum):
    FREE_TRIAL = "FREE_TRIAL"
    SINGLE_APPEAL = "SINGLE_APPEAL"
    ANNUAL_PLAN = "ANNUAL_PLAN"


class ServiceType(str, Enum):
    """Purchasable services; also the values promo codes are scoped to."""
    SINGLE_APPEAL = "SINGLE_APPEAL"
    HPI_CHECK = "HPI_CHECK"
    BULK_HPI = "BULK_HPI"
    ANNUAL_SUBSCRIPTION = "ANNUAL_SUBSCRIPTION"


# Services that add prepaid HPI credits when paid for
HPI_SERVICE_TYPES = {ServiceType.HPI_CHECK, ServiceType.BULK_HPI}

CURRENCY = "GBP"
PENNY = Decimal("0.01")

# List prices in GBP (per unit)
PRICING_CONFIG: Dict[ServiceType, Dict[str, object]] = {
    ServiceType.SINGLE_APPEAL: {
        "amount": Decimal("2.00"),
        "name": "Single Appeal",
        "description": "Single Appeal",
    },
    ServiceType.HPI_CHECK: {
        "amount": Decimal("5.00"),
        "name": "HPI Check",
        "description": "HPI Check",
    },
    ServiceType.BULK_HPI: {
        "amount": Decimal("5.00"),
        "name": "Bulk HPI Check",
        "description": "HPI Check (per vehicle)",
    },
    ServiceType.ANNUAL_SUBSCRIPTION: {
        "amount": Decimal("25.00"),
        "name": "Annual Plan",
        "description": "Unlimited appeals and HPI checks for 12 months",
    },
}

# Appeal caps in the trailing window; -1 means unlimited
APPEAL_WINDOW_DAYS = 365
APPEAL_LIMITS: Dict[SubscriptionType, int] = {
    SubscriptionType.FREE_TRIAL: 1,
    SubscriptionType.SINGLE_APPEAL: 1,
    SubscriptionType.ANNUAL_PLAN: -1,
}

ANNUAL_PLAN_DAYS = 365
HPI_CHECK_COST = PRICING_CONFIG[ServiceType.HPI_CHECK]["amount"]


def to_money(value) -> Decimal:
    """Coerce to a Decimal rounded half-up to whole pence."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(PENNY, rounding=ROUND_HALF_UP)


def unit_price(service_type: ServiceType) -> Decimal:
    return PRICING_CONFIG[service_type]["amount"]


def get_appeal_limit(subscription_type: str) -> int:
    """Appeals allowed in the trailing window for a plan (unknown plans get the trial cap)."""
    try:
        return APPEAL_LIMITS[SubscriptionType(subscription_type)]
    except ValueError:
        return APPEAL_LIMITS[SubscriptionType.FREE_TRIAL]
