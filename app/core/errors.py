"""
Rejection reasons returned by the entitlement and promo code logic.

These are expected outcomes, not exceptions: services return them and the
route layer decides the HTTP status.
"""
from enum import Enum


class RejectionReason(str, Enum):
    NOT_FOUND = "NotFound"
    INACTIVE = "Inactive"
    NOT_YET_VALID = "NotYetValid"
    EXPIRED = "Expired"
    SERVICE_MISMATCH = "ServiceMismatch"
    USAGE_LIMIT_REACHED = "UsageLimitReached"
    PER_USER_LIMIT_REACHED = "PerUserLimitReached"
    MINIMUM_ORDER_NOT_MET = "MinimumOrderNotMet"
    TRIAL_ALREADY_USED = "TrialAlreadyUsed"
    INSUFFICIENT_CREDITS = "InsufficientCredits"
    SUBSCRIPTION_EXPIRED = "SubscriptionExpired"
    # Promo code administration
    PROMO_CODE_IN_USE = "PromoCodeInUse"
    INVALID_PROMO_CODE = "InvalidPromoCode"


REJECTION_MESSAGES = {
    RejectionReason.NOT_FOUND: "Invalid promo code",
    RejectionReason.INACTIVE: "This promo code is no longer active",
    RejectionReason.NOT_YET_VALID: "This promo code is not yet valid",
    RejectionReason.EXPIRED: "This promo code has expired",
    RejectionReason.SERVICE_MISMATCH: "This promo code is not valid for this service",
    RejectionReason.USAGE_LIMIT_REACHED: "This promo code has reached its usage limit",
    RejectionReason.PER_USER_LIMIT_REACHED: (
        "You have already used this promo code the maximum number of times"
    ),
    RejectionReason.MINIMUM_ORDER_NOT_MET: "Minimum order value not met for this promo code",
    RejectionReason.TRIAL_ALREADY_USED: "Free trial allows only 1 appeal. Please upgrade your plan.",
    RejectionReason.INSUFFICIENT_CREDITS: (
        "Insufficient HPI credits. Please purchase HPI credits to perform this check."
    ),
    RejectionReason.SUBSCRIPTION_EXPIRED: "Free trial has expired. Please upgrade your plan.",
    RejectionReason.PROMO_CODE_IN_USE: (
        "Cannot delete promo code that has been used. Deactivate it instead."
    ),
    RejectionReason.INVALID_PROMO_CODE: "Invalid promo code",
}


def rejection_message(reason: RejectionReason) -> str:
    return REJECTION_MESSAGES.get(reason, reason.value)
