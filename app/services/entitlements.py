"""
Entitlement resolution: may this account perform a paid action right now,
and under what classification?

Logic:
- Active ANNUAL_PLAN (active flag set, start <= now < end): appeals and
  HPI checks are unlimited and nothing is mutated.
- Otherwise an appeal may consume the one-time free trial. The trial is per
  account, not per vehicle: the plate it was used on is recorded, and a later
  appeal for any plate requires payment.
- HPI checks outside an annual plan need a prepaid credit.

The plan caps in check_appeal_limit are a separate, coarser gate; an appeal is
only created when both pass.
"""
import logging
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from typing import Optional

from app.core.clock import Clock, utcnow
from app.core.errors import RejectionReason, rejection_message
from app.core.pricing import APPEAL_WINDOW_DAYS, SubscriptionType, get_appeal_limit
from app.models.user import User
from app.repositories.accounts import AccountRepository

logger = logging.getLogger(__name__)


class Access(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"


class AccessReason(str, Enum):
    ACTIVE_SUBSCRIPTION = "active_subscription"
    TRIAL_USED = "trial_used"
    PAYMENT_REQUIRED = "payment_required"


@dataclass
class AccessDecision:
    access: Access
    reason: AccessReason
    message: str = ""
    trial_used_for: Optional[str] = None

    @property
    def granted(self) -> bool:
        return self.access == Access.GRANTED

    def to_dict(self) -> dict:
        data = {
            "access": self.access.value,
            "reason": self.reason.value,
            "message": self.message,
        }
        if self.reason == AccessReason.PAYMENT_REQUIRED and self.trial_used_for is not None:
            data["trial_used_for"] = self.trial_used_for
        return data


def normalize_registration(registration: Optional[str]) -> Optional[str]:
    """UK plates are compared upper-case without spaces."""
    if not registration:
        return None
    return "".join(registration.split()).upper()


class EntitlementResolver:
    def __init__(self, accounts: AccountRepository, clock: Clock = utcnow):
        self.accounts = accounts
        self.clock = clock

    def has_active_subscription(self, account: User) -> bool:
        now = self.clock()
        return (
            account.subscription_type == SubscriptionType.ANNUAL_PLAN.value
            and bool(account.is_active)
            and (account.subscription_start is None or account.subscription_start <= now)
            and account.subscription_end is not None
            and now < account.subscription_end
        )

    def resolve_appeal_access(self, account: User, target_registration: Optional[str]) -> AccessDecision:
        if self.has_active_subscription(account):
            return AccessDecision(Access.GRANTED, AccessReason.ACTIVE_SUBSCRIPTION)

        registration = normalize_registration(target_registration)
        if not account.appeal_trial_used:
            # A concurrent request may have taken the trial since the account was read
            if self.accounts.consume_appeal_trial(account.id, registration, self.clock()):
                logger.info("Appeal trial consumed by account %s for %s", account.id, registration)
                return AccessDecision(
                    Access.GRANTED,
                    AccessReason.TRIAL_USED,
                    message="Trial used for this vehicle registration",
                )
            logger.info("Appeal trial for account %s already taken by a concurrent request", account.id)

        trial_reg = self.accounts.get_trial_registration(account.id)
        if trial_reg is not None and trial_reg == registration:
            message = "Payment required. Trial was already used for this registration."
        else:
            message = "Payment required. Trial was used for another registration."
        return AccessDecision(
            Access.DENIED,
            AccessReason.PAYMENT_REQUIRED,
            message=message,
            trial_used_for=trial_reg,
        )

    def authorize_appeal(self, account: User, target_registration: Optional[str]) -> AccessDecision:
        """
        Entitlement for actually filing an appeal.

        A trial taken by a usage check for this same plate still covers the one
        appeal that follows it, as long as nothing has been filed since.
        """
        registration = normalize_registration(target_registration)
        if (
            not self.has_active_subscription(account)
            and account.appeal_trial_used
            and account.appeal_trial_used_at is not None
            and registration is not None
            and normalize_registration(account.appeal_trial_reg) == registration
            and self.accounts.count_appeals_since(account.id, account.appeal_trial_used_at) == 0
        ):
            logger.info("Appeal for %s covered by the trial account %s already took", registration, account.id)
            return AccessDecision(
                Access.GRANTED,
                AccessReason.TRIAL_USED,
                message="Trial used for this vehicle registration",
            )
        return self.resolve_appeal_access(account, target_registration)

    def resolve_hpi_access(self, account: User) -> AccessDecision:
        if self.has_active_subscription(account):
            return AccessDecision(Access.GRANTED, AccessReason.ACTIVE_SUBSCRIPTION)
        return AccessDecision(
            Access.DENIED,
            AccessReason.PAYMENT_REQUIRED,
            message="HPI checks require payment (£5) or annual subscription",
        )

    def count_recent_appeals(self, account: User) -> int:
        since = self.clock() - timedelta(days=APPEAL_WINDOW_DAYS)
        return self.accounts.count_appeals_since(account.id, since)

    def check_appeal_limit(
        self,
        account: User,
        appeals_in_last_365_days: Optional[int] = None,
    ) -> tuple[Optional[RejectionReason], str]:
        """
        Enforce per-plan appeal caps over the trailing 365 days.

        Returns:
            (reason, message)
            - reason: None when another appeal is allowed, otherwise the rejection reason
            - message: User-facing explanation, empty when allowed
        """
        limit = get_appeal_limit(account.subscription_type)
        if limit == -1:
            return None, ""

        if appeals_in_last_365_days is None:
            appeals_in_last_365_days = self.count_recent_appeals(account)

        if account.subscription_type == SubscriptionType.SINGLE_APPEAL.value:
            if appeals_in_last_365_days >= limit:
                return RejectionReason.USAGE_LIMIT_REACHED, (
                    "Single appeal plan allows only 1 appeal. Please purchase another "
                    "single appeal or upgrade to annual plan."
                )
            return None, ""

        if appeals_in_last_365_days >= limit:
            reason = RejectionReason.TRIAL_ALREADY_USED
            return reason, rejection_message(reason)
        if account.subscription_end is not None and self.clock() > account.subscription_end:
            reason = RejectionReason.SUBSCRIPTION_EXPIRED
            return reason, rejection_message(reason)
        return None, ""

    def consume_hpi_credit(self, account: User) -> Optional[RejectionReason]:
        """Spend one prepaid credit; None on success."""
        if not self.accounts.consume_hpi_credit(account.id):
            logger.info("HPI credit refused for account %s: no credits left", account.id)
            return RejectionReason.INSUFFICIENT_CREDITS
        logger.info(
            "HPI check - consumed 1 credit for account %s, remaining: %s",
            account.id,
            self.accounts.get_hpi_credits(account.id),
        )
        return None
