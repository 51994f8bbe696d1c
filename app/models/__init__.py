from app.models.user import User
from app.models.appeal import Appeal
from app.models.promo_code import PromoCode
from app.models.promo_usage import PromoUsage
from app.models.payment import Payment
from app.models.hpi_check import HpiCheck

__all__ = [
    "User",
    "Appeal",
    "PromoCode",
    "PromoUsage",
    "Payment",
    "HpiCheck"
]
