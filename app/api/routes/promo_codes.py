from fastapi import APIRouter, Depends

from app.dependencies.auth import get_current_user
from app.dependencies.services import get_discount_calculator
from app.models.user import User
from app.schemas.promo_code import PromoCodeValidateRequest
from app.services.promo_codes import DiscountCalculator

router = APIRouter()


@router.post("/validate")
def validate_promo_code(
    request: PromoCodeValidateRequest,
    user: User = Depends(get_current_user),
    calculator: DiscountCalculator = Depends(get_discount_calculator)
):
    """
    Check a promo code against an order. Nothing is redeemed here.
    A rejected code is still a 200 response with valid=false.
    """
    result = calculator.validate(
        request.code,
        request.order_value,
        request.service_type.value,
        user.id,
    )
    return result.to_dict()
