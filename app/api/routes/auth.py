import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.core.clock import Clock
from app.core.config import TRIAL_DAYS
from app.core.pricing import SubscriptionType
from app.db.session import get_db
from app.dependencies.services import get_clock
from app.models.user import User
from app.schemas.auth import TokenResponse, UserCreate, UserLogin, UserResponse
from app.utils.auth import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock)
):
    """
    Create an account on the free trial.
    The trial window runs TRIAL_DAYS from now; the one free appeal is unused.
    """
    email = user_data.email.strip().lower()
    existing_user = db.query(User).filter(User.email == email).first()
    if existing_user:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User with this email already exists"
        )

    now = clock()
    user = User(
        email=email,
        hashed_password=hash_password(user_data.password),
        name=user_data.name,
        phone=user_data.phone,
        subscription_type=SubscriptionType.FREE_TRIAL.value,
        subscription_start=now,
        subscription_end=now + timedelta(days=TRIAL_DAYS),
        is_active=True,
        appeal_trial_used=False,
        hpi_credits=0,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Registered account %s on %s-day free trial", user.id, TRIAL_DAYS)
    return user


@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.strip().lower()).first()
    if not user or not verify_password(credentials.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password"
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is disabled"
        )

    token = create_access_token({"sub": str(user.id)})
    return {"access_token": token, "token_type": "bearer"}
