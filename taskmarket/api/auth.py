from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskmarket.api.dependencies.auth import get_db
from taskmarket.core.security import create_access_token
from taskmarket.db.models.accounting import Account
from taskmarket.db.models.enums import Role
from taskmarket.db.session import atomic
from taskmarket.schemas.auth import AccountSummary, LoginRequest, RegisterRequest, TokenResponse
from taskmarket.services import accounts

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _build_token(account: Account) -> TokenResponse:
    access_token, expires_in = create_access_token(
        account_id=account.id,
        email=account.email,
        role=account.role.value,
    )
    return TokenResponse(
        access_token=access_token,
        expires_in=expires_in,
        user=AccountSummary(
            id=account.id,
            name=account.name,
            email=account.email,
            role=account.role.value,
            coins=account.coins,
            profile_pic=account.profile_pic,
        ),
    )


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> TokenResponse:
    existing = db.scalar(select(Account).where(Account.email == payload.email))
    if existing is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    try:
        with atomic(db):
            account = accounts.open_account(
                db,
                email=payload.email,
                name=payload.name,
                password=payload.password,
                role=Role(payload.role),
                profile_pic=payload.profile_pic,
            )
    except IntegrityError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered") from exc

    db.refresh(account)
    return _build_token(account)


@router.post("/login", response_model=TokenResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    account = accounts.authenticate(db, payload.email, payload.password)
    if account is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _build_token(account)
