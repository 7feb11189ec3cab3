from __future__ import annotations

from collections.abc import Generator

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from taskmarket.core.security import TokenValidationError, validate_access_token
from taskmarket.db.models.accounting import Account
from taskmarket.db.models.enums import Role
from taskmarket.db.session import SessionLocal

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_current_account(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> Account:
    try:
        payload = validate_access_token(token)
        account_id = int(payload["sub"])
    except (TokenValidationError, KeyError, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token") from exc

    account = db.get(Account, account_id)
    if account is None or not account.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Account not available")
    return account


def require_roles(*roles: Role):
    allowed_roles = set(roles)

    def _dependency(current_account: Account = Depends(get_current_account)) -> Account:
        if current_account.role not in allowed_roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient role")
        return current_account

    return _dependency
