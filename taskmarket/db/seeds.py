"""Bootstrap data: the administrator account that settles withdrawals."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from taskmarket.core.config import get_settings
from taskmarket.core.security import hash_password, password_needs_rehash
from taskmarket.db.models.accounting import Account
from taskmarket.db.models.enums import Role
from taskmarket.db.session import transactional_session
from taskmarket.services.accounts import open_account

logger = logging.getLogger(__name__)


def _upsert_admin_account(db: Session) -> Account:
    app_settings = get_settings()
    existing = db.scalar(select(Account).where(Account.email == app_settings.admin_email))

    if existing is None:
        logger.info("creating admin account", extra={"email": app_settings.admin_email})
        return open_account(
            db,
            email=app_settings.admin_email,
            name=app_settings.admin_name,
            password=app_settings.admin_password,
            role=Role.ADMIN,
        )

    if existing.role != Role.ADMIN:
        existing.role = Role.ADMIN

    if not existing.is_active:
        existing.is_active = True

    if existing.password_hash is None or password_needs_rehash(existing.password_hash):
        existing.password_hash = hash_password(app_settings.admin_password)

    return existing


def seed_defaults(db: Session) -> None:
    _upsert_admin_account(db)


def run_seed() -> None:
    with transactional_session() as db:
        seed_defaults(db)


if __name__ == "__main__":
    run_seed()
