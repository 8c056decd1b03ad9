"""
Model factories and auth helpers for tests.

Every factory produces a valid, insertable SQLAlchemy model instance.
Override any field via kwargs.

Usage:
    user = UserFactory.create(balance=Decimal("100"))
    db_session.add(user)
    await db_session.commit()
"""

import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from decimal import Decimal

from libs.auth.dependencies import get_current_user
from libs.auth.models import AuthUser

DEFAULT_USER_ID = "user-1"

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _unique_email() -> str:
    return f"test-{uuid.uuid4().hex[:8]}@test.com"


def make_auth_user(user_id: str = DEFAULT_USER_ID, **overrides) -> AuthUser:
    defaults = {
        "user_id": user_id,
        "email": f"{user_id}@test.com",
        "full_name": "Test Student",
        "role": "user",
    }
    defaults.update(overrides)
    return AuthUser(**defaults)


@contextmanager
def override_auth(app, user: AuthUser):
    """Temporarily sign ``user`` in on ``app``."""
    previous = app.dependency_overrides.get(get_current_user)
    app.dependency_overrides[get_current_user] = lambda: user
    try:
        yield
    finally:
        if previous is None:
            app.dependency_overrides.pop(get_current_user, None)
        else:
            app.dependency_overrides[get_current_user] = previous


# ---------------------------------------------------------------------------
# Wallet Service
# ---------------------------------------------------------------------------


class UserFactory:
    @staticmethod
    def create(**overrides):
        from services.wallet_service.models import User

        defaults = {
            "id": f"user-{uuid.uuid4().hex[:8]}",
            "email": _unique_email(),
            "full_name": "Test Student",
            "phone_number": None,
            "balance": Decimal("0"),
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return User(**defaults)


# ---------------------------------------------------------------------------
# Payments Service
# ---------------------------------------------------------------------------


class PaymentFactory:
    @staticmethod
    def create(user_id: str = DEFAULT_USER_ID, **overrides):
        from services.payments_service.models import Payment, PaymentStatus

        defaults = {
            "id": uuid.uuid4(),
            "user_id": user_id,
            "amount": Decimal("50.00"),
            "status": PaymentStatus.PENDING,
            "payment_method": None,
            "external_invoice_id": None,
            "external_invoice_url": None,
            "created_at": _now(),
            "updated_at": _now(),
        }
        defaults.update(overrides)
        return Payment(**defaults)
