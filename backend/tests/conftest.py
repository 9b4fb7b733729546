import os
from decimal import Decimal
from pathlib import Path

import pytest
from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Load environment variables for tests
load_dotenv(Path(__file__).resolve().parents[1] / '.env.test')
os.environ.setdefault("PYTEST_RUN", "1")

from app.models.base import BaseModel  # noqa: E402
from app.models import (  # noqa: E402
    ProviderProfile,
    SubscriptionTier,
    User,
    UserType,
)
from app.services.paystack import PaymentInit, PaymentVerification  # noqa: E402
from app.utils.errors import ExternalServiceFailure  # noqa: E402


def setup_db():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    BaseModel.metadata.create_all(engine)
    Session = sessionmaker(bind=engine)
    return Session()


@pytest.fixture
def db():
    session = setup_db()
    try:
        yield session
    finally:
        session.close()


def make_user(db, email, user_type=UserType.CUSTOMER, first_name="Test", last_name="User"):
    user = User(
        email=email,
        password="x",
        first_name=first_name,
        last_name=last_name,
        user_type=user_type,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def make_provider(db, email="provider@test.com", tier=SubscriptionTier.FREE, **profile_fields):
    user = make_user(db, email, UserType.PROVIDER, first_name="Pat", last_name="Provider")
    profile = ProviderProfile(
        user_id=user.id,
        business_name="Pat's Plumbing",
        category="plumbing",
        subscription_tier=tier,
        **profile_fields,
    )
    db.add(profile)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def customer(db):
    return make_user(db, "customer@test.com", first_name="Cara", last_name="Customer")


@pytest.fixture
def provider(db):
    return make_provider(db)


@pytest.fixture
def outsider(db):
    return make_user(db, "outsider@test.com", first_name="Olly", last_name="Outsider")


class FakeGateway:
    """Stand-in for PaystackClient that records calls."""

    def __init__(self, status="success", fail=False):
        self.status = status
        self.fail = fail
        self.initialized = []
        self.verified = []
        self._metadata = {}
        self._amounts = {}

    def initialize_transaction(self, email, amount, metadata=None, reference=None):
        if self.fail:
            raise ExternalServiceFailure("Payment gateway is unavailable")
        ref = reference or f"ref-{len(self.initialized) + 1}"
        self.initialized.append((email, amount, metadata))
        self._metadata[ref] = dict(metadata or {})
        self._amounts[ref] = Decimal(amount)
        return PaymentInit(
            authorization_url=f"https://checkout.paystack.com/{ref}",
            access_code=f"ac-{ref}",
            reference=ref,
        )

    def verify_transaction(self, reference):
        if self.fail:
            raise ExternalServiceFailure("Payment gateway is unavailable")
        self.verified.append(reference)
        return PaymentVerification(
            reference=reference,
            status=self.status,
            id=f"tx-{reference}",
            amount=self._amounts.get(reference, Decimal("0.00")),
            metadata=self._metadata.get(reference, {}),
        )


@pytest.fixture
def gateway():
    return FakeGateway()
