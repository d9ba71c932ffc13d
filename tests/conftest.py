"""
Test configuration.

Required settings are provided through the environment before any
clinic_billing module is imported, and PostgreSQL is replaced by an
in-memory SQLite database shared across threads.
"""
import os

os.environ["STRIPE_SECRET_KEY"] = "sk_test_dummy"
os.environ["STRIPE_WEBHOOK_SECRET"] = "whsec_test_secret"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATABASE_SERVICE_KEY"] = "test-service-key"
os.environ["STRIPE_PRICE_MONTHLY"] = "price_monthly_test"
os.environ["STRIPE_PRICE_YEARLY"] = "price_yearly_test"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from clinic_billing.db.session import Base, get_db
from clinic_billing.main import app
from clinic_billing.models import Clinic

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def clinic(db):
    clinic = Clinic(name="Smile Dental")
    db.add(clinic)
    db.commit()
    db.refresh(clinic)
    return clinic
