"""
Pytest configuration and shared fixtures for testing the GuestDesk API.
"""
import os

# Configure the app before it is imported: throwaway database, no rate limit
os.environ.setdefault("GUESTDESK_DATABASE_URL", "sqlite://")
os.environ.setdefault("GUESTDESK_RATE_LIMIT_ENABLED", "false")

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from guestdesk.database import Base
from guestdesk.main import app
from guestdesk.deps import get_db, get_password_hash, create_guest_token
from guestdesk.circuit_breaker import db_write_breaker
from guestdesk import models


# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

HOTEL_PASSWORD = "seaview123"
OTHER_HOTEL_PASSWORD = "hilltop123"
ADMIN_PASSWORD = "adminpass123"


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def client(db_session):
    """
    Create a test client with the test database.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    db_write_breaker.close()
    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def hotel(db_session):
    """
    Hotel "Sea View" with rooms 100-110.
    """
    hotel = models.Hotel(
        hotel_name="Sea View",
        email="staff@seaview.example.com",
        hashed_password=get_password_hash(HOTEL_PASSWORD),
        address="1 Beach Road",
        phone_number="0123456789",
        max_rooms=11,
        room_range_start=100,
        room_range_end=110,
    )
    db_session.add(hotel)
    db_session.commit()
    db_session.refresh(hotel)
    return hotel


@pytest.fixture
def other_hotel(db_session):
    """
    A second tenant without a room range.
    """
    hotel = models.Hotel(
        hotel_name="Hill Top",
        email="staff@hilltop.example.com",
        hashed_password=get_password_hash(OTHER_HOTEL_PASSWORD),
        address="9 Mountain Pass",
        phone_number="0987654321",
    )
    db_session.add(hotel)
    db_session.commit()
    db_session.refresh(hotel)
    return hotel


@pytest.fixture
def staff_token(client, hotel):
    """
    Get a staff token for "Sea View".
    """
    response = client.post(
        "/api/auth/login",
        json={"email": hotel.email, "password": HOTEL_PASSWORD},
    )
    return response.json()["access_token"]


@pytest.fixture
def other_staff_token(client, other_hotel):
    """
    Get a staff token for "Hill Top".
    """
    response = client.post(
        "/api/auth/login",
        json={"email": other_hotel.email, "password": OTHER_HOTEL_PASSWORD},
    )
    return response.json()["access_token"]


def make_guest(db_session, hotel, status=models.GUEST_PENDING, **overrides):
    fields = {
        "hotel_id": hotel.id,
        "name": "JOHN DOE",
        "room_number": "105",
        "mobile_number": "9876543210",
        "check_out_date": datetime.utcnow() + timedelta(days=3),
        "status": status,
    }
    fields.update(overrides)
    guest = models.Guest(**fields)
    db_session.add(guest)
    db_session.commit()
    db_session.refresh(guest)
    return guest


@pytest.fixture
def approved_guest(db_session, hotel):
    """
    An approved guest in room 105 checking out in 3 days.
    """
    return make_guest(db_session, hotel, status=models.GUEST_APPROVED)


@pytest.fixture
def pending_guest(db_session, hotel):
    """
    A pending guest in room 107.
    """
    return make_guest(
        db_session,
        hotel,
        name="JANE ROE",
        room_number="107",
        mobile_number="5550001111",
    )


@pytest.fixture
def guest_token(approved_guest):
    return create_guest_token(approved_guest)


@pytest.fixture
def pending_guest_token(pending_guest):
    return create_guest_token(pending_guest)


@pytest.fixture
def admin_user(db_session):
    """
    Create an admin account for testing.
    """
    admin = models.Admin(
        username="admin",
        hashed_password=get_password_hash(ADMIN_PASSWORD),
    )
    db_session.add(admin)
    db_session.commit()
    db_session.refresh(admin)
    return admin


@pytest.fixture
def admin_token(client, admin_user):
    response = client.post(
        "/api/admin/login",
        json={"username": "admin", "password": ADMIN_PASSWORD},
    )
    return response.json()["access_token"]


@pytest.fixture
def sample_foods(db_session, hotel):
    """
    Two available dishes and one unavailable dish at "Sea View".
    """
    foods = [
        models.Food(hotel_id=hotel.id, name="PANCAKES", price=6.5, image_url="/img/pancakes.jpg"),
        models.Food(hotel_id=hotel.id, name="CLUB SANDWICH", price=9.0, image_url="/img/club.jpg"),
        models.Food(
            hotel_id=hotel.id,
            name="LOBSTER",
            price=40.0,
            image_url="/img/lobster.jpg",
            is_available=False,
        ),
    ]
    for food in foods:
        db_session.add(food)
    db_session.commit()
    for food in foods:
        db_session.refresh(food)
    return foods


@pytest.fixture
def sample_complaint(db_session, approved_guest):
    """
    A pending complaint with its opening message.
    """
    complaint = models.Complaint(
        guest_id=approved_guest.id,
        hotel_id=approved_guest.hotel_id,
        title="NO HOT WATER",
        description="The shower has no hot water.",
    )
    complaint.messages.append(models.ComplaintMessage(message="The shower has no hot water.", is_staff=False))
    db_session.add(complaint)
    db_session.commit()
    db_session.refresh(complaint)
    return complaint


def get_auth_header(token: str) -> dict:
    """
    Helper function to create authorization header.
    """
    return {"Authorization": f"Bearer {token}"}
