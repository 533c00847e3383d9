"""
Unit tests for hotel signup, login and settings endpoints.
"""
import pytest


def get_auth_header(token: str) -> dict:
    """Helper function to create authorization header."""
    return {"Authorization": f"Bearer {token}"}


SIGNUP = {
    "hotel_name": "Harbour Inn",
    "email": "desk@harbour.example.com",
    "password": "harbour123",
    "address": "3 Pier Street",
    "phone_number": "0111222333",
    "room_range": {"start": 200, "end": 220},
}


class TestSignup:
    """Tests for hotel signup."""

    def test_signup_success(self, client):
        """Test a new hotel gets an account and a token."""
        response = client.post("/api/auth/signup", json=SIGNUP)
        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["hotel"]["hotel_name"] == "Harbour Inn"
        assert data["hotel"]["room_range"] == {"start": 200, "end": 220}
        assert "password" not in data["hotel"]
        assert "hashed_password" not in data["hotel"]

    def test_signup_duplicate_email(self, client, hotel):
        """Test signup with an existing email fails."""
        response = client.post("/api/auth/signup", json={**SIGNUP, "email": hotel.email})
        assert response.status_code == 400
        assert "already registered" in response.json()["detail"]

    def test_signup_duplicate_name(self, client, hotel):
        """Test signup with an existing hotel name fails."""
        response = client.post("/api/auth/signup", json={**SIGNUP, "hotel_name": "Sea View"})
        assert response.status_code == 400

    def test_signup_inverted_room_range(self, client):
        """Test room range start must be below its end."""
        response = client.post(
            "/api/auth/signup",
            json={**SIGNUP, "room_range": {"start": 220, "end": 200}},
        )
        assert response.status_code == 422

    def test_signup_missing_fields(self, client):
        """Test signup without required fields fails validation."""
        response = client.post("/api/auth/signup", json={"hotel_name": "Empty"})
        assert response.status_code == 422


class TestLogin:
    """Tests for staff login."""

    def test_login_success(self, client, hotel):
        """Test login returns a token and sets the staff cookie."""
        response = client.post(
            "/api/auth/login",
            json={"email": hotel.email, "password": "seaview123"},
        )
        assert response.status_code == 200
        assert response.json()["access_token"]
        assert response.json()["hotel"]["id"] == hotel.id
        assert "staff_token" in response.headers.get("set-cookie", "")

    def test_login_wrong_password(self, client, hotel):
        """Test login with a wrong password fails."""
        response = client.post(
            "/api/auth/login",
            json={"email": hotel.email, "password": "wrong"},
        )
        assert response.status_code == 401

    def test_login_unknown_email(self, client):
        """Test login with an unknown email fails."""
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@example.com", "password": "whatever"},
        )
        assert response.status_code == 401


class TestSettings:
    """Tests for room capacity settings."""

    def test_get_settings(self, client, hotel, staff_token):
        """Test staff can read their own settings."""
        response = client.get(
            f"/api/auth/settings/{hotel.id}",
            headers=get_auth_header(staff_token),
        )
        assert response.status_code == 200
        assert response.json() == {"max_rooms": 11, "room_range": {"start": 100, "end": 110}}

    def test_get_settings_requires_auth(self, client, hotel):
        """Test settings need a staff token."""
        response = client.get(f"/api/auth/settings/{hotel.id}")
        assert response.status_code == 401

    def test_get_other_hotel_settings_forbidden(self, client, hotel, other_hotel, staff_token):
        """Test staff cannot read another hotel's settings."""
        response = client.get(
            f"/api/auth/settings/{other_hotel.id}",
            headers=get_auth_header(staff_token),
        )
        assert response.status_code == 403

    def test_update_room_range(self, client, hotel, staff_token):
        """Test staff can change the room range."""
        response = client.patch(
            "/api/auth/settings",
            headers=get_auth_header(staff_token),
            json={"room_range": {"start": 1, "end": 50}},
        )
        assert response.status_code == 200
        assert response.json()["room_range"] == {"start": 1, "end": 50}
        assert response.json()["max_rooms"] == 11

    def test_clear_room_range(self, client, hotel, staff_token):
        """Test sending null removes the range."""
        response = client.patch(
            "/api/auth/settings",
            headers=get_auth_header(staff_token),
            json={"room_range": None},
        )
        assert response.status_code == 200
        assert response.json()["room_range"] is None

    def test_cookie_authentication(self, client, hotel):
        """Test the staff cookie set at login authenticates later requests."""
        client.post(
            "/api/auth/login",
            json={"email": hotel.email, "password": "seaview123"},
        )
        response = client.get(f"/api/auth/settings/{hotel.id}")
        assert response.status_code == 200

    def test_guest_token_rejected_for_staff_route(self, client, hotel, guest_token):
        """Test a guest token cannot be used as a staff token."""
        response = client.get(
            f"/api/auth/settings/{hotel.id}",
            headers=get_auth_header(guest_token),
        )
        assert response.status_code == 401
