"""
HTTP API Tests

Tests cover:
- Response envelope on success and on every error kind
- camelCase and snake_case request bodies
- Authentication and admin-only routes
- Availability override endpoints
"""

import inspect
from unittest.mock import MagicMock

from sqlalchemy.exc import OperationalError

from app.main import app
from app.routers import bookings as bookings_router
from app.utils.dependencies import get_current_user, require_admin


def apartment_body(seed, **overrides):
    body = {
        "userId": seed.user_id,
        "hotelId": seed.hotel_id,
        "apartmentId": seed.apartment_id,
        "checkInDate": "2025-06-01",
        "checkOutDate": "2025-06-05",
        "numberOfGuests": 2,
        "paymentAmount": "800.00",
        "paymentMethod": "card",
    }
    body.update(overrides)
    return body


def room_body(seed, **overrides):
    body = {
        "user_id": seed.user_id,
        "hotel_id": seed.hotel_id,
        "room_id": seed.r1_id,
        "check_in_date": "2025-06-02",
        "check_out_date": "2025-06-03",
        "number_of_guests": 1,
        "payment_amount": "120.00",
        "payment_method": "cash",
    }
    body.update(overrides)
    return body


class TestBookingEndpoints:

    def test_book_apartment_camel_case(self, client, seed, user_headers):
        response = client.post("/api/bookings/apartment", json=apartment_body(seed), headers=user_headers)

        assert response.status_code == 201
        payload = response.json()
        assert payload["success"] is True
        assert payload["status_code"] == 201
        assert payload["message"] == "Apartment booked successfully"
        data = payload["data"]
        assert data["booking_type"] == "APARTMENT"
        assert data["status"] == "PENDING"
        assert data["payment_currency"] == "USD"
        assert data["user"]["username"] == "guest"
        assert data["hotel"]["name"] == "Seaside Hotel"
        assert data["apartment"]["apartment_number"] == "A101"
        assert data["room"] is None

    def test_room_inside_booked_apartment_is_conflict(self, client, seed, user_headers):
        client.post("/api/bookings/apartment", json=apartment_body(seed), headers=user_headers)

        response = client.post("/api/bookings/room", json=room_body(seed), headers=user_headers)

        assert response.status_code == 409
        payload = response.json()
        assert payload["success"] is False
        assert payload["status_code"] == 409
        assert payload["message"] == "Cannot book room because the entire apartment is already booked"
        assert payload["data"]["error"] == "conflict"

    def test_missing_field_is_400(self, client, seed, user_headers):
        body = apartment_body(seed)
        del body["checkInDate"]

        response = client.post("/api/bookings/apartment", json=body, headers=user_headers)

        assert response.status_code == 400
        assert response.json()["data"]["field"] == "check_in_date"

    def test_malformed_date_is_400(self, client, seed, user_headers):
        response = client.post(
            "/api/bookings/apartment",
            json=apartment_body(seed, checkInDate="not-a-date"),
            headers=user_headers
        )
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_unknown_room_is_404(self, client, seed, user_headers):
        response = client.post("/api/bookings/room", json=room_body(seed, room_id="missing"), headers=user_headers)
        assert response.status_code == 404
        assert response.json()["message"] == "Room not found"

    def test_requires_token(self, client, seed):
        response = client.post("/api/bookings/apartment", json=apartment_body(seed))
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_invalid_token(self, client, seed):
        response = client.post(
            "/api/bookings/apartment", json=apartment_body(seed),
            headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401

    def test_cannot_book_for_another_user(self, client, seed, other_headers):
        response = client.post("/api/bookings/apartment", json=apartment_body(seed), headers=other_headers)
        assert response.status_code == 403


class TestProbeEndpoint:

    def test_available(self, client, seed):
        response = client.post("/api/bookings/check-availability", json={
            "roomId": seed.standalone_id,
            "checkInDate": "2025-07-03",
            "checkOutDate": "2025-07-05",
            "bookingType": "ROOM",
        })
        assert response.status_code == 200
        assert response.json()["data"] == {"available": True, "reason": None, "conflicting_bookings": 0}

    def test_unavailable_is_still_200(self, client, seed, user_headers):
        client.post("/api/bookings/apartment", json=apartment_body(seed), headers=user_headers)

        response = client.post("/api/bookings/check-availability", json={
            "roomId": seed.r2_id,
            "checkInDate": "2025-06-01",
            "checkOutDate": "2025-06-02",
        })

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["available"] is False
        assert data["conflicting_bookings"] == 1


class TestBookingLifecycleEndpoints:

    def _create(self, client, seed, headers):
        response = client.post("/api/bookings/room", json=room_body(seed), headers=headers)
        assert response.status_code == 201
        return response.json()["data"]["id"]

    def test_get_own_booking(self, client, seed, user_headers, other_headers):
        booking_id = self._create(client, seed, user_headers)

        assert client.get(f"/api/bookings/{booking_id}", headers=user_headers).status_code == 200
        assert client.get(f"/api/bookings/{booking_id}", headers=other_headers).status_code == 403
        assert client.get("/api/bookings/missing", headers=user_headers).status_code == 404

    def test_list_is_paginated(self, client, seed, user_headers, admin_headers):
        self._create(client, seed, user_headers)

        response = client.get("/api/bookings", params={"page": 1, "page_size": 5}, headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 1
        assert data["page_size"] == 5
        assert data["items"][0]["room"]["room_number"] == "R1"

    def test_list_filter_by_status(self, client, seed, user_headers):
        self._create(client, seed, user_headers)
        response = client.get("/api/bookings", params={"status": "CONFIRMED"}, headers=user_headers)
        assert response.json()["data"]["total"] == 0

    def test_status_update_is_admin_only(self, client, seed, user_headers, admin_headers):
        booking_id = self._create(client, seed, user_headers)

        denied = client.patch(f"/api/bookings/{booking_id}/status", json={"status": "CONFIRMED"}, headers=user_headers)
        assert denied.status_code == 403

        response = client.patch(
            f"/api/bookings/{booking_id}/status",
            json={"status": "CONFIRMED", "paymentStatus": "COMPLETED"},
            headers=admin_headers
        )
        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "CONFIRMED"
        assert data["payment_status"] == "COMPLETED"
        assert data["payment_completed_at"] is not None

    def test_status_update_needs_a_field(self, client, seed, user_headers, admin_headers):
        booking_id = self._create(client, seed, user_headers)
        response = client.patch(f"/api/bookings/{booking_id}/status", json={}, headers=admin_headers)
        assert response.status_code == 400

    def test_cancel(self, client, seed, user_headers, other_headers):
        booking_id = self._create(client, seed, user_headers)

        assert client.delete(f"/api/bookings/{booking_id}", headers=other_headers).status_code == 403

        response = client.delete(f"/api/bookings/{booking_id}", headers=user_headers)
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "CANCELLED"

        again = client.delete(f"/api/bookings/{booking_id}", headers=user_headers)
        assert again.status_code == 400
        assert again.json()["message"] == "Booking is already cancelled"


class TestAvailabilityEndpoints:

    def test_single_day_and_query(self, client, seed, admin_headers):
        response = client.post(
            "/api/availability/ROOM",
            json={"unitId": seed.r1_id, "date": "2025-08-10", "isAvailable": False},
            headers=admin_headers
        )
        assert response.status_code == 201

        listed = client.get(
            f"/api/availability/ROOM/{seed.r1_id}",
            params={"start_date": "2025-08-01", "end_date": "2025-08-31"}
        )
        entries = listed.json()["data"]
        assert len(entries) == 1
        assert entries[0]["date"] == "2025-08-10"
        assert entries[0]["is_available"] is False

    def test_bulk(self, client, seed, admin_headers):
        response = client.post(
            "/api/availability/APARTMENT/bulk",
            json={"unitId": seed.apartment_id, "startDate": "2025-09-01", "endDate": "2025-09-07",
                  "isAvailable": False},
            headers=admin_headers
        )
        assert response.status_code == 201
        assert response.json()["data"] == {"count": 7, "start_date": "2025-09-01", "end_date": "2025-09-07"}

    def test_bulk_reversed_range(self, client, seed, admin_headers):
        response = client.post(
            "/api/availability/ROOM/bulk",
            json={"unitId": seed.r1_id, "startDate": "2025-09-07", "endDate": "2025-09-01"},
            headers=admin_headers
        )
        assert response.status_code == 400

    def test_override_needs_admin(self, client, seed, user_headers):
        response = client.post(
            "/api/availability/ROOM",
            json={"unitId": seed.r1_id, "date": "2025-08-10", "isAvailable": False},
            headers=user_headers
        )
        assert response.status_code == 403

    def test_delete(self, client, seed, admin_headers):
        created = client.post(
            "/api/availability/ROOM",
            json={"unitId": seed.r1_id, "date": "2025-08-10", "isAvailable": False},
            headers=admin_headers
        ).json()["data"]

        response = client.delete(f"/api/availability/ROOM/{created['id']}", headers=admin_headers)
        assert response.status_code == 200

        missing = client.delete(f"/api/availability/ROOM/{created['id']}", headers=admin_headers)
        assert missing.status_code == 404


class TestHealth:

    def test_liveness(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "healthy"

    def test_readiness(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["data"]["database"]["status"] == "up"


class TestStorageFailureEnvelope:

    def test_database_error_is_503_without_driver_text(self, client, seed):
        failing = MagicMock()
        failing.probe.side_effect = OperationalError(
            "SELECT bookings.id FROM bookings", {},
            Exception('password authentication failed for user "reservations"')
        )
        app.dependency_overrides[bookings_router.get_workflow] = lambda: failing

        response = client.post("/api/bookings/check-availability", json={
            "roomId": seed.r1_id,
            "checkInDate": "2025-07-03",
            "checkOutDate": "2025-07-05",
        })

        assert response.status_code == 503
        payload = response.json()
        assert payload["success"] is False
        assert payload["message"] == "Service temporarily unavailable, please retry"
        assert payload["data"] == {"error": "unavailable"}
        assert "password" not in response.text
        assert "SELECT" not in response.text


class TestAuthDependencies:

    def test_run_in_threadpool(self):
        # They query the database, so FastAPI must not run them on the event loop
        assert not inspect.iscoroutinefunction(get_current_user)
        assert not inspect.iscoroutinefunction(require_admin)
