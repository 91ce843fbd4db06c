"""API tests for /bookings."""

from decimal import Decimal

import pytest

from factories import TOMORROW, auth_headers, book_directly, make_addon, make_provider, make_service, make_user
from servio.db.models.booking import Booking
from servio.db.models.notification import Notification


def create_booking(client, customer, service, **extra):
    body = {
        "service_id": service.id,
        "scheduled_date": TOMORROW.isoformat(),
        "scheduled_time": "09:00",
        **extra,
    }
    return client.post("/bookings", json=body, headers=auth_headers(customer))


@pytest.fixture
def admin(db):
    return make_user(db, role="admin")


class TestCreateBookingApi:
    def test_customer_books_with_addons(self, client, customer, db, service):
        addon = make_addon(db, service, "Windows", "20.00")

        resp = create_booking(
            client,
            customer,
            service,
            addons=[{"addon_id": addon.id, "quantity": 2}],
            payment_method="card",
            customer_notes="Ring twice",
        )

        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "pending"
        assert body["payment_method"] == "card"
        assert Decimal(body["subtotal"]) == Decimal("140.00")
        assert Decimal(body["commission_amount"]) == Decimal("21.00")
        assert Decimal(body["provider_earnings"]) == Decimal("119.00")
        assert [(l["addon_name"], l["quantity"]) for l in body["addon_lines"]] == [("Windows", 2)]

    def test_unverified_provider_is_403(self, client, customer, db):
        provider = make_provider(db, verification_status="pending")
        service = make_service(db, provider)

        resp = create_booking(client, customer, service)

        assert resp.status_code == 403
        assert resp.json()["detail"] == (
            "This provider is not yet verified. Bookings are not available at this time."
        )
        assert db.query(Booking).count() == 0

    def test_unknown_service_is_404(self, client, customer, service):
        resp = client.post(
            "/bookings",
            json={"service_id": 9999, "scheduled_date": TOMORROW.isoformat(), "scheduled_time": "09:00"},
            headers=auth_headers(customer),
        )

        assert resp.status_code == 404

    def test_unknown_payment_method_is_rejected(self, client, customer, service):
        assert create_booking(client, customer, service, payment_method="barter").status_code == 422

    def test_providers_cannot_book(self, client, provider, service):
        assert create_booking(client, provider, service).status_code == 403

    def test_requires_a_token(self, client, service):
        resp = client.post(
            "/bookings",
            json={"service_id": service.id, "scheduled_date": TOMORROW.isoformat(), "scheduled_time": "09:00"},
        )

        assert resp.status_code in (401, 403)


class TestReadBookingsApi:
    def test_me_is_scoped_to_the_caller(self, client, db, customer, provider, service):
        mine = book_directly(db, customer, service, TOMORROW, "09:00")
        other_customer = make_user(db, role="customer")
        book_directly(db, other_customer, service, TOMORROW, "12:00")

        customer_view = client.get("/bookings/me", headers=auth_headers(customer)).json()
        provider_view = client.get("/bookings/me", headers=auth_headers(provider)).json()

        assert [b["id"] for b in customer_view] == [mine.id]
        assert len(provider_view) == 2

    def test_single_booking_for_participants_only(self, client, db, customer, provider, service, admin):
        booking = book_directly(db, customer, service, TOMORROW, "09:00")
        outsider = make_user(db, role="customer")

        assert client.get(f"/bookings/{booking.id}", headers=auth_headers(customer)).status_code == 200
        assert client.get(f"/bookings/{booking.id}", headers=auth_headers(provider)).status_code == 200
        assert client.get(f"/bookings/{booking.id}", headers=auth_headers(admin)).status_code == 200
        assert client.get(f"/bookings/{booking.id}", headers=auth_headers(outsider)).status_code == 403
        assert client.get("/bookings/9999", headers=auth_headers(admin)).status_code == 404

    def test_admin_listing_filters(self, client, db, customer, service, admin):
        pending = book_directly(db, customer, service, TOMORROW, "09:00")
        cancelled = book_directly(db, customer, service, TOMORROW, "12:00", status="cancelled")

        by_status = client.get("/bookings/admin/all", params={"status": "cancelled"}, headers=auth_headers(admin))
        everything = client.get("/bookings/admin/all", params={"status": "all"}, headers=auth_headers(admin))
        by_number = client.get(
            "/bookings/admin/all", params={"q": pending.booking_number}, headers=auth_headers(admin)
        )

        assert [b["id"] for b in by_status.json()] == [cancelled.id]
        assert {b["id"] for b in everything.json()} == {pending.id, cancelled.id}
        assert [b["id"] for b in by_number.json()] == [pending.id]

    def test_admin_search_covers_people_business_and_service(self, client, db, service, admin):
        alice = make_user(db, role="customer", name="Alice Moreau")
        bob = make_user(db, role="customer", name="Bob Stone")
        other_provider = make_provider(db)
        garden = make_service(db, other_provider)
        garden.title = "Garden makeover"
        db.commit()
        by_alice = book_directly(db, alice, service, TOMORROW, "09:00")
        by_bob = book_directly(db, bob, garden, TOMORROW, "09:00")
        by_bob.customer_notes = "alice recommended you"
        db.commit()
        headers = auth_headers(admin)

        def search(q):
            return [b["id"] for b in client.get("/bookings/admin/all", params={"q": q}, headers=headers).json()]

        assert search("moreau") == [by_alice.id]
        assert search(alice.email) == [by_alice.id]
        assert search("garden") == [by_bob.id]
        assert search(other_provider.name) == [by_bob.id]
        assert search(f"{other_provider.name} Services") == [by_bob.id]
        # notes are not searched
        assert search("recommended") == []

    def test_admin_listing_is_admin_only(self, client, customer):
        assert client.get("/bookings/admin/all", headers=auth_headers(customer)).status_code == 403


class TestStatusApi:
    def test_provider_drives_the_lifecycle(self, client, db, customer, provider, service):
        booking_id = create_booking(client, customer, service).json()["id"]
        headers = auth_headers(provider)

        for status in ("accepted", "in_progress", "completed"):
            resp = client.patch(f"/bookings/{booking_id}/status", json={"status": status}, headers=headers)
            assert resp.status_code == 200, resp.text

        body = resp.json()
        assert body["status"] == "completed"
        assert body["payment_status"] == "paid"
        assert body["completed_at"] is not None

    def test_invalid_transition_is_400(self, client, customer, provider, service):
        booking_id = create_booking(client, customer, service).json()["id"]

        resp = client.patch(
            f"/bookings/{booking_id}/status", json={"status": "completed"}, headers=auth_headers(provider)
        )

        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid status transition from pending to completed"

    def test_unknown_status_value_is_rejected(self, client, customer, provider, service):
        booking_id = create_booking(client, customer, service).json()["id"]

        resp = client.patch(
            f"/bookings/{booking_id}/status", json={"status": "archived"}, headers=auth_headers(provider)
        )

        assert resp.status_code == 422

    def test_customer_can_cancel_but_not_accept(self, client, db, customer, service):
        booking_id = create_booking(client, customer, service).json()["id"]
        headers = auth_headers(customer)

        accept = client.patch(f"/bookings/{booking_id}/status", json={"status": "accepted"}, headers=headers)
        cancel = client.patch(
            f"/bookings/{booking_id}/status",
            json={"status": "cancelled", "cancellation_reason": "Plans changed"},
            headers=headers,
        )

        assert accept.status_code == 403
        assert cancel.status_code == 200
        assert cancel.json()["cancellation_reason"] == "Plans changed"
        # a customer's own cancellation does not notify them
        db.expire_all()
        assert db.query(Notification).filter(Notification.user_id == customer.id).count() == 0

    def test_other_provider_cannot_touch_the_booking(self, client, db, customer, service):
        booking_id = create_booking(client, customer, service).json()["id"]
        stranger = make_provider(db)

        resp = client.patch(
            f"/bookings/{booking_id}/status", json={"status": "accepted"}, headers=auth_headers(stranger)
        )

        assert resp.status_code == 403

    def test_admin_may_change_any_booking(self, client, customer, service, admin):
        booking_id = create_booking(client, customer, service).json()["id"]

        resp = client.patch(f"/bookings/{booking_id}/status", json={"status": "rejected"}, headers=auth_headers(admin))

        assert resp.status_code == 200
        assert resp.json()["status"] == "rejected"

    def test_missing_booking_is_404(self, client, provider):
        resp = client.patch("/bookings/4242/status", json={"status": "accepted"}, headers=auth_headers(provider))

        assert resp.status_code == 404
