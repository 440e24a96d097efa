"""Tests for API endpoints."""
from datetime import date, timedelta
from decimal import Decimal

from app.models import TrackedFlight, PriceObservation, PriceChangeNotification
from tests.conftest import make_quote


def _payload(**overrides):
    payload = {
        "origin": "sfo",
        "destination": "JFK",
        "airline": "United",
        "travel_date": (date.today() + timedelta(days=30)).isoformat(),
        "cabin_class": "economy",
        "num_passengers": 2,
    }
    payload.update(overrides)
    return payload


class TestCreateFlight:
    async def test_create_records_initial_price(self, client, db_session, pricing_client):
        pricing_client.quotes[("SFO", "JFK")] = make_quote(
            "320.00", base_fare=Decimal("280.00"), taxes=Decimal("40.00")
        )

        response = await client.post("/api/flights", json=_payload())

        assert response.status_code == 201
        data = response.json()
        assert data["origin"] == "SFO"
        assert data["trip_type"] == "one_way"
        assert data["is_active"] is True
        assert data["warnings"] == []
        assert Decimal(str(data["current_price"]["price"])) == Decimal("320.00")

        assert pricing_client.calls[0]["adults"] == 2
        assert db_session.query(PriceObservation).filter_by(flight_id=data["id"]).count() == 1

    async def test_create_survives_pricing_failure(self, client, db_session, pricing_client):
        pricing_client.quotes[("SFO", "JFK")] = RuntimeError("amadeus down")

        response = await client.post("/api/flights", json=_payload())

        assert response.status_code == 201
        assert response.json()["current_price"] is None
        assert db_session.query(TrackedFlight).count() == 1
        assert db_session.query(PriceObservation).count() == 0

    async def test_create_without_offer(self, client, db_session):
        response = await client.post("/api/flights", json=_payload())
        assert response.status_code == 201
        assert response.json()["current_price"] is None

    async def test_unknown_airline_warns(self, client):
        response = await client.post("/api/flights", json=_payload(airline="Zephyr Air"))
        assert response.status_code == 201
        assert len(response.json()["warnings"]) == 1

    async def test_invalid_airport_rejected_before_persisting(self, client, db_session, pricing_client):
        for code in ("SF", "S1O", "XYZ"):
            response = await client.post("/api/flights", json=_payload(origin=code))
            assert response.status_code == 400
            assert "Airport code" in response.json()["detail"]

        assert db_session.query(TrackedFlight).count() == 0
        assert pricing_client.calls == []

    async def test_past_date_rejected(self, client, db_session):
        yesterday = (date.today() - timedelta(days=1)).isoformat()
        response = await client.post("/api/flights", json=_payload(travel_date=yesterday))
        assert response.status_code == 400
        assert response.json()["detail"] == "Travel date must be in the future"
        assert db_session.query(TrackedFlight).count() == 0

    async def test_round_trip_return_must_follow_departure(self, client, db_session):
        departure = date.today() + timedelta(days=30)
        response = await client.post("/api/flights", json=_payload(
            trip_type="round_trip",
            travel_date=departure.isoformat(),
            return_date=departure.isoformat(),
        ))
        assert response.status_code == 400
        assert response.json()["detail"] == "Return date must be after departure date"
        assert db_session.query(TrackedFlight).count() == 0

    async def test_round_trip_requires_return_date(self, client):
        response = await client.post("/api/flights", json=_payload(trip_type="round_trip"))
        assert response.status_code == 400

    async def test_round_trip_created(self, client, pricing_client):
        departure = date.today() + timedelta(days=30)
        ret = departure + timedelta(days=7)
        response = await client.post("/api/flights", json=_payload(
            trip_type="round_trip",
            travel_date=departure.isoformat(),
            return_date=ret.isoformat(),
        ))
        assert response.status_code == 201
        assert response.json()["return_date"] == ret.isoformat()
        assert pricing_client.calls[0]["return_date"] == ret

    async def test_one_way_ignores_return_date(self, client):
        departure = date.today() + timedelta(days=30)
        response = await client.post("/api/flights", json=_payload(
            travel_date=departure.isoformat(),
            return_date=(departure - timedelta(days=3)).isoformat(),
        ))
        assert response.status_code == 201
        assert response.json()["return_date"] is None

    async def test_passenger_count_bounds(self, client):
        response = await client.post("/api/flights", json=_payload(num_passengers=10))
        assert response.status_code == 422


class TestListFlights:
    async def test_list_empty(self, client, db_session):
        response = await client.get("/api/flights")
        assert response.status_code == 200
        assert response.json() == []

    async def test_list_shows_current_price_and_unread(self, client, db_session, make_flight, add_observation):
        later = make_flight(travel_date=date.today() + timedelta(days=60))
        sooner = make_flight(origin="LAX", travel_date=date.today() + timedelta(days=10))
        make_flight(origin="SEA", is_active=False)
        add_observation(later, "300.00")
        add_observation(later, "280.00")
        db_session.add_all([
            PriceChangeNotification(
                flight_id=later.id, message="Price dropped by $20.00!",
                old_price=Decimal("300.00"), new_price=Decimal("280.00"),
            ),
            PriceChangeNotification(
                flight_id=later.id, message="old news",
                old_price=Decimal("310.00"), new_price=Decimal("300.00"), is_read=True,
            ),
        ])
        db_session.commit()

        response = await client.get("/api/flights")

        assert response.status_code == 200
        data = response.json()
        assert [f["id"] for f in data] == [sooner.id, later.id]
        assert data[0]["current_price"] is None
        assert Decimal(str(data[1]["current_price"]["price"])) == Decimal("280.00")
        assert [n["message"] for n in data[1]["unread_notifications"]] == ["Price dropped by $20.00!"]


class TestFlightDetail:
    async def test_detail_includes_full_history(self, client, make_flight, add_observation):
        flight = make_flight()
        add_observation(flight, "300.00")
        add_observation(flight, "290.00")

        response = await client.get(f"/api/flights/{flight.id}")

        assert response.status_code == 200
        prices = [Decimal(str(p["price"])) for p in response.json()["price_history"]]
        assert prices == [Decimal("290.00"), Decimal("300.00")]

    async def test_detail_not_found(self, client, db_session):
        response = await client.get("/api/flights/999")
        assert response.status_code == 404


class TestDeleteFlight:
    async def test_soft_delete(self, client, db_session, make_flight, add_observation):
        flight = make_flight()
        add_observation(flight, "300.00")

        response = await client.delete(f"/api/flights/{flight.id}")

        assert response.status_code == 200
        db_session.refresh(flight)
        assert flight.is_active is False
        assert db_session.query(PriceObservation).filter_by(flight_id=flight.id).count() == 1

        listing = await client.get("/api/flights")
        assert listing.json() == []

    async def test_delete_not_found(self, client, db_session):
        response = await client.delete("/api/flights/999")
        assert response.status_code == 404


class TestNotificationsAPI:
    async def test_mark_read(self, client, db_session, make_flight):
        flight = make_flight()
        notification = PriceChangeNotification(
            flight_id=flight.id, message="Price increased by $9.00",
            old_price=Decimal("100.00"), new_price=Decimal("109.00"),
        )
        db_session.add(notification)
        db_session.commit()

        unread = await client.get("/api/notifications", params={"unread_only": True})
        assert len(unread.json()) == 1

        response = await client.post(f"/api/notifications/{notification.id}/read")
        assert response.status_code == 200
        assert response.json()["is_read"] is True

        unread = await client.get("/api/notifications", params={"unread_only": True})
        assert unread.json() == []

    async def test_mark_all_read(self, client, db_session, make_flight):
        flight = make_flight()
        for i in range(3):
            db_session.add(PriceChangeNotification(
                flight_id=flight.id, message=f"change {i}",
                old_price=Decimal("100.00"), new_price=Decimal("90.00"),
            ))
        db_session.commit()

        response = await client.post("/api/notifications/read-all")

        assert response.json()["updated"] == 3
        db_session.expire_all()
        assert db_session.query(PriceChangeNotification).filter_by(is_read=False).count() == 0

    async def test_mark_read_not_found(self, client, db_session):
        response = await client.post("/api/notifications/999/read")
        assert response.status_code == 404


class TestCheckPricesAPI:
    async def test_run_returns_summary(self, client, db_session, pricing_client, make_flight, add_observation):
        flight = make_flight()
        add_observation(flight, "200.00")
        make_flight(origin="LAX")
        pricing_client.quotes[("SFO", "JFK")] = make_quote("190.00")

        response = await client.post("/api/check-prices")

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["policy"] == "threshold"
        assert data["checked"] == 2
        assert data["updated"] == 1
        assert data["notifications"] == 1
        assert data["skipped"] == 1
        statuses = sorted(r["status"] for r in data["results"])
        assert statuses == ["no_price_found", "price_changed"]

    async def test_cron_get_variant(self, client, db_session):
        response = await client.get("/api/cron/check-prices")
        assert response.status_code == 200
        assert response.json()["checked"] == 0

    async def test_failed_run_reported(self, client, db_session, monkeypatch):
        from app.services.price_check import PriceCheckService

        def broken(self, today=None):
            raise RuntimeError("cannot list flights")

        monkeypatch.setattr(PriceCheckService, "flights_to_check", broken)

        response = await client.post("/api/check-prices")

        assert response.status_code == 500
        assert "cannot list flights" in response.json()["detail"]

    async def test_push_history(self, client, db_session, notifier):
        await notifier.send_system_alert("Price Check Failed", "boom", alert_type="error")

        response = await client.get("/api/notifications/push-history")

        assert response.status_code == 200
        data = response.json()
        assert data[0]["title"] == "Price Check Failed"
        assert data[0]["sent_to_ntfy"] is False
