"""Tests for alert notification dispatch."""
from datetime import timedelta

import httpx
import pytest

from app.core.exceptions import ValidationError
from app.core.redis_client import alert_key
from app.models import GarageBookingToken
from app.services.alerts import collect_alerts
from app.services.email_client import EmailClient
from app.services.notifications import AlertNotifier, build_team_email


class FakeEmailClient:
    """Records sends instead of calling the transport."""

    def __init__(self, ok=True, configured=True):
        self.ok = ok
        self.configured = configured
        self.sent = []

    def send(self, to, subject, html):
        self.sent.append({"to": to, "subject": subject, "html": html})
        return self.ok


@pytest.fixture
def fleet(make_vehicle, now):
    """One vehicle with expired insurance, one close to its tire inspection."""
    expired = make_vehicle(insurance_expiry_date=now.date() - timedelta(days=1), insurance_provider="AXA")
    worn = make_vehicle(mileage=9500)
    return expired, worn


def notifier(email_client, store, **overrides):
    options = {"recipients": ["fleet@example.com", "ops@example.com"], "garage_email": ""}
    options.update(overrides)
    return AlertNotifier(email_client=email_client, store=store, **options)


class TestRunOnce:
    """Tests for AlertNotifier.run_once."""

    def test_batches_new_alerts_per_recipient(self, db, fleet, notified_store, now):
        expired, worn = fleet
        client = FakeEmailClient()

        summary = notifier(client, notified_store).run_once(db, now)

        assert summary == {"alerts": 2, "team_emails": 2, "garage_emails": 0}
        assert [mail["to"] for mail in client.sent] == ["fleet@example.com", "ops@example.com"]
        assert "Insurance" in client.sent[0]["html"]
        assert "Tire inspection" in client.sent[0]["html"]
        assert notified_store.contains(alert_key(expired.id, "Insurance"))
        assert notified_store.contains(alert_key(worn.id, "Tire inspection"))

    def test_repeat_sweep_sends_nothing(self, db, fleet, notified_store, now):
        client = FakeEmailClient()
        dispatcher = notifier(client, notified_store)
        dispatcher.run_once(db, now)
        client.sent.clear()

        summary = dispatcher.run_once(db, now)

        assert summary["alerts"] == 0
        assert client.sent == []

    def test_failed_sends_still_mark_keys(self, db, fleet, notified_store, now):
        client = FakeEmailClient(ok=False)
        summary = notifier(client, notified_store).run_once(db, now)
        assert summary["team_emails"] == 0
        assert len(notified_store) == 2

    def test_low_priority_alerts_not_sent(self, db, make_vehicle, notified_store, now):
        make_vehicle(mileage=7000)  # tire inspection 3000 km away: low
        client = FakeEmailClient()
        assert notifier(client, notified_store).run_once(db, now)["alerts"] == 0
        assert client.sent == []

    def test_disabled_without_transport(self, db, fleet, notified_store, now):
        client = FakeEmailClient(configured=False)
        summary = notifier(client, notified_store).run_once(db, now)
        assert summary["alerts"] == 0
        assert len(notified_store) == 0

    def test_garage_gets_booking_link_for_garage_rules(self, db, fleet, notified_store, now):
        _, worn = fleet
        client = FakeEmailClient()

        summary = notifier(client, notified_store, recipients=[], garage_email="garage@example.com").run_once(db, now)

        assert summary["garage_emails"] == 1
        token = db.query(GarageBookingToken).one()
        assert token.vehicle_id == worn.id
        assert token.alert_rule_name == "Tire inspection"
        assert token.expires_at == now + timedelta(days=30)
        assert len(token.token) == 64
        assert client.sent[0]["to"] == "garage@example.com"
        assert f"/garage-booking/{token.token}" in client.sent[0]["html"]


class TestNotifyNow:
    """Tests for the manual trigger."""

    def test_requires_recipients(self, db, notified_store, now):
        with pytest.raises(ValidationError):
            notifier(FakeEmailClient(), notified_store, recipients=[]).notify_now(db, now)

    def test_ignores_dedup(self, db, fleet, notified_store, now):
        client = FakeEmailClient()
        dispatcher = notifier(client, notified_store)
        dispatcher.run_once(db, now)
        client.sent.clear()

        result = dispatcher.notify_now(db, now)

        assert result["sent"] is True
        assert result["alert_count"] == 2
        assert len(client.sent) == 2

    def test_nothing_to_send(self, db, notified_store, now):
        result = notifier(FakeEmailClient(), notified_store).notify_now(db, now)
        assert result == {"message": "No urgent alerts to notify.", "sent": False, "alert_count": 0}


class TestTeamEmail:
    def test_escapes_user_content(self, db, make_vehicle, now):
        make_vehicle(brand="<b>Evil</b>", insurance_expiry_date=now.date())
        _, html = build_team_email(collect_alerts(db, now), "Fleet Manager")
        assert "&lt;b&gt;Evil&lt;/b&gt;" in html
        assert "<b>Evil</b>" not in html


class TestEmailClient:
    """Tests for the HTTP transport."""

    def test_posts_json_with_bearer(self):
        seen = {}

        def handler(request):
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = request.read()
            return httpx.Response(200, json={"id": "msg_1"})

        client = EmailClient("https://mail.example.com/send", "key-123", transport=httpx.MockTransport(handler))
        assert client.send("a@example.com", "Hello", "<p>Hi</p>") is True
        assert seen["auth"] == "Bearer key-123"
        assert b'"subject":"Hello"' in seen["body"].replace(b" ", b"")

    def test_error_status_reported_not_raised(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(500, text="boom"))
        client = EmailClient("https://mail.example.com/send", "key", transport=transport)
        assert client.send("a@example.com", "Hello", "<p>Hi</p>") is False

    def test_network_error_reported_not_raised(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = EmailClient("https://mail.example.com/send", "key", transport=httpx.MockTransport(handler))
        assert client.send("a@example.com", "Hello", "<p>Hi</p>") is False

    def test_unconfigured_skips(self):
        assert EmailClient(endpoint_url="").send("a@example.com", "Hello", "<p>Hi</p>") is False
