"""Alert notification dispatch.

Each sweep recomputes every alert, keeps the urgent and high ones that have
not been notified yet, emails them in one batch to the internal team, and
sends a booking link to the external garage for garage-relevant rules.
Dispatched keys are marked as notified whether or not delivery worked.
"""
import asyncio
import logging
from datetime import datetime
from html import escape
from typing import Dict, List, Optional

from redis.exceptions import RedisError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.config import settings
from app.core.database import SessionLocal
from app.core.exceptions import FleetError, ValidationError
from app.core.redis_client import get_notified_store
from app.models.vehicle import Vehicle
from app.schemas.alert import NOTIFIABLE_PRIORITIES, Priority
from app.services.alerts import collect_alerts
from app.services.email_client import EmailClient
from app.services.garage_booking import booking_url, mint_token

logger = logging.getLogger(__name__)

PRIORITY_LABELS = {
    Priority.URGENT: "Urgent",
    Priority.HIGH: "High",
    Priority.NORMAL: "Normal",
    Priority.LOW: "Low",
}


def build_team_email(alerts: list, app_name: str, new_only: bool = True) -> tuple:
    """Subject and HTML table summarizing alerts for the internal team."""
    rows = "".join(
        "<tr>"
        f'<td style="padding:8px;border:1px solid #ddd;">{escape(a.brand)} {escape(a.model)}</td>'
        f'<td style="padding:8px;border:1px solid #ddd;">{escape(a.license_plate)}</td>'
        f'<td style="padding:8px;border:1px solid #ddd;">{escape(a.rule_name)}</td>'
        f'<td style="padding:8px;border:1px solid #ddd;">{escape(a.description)}</td>'
        f'<td style="padding:8px;border:1px solid #ddd;">{PRIORITY_LABELS[a.priority]}</td>'
        "</tr>"
        for a in alerts
    )
    heading = "new maintenance alert(s)" if new_only else "maintenance alert(s) need attention"
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:700px;margin:0 auto;">
      <div style="background:#c05c4f;color:white;padding:20px;border-radius:8px 8px 0 0;">
        <h1 style="margin:0;font-size:22px;">Maintenance alerts - {escape(app_name)}</h1>
      </div>
      <div style="padding:20px;background:#faf3f2;border-radius:0 0 8px 8px;">
        <p><strong>{len(alerts)}</strong> {heading}:</p>
        <table style="width:100%;border-collapse:collapse;margin-top:16px;">
          <thead>
            <tr style="background:#c05c4f;color:white;">
              <th style="padding:8px;text-align:left;">Vehicle</th>
              <th style="padding:8px;text-align:left;">Plate</th>
              <th style="padding:8px;text-align:left;">Type</th>
              <th style="padding:8px;text-align:left;">Description</th>
              <th style="padding:8px;text-align:left;">Priority</th>
            </tr>
          </thead>
          <tbody>{rows}</tbody>
        </table>
        <p style="margin-top:20px;color:#666;font-size:13px;">
          Sign in to {escape(app_name)} to schedule the required maintenance.
        </p>
      </div>
    </div>
    """
    subject = f"{len(alerts)} {heading} - {app_name}"
    return subject, html


def build_garage_email(vehicle: Vehicle, rule_name: str, url: str) -> tuple:
    """Subject and HTML inviting the garage to pick a slot through the booking link."""
    name = f"{vehicle.brand} {vehicle.model}"
    html = f"""
    <div style="font-family:Arial,sans-serif;max-width:600px;margin:0 auto;border:1px solid #e5e7eb;border-radius:12px;">
      <div style="background:#1e40af;color:white;padding:24px 28px;">
        <h1 style="margin:0;font-size:20px;">{escape(settings.APP_NAME)}</h1>
        <p style="margin:4px 0 0;font-size:13px;">{escape(settings.COMPANY_NAME)}</p>
      </div>
      <div style="padding:28px;">
        <p>Hello,</p>
        <p>The vehicle <strong>{escape(name)}</strong> (plate <strong>{escape(vehicle.license_plate)}</strong>)
        needs a <strong>{escape(rule_name)}</strong>.</p>
        <p>Please use the button below to see when the vehicle is available and propose an appointment.</p>
        <div style="text-align:center;margin:28px 0;">
          <a href="{escape(url)}" style="background:#1e40af;color:white;padding:14px 32px;border-radius:8px;text-decoration:none;">
            Schedule the appointment
          </a>
        </div>
        <p style="color:#6b7280;font-size:12px;">
          This link is valid for {settings.GARAGE_TOKEN_VALIDITY_DAYS} days. - {escape(settings.COMPANY_NAME)}
        </p>
      </div>
    </div>
    """
    subject = f"{name} ({vehicle.license_plate}) - {rule_name} - {settings.COMPANY_NAME}"
    return subject, html


class AlertNotifier:
    """Pushes newly urgent alerts out by email."""

    def __init__(
        self,
        email_client: Optional[EmailClient] = None,
        store=None,
        recipients: Optional[List[str]] = None,
        garage_email: Optional[str] = None,
        garage_rules: Optional[List[str]] = None,
    ):
        self.email_client = email_client or EmailClient()
        self.store = store if store is not None else get_notified_store()
        self.recipients = recipients if recipients is not None else settings.alert_recipients
        self.garage_email = garage_email if garage_email is not None else settings.GARAGE_EMAIL
        self.garage_rules = set(garage_rules if garage_rules is not None else settings.GARAGE_ALERT_RULES)

    @property
    def enabled(self) -> bool:
        return self.email_client.configured and bool(self.recipients or self.garage_email)

    def pending_alerts(self, db: Session, now: Optional[datetime] = None) -> list:
        """Urgent/high alerts not yet notified."""
        return [
            alert for alert in collect_alerts(db, now)
            if alert.priority in NOTIFIABLE_PRIORITIES and not self.store.contains(alert.key)
        ]

    def run_once(self, db: Session, now: Optional[datetime] = None) -> Dict[str, int]:
        """One sweep. Returns counts of alerts, team emails and garage emails sent."""
        summary = {"alerts": 0, "team_emails": 0, "garage_emails": 0}
        if not self.enabled:
            return summary

        now = now or utcnow()
        new_alerts = self.pending_alerts(db, now)
        if not new_alerts:
            return summary
        summary["alerts"] = len(new_alerts)

        if self.recipients:
            subject, html = build_team_email(new_alerts, settings.APP_NAME)
            for email in self.recipients:
                if self.email_client.send(email, subject, html):
                    summary["team_emails"] += 1
            logger.info(f"[Auto-notify] {len(new_alerts)} alert(s) sent to {', '.join(self.recipients)}")

        if self.garage_email:
            summary["garage_emails"] = self._notify_garage(db, new_alerts, now)

        self.store.add_many(alert.key for alert in new_alerts)
        return summary

    def _notify_garage(self, db: Session, alerts: list, now: datetime) -> int:
        sent = 0
        for alert in alerts:
            if alert.rule_name not in self.garage_rules:
                continue
            vehicle = db.query(Vehicle).filter(Vehicle.id == alert.vehicle_id).first()
            if vehicle is None:
                continue
            try:
                token = mint_token(db, vehicle.id, alert.rule_name, now)
            except FleetError as e:
                logger.error(f"Could not create garage token for vehicle {vehicle.id}: {e}")
                continue

            subject, html = build_garage_email(vehicle, alert.rule_name, booking_url(token.token))
            if self.email_client.send(self.garage_email, subject, html):
                sent += 1
                logger.info(f"[Auto-notify] Garage email sent for {vehicle.license_plate} - {alert.rule_name}")
        return sent

    def notify_now(self, db: Session, now: Optional[datetime] = None) -> dict:
        """Manual trigger: email every current urgent/high alert, ignoring dedup."""
        if not self.recipients:
            raise ValidationError("No alert email address configured.")

        alerts = [alert for alert in collect_alerts(db, now) if alert.priority in NOTIFIABLE_PRIORITIES]
        if not alerts:
            return {"message": "No urgent alerts to notify.", "sent": False, "alert_count": 0}

        subject, html = build_team_email(alerts, settings.APP_NAME, new_only=False)
        delivered = [email for email in self.recipients if self.email_client.send(email, subject, html)]
        return {
            "message": f"Notifications sent to {len(delivered)} recipient(s).",
            "sent": bool(delivered),
            "alert_count": len(alerts),
        }


def run_scheduled_sweep(notifier: AlertNotifier) -> None:
    """One timer tick with its own session. Errors are logged, never raised."""
    db = SessionLocal()
    try:
        summary = notifier.run_once(db)
        if summary["alerts"]:
            logger.info(f"[Auto-notify] sweep summary: {summary}")
    except (SQLAlchemyError, RedisError, FleetError) as e:
        db.rollback()
        logger.error(f"[Auto-notify] Error: {e}")
    finally:
        db.close()


async def alert_sweep_loop(notifier: AlertNotifier, initial_delay: float, interval: float) -> None:
    """Run the sweep shortly after start-up, then on a fixed interval, off the event loop."""
    await asyncio.sleep(initial_delay)
    while True:
        await asyncio.to_thread(run_scheduled_sweep, notifier)
        await asyncio.sleep(interval)
