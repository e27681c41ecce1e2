"""
Report delivery.

This module provides:
- delivery through a form-submission endpoint (web3forms style, multipart form POST)
- SMTP fallback when the endpoint fails and SMTP settings are present
- a DeliveryResult instead of an exception, so a failed delivery never
  invalidates a report that was already computed
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass, field
from email.message import EmailMessage
from typing import Any, Dict, Optional

import requests

from curriculum_diff.config import Settings
from curriculum_diff.errors import ReportDeliveryError
from curriculum_diff.log import get_logger
from curriculum_diff.model import Report
from curriculum_diff.report import format_report_text

logger = get_logger(__name__)


@dataclass
class DeliveryResult:
    ok: bool
    channel: Optional[str] = None
    skipped: bool = False
    errors: Dict[str, str] = field(default_factory=dict)
    response: Any = None


class Notifier:
    """Sends the text form of a report to the configured recipients."""

    def __init__(self, settings: Settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.logger = logger.bind(component="notifier")

    def subject(self, report: Report) -> str:
        return f"{self.settings.notify_subject} - {report.compared_at.isoformat()}"

    def send(self, report: Report) -> DeliveryResult:
        """
        Deliver the report; reports without differences are not sent.
        """
        if report.total_diffs == 0:
            self.logger.info("No differences found; skipping report delivery")
            return DeliveryResult(ok=True, skipped=True)

        message = format_report_text(report)
        result = DeliveryResult(ok=False)

        if self.settings.notify_access_key:
            try:
                result.response = self._send_form(report, message)
                result.ok = True
                result.channel = "form"
                self.logger.info("Report sent", channel="form", diffs=report.total_diffs)
                return result
            except ReportDeliveryError as exc:
                result.errors["form"] = str(exc)
                self.logger.error("Failed to send report via form endpoint", error=str(exc))

        if self.settings.smtp_configured():
            try:
                self._send_smtp(report, message)
                result.ok = True
                result.channel = "smtp"
                self.logger.info("Report sent", channel="smtp", diffs=report.total_diffs)
                return result
            except ReportDeliveryError as exc:
                result.errors["smtp"] = str(exc)
                self.logger.error("SMTP fallback failed", error=str(exc))

        if not result.errors:
            result.errors["config"] = "no delivery channel configured"
            self.logger.warning("No delivery channel configured; report not sent")
        return result

    def _send_form(self, report: Report, message: str) -> Any:
        payload = {
            "access_key": self.settings.notify_access_key,
            "name": "Curriculum Comparer",
            "email": self.settings.notify_from or "",
            "to": self.settings.notify_to or "",
            "subject": self.subject(report),
            "message": message,
            "honeypot": "",
        }
        # multipart/form-data, as the endpoint expects
        files = {k: (None, v) for k, v in payload.items()}
        try:
            resp = self.session.post(self.settings.notify_endpoint, files=files, timeout=self.settings.request_timeout)
        except requests.RequestException as exc:
            raise ReportDeliveryError(str(exc)) from exc

        try:
            data = resp.json()
        except ValueError:
            data = {"status": resp.status_code, "reason": resp.reason}
        if not resp.ok:
            raise ReportDeliveryError(f"HTTP {resp.status_code}: {data}")
        return data

    def _send_smtp(self, report: Report, message: str) -> None:
        s = self.settings
        msg = EmailMessage()
        msg["From"] = s.notify_from or s.smtp_user or ""
        msg["To"] = s.notify_to or s.smtp_user or ""
        msg["Subject"] = self.subject(report)
        msg.set_content(message)

        try:
            if s.smtp_port == 465:
                server: smtplib.SMTP = smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=s.request_timeout)
            else:
                server = smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.request_timeout)
            with server:
                if s.smtp_port != 465:
                    server.starttls()
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise ReportDeliveryError(str(exc)) from exc
