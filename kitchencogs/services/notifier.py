"""
Notifier

Sends low-stock emails over SMTP. Every send returns a SideEffectResult and
never raises, so alerting can't break the summary read.
"""

import logging
import smtplib
from abc import ABC, abstractmethod
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import List, Optional

from kitchencogs.models.common import SideEffectResult
from kitchencogs.models.summary import LowStockAlert

logger = logging.getLogger(__name__)


def format_remaining(alert: LowStockAlert) -> str:
    suffix = "g" if alert.unit.value == "gram" else "pcs"
    return f"{round(alert.remaining)} {suffix}"


def compose_low_stock_email(alert: LowStockAlert):
    """Subject, plain text and HTML for one low-stock alert."""
    remaining = format_remaining(alert)
    subject = f"Low Stock: {alert.sku} – {remaining} left (today)"
    text = (
        f"Low Stock Alert\n"
        f"Item: {alert.sku}\n"
        f"Remaining today: {remaining}\n"
        f"Rule: {alert.rule}\n\n"
        f"This alert is sent once per day per item."
    )
    html = f"""
      <div style="font-family:Inter,system-ui,Segoe UI,Arial,sans-serif;line-height:1.5;color:#111">
        <h2 style="margin:0 0 8px">Low Stock Alert</h2>
        <p style="margin:0 0 8px"><strong>Item:</strong> {alert.sku}</p>
        <p style="margin:0 0 8px"><strong>Remaining today:</strong> {remaining}</p>
        <p style="margin:0 0 8px"><strong>Rule:</strong> {alert.rule}</p>
        <p style="margin:12px 0 0;color:#555">This alert is sent once per day per item.</p>
      </div>
    """
    return subject, text, html


class Notifier(ABC):
    """Interface for alert delivery."""

    @abstractmethod
    def send_low_stock(self, alert: LowStockAlert) -> SideEffectResult:
        ...


class NullNotifier(Notifier):
    """Used when email isn't configured. Logs the alert and reports not-sent."""

    def send_low_stock(self, alert: LowStockAlert) -> SideEffectResult:
        logger.info(f"Email not configured; low stock for {alert.slug} not emailed")
        return SideEffectResult.failure("email not configured")


class RecordingNotifier(Notifier):
    """Keeps alerts in memory. Useful for local runs and tests."""

    def __init__(self, fail: bool = False):
        self.sent: List[LowStockAlert] = []
        self.fail = fail

    def send_low_stock(self, alert: LowStockAlert) -> SideEffectResult:
        if self.fail:
            return SideEffectResult.failure("simulated failure")
        self.sent.append(alert)
        return SideEffectResult.success()


class EmailNotifier(Notifier):
    """SMTP sender: STARTTLS on the primary port, implicit TLS on the fallback port."""

    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        to: str,
        sender: Optional[str] = None,
        port: int = 587,
        fallback_port: Optional[int] = 465,
        timeout: float = 12.0,
    ):
        self.host = host
        self.user = user
        self.password = password
        self.to = to
        self.sender = sender or user
        self.port = port
        self.fallback_port = fallback_port
        self.timeout = timeout

    def send_low_stock(self, alert: LowStockAlert) -> SideEffectResult:
        subject, text, html = compose_low_stock_email(alert)
        return self.send(subject, text, html)

    def send(self, subject: str, text: str, html: Optional[str] = None) -> SideEffectResult:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject or "(no subject)"
        msg["From"] = self.sender
        msg["To"] = self.to
        msg.attach(MIMEText(text, "plain"))
        if html:
            msg.attach(MIMEText(html, "html"))

        try:
            self._send_starttls(msg)
            logger.info(f"Email sent ({self.port}) -> {self.to}")
            return SideEffectResult.success()
        except Exception as exc:
            logger.warning(f"Email send on port {self.port} failed: {exc}")
            if not self.fallback_port:
                return SideEffectResult.failure(str(exc))

        try:
            self._send_ssl(msg)
            logger.info(f"Email sent ({self.fallback_port} fallback) -> {self.to}")
            return SideEffectResult.success()
        except Exception as exc:
            logger.error(f"Email send failed on fallback port {self.fallback_port}: {exc}")
            return SideEffectResult.failure(str(exc))

    def _send_starttls(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
            smtp.ehlo()
            smtp.starttls()
            smtp.login(self.user, self.password)
            smtp.sendmail(self.sender, [self.to], msg.as_string())

    def _send_ssl(self, msg: MIMEMultipart) -> None:
        with smtplib.SMTP_SSL(self.host, self.fallback_port, timeout=self.timeout) as smtp:
            smtp.login(self.user, self.password)
            smtp.sendmail(self.sender, [self.to], msg.as_string())
