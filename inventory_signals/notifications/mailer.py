"""
E-mail channel: alert rendering and transports.

Transports
----------
SmtpEmailSender     Sends through an SMTP relay (``smtplib``); used when
                    ``notifications.smtp_host`` is configured.
LoggingEmailSender  Logs the rendered message instead of sending it. Default
                    when no SMTP host is configured, so alerts can be
                    exercised end-to-end on a development machine.

Both implement ``EmailSender.send()``, which raises ``ChannelError`` when the
transport fails. The dispatcher turns that into an ``"Email error: ..."``
result; senders never see other channels.
"""

from __future__ import annotations

import logging
import smtplib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from html import escape
from typing import Optional, Protocol, Sequence
from uuid import uuid4

from inventory_signals.config import NotificationConfig
from inventory_signals.exceptions import ChannelError, ConfigurationError
from inventory_signals.models.notification import DispatchResult, EmailChannelConfig
from inventory_signals.models.product import AlertProduct, ShopInfo
from inventory_signals.utils.time_utils import utcnow

logger = logging.getLogger(__name__)

CHANNEL = "email"


# ── Rendering ─────────────────────────────────────────────────────────────────

@dataclass
class RenderedEmail:
    """Subject plus plain-text and HTML bodies of one alert."""

    subject: str
    text: str
    html: str


def sender_address(shop: ShopInfo, override: str = "") -> str:
    """``"<shop> - Low Stock Alert" <noreply@domain>`` unless an override is configured."""
    if override:
        return override
    domain = shop.myshopify_domain or "localhost"
    return f'"{shop.name} - Low Stock Alert" <noreply@{domain}>'


def render_low_stock_email(
    low_stock: Sequence[AlertProduct],
    out_of_stock: Sequence[AlertProduct],
    threshold: int,
    shop: ShopInfo,
    generated_at: Optional[datetime] = None,
) -> RenderedEmail:
    """Render the low-stock alert.

    Out-of-stock products are listed first, then low-stock products with
    their remaining units. Both bodies end with next steps and an admin link.
    """
    generated_at = generated_at or utcnow()
    total = len(low_stock) + len(out_of_stock)
    admin_url = f"https://{shop.myshopify_domain}/admin/products"
    stamp = generated_at.strftime("%Y-%m-%d at %H:%M:%S UTC")

    subject = f"🚨 {shop.name}: {total} Products Need Attention"

    text_lines = [
        f"Low Stock Alert - {total} Products Need Attention",
        f"Store: {shop.name}",
        "",
    ]
    if out_of_stock:
        text_lines.append(f"Out of Stock Products ({len(out_of_stock)}):")
        text_lines.extend(f"- {p.name}: Out of Stock" for p in out_of_stock)
        text_lines.append("")
    if low_stock:
        text_lines.append(f"Low Stock Products ({len(low_stock)}):")
        text_lines.extend(f"- {p.name}: {p.stock} units left" for p in low_stock)
        text_lines.append("")
    text_lines += [
        f"Threshold: {threshold} units",
        f"Go to your admin: {admin_url}",
        "",
        f"Generated on: {stamp}",
    ]

    html_parts = [
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">',
        f'<h2 style="color: #d63638;">🚨 Low Stock Alert - {total} Products Need Attention</h2>',
        f"<p>Your <strong>{escape(shop.name)}</strong> store has products that "
        "require immediate attention.</p>",
    ]
    if out_of_stock:
        html_parts.append(
            f'<h3 style="color: #d63638;">🔴 Out of Stock Products ({len(out_of_stock)})</h3><ul>'
        )
        html_parts.extend(
            f"<li><strong>{escape(p.name)}</strong> - Out of Stock</li>" for p in out_of_stock
        )
        html_parts.append("</ul>")
    if low_stock:
        html_parts.append(
            f'<h3 style="color: #f59e0b;">⚠️ Low Stock Products ({len(low_stock)})</h3>'
            f"<p>These products are running low (threshold: {threshold} units):</p><ul>"
        )
        html_parts.extend(
            f"<li><strong>{escape(p.name)}</strong> - {p.stock} units left</li>"
            for p in low_stock
        )
        html_parts.append("</ul>")
    html_parts += [
        "<h4>📋 Next Steps:</h4><ol>",
        "<li>Review the products listed above</li>",
        "<li>Contact suppliers for restocking</li>",
        "<li>Update inventory levels in your Shopify admin</li>",
        "<li>Consider adjusting your stock threshold if needed</li>",
        "</ol>",
        f'<p><a href="{escape(admin_url)}">🛍️ Go to Shopify Admin</a></p>',
        f'<p style="color: #9ca3af; font-size: 12px;">Generated on: {stamp}</p>',
        "</div>",
    ]

    return RenderedEmail(subject=subject, text="\n".join(text_lines), html="\n".join(html_parts))


def render_test_email(recipient: str, shop: ShopInfo) -> RenderedEmail:
    """Render the configuration-test message."""
    subject = f"✅ Test Email - {shop.name} Low Stock Alert System"
    text = (
        "Email Configuration Test Successful\n\n"
        f"This is a test email to confirm your email notification settings are "
        f"working correctly for {shop.name}.\n\n"
        f"Store: {shop.name}\nRecipient: {recipient}\n"
    )
    html = (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">'
        '<h2 style="color: #059669;">✅ Email Configuration Test Successful</h2>'
        f"<p>This is a test email to confirm your email notification settings are "
        f"working correctly for <strong>{escape(shop.name)}</strong>.</p>"
        f"<ul><li><strong>Store:</strong> {escape(shop.name)}</li>"
        f"<li><strong>Recipient:</strong> {escape(recipient)}</li></ul></div>"
    )
    return RenderedEmail(subject=subject, text=text, html=html)


def build_message(rendered: RenderedEmail, sender: str, recipient: str) -> EmailMessage:
    """Assemble a multipart/alternative message (plain text first, HTML second)."""
    msg = EmailMessage()
    msg["Subject"] = rendered.subject
    msg["From"] = sender
    msg["To"] = recipient
    msg.set_content(rendered.text)
    msg.add_alternative(rendered.html, subtype="html")
    return msg


# ── Transports ────────────────────────────────────────────────────────────────

class EmailSender(Protocol):
    """Port for the e-mail transport."""

    def send(
        self,
        config: EmailChannelConfig,
        products: Sequence[AlertProduct],
        shop: ShopInfo,
        threshold: int,
    ) -> DispatchResult:
        """Send one alert covering ``products``; raise ``ChannelError`` on failure."""
        ...

    def send_rendered(self, rendered: RenderedEmail, recipient: str, shop: ShopInfo) -> str:
        """Deliver an already-rendered message; return a message id."""
        ...


class _BaseEmailSender:
    """Shared split/render/deliver flow; subclasses implement ``send_rendered``."""

    def __init__(self, from_address: str = "") -> None:
        self.from_address = from_address

    def send(
        self,
        config: EmailChannelConfig,
        products: Sequence[AlertProduct],
        shop: ShopInfo,
        threshold: int,
    ) -> DispatchResult:
        if not config.is_configured:
            raise ConfigurationError("Email notifications are disabled or no recipient email set")

        low_stock = [p for p in products if p.stock > 0]
        out_of_stock = [p for p in products if p.stock == 0]
        rendered = render_low_stock_email(low_stock, out_of_stock, threshold, shop)
        message_id = self.send_rendered(rendered, config.recipient_email, shop)

        logger.info(
            "Email alert sent to %s (%d products, id=%s)",
            config.recipient_email, len(products), message_id,
        )
        return DispatchResult(
            channel=CHANNEL,
            success=True,
            message=f"Email alert sent successfully to {config.recipient_email}",
        )

    def send_rendered(self, rendered: RenderedEmail, recipient: str, shop: ShopInfo) -> str:
        raise NotImplementedError


class SmtpEmailSender(_BaseEmailSender):
    """Deliver alerts through an SMTP relay.

    Args:
        host:         SMTP host.
        port:         SMTP port (587 for STARTTLS).
        username:     Login user; empty → no AUTH.
        password:     Login password.
        use_tls:      Issue STARTTLS before AUTH.
        from_address: Explicit From header; defaults to ``noreply@<shop domain>``.
        timeout:      Socket timeout in seconds.
    """

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_address: str = "",
        timeout: float = 30.0,
    ) -> None:
        super().__init__(from_address)
        self.host = host
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.timeout = timeout

    def send_rendered(self, rendered: RenderedEmail, recipient: str, shop: ShopInfo) -> str:
        msg = build_message(rendered, sender_address(shop, self.from_address), recipient)
        message_id = f"<{uuid4().hex}@{shop.myshopify_domain or 'localhost'}>"
        msg["Message-ID"] = message_id
        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as exc:
            raise ChannelError(str(exc)) from exc
        return message_id


class LoggingEmailSender(_BaseEmailSender):
    """Render and log alerts without sending them.

    Every delivered message is also kept in ``outbox`` for inspection.
    """

    def __init__(self, from_address: str = "") -> None:
        super().__init__(from_address)
        self.outbox: list[EmailMessage] = []

    def send_rendered(self, rendered: RenderedEmail, recipient: str, shop: ShopInfo) -> str:
        msg = build_message(rendered, sender_address(shop, self.from_address), recipient)
        self.outbox.append(msg)
        message_id = f"log_{uuid4().hex[:12]}"
        logger.info(
            "Email (not sent, no SMTP host configured) to=%s subject=%r id=%s",
            recipient, rendered.subject, message_id,
        )
        return message_id


def build_email_sender(config: NotificationConfig) -> _BaseEmailSender:
    """SMTP transport if a host is configured, otherwise the logging transport."""
    if config.smtp_host:
        return SmtpEmailSender(
            host=config.smtp_host,
            port=config.smtp_port,
            username=config.smtp_username,
            password=config.smtp_password,
            use_tls=config.smtp_use_tls,
            from_address=config.sender_address,
        )
    return LoggingEmailSender(from_address=config.sender_address)


def send_test_email(
    config: EmailChannelConfig,
    shop: ShopInfo,
    sender: EmailSender,
) -> DispatchResult:
    """Send a configuration-test message to the configured recipient.

    Never raises: a disabled channel, a missing recipient, a header the
    message cannot carry and transport failures all come back as
    ``success=False`` results.
    """
    if not config.enabled:
        return DispatchResult(CHANNEL, False, "Email notifications are disabled")
    if not config.recipient_email.strip():
        return DispatchResult(CHANNEL, False, "No recipient email address provided")

    try:
        sender.send_rendered(render_test_email(config.recipient_email, shop), config.recipient_email, shop)
    except (ChannelError, ValueError) as exc:
        logger.warning("Test email to %s failed: %s", config.recipient_email, exc)
        return DispatchResult(CHANNEL, False, f"Failed to send test email: {exc}")

    return DispatchResult(
        CHANNEL, True, f"Test email sent successfully to {config.recipient_email}"
    )
