# app/core/email_client.py
from __future__ import annotations

"""
Email client utilities for the Arode Studio backend.

Responsibilities:
  - Read SMTP configuration from environment variables.
  - Provide send_email(...) and the order confirmation built on top of it.
  - Support both TLS (STARTTLS) and SSL connections.

Typical .env configuration:

    SMTP_HOST=smtp.example.com
    SMTP_PORT=465
    SMTP_USERNAME=commandes@arodestudio.com
    SMTP_PASSWORD=...
    SMTP_FROM_EMAIL=commandes@arodestudio.com
    SMTP_FROM_NAME=Arode Studio
    SMTP_USE_TLS=false
    SMTP_USE_SSL=true
"""

import os
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from html import escape
from typing import Iterable


def _get_bool_env(name: str, default: bool = False) -> bool:
    """
    Read a boolean env var.

    Accepted truthy values (case-insensitive):
      - "1", "true", "yes", "y"
    """
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y"}


@dataclass(frozen=True)
class SMTPConfig:
    host: str | None
    port: int
    username: str | None
    password: str | None
    from_email: str
    from_name: str
    use_tls: bool
    use_ssl: bool

    @classmethod
    def from_env(cls) -> "SMTPConfig":
        username = os.getenv("SMTP_USERNAME")
        return cls(
            host=os.getenv("SMTP_HOST"),
            port=int(os.getenv("SMTP_PORT", "587")),
            username=username,
            password=os.getenv("SMTP_PASSWORD"),
            # Fallback: if FROM_EMAIL is not set, default to username
            from_email=os.getenv("SMTP_FROM_EMAIL", username or ""),
            from_name=os.getenv("SMTP_FROM_NAME", "Arode Studio"),
            use_tls=_get_bool_env("SMTP_USE_TLS", default=True),
            use_ssl=_get_bool_env("SMTP_USE_SSL", default=False),
        )

    @property
    def is_complete(self) -> bool:
        return bool(self.host and self.username and self.password)


def _create_smtp_client(config: SMTPConfig) -> smtplib.SMTP:
    """
    SSL takes priority (port 465); otherwise plain SMTP upgraded with
    STARTTLS when use_tls is set (port 587).
    """
    if config.use_ssl:
        return smtplib.SMTP_SSL(config.host, config.port, timeout=30)

    server = smtplib.SMTP(config.host, config.port, timeout=30)
    if config.use_tls:
        server.starttls()
    return server


def send_email(
    to_email: str,
    subject: str,
    text_body: str,
    html_body: str | None = None,
    config: SMTPConfig | None = None,
) -> None:
    """
    Send an email to a single recipient.

    Raises
    ------
    RuntimeError:
        If required SMTP configuration is missing.
    smtplib.SMTPException:
        If the underlying SMTP connection or send fails.
    """
    config = config or SMTPConfig.from_env()
    if not config.is_complete:
        raise RuntimeError(
            "SMTP is not configured correctly. "
            "Please set SMTP_HOST, SMTP_USERNAME, and SMTP_PASSWORD in .env."
        )

    msg = EmailMessage()
    msg["From"] = (
        f"{config.from_name} <{config.from_email}>" if config.from_email else config.username
    )
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(text_body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    server = _create_smtp_client(config)
    try:
        server.login(config.username, config.password)  # type: ignore[arg-type]
        server.send_message(msg)
    finally:
        try:
            server.quit()
        except smtplib.SMTPException:
            # Connection is being torn down anyway.
            pass


def send_order_confirmation(
    to_email: str,
    order_id: str,
    total_amount: str,
    downloads: Iterable[tuple[str, str]],
    config: SMTPConfig | None = None,
) -> None:
    """
    Order confirmation with one download link per purchased digital photo.

    downloads is an iterable of (filename, url); total_amount is already
    formatted for display.
    """
    downloads = list(downloads)
    short_id = order_id[:8]

    text_lines = [
        "Merci pour votre commande !",
        f"Commande {short_id} - total {total_amount}",
        "",
    ]
    if downloads:
        text_lines.append("Vos photos :")
        text_lines.extend(f"  {name}: {url}" for name, url in downloads)
    else:
        text_lines.append("Vos tirages vous attendent au studio ou arrivent par la poste.")

    html_items = "".join(
        f'<li><a href="{escape(url)}">{escape(name)}</a></li>' for name, url in downloads
    )
    html_body = (
        f"<h1>Merci pour votre commande !</h1>"
        f"<p>Commande <b>{escape(short_id)}</b> - total {escape(total_amount)}</p>"
        + (f"<ul>{html_items}</ul>" if html_items else "")
    )

    send_email(
        to_email=to_email,
        subject=f"[Arode Studio] Commande {short_id} confirmée",
        text_body="\n".join(text_lines),
        html_body=html_body,
        config=config,
    )
