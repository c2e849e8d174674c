#!/usr/bin/env python3
"""
Notification Channels

Email delivery providers behind one interface. Every channel exposes
send(from_address, recipient, subject, html) and raises DeliveryError
(or its RateLimitException subclass) on any failure, so callers can record
the provider's error text against the notification.

Usage:
    from notification.channels import NotificationChannelFactory

    channel = NotificationChannelFactory.get_channel('smtp', timeout_seconds=30)
    channel.send('Team <noreply@example.com>', 'candidate@example.com', 'Subject', '<p>Body</p>')
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging
import os

import requests
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


class DeliveryError(Exception):
    """The provider rejected the message or could not be reached."""
    pass


class RateLimitException(DeliveryError):
    """The provider throttled the request."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


def _is_dry_run_mode() -> bool:
    """Check if notification channels should run in dry-run (log-only) mode."""
    return os.environ.get('NOTIFICATION_DRY_RUN', '').lower() in ('true', '1', 'yes')


def _mask_email(email: str) -> str:
    """
    Mask email address for safe logging (PII protection).

    Shows only domain, e.g., "***@example.com"
    """
    if '@' not in email:
        return "***"
    local, domain = email.rsplit('@', 1)
    return f"***@{domain}"


class NotificationChannel(ABC):
    """
    Abstract base class for all email delivery channels.
    """

    def __init__(self, timeout_seconds: float = 30.0):
        self.timeout_seconds = timeout_seconds

    @property
    @abstractmethod
    def channel_type(self) -> str:
        """Return the channel type identifier."""
        pass

    @abstractmethod
    def send(self, from_address: str, recipient: str, subject: str, html: str) -> Optional[str]:
        """
        Deliver one HTML email.

        Returns:
            Provider message id when the provider returns one

        Raises:
            DeliveryError: delivery failed; the message is the provider's error
        """
        pass

    def validate_config(self) -> bool:
        """
        Validate that the channel is properly configured.
        """
        return True


class EmailChannel(NotificationChannel):
    """Email channel via SMTP."""

    @property
    def channel_type(self) -> str:
        return 'smtp'

    def validate_config(self) -> bool:
        required_vars = ['SMTP_SERVER', 'SMTP_PORT', 'SMTP_USERNAME', 'SMTP_PASSWORD']
        return all(os.environ.get(var) for var in required_vars)

    def send(self, from_address: str, recipient: str, subject: str, html: str) -> Optional[str]:
        if _is_dry_run_mode():
            logger.info(f"[dry-run] Email to {_mask_email(recipient)}: {subject}")
            return None

        if not self.validate_config():
            raise DeliveryError("Email not configured - SMTP environment variables not set")

        smtp_server = os.environ.get('SMTP_SERVER', 'smtp.gmail.com')
        smtp_port = int(os.environ.get('SMTP_PORT', '587'))
        username = os.environ.get('SMTP_USERNAME', '')
        password = os.environ.get('SMTP_PASSWORD', '')

        msg = MIMEMultipart('alternative')
        msg['From'] = from_address
        msg['To'] = recipient
        msg['Subject'] = subject
        msg.attach(MIMEText(html, 'html', 'utf-8'))

        try:
            with smtplib.SMTP(smtp_server, smtp_port, timeout=self.timeout_seconds) as server:
                server.starttls()
                server.login(username, password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send email to {_mask_email(recipient)}: {e}")
            raise DeliveryError(str(e)) from e

        logger.info(f"Email sent to {_mask_email(recipient)}")
        return None


class ResendEmailChannel(NotificationChannel):
    """Email channel via the Resend HTTP API."""

    @property
    def channel_type(self) -> str:
        return 'resend'

    def validate_config(self) -> bool:
        return bool(os.environ.get('RESEND_API_KEY'))

    def send(self, from_address: str, recipient: str, subject: str, html: str) -> Optional[str]:
        if _is_dry_run_mode():
            logger.info(f"[dry-run] Email to {_mask_email(recipient)}: {subject}")
            return None

        if not self.validate_config():
            raise DeliveryError("Email not configured - RESEND_API_KEY not set")

        try:
            response = requests.post(
                RESEND_API_URL,
                headers={
                    'Authorization': f"Bearer {os.environ['RESEND_API_KEY']}",
                    'Content-Type': 'application/json',
                },
                json={
                    'from': from_address,
                    'to': [recipient],
                    'subject': subject,
                    'html': html,
                },
                timeout=self.timeout_seconds,
            )
        except requests.RequestException as e:
            logger.error(f"Failed to reach email provider for {_mask_email(recipient)}: {e}")
            raise DeliveryError(f"Email provider unreachable: {e}") from e

        if response.status_code == 429:
            retry_after = response.headers.get('Retry-After')
            raise RateLimitException(
                "Email provider rate limit exceeded",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )

        if not 200 <= response.status_code < 300:
            detail = response.text[:500]
            logger.error(f"Email provider returned {response.status_code} for {_mask_email(recipient)}: {detail}")
            raise DeliveryError(f"Email provider returned {response.status_code}: {detail}")

        message_id = None
        try:
            message_id = response.json().get('id')
        except ValueError:
            pass

        logger.info(f"Email sent to {_mask_email(recipient)}")
        return message_id


class NotificationChannelFactory:
    """
    Factory for email channels, keyed by provider name.
    """

    # Registry of available channels
    _channels: Dict[str, type] = {
        'smtp': EmailChannel,
        'resend': ResendEmailChannel,
    }

    @classmethod
    def get_channel(cls, provider: str, **kwargs) -> NotificationChannel:
        """
        Get a channel instance by provider name.

        Raises:
            ValueError: If the provider is not registered
        """
        channel_class = cls._channels.get(provider.lower())
        if not channel_class:
            raise ValueError(f"Unknown channel type: {provider}. "
                           f"Available: {', '.join(cls._channels.keys())}")

        return channel_class(**kwargs)
