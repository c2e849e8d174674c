#!/usr/bin/env python3
"""
Notification Service

Renders, delivers and records notifications:
- NotificationDispatcher delivers through a NotificationChannel and writes one
  notification_history row per attempt (sent, or failed with retry_count 0)
- NotificationService renders through the TemplateResolver and either queues
  the work on Redis Queue or runs it inline

Delivery failures are never raised to the caller; they are recorded for the
RetryCoordinator. RQ-level retries are off so that retry bookkeeping lives in
one place.

Usage:
    from notification.service import build_notification_service

    service = build_notification_service(config)
    service.send_notification(
        notification_type="analysis_complete",
        recipient_email="candidate@example.com",
        variables={...},
        recipient_name="Jane Doe",
    )
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional, Dict, Any

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue

from core.config_loader import AppConfig, load_config
from core.errors import TemplateRenderError
from core.state import DeliveryEvent, NotificationStatus, transition_notification
from database.uow import recruitment_uow
from notification.channels import NotificationChannel, NotificationChannelFactory, DeliveryError, _mask_email
from notification.templates import TemplateResolver

logger = logging.getLogger(__name__)

QUEUE_NAME = 'notifications'


@dataclass(frozen=True)
class DispatchOutcome:
    notification_id: Any
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class SendResult:
    """What send_notification did: the RQ job id when queued, else the record id."""
    reference: str
    queued: bool
    success: bool


class NotificationDispatcher:
    """Deliver one message and record the attempt."""

    def __init__(
        self,
        channel: NotificationChannel,
        from_address: str,
        session_factory=None,
    ):
        self.channel = channel
        self.from_address = from_address
        self.session_factory = session_factory

    def deliver(self, recipient_email: str, subject: str, html: str) -> Optional[str]:
        """Send through the channel. Returns the provider error text, or None on success."""
        try:
            self.channel.send(self.from_address, recipient_email, subject, html)
            return None
        except DeliveryError as e:
            return str(e) or e.__class__.__name__

    def dispatch(
        self,
        notification_type: str,
        recipient_email: str,
        subject: str,
        html: str,
        recipient_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DispatchOutcome:
        error = self.deliver(recipient_email, subject, html)
        return self.record(notification_type, recipient_email, subject, error, recipient_name, metadata)

    def record(
        self,
        notification_type: str,
        recipient_email: str,
        subject: str,
        error: Optional[str],
        recipient_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> DispatchOutcome:
        """Write the first-attempt record. A store failure raises PersistenceError."""
        event = DeliveryEvent.DELIVERED if error is None else DeliveryEvent.DELIVERY_FAILED
        status = transition_notification(NotificationStatus.PENDING, event).state

        with recruitment_uow(self.session_factory) as repo:
            record = repo.notifications.create_record(
                notification_type=notification_type,
                recipient_email=recipient_email,
                recipient_name=recipient_name,
                subject=subject,
                status=status.value,
                error_message=error,
                metadata=metadata,
            )
            notification_id = record.id

        if error is None:
            logger.info(f"Notification {notification_id} ({notification_type}) sent to {_mask_email(recipient_email)}")
        else:
            logger.warning(
                f"Notification {notification_id} ({notification_type}) to {_mask_email(recipient_email)} failed: {error}"
            )
        return DispatchOutcome(notification_id=notification_id, success=error is None, error=error)


class NotificationService:
    """
    Render and dispatch notifications, inline or through Redis Queue.
    """

    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        resolver: TemplateResolver,
        redis_url: Optional[str] = None,
        use_async_queue: bool = False,
    ):
        self.dispatcher = dispatcher
        self.resolver = resolver
        self.redis_url = redis_url or os.environ.get('REDIS_URL', 'redis://localhost:6379/0')

        if not use_async_queue:
            logger.info("Async queue disabled via config. Using sync mode.")
            self.redis_conn = None
            self.queue = None
            self.async_mode = False
        else:
            try:
                self.redis_conn = Redis.from_url(self.redis_url)
                # Validate connection with ping before using
                self.redis_conn.ping()
                self.queue = Queue(QUEUE_NAME, connection=self.redis_conn)
                self.async_mode = True
                logger.info("Notification service connected to Redis")
            except RedisError as e:
                logger.error(f"Redis connection failed: {e}. Falling back to sync mode.")
                self.redis_conn = None
                self.queue = None
                self.async_mode = False

    def send_notification(
        self,
        notification_type: str,
        recipient_email: str,
        variables: Dict[str, Any],
        recipient_name: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ) -> SendResult:
        """
        Queue or send one notification.

        A queued job counts as accepted; inline delivery reports whether the
        provider took the message. Failures are recorded, never raised.
        """
        notification_data = {
            'notification_type': notification_type,
            'recipient_email': recipient_email,
            'recipient_name': recipient_name,
            'variables': dict(variables),
            'context': context or {},
        }

        if self.async_mode:
            job = self.queue.enqueue(
                process_notification_task,
                notification_data,
                job_timeout='5m',
                result_ttl=86400,
            )
            logger.info(f"Queued {notification_type} notification as job {job.id}")
            return SendResult(reference=job.id, queued=True, success=True)

        outcome = deliver_notification(notification_data, self.dispatcher, self.resolver)
        return SendResult(reference=str(outcome.notification_id), queued=False, success=outcome.success)


def build_dispatcher(config: AppConfig, session_factory=None) -> NotificationDispatcher:
    email_config = config.notifications.email
    channel = NotificationChannelFactory.get_channel(
        email_config.provider,
        timeout_seconds=email_config.timeout_seconds,
    )
    return NotificationDispatcher(
        channel=channel,
        from_address=email_config.from_address,
        session_factory=session_factory,
    )


def build_notification_service(config: AppConfig, session_factory=None) -> NotificationService:
    return NotificationService(
        dispatcher=build_dispatcher(config, session_factory),
        resolver=TemplateResolver(session_factory, strict=config.templates.strict_tokens),
        redis_url=config.notifications.redis_url,
        use_async_queue=config.notifications.use_async_queue,
    )


# Worker task - must be at module level for RQ
def process_notification_task(
    notification_data: Dict[str, Any],
    dispatcher: Optional[NotificationDispatcher] = None,
    resolver: Optional[TemplateResolver] = None,
) -> str:
    """Worker entry point. Returns the notification record id."""
    if dispatcher is None or resolver is None:
        config = load_config()
        dispatcher = dispatcher or build_dispatcher(config)
        resolver = resolver or TemplateResolver(strict=config.templates.strict_tokens)

    outcome = deliver_notification(notification_data, dispatcher, resolver)
    return str(outcome.notification_id)


def deliver_notification(
    notification_data: Dict[str, Any],
    dispatcher: NotificationDispatcher,
    resolver: TemplateResolver,
) -> DispatchOutcome:
    """Render, deliver and record one notification."""
    notification_type = notification_data['notification_type']
    recipient_email = notification_data['recipient_email']
    recipient_name = notification_data.get('recipient_name')
    variables = notification_data.get('variables') or {}
    metadata = {
        'variables': variables,
        'context': notification_data.get('context') or {},
    }

    logger.info(f"Processing {notification_type} notification for {_mask_email(recipient_email)}")

    try:
        rendered = resolver.render(notification_type, variables)
    except TemplateRenderError as e:
        # Recorded as failed so it shows up for retry once the template is fixed
        return dispatcher.record(
            notification_type, recipient_email, notification_type, str(e), recipient_name, metadata
        )

    metadata['template_key'] = rendered.template_key
    return dispatcher.dispatch(
        notification_type=notification_type,
        recipient_email=recipient_email,
        subject=rendered.subject,
        html=rendered.html,
        recipient_name=recipient_name,
        metadata=metadata,
    )
