"""
Notification Module

Templated email notifications with recorded delivery outcomes and
bounded retries.

Usage:
    from notification import build_notification_service, RetryCoordinator

    service = build_notification_service(config)
    service.send_notification('analysis_complete', 'candidate@example.com', variables)

    coordinator = RetryCoordinator(service.dispatcher, service.resolver)
    coordinator.retry(notification_id)
"""

from notification.channels import (
    NotificationChannel,
    EmailChannel,
    ResendEmailChannel,
    NotificationChannelFactory,
    DeliveryError,
    RateLimitException,
)

from notification.templates import (
    TemplateResolver,
    RenderedMessage,
)

from notification.service import (
    NotificationDispatcher,
    NotificationService,
    DispatchOutcome,
    SendResult,
    build_dispatcher,
    build_notification_service,
    process_notification_task,
)

from notification.retry import (
    RetryCoordinator,
    RetryResult,
    MAX_RETRIES,
)

__all__ = [
    # Channels
    'NotificationChannel',
    'EmailChannel',
    'ResendEmailChannel',
    'NotificationChannelFactory',
    'DeliveryError',
    'RateLimitException',
    # Templates
    'TemplateResolver',
    'RenderedMessage',
    # Service
    'NotificationDispatcher',
    'NotificationService',
    'DispatchOutcome',
    'SendResult',
    'build_dispatcher',
    'build_notification_service',
    'process_notification_task',
    # Retry
    'RetryCoordinator',
    'RetryResult',
    'MAX_RETRIES',
]
