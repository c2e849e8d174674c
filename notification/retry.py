"""
Retry Coordinator

Replays a failed notification, at most max_retries times per record.

The attempt is counted before delivery with a conditional UPDATE on the
retry_count that was read, so two concurrent retries of the same record
cannot both pass the bound: the loser re-reads and re-evaluates.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from core.errors import NotFoundError, TemplateRenderError
from core.state import DeliveryEvent, NotificationStatus, transition_notification
from database.uow import recruitment_uow
from notification.message_builder import NotificationMessageBuilder
from notification.service import NotificationDispatcher
from notification.templates import TemplateResolver

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
ALREADY_SENT_MESSAGE = "Notification was already sent successfully"
RETRY_SUCCEEDED_MESSAGE = "Notification sent successfully"


def max_retries_message(max_retries: int) -> str:
    return f"Maximum retry attempts ({max_retries}) reached"


@dataclass(frozen=True)
class RetryResult:
    success: bool
    message: str
    retry_count: Optional[int] = None


@dataclass(frozen=True)
class _ClaimedAttempt:
    notification_type: str
    recipient_email: str
    metadata: dict
    status: NotificationStatus
    retry_count: int


class RetryCoordinator:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        resolver: TemplateResolver,
        session_factory=None,
        max_retries: int = MAX_RETRIES,
    ):
        self.dispatcher = dispatcher
        self.resolver = resolver
        self.session_factory = session_factory
        self.max_retries = max_retries

    def retry(self, notification_id: Any) -> RetryResult:
        """Retry one notification record.

        Raises:
            NotFoundError: no record with this id
            PersistenceError: the store could not be read or written
        """
        claimed = None
        # Every lost race means another attempt was counted, so this ends
        # within max_retries + 1 reads.
        for _ in range(self.max_retries + 1):
            outcome = self._try_claim(notification_id)
            if isinstance(outcome, RetryResult):
                return outcome
            if outcome is not None:
                claimed = outcome
                break
            logger.info(f"Retry of notification {notification_id} lost a race, re-reading")

        if claimed is None:
            return RetryResult(False, max_retries_message(self.max_retries))

        return self._attempt(notification_id, claimed)

    def _try_claim(self, notification_id: Any):
        with recruitment_uow(self.session_factory) as repo:
            record = repo.notifications.get_by_id(notification_id)
            if record is None:
                raise NotFoundError(f"Notification {notification_id} not found")

            if record.status == NotificationStatus.SENT.value:
                return RetryResult(False, ALREADY_SENT_MESSAGE, record.retry_count)

            if record.retry_count >= self.max_retries:
                logger.info(f"Notification {notification_id} exhausted its {self.max_retries} retries")
                return RetryResult(False, max_retries_message(self.max_retries), record.retry_count)

            attempt = _ClaimedAttempt(
                notification_type=record.notification_type,
                recipient_email=record.recipient_email,
                metadata=dict(record.metadata_ or {}),
                status=NotificationStatus(record.status),
                retry_count=record.retry_count + 1,
            )
            if not repo.notifications.claim_retry_attempt(notification_id, record.retry_count, self.max_retries):
                return None

        return attempt

    def _attempt(self, notification_id: Any, attempt: _ClaimedAttempt) -> RetryResult:
        variables = NotificationMessageBuilder.variables_from_metadata(attempt.metadata)
        subject = None
        try:
            # Re-render: the template may have been fixed since the first attempt
            rendered = self.resolver.render(attempt.notification_type, variables)
            subject = rendered.subject
            error = self.dispatcher.deliver(attempt.recipient_email, rendered.subject, rendered.html)
        except TemplateRenderError as e:
            error = str(e)

        event = DeliveryEvent.DELIVERED if error is None else DeliveryEvent.DELIVERY_FAILED
        status = transition_notification(attempt.status, event).state

        with recruitment_uow(self.session_factory) as repo:
            repo.notifications.record_outcome(notification_id, status.value, error, subject=subject)

        if error is None:
            logger.info(f"Retry {attempt.retry_count}/{self.max_retries} of notification {notification_id} succeeded")
            return RetryResult(True, RETRY_SUCCEEDED_MESSAGE, attempt.retry_count)

        logger.warning(f"Retry {attempt.retry_count}/{self.max_retries} of notification {notification_id} failed: {error}")
        return RetryResult(False, error, attempt.retry_count)
