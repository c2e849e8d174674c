import logging
from datetime import datetime
from typing import Optional, Any, Dict

from sqlalchemy import select, update

from database.models import NotificationRecord, NotificationTemplate, utcnow
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class NotificationRepository(BaseRepository):
    def create_record(
        self,
        notification_type: str,
        recipient_email: str,
        subject: str,
        status: str,
        recipient_name: Optional[str] = None,
        error_message: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> NotificationRecord:
        record = NotificationRecord(
            notification_type=notification_type,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            subject=subject,
            status=status,
            error_message=error_message,
            metadata_=metadata or {},
            retry_count=0,
        )
        self.db.add(record)
        self.db.flush()
        return record

    def get_by_id(self, notification_id: Any) -> Optional[NotificationRecord]:
        # populate_existing so a re-read after a conditional UPDATE sees fresh values
        stmt = (
            select(NotificationRecord)
            .where(NotificationRecord.id == notification_id)
            .execution_options(populate_existing=True)
        )
        return self.db.execute(stmt).scalar_one_or_none()

    def claim_retry_attempt(
        self,
        notification_id: Any,
        observed_retry_count: int,
        max_retries: int,
        now: Optional[datetime] = None,
    ) -> bool:
        """Atomically count one retry attempt.

        Succeeds only if nobody else has counted an attempt since
        observed_retry_count was read, the bound is not reached, and the
        record is not already sent.
        """
        stmt = (
            update(NotificationRecord)
            .where(
                NotificationRecord.id == notification_id,
                NotificationRecord.retry_count == observed_retry_count,
                NotificationRecord.retry_count < max_retries,
                NotificationRecord.status != 'sent',
            )
            .values(
                retry_count=NotificationRecord.retry_count + 1,
                last_retry_at=now or utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount == 1

    def record_outcome(
        self,
        notification_id: Any,
        status: str,
        error_message: Optional[str],
        subject: Optional[str] = None,
    ) -> None:
        values = {'status': status, 'error_message': error_message}
        if subject is not None:
            values['subject'] = subject
        self.db.execute(
            update(NotificationRecord)
            .where(NotificationRecord.id == notification_id, NotificationRecord.status != 'sent')
            .values(**values)
            .execution_options(synchronize_session=False)
        )

    def get_active_template(self, template_key: str) -> Optional[NotificationTemplate]:
        stmt = select(NotificationTemplate).where(
            NotificationTemplate.template_key == template_key,
            NotificationTemplate.is_active.is_(True)
        )
        return self.db.execute(stmt).scalar_one_or_none()
