import logging
from datetime import datetime
from typing import List, Any, Optional, Sequence

from sqlalchemy import select

from database.models import Reminder, StaffMember, AppSetting
from database.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ReminderRepository(BaseRepository):
    def has_sent_reminder(self, application_id: Any, reminder_type: str) -> bool:
        stmt = select(Reminder.id).where(
            Reminder.application_id == application_id,
            Reminder.reminder_type == reminder_type,
            Reminder.status == 'sent'
        ).limit(1)
        return self.db.execute(stmt).first() is not None

    def create_sent_reminder(
        self,
        application_id: Any,
        reminder_type: str,
        scheduled_for: datetime,
        sent_at: datetime,
    ) -> Reminder:
        """Insert a 'sent' reminder. Raises IntegrityError if one already exists."""
        reminder = Reminder(
            application_id=application_id,
            reminder_type=reminder_type,
            status='sent',
            scheduled_for=scheduled_for,
            sent_at=sent_at,
        )
        self.db.add(reminder)
        self.db.flush()
        return reminder


class StaffRepository(BaseRepository):
    def get_by_roles(self, roles: Sequence[str]) -> List[StaffMember]:
        stmt = (
            select(StaffMember)
            .where(StaffMember.role.in_(list(roles)))
            .order_by(StaffMember.email)
        )
        return self.db.execute(stmt).scalars().all()


class SettingsRepository(BaseRepository):
    def get_value(self, setting_key: str) -> Optional[Any]:
        stmt = select(AppSetting.setting_value).where(AppSetting.setting_key == setting_key)
        return self.db.execute(stmt).scalar_one_or_none()
