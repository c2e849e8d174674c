import logging

from sqlalchemy.orm import Session

from database.repositories import (
    ApplicationRepository,
    AnalysisRepository,
    MatchRepository,
    NotificationRepository,
    ReminderRepository,
    StaffRepository,
    SettingsRepository,
)

logger = logging.getLogger(__name__)


class RecruitmentRepository:
    """All entity repositories bound to one Session, so one unit of work spans them."""

    def __init__(self, db: Session):
        self.db = db
        self.applications = ApplicationRepository(db)
        self.analysis = AnalysisRepository(db)
        self.matches = MatchRepository(db)
        self.notifications = NotificationRepository(db)
        self.reminders = ReminderRepository(db)
        self.staff = StaffRepository(db)
        self.settings = SettingsRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()
