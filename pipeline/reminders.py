"""Interview reminder sweep.

Finds applications that have sat in the awaiting status for longer than
the configured number of days and emails staff once per application. The
reminders table, with its partial unique index on sent reminders, is what
keeps overlapping sweeps from reminding twice.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from core.config_loader import ReminderConfig
from core.errors import PersistenceError
from database.models import utcnow
from database.uow import recruitment_uow
from notification.channels import _mask_email
from notification.message_builder import InterviewReminderContent
from notification.service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Result of one reminder sweep."""
    reminders_sent: int = 0
    reminders_created: int = 0
    applications_processed: int = 0

    def to_response(self) -> Dict[str, Any]:
        return {
            'success': True,
            'remindersSent': self.reminders_sent,
            'remindersCreated': self.reminders_created,
            'applicationsProcessed': self.applications_processed,
        }


@dataclass(frozen=True)
class _StaleApplication:
    application_id: Any
    candidate_name: str
    candidate_email: str
    candidate_phone: Optional[str]
    job_role: Optional[str]
    overall_score: Optional[int]
    skills_score: Optional[int]


class ReminderScheduler:
    def __init__(
        self,
        notification_service: NotificationService,
        config: Optional[ReminderConfig] = None,
        session_factory=None,
    ):
        self.notification_service = notification_service
        self.config = config or ReminderConfig()
        self.session_factory = session_factory

    def run_sweep(self, now: Optional[datetime] = None) -> SweepResult:
        """
        Remind staff about every stale application that has not had a reminder.

        Raises:
            PersistenceError: the stale applications could not be read
        """
        now = now or utcnow()
        cutoff = now - timedelta(days=self.config.stale_days)
        stale = self._load_stale(cutoff)

        result = SweepResult(applications_processed=len(stale))
        logger.info(
            f"Found {len(stale)} applications in '{self.config.awaiting_status}' "
            f"for more than {self.config.stale_days} days"
        )

        for application in stale:
            try:
                self._process(application, now, result)
            except Exception as e:
                logger.error(
                    f"Reminder for application {application.application_id} failed: {e}",
                    exc_info=True,
                )

        logger.info(
            f"Reminder sweep done: {result.reminders_sent} emails, "
            f"{result.reminders_created} reminders recorded"
        )
        return result

    def _load_stale(self, cutoff: datetime) -> List[_StaleApplication]:
        with recruitment_uow(self.session_factory) as repo:
            applications = repo.applications.get_stale_with_status(self.config.awaiting_status, cutoff)
            stale = []
            for application in applications:
                candidate = application.candidate
                analysis = application.analysis
                stale.append(_StaleApplication(
                    application_id=application.id,
                    candidate_name=candidate.name if candidate else "Unknown",
                    candidate_email=candidate.email if candidate else "",
                    candidate_phone=candidate.phone if candidate else None,
                    job_role=application.job_role,
                    overall_score=analysis.overall_score if analysis else None,
                    skills_score=analysis.skills_score if analysis else None,
                ))
            return stale

    def _process(self, application: _StaleApplication, now: datetime, result: SweepResult) -> None:
        reminder_type = self.config.reminder_type

        with recruitment_uow(self.session_factory) as repo:
            if repo.reminders.has_sent_reminder(application.application_id, reminder_type):
                logger.info(f"Reminder already sent for application {application.application_id}")
                return
            recipients = [(s.email, s.full_name) for s in repo.staff.get_by_roles(self.config.staff_roles)]

        if not recipients:
            logger.warning(f"No staff with roles {self.config.staff_roles} to remind, skipping")
            return

        for email, name in recipients:
            if self._send(application, email, name):
                result.reminders_sent += 1

        try:
            with recruitment_uow(self.session_factory) as repo:
                repo.reminders.create_sent_reminder(
                    application_id=application.application_id,
                    reminder_type=reminder_type,
                    scheduled_for=now,
                    sent_at=utcnow(),
                )
        except PersistenceError as e:
            if isinstance(e.__cause__, IntegrityError):
                logger.info(f"Reminder for application {application.application_id} already recorded by another sweep")
                return
            raise

        result.reminders_created += 1

    def _send(self, application: _StaleApplication, email: str, name: Optional[str]) -> bool:
        content = InterviewReminderContent(
            recipient_name=name,
            candidate_name=application.candidate_name,
            candidate_email=application.candidate_email,
            candidate_phone=application.candidate_phone,
            job_role=application.job_role,
            overall_score=application.overall_score,
            skills_score=application.skills_score,
            stale_days=self.config.stale_days,
            awaiting_status=self.config.awaiting_status,
        )
        try:
            sent = self.notification_service.send_notification(
                notification_type='interview_reminder',
                recipient_email=email,
                variables=content.to_variables(),
                recipient_name=name,
                context={'application_id': str(application.application_id)},
            )
        except Exception as e:
            logger.error(f"Reminder email to {_mask_email(email)} failed: {e}", exc_info=True)
            return False
        return sent.success
