"""Application status change notifications.

Recruiters move applications through the hiring stages outside this
pipeline. When an application reaches a key stage the candidate gets a
status_change email and every staff member with a notified role gets a
status_change_team email. Other stages are acknowledged without sending.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from core.errors import NotFoundError, ValidationError
from core.state import ApplicationStatus
from database.uow import recruitment_uow
from notification.channels import _mask_email
from notification.message_builder import KEY_STAGES, StatusChangeContent, StatusChangeTeamContent
from notification.service import NotificationService

logger = logging.getLogger(__name__)


@dataclass
class StatusChangeResult:
    notified: bool = False
    candidate_notified: bool = False
    staff_notifications_sent: int = 0
    message: Optional[str] = None

    def to_response(self) -> Dict[str, Any]:
        return {
            'success': True,
            'notified': self.notified,
            'candidateNotified': self.candidate_notified,
            'staffNotificationsSent': self.staff_notifications_sent,
            'message': self.message,
        }


@dataclass(frozen=True)
class _Recipient:
    email: str
    full_name: Optional[str]


@dataclass(frozen=True)
class _StatusChange:
    application_id: Any
    candidate_name: str
    candidate_email: Optional[str]
    job_role: Optional[str]
    old_status: Optional[str]
    new_status: str
    overall_score: Optional[int]
    staff: List[_Recipient] = field(default_factory=list)


class StatusChangeNotifier:
    def __init__(
        self,
        notification_service: NotificationService,
        session_factory=None,
        staff_roles: Sequence[str] = ('admin', 'recruiter'),
        notify_candidates: bool = True,
    ):
        self.notification_service = notification_service
        self.session_factory = session_factory
        self.staff_roles = list(staff_roles)
        self.notify_candidates = notify_candidates

    def notify_status_change(
        self,
        application_id: Any,
        new_status: str,
        old_status: Optional[str] = None,
    ) -> StatusChangeResult:
        """
        Email the candidate and staff about an application's new status.

        old_status defaults to the status currently stored on the
        application when the caller does not know it.

        Raises:
            ValidationError: missing application id or unknown status
            NotFoundError: unknown application
        """
        if not application_id:
            raise ValidationError("applicationId is required")
        new_status = self._validate_status(new_status, 'newStatus')
        if old_status is not None:
            old_status = self._validate_status(old_status, 'oldStatus')

        change = self._load(application_id, new_status, old_status)
        logger.info(
            f"Status change for application {application_id}: {change.old_status} -> {new_status}"
        )

        if new_status not in KEY_STAGES:
            logger.info(f"Status {new_status} is not a key stage, skipping notification")
            return StatusChangeResult(message="Not a key stage")

        result = StatusChangeResult(notified=True)
        if self.notify_candidates and change.candidate_email:
            content = StatusChangeContent(
                candidate_name=change.candidate_name,
                job_role=change.job_role,
                new_status=new_status,
                old_status=change.old_status,
                overall_score=change.overall_score,
            )
            result.candidate_notified = self._send(
                'status_change', change.candidate_email, content.to_variables(), change.candidate_name, change,
            )

        if not change.staff:
            logger.info(f"No staff with roles {self.staff_roles} to notify about application {application_id}")
        for member in change.staff:
            content = StatusChangeTeamContent(
                recipient_name=member.full_name,
                candidate_name=change.candidate_name,
                job_role=change.job_role,
                new_status=new_status,
                old_status=change.old_status,
                overall_score=change.overall_score,
            )
            if self._send('status_change_team', member.email, content.to_variables(), member.full_name, change):
                result.staff_notifications_sent += 1

        return result

    @staticmethod
    def _validate_status(status: Optional[str], field_name: str) -> str:
        if not status:
            raise ValidationError(f"{field_name} is required")
        try:
            return ApplicationStatus(status.strip().lower()).value
        except ValueError:
            raise ValidationError(f"{field_name} '{status}' is not a known application status")

    def _load(self, application_id: Any, new_status: str, old_status: Optional[str]) -> _StatusChange:
        with recruitment_uow(self.session_factory) as repo:
            application = repo.applications.get_by_id(application_id)
            if application is None:
                raise NotFoundError(f"Application {application_id} not found")

            candidate = application.candidate
            analysis = application.analysis
            staff = [
                _Recipient(email=s.email, full_name=s.full_name)
                for s in repo.staff.get_by_roles(self.staff_roles)
            ]
            return _StatusChange(
                application_id=application.id,
                candidate_name=(candidate.name if candidate else None) or "Candidate",
                candidate_email=candidate.email if candidate else None,
                job_role=application.job_role,
                old_status=old_status or application.status,
                new_status=new_status,
                overall_score=analysis.overall_score if analysis else None,
                staff=staff,
            )

    def _send(
        self,
        notification_type: str,
        recipient_email: str,
        variables: Dict[str, str],
        recipient_name: Optional[str],
        change: _StatusChange,
    ) -> bool:
        try:
            result = self.notification_service.send_notification(
                notification_type=notification_type,
                recipient_email=recipient_email,
                variables=variables,
                recipient_name=recipient_name,
                context={
                    'application_id': str(change.application_id),
                    'old_status': change.old_status,
                    'new_status': change.new_status,
                },
            )
        except Exception as e:
            # Staff still hear about the change when the candidate email fails
            logger.error(
                f"{notification_type} notification to {_mask_email(recipient_email)} failed: {e}",
                exc_info=True,
            )
            return False
        return result.success

