#!/usr/bin/env python3
"""
Match Service - batch scoring of analyzed applications against a job requirement.

Reads every analyzed application for the requirement, scores it with the
pure scorer and upserts one candidate_job_matches row per application in a
single transaction. Afterwards candidates at or above the notification
threshold get a candidate_match email, and staff get one recruiter_alert
listing them. Notification failures are recorded by the notification layer
and never undo the stored matches.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging

from core.config_loader import MatchingConfig, NotificationConfig
from core.errors import NotFoundError, ValidationError
from core.matcher.dto import AnalysisDTO, MatchComputation, RequirementDTO
from core.matcher.scorer import score_match
from core.state import ApplicationStatus
from database.uow import recruitment_uow
from notification.channels import _mask_email
from notification.message_builder import CandidateMatchContent, HighScorer, RecruiterAlertContent
from notification.service import NotificationService

logger = logging.getLogger(__name__)

THRESHOLD_SETTING_KEY = 'notification_threshold'


@dataclass(frozen=True)
class NotificationSettings:
    candidate_threshold: int
    recruiter_notification_enabled: bool


@dataclass(frozen=True)
class _Recipient:
    email: str
    name: Optional[str]


@dataclass(frozen=True)
class _ScoredApplication:
    analysis: AnalysisDTO
    computation: MatchComputation

    def to_response(self) -> Dict[str, Any]:
        c = self.computation
        return {
            'applicationId': str(self.analysis.application_id),
            'candidateName': self.analysis.candidate_name,
            'match_score': c.match_score,
            'skills_match': c.skills_match,
            'experience_match': c.experience_match,
            'education_match': c.education_match,
            **c.to_details(),
        }


def resolve_notification_settings(stored: Optional[Any], fallback: NotificationConfig) -> NotificationSettings:
    """Merge the app_settings row over the configured defaults."""
    stored = stored if isinstance(stored, dict) else {}
    threshold = stored.get('candidate_threshold')
    enabled = stored.get('recruiter_notification_enabled')
    return NotificationSettings(
        candidate_threshold=int(threshold) if threshold is not None else fallback.candidate_threshold,
        recruiter_notification_enabled=(
            bool(enabled) if enabled is not None else fallback.recruiter_notification_enabled
        ),
    )


class MatchService:
    """
    Scores analyzed applications against one job requirement.
    """

    def __init__(
        self,
        matching_config: MatchingConfig,
        notification_config: NotificationConfig,
        notification_service: Optional[NotificationService] = None,
        session_factory=None,
        staff_roles: Sequence[str] = ('admin', 'recruiter'),
    ):
        self.matching_config = matching_config
        self.notification_config = notification_config
        self.notification_service = notification_service
        self.session_factory = session_factory
        self.staff_roles = list(staff_roles)

    def match_candidates(
        self,
        job_requirement_id: Any,
        application_ids: Optional[Sequence[Any]] = None,
    ) -> Dict[str, Any]:
        """
        Score and store matches, then notify high scorers.

        Args:
            job_requirement_id: Requirement to score against
            application_ids: Optional subset; otherwise every analyzed
                application with the requirement's job role

        Returns:
            {'success': True, 'matches': [...], 'candidateNotificationsSent': n,
             'recruiterNotificationsSent': n, 'highScoreCandidates': n}

        Raises:
            ValidationError: no requirement id
            NotFoundError: unknown requirement
            PersistenceError: matches could not be stored (none are)
        """
        if not job_requirement_id:
            raise ValidationError("jobRequirementId is required")

        with recruitment_uow(self.session_factory) as repo:
            row = repo.matches.get_requirement(job_requirement_id)
            if row is None:
                raise NotFoundError(f"Job requirement {job_requirement_id} not found")

            requirement = RequirementDTO(
                id=row.id,
                job_role=row.job_role,
                required_skills=list(row.required_skills or []),
                preferred_skills=list(row.preferred_skills or []),
                weights=row.weights,
            )
            settings = resolve_notification_settings(
                repo.settings.get_value(THRESHOLD_SETTING_KEY), self.notification_config
            )

            applications = repo.applications.get_with_status(
                ApplicationStatus.ANALYZED.value,
                job_role=requirement.job_role,
                application_ids=application_ids,
            )

            scored: List[_ScoredApplication] = []
            for application in applications:
                result = application.analysis
                if result is None:
                    logger.warning(f"Application {application.id} is analyzed but has no analysis row, skipping")
                    continue

                candidate = application.candidate
                analysis = AnalysisDTO(
                    application_id=application.id,
                    skills_score=result.skills_score,
                    experience_score=result.experience_score,
                    education_score=result.education_score,
                    overall_score=result.overall_score,
                    candidate_name=candidate.name if candidate else None,
                    candidate_email=candidate.email if candidate else None,
                )
                computation = score_match(
                    analysis, [s.skill_name for s in application.skills], requirement, self.matching_config
                )
                repo.matches.upsert_match(
                    application_id=application.id,
                    job_requirement_id=requirement.id,
                    match_score=computation.match_score,
                    skills_match=computation.skills_match,
                    experience_match=computation.experience_match,
                    education_match=computation.education_match,
                    match_details=computation.to_details(),
                )
                scored.append(_ScoredApplication(analysis, computation))

            recipients = [
                _Recipient(email=s.email, name=s.full_name)
                for s in repo.staff.get_by_roles(self.staff_roles)
            ] if settings.recruiter_notification_enabled else []

        logger.info(
            f"Scored {len(scored)} of {len(applications)} applications for {requirement.job_role} "
            f"(threshold {settings.candidate_threshold})"
        )

        high_scorers = [
            s for s in scored
            if s.computation.match_score >= settings.candidate_threshold and s.analysis.candidate_email
        ]

        candidate_sent = 0
        recruiter_sent = 0
        if high_scorers and self._notifications_enabled():
            candidate_sent = self._notify_candidates(high_scorers, requirement, settings)
            if settings.recruiter_notification_enabled:
                recruiter_sent = self._notify_recruiters(high_scorers, requirement, settings, recipients)

        return {
            'success': True,
            'matches': [s.to_response() for s in scored],
            'candidateNotificationsSent': candidate_sent,
            'recruiterNotificationsSent': recruiter_sent,
            'highScoreCandidates': len(high_scorers),
        }

    def _notifications_enabled(self) -> bool:
        return self.notification_service is not None and self.notification_config.enabled

    def _notify_candidates(
        self,
        high_scorers: List[_ScoredApplication],
        requirement: RequirementDTO,
        settings: NotificationSettings,
    ) -> int:
        sent = 0
        for scored in high_scorers:
            content = CandidateMatchContent(
                candidate_name=scored.analysis.candidate_name or "Candidate",
                job_role=requirement.job_role,
                match_score=scored.computation.match_score,
                threshold=settings.candidate_threshold,
            )
            if self._send(
                'candidate_match',
                scored.analysis.candidate_email,
                content.to_variables(),
                scored.analysis.candidate_name,
                {
                    'application_id': str(scored.analysis.application_id),
                    'job_requirement_id': str(requirement.id),
                    'match_score': scored.computation.match_score,
                },
            ):
                sent += 1
        return sent

    def _notify_recruiters(
        self,
        high_scorers: List[_ScoredApplication],
        requirement: RequirementDTO,
        settings: NotificationSettings,
        recipients: List[_Recipient],
    ) -> int:
        if not recipients:
            logger.info(f"No staff with roles {self.staff_roles} to alert for {requirement.job_role}")
            return 0

        candidates = [
            HighScorer(
                candidate_name=s.analysis.candidate_name or "Unknown",
                candidate_email=s.analysis.candidate_email,
                match_score=s.computation.match_score,
            )
            for s in high_scorers
        ]
        sent = 0
        for recipient in recipients:
            content = RecruiterAlertContent(
                recipient_name=recipient.name,
                job_role=requirement.job_role,
                threshold=settings.candidate_threshold,
                candidates=candidates,
            )
            if self._send(
                'recruiter_alert',
                recipient.email,
                content.to_variables(),
                recipient.name,
                {'job_requirement_id': str(requirement.id)},
            ):
                sent += 1
        return sent

    def _send(
        self,
        notification_type: str,
        recipient_email: str,
        variables: Dict[str, str],
        recipient_name: Optional[str],
        context: Dict[str, Any],
    ) -> bool:
        try:
            result = self.notification_service.send_notification(
                notification_type=notification_type,
                recipient_email=recipient_email,
                variables=variables,
                recipient_name=recipient_name,
                context=context,
            )
        except Exception as e:
            # One recipient failing must not stop the rest of the batch
            logger.error(
                f"{notification_type} notification to {_mask_email(recipient_email)} failed: {e}",
                exc_info=True,
            )
            return False
        return result.success
