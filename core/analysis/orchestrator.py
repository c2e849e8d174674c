"""
Analysis Orchestrator

Runs one candidate evaluation end to end:

1. claim the application (status -> analyzing) with a compare-and-swap,
   reclaiming claims abandoned by a crashed worker
2. call the classification service outside any transaction
3. in one transaction: upsert the analysis row, replace the skill set and
   move the application to analyzed
4. best-effort candidate notification, whose failure is recorded by the
   notification layer and never undoes 1-3

Any error between 1 and 3 puts the application back to pending.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from core.errors import AnalysisInProgress, NotFoundError, ValidationError
from core.llm.interfaces import ClassificationProvider
from core.llm.schema_models import CandidateAnalysis
from core.state import AnalysisEvent, ApplicationStatus, Effect, transition_application
from database.models import as_utc, utcnow
from database.uow import recruitment_uow
from notification.message_builder import AnalysisCompleteContent
from notification.service import NotificationService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _PersistedAnalysis:
    application_id: Any
    candidate_name: Optional[str]
    candidate_email: Optional[str]
    job_role: Optional[str]
    skills: List[Dict[str, Optional[str]]]


class AnalysisOrchestrator:
    def __init__(
        self,
        provider: ClassificationProvider,
        notification_service: Optional[NotificationService] = None,
        session_factory=None,
        claim_timeout_minutes: int = 15,
        claim_retry_attempts: int = 3,
    ):
        self.provider = provider
        self.notification_service = notification_service
        self.session_factory = session_factory
        self.claim_timeout = timedelta(minutes=claim_timeout_minutes)
        self.claim_retry_attempts = claim_retry_attempts

    def analyze(self, application_id: Any, resume_text: str, cover_letter: Optional[str] = None) -> Dict[str, Any]:
        """
        Evaluate one application.

        Returns:
            {'success': True, 'analysis': {...}}

        Raises:
            ValidationError: missing application id or resume text (nothing mutated)
            NotFoundError: unknown application
            AnalysisInProgress: another worker holds a live claim
            UpstreamServiceError, ParseError, PersistenceError: the attempt
                failed and the application is back to pending
        """
        if not application_id:
            raise ValidationError("applicationId is required")
        if not resume_text or not resume_text.strip():
            raise ValidationError("resumeText is required")

        claimed_at = self._claim(application_id)
        logger.info(f"Claimed application {application_id} for analysis")

        try:
            analysis = self.provider.classify_candidate(resume_text, cover_letter)
            persisted = self._persist(application_id, analysis, claimed_at)
        except Exception as e:
            logger.error(f"Analysis of application {application_id} failed: {e}")
            self._release(application_id, claimed_at)
            raise

        succeed = transition_application(ApplicationStatus.ANALYZING, AnalysisEvent.SUCCEED)
        if Effect.NOTIFY_CANDIDATE in succeed.effects:
            self._notify_candidate(persisted, analysis)

        logger.info(f"Application {application_id} analyzed: overall={analysis.overall_score}")
        return {
            'success': True,
            'analysis': {
                'applicationId': str(application_id),
                'skills_score': analysis.skills_score,
                'experience_score': analysis.experience_score,
                'education_score': analysis.education_score,
                'overall_score': analysis.overall_score,
                'skills': persisted.skills,
                'recommendations': analysis.recommendations,
                'summary': analysis.summary,
                'experience_details': analysis.experience_details,
                'education_details': analysis.education_details,
            },
        }

    def _claim(self, application_id: Any) -> datetime:
        """Move the application to analyzing. Returns the claim timestamp."""
        for _ in range(self.claim_retry_attempts):
            now = utcnow()
            with recruitment_uow(self.session_factory) as repo:
                application = repo.applications.get_by_id(application_id)
                if application is None:
                    raise NotFoundError(f"Application {application_id} not found")

                current = ApplicationStatus(application.status)
                if current is ApplicationStatus.ANALYZING:
                    observed_claim = application.analysis_claimed_at
                    claimed = as_utc(observed_claim)
                    if claimed is not None and now - claimed < self.claim_timeout:
                        raise AnalysisInProgress(f"Application {application_id} is already being analyzed")

                    released = transition_application(current, AnalysisEvent.FAIL)
                    if not repo.applications.compare_and_set_status(
                        application_id,
                        current.value,
                        released.state.value,
                        release_claim=True,
                        expected_claimed_at=observed_claim,
                        require_unclaimed=observed_claim is None,
                    ):
                        continue
                    logger.warning(f"Reclaimed abandoned analysis claim on application {application_id}")
                    current = released.state

                started = transition_application(current, AnalysisEvent.START)
                if repo.applications.compare_and_set_status(
                    application_id,
                    current.value,
                    started.state.value,
                    claimed_at=now if Effect.CLAIM_ANALYSIS in started.effects else None,
                ):
                    return now

            logger.info(f"Status of application {application_id} changed while claiming, re-reading")

        raise AnalysisInProgress(
            f"Could not claim application {application_id} after {self.claim_retry_attempts} attempts"
        )

    def _persist(self, application_id: Any, analysis: CandidateAnalysis, claimed_at: datetime) -> _PersistedAnalysis:
        skills = analysis.unique_skills()

        with recruitment_uow(self.session_factory) as repo:
            application = repo.applications.get_for_update(application_id)
            if application is None:
                raise NotFoundError(f"Application {application_id} not found")
            if (application.status != ApplicationStatus.ANALYZING.value
                    or as_utc(application.analysis_claimed_at) != claimed_at):
                raise AnalysisInProgress(f"Analysis claim on application {application_id} was lost")

            repo.analysis.upsert_result(
                application_id=application_id,
                skills_score=analysis.skills_score,
                experience_score=analysis.experience_score,
                education_score=analysis.education_score,
                overall_score=analysis.overall_score,
                recommendations=analysis.recommendations,
                analysis_summary={
                    'summary': analysis.summary,
                    'experience_details': analysis.experience_details,
                    'education_details': analysis.education_details,
                    'raw_response': analysis.model_dump(),
                },
            )
            repo.analysis.replace_skills(
                application_id, [(skill.name, skill.proficiency) for skill in skills]
            )

            succeed = transition_application(ApplicationStatus.ANALYZING, AnalysisEvent.SUCCEED)
            if not repo.applications.compare_and_set_status(
                application_id,
                ApplicationStatus.ANALYZING.value,
                succeed.state.value,
                release_claim=Effect.RELEASE_CLAIM in succeed.effects,
                expected_claimed_at=claimed_at,
            ):
                raise AnalysisInProgress(f"Analysis claim on application {application_id} was lost")

            candidate = application.candidate
            return _PersistedAnalysis(
                application_id=application_id,
                candidate_name=candidate.name if candidate else None,
                candidate_email=candidate.email if candidate else None,
                job_role=application.job_role,
                skills=[{'name': s.name, 'proficiency': s.proficiency} for s in skills],
            )

    def _release(self, application_id: Any, claimed_at: datetime) -> None:
        """Return a failed claim to pending, unless someone else has taken it over."""
        failed = transition_application(ApplicationStatus.ANALYZING, AnalysisEvent.FAIL)
        try:
            with recruitment_uow(self.session_factory) as repo:
                released = repo.applications.compare_and_set_status(
                    application_id,
                    ApplicationStatus.ANALYZING.value,
                    failed.state.value,
                    release_claim=Effect.RELEASE_CLAIM in failed.effects,
                    expected_claimed_at=claimed_at,
                )
        except Exception as e:
            # The original failure is what the caller needs to see; the claim
            # will be reclaimed once it times out.
            logger.error(f"Could not return application {application_id} to pending: {e}")
            return

        if not released:
            logger.warning(f"Application {application_id} claim was taken over, leaving status unchanged")

    def _notify_candidate(self, persisted: _PersistedAnalysis, analysis: CandidateAnalysis) -> None:
        if self.notification_service is None or not persisted.candidate_email:
            return

        content = AnalysisCompleteContent(
            candidate_name=persisted.candidate_name or "Candidate",
            job_role=persisted.job_role,
            overall_score=analysis.overall_score,
            skills_score=analysis.skills_score,
            experience_score=analysis.experience_score,
            education_score=analysis.education_score,
            recommendations=analysis.recommendations,
            summary=analysis.summary,
        )
        try:
            self.notification_service.send_notification(
                notification_type='analysis_complete',
                recipient_email=persisted.candidate_email,
                variables=content.to_variables(),
                recipient_name=persisted.candidate_name,
                context={'application_id': str(persisted.application_id)},
            )
        except Exception as e:
            # Delivery failures are already recorded by the dispatcher; this
            # covers queue and store errors, which must not undo the analysis.
            logger.error(
                f"Candidate notification for application {persisted.application_id} failed: {e}",
                exc_info=True,
            )
