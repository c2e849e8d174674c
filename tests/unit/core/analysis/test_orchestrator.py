"""
Unit tests for the analysis orchestrator.

Runs against the in-memory store with a mock classifier and a recording
email channel.
"""
import uuid
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import update
from sqlalchemy.exc import OperationalError

from core.analysis.orchestrator import AnalysisOrchestrator
from core.config_loader import MatchWeights
from core.errors import (
    AnalysisInProgress,
    NotFoundError,
    ParseError,
    PersistenceError,
    UpstreamServiceError,
    ValidationError,
)
from core.matcher.scorer import weighted_match_score
from database.models import AnalysisResult, Application, NotificationRecord, as_utc, utcnow
from database.repositories.analysis import AnalysisRepository
from database.repositories.application import ApplicationRepository
from tests.fixtures.recruitment import all_rows, load, seed_application, skills_of
from tests.mocks.service_mocks import MockClassifier, RecordingChannel, make_analysis

pytestmark = pytest.mark.db

RESUME = "Jane Doe\nSenior Backend Engineer\nPython, SQL, PostgreSQL"


@pytest.fixture
def classifier():
    return MockClassifier()


@pytest.fixture
def orchestrator(classifier, notification_service, session_factory):
    return AnalysisOrchestrator(
        provider=classifier,
        notification_service=notification_service,
        session_factory=session_factory,
    )


class TestAnalyze:
    def test_scores_are_stored_and_application_ends_analyzed(self, session_factory, notification_service):
        overall = weighted_match_score(80, 70, 60, MatchWeights())
        classifier = MockClassifier(make_analysis(
            skills_score=80, experience_score=70, education_score=60, overall_score=overall,
        ))
        orchestrator = AnalysisOrchestrator(classifier, notification_service, session_factory)
        app_id = seed_application(session_factory)

        with patch.object(
            AnalysisRepository, 'replace_skills',
            autospec=True, side_effect=AnalysisRepository.replace_skills,
        ) as replace_skills:
            response = orchestrator.analyze(app_id, RESUME, "I would love to join.")

        assert overall == 73
        assert response['success'] is True
        assert response['analysis']['overall_score'] == 73
        assert response['analysis']['applicationId'] == str(app_id)
        assert load(session_factory, Application, app_id).status == 'analyzed'
        assert replace_skills.call_count == 1
        assert classifier.calls == [(RESUME, "I would love to join.")]

        [result] = all_rows(session_factory, AnalysisResult, AnalysisResult.application_id == app_id)
        assert (result.skills_score, result.experience_score, result.education_score) == (80, 70, 60)
        assert result.overall_score == 73
        assert result.analysis_summary['summary'] == 'Backend engineer with six years of Python.'

    def test_duplicate_skills_are_stored_once(self, orchestrator, session_factory):
        app_id = seed_application(session_factory)

        response = orchestrator.analyze(app_id, RESUME)

        assert skills_of(session_factory, app_id) == [('Python', 'advanced'), ('SQL', 'intermediate')]
        assert [s['name'] for s in response['analysis']['skills']] == ['Python', 'SQL']

    def test_reanalysis_replaces_the_previous_result(self, orchestrator, classifier, session_factory):
        app_id = seed_application(session_factory)
        orchestrator.analyze(app_id, RESUME)

        classifier.result = make_analysis(
            skills_score=60, overall_score=65,
            skills=[{'name': 'Go', 'proficiency': 'beginner'}],
        )
        orchestrator.analyze(app_id, RESUME)

        results = all_rows(session_factory, AnalysisResult, AnalysisResult.application_id == app_id)
        assert len(results) == 1
        assert results[0].skills_score == 60
        assert results[0].overall_score == 65
        assert skills_of(session_factory, app_id) == [('Go', 'beginner')]
        assert load(session_factory, Application, app_id).status == 'analyzed'

    def test_candidate_is_notified(self, orchestrator, channel, session_factory):
        app_id = seed_application(session_factory, email="jane@example.com")

        orchestrator.analyze(app_id, RESUME)

        assert channel.recipients() == ["jane@example.com"]
        [record] = all_rows(session_factory, NotificationRecord)
        assert record.notification_type == 'analysis_complete'
        assert record.status == 'sent'
        assert "{{" not in channel.sent[0]['html']


class TestFailures:
    @pytest.mark.parametrize("error", [
        UpstreamServiceError("classification service timed out"),
        ParseError("no JSON object in response"),
    ])
    def test_classifier_failure_returns_application_to_pending(self, session_factory, notification_service, error):
        orchestrator = AnalysisOrchestrator(MockClassifier(error=error), notification_service, session_factory)
        app_id = seed_application(session_factory)

        with pytest.raises(type(error)):
            orchestrator.analyze(app_id, RESUME)

        application = load(session_factory, Application, app_id)
        assert application.status == 'pending'
        assert application.analysis_claimed_at is None
        assert all_rows(session_factory, AnalysisResult) == []

    def test_store_failure_rolls_back_result_and_skills(self, orchestrator, session_factory):
        app_id = seed_application(session_factory)

        with patch.object(
            AnalysisRepository, 'replace_skills',
            side_effect=OperationalError("DELETE FROM skills", {}, Exception("disk I/O error")),
        ):
            with pytest.raises(PersistenceError):
                orchestrator.analyze(app_id, RESUME)

        assert load(session_factory, Application, app_id).status == 'pending'
        assert all_rows(session_factory, AnalysisResult) == []
        assert skills_of(session_factory, app_id) == []

    def test_failed_attempt_can_be_rerun(self, session_factory, notification_service):
        classifier = MockClassifier(error=UpstreamServiceError("connection reset"))
        orchestrator = AnalysisOrchestrator(classifier, notification_service, session_factory)
        app_id = seed_application(session_factory)

        with pytest.raises(UpstreamServiceError):
            orchestrator.analyze(app_id, RESUME)
        classifier.error = None
        orchestrator.analyze(app_id, RESUME)

        assert load(session_factory, Application, app_id).status == 'analyzed'

    def test_notification_failure_keeps_the_analysis(self, classifier, dispatcher, session_factory, notification_service):
        dispatcher.channel = RecordingChannel(fail_all=True)
        orchestrator = AnalysisOrchestrator(classifier, notification_service, session_factory)
        app_id = seed_application(session_factory)

        response = orchestrator.analyze(app_id, RESUME)

        assert response['success'] is True
        assert load(session_factory, Application, app_id).status == 'analyzed'
        [record] = all_rows(session_factory, NotificationRecord)
        assert record.status == 'failed'
        assert record.retry_count == 0
        assert record.error_message == "SMTP 550 mailbox unavailable"

    def test_notification_service_error_keeps_the_analysis(self, orchestrator, session_factory):
        app_id = seed_application(session_factory)

        with patch.object(orchestrator.notification_service, 'send_notification', side_effect=RuntimeError("queue down")):
            response = orchestrator.analyze(app_id, RESUME)

        assert response['success'] is True
        assert load(session_factory, Application, app_id).status == 'analyzed'


class TestValidationAndClaims:
    @pytest.mark.parametrize("resume_text", ["", "   \n"])
    def test_missing_resume_is_rejected_without_mutation(self, orchestrator, classifier, session_factory, resume_text):
        app_id = seed_application(session_factory)

        with pytest.raises(ValidationError):
            orchestrator.analyze(app_id, resume_text)

        assert classifier.calls == []
        assert load(session_factory, Application, app_id).status == 'pending'

    def test_missing_application_id_is_rejected(self, orchestrator):
        with pytest.raises(ValidationError):
            orchestrator.analyze(None, RESUME)

    def test_unknown_application(self, orchestrator, classifier):
        with pytest.raises(NotFoundError):
            orchestrator.analyze(uuid.uuid4(), RESUME)
        assert classifier.calls == []

    def test_live_claim_is_not_disturbed(self, orchestrator, classifier, session_factory):
        claimed_at = utcnow() - timedelta(minutes=1)
        app_id = seed_application(session_factory, status='analyzing', analysis_claimed_at=claimed_at)

        with pytest.raises(AnalysisInProgress):
            orchestrator.analyze(app_id, RESUME)

        assert classifier.calls == []
        application = load(session_factory, Application, app_id)
        assert application.status == 'analyzing'
        assert application.analysis_claimed_at is not None

    def test_abandoned_claim_is_reclaimed(self, orchestrator, session_factory):
        claimed_at = utcnow() - timedelta(hours=2)
        app_id = seed_application(session_factory, status='analyzing', analysis_claimed_at=claimed_at)

        orchestrator.analyze(app_id, RESUME)

        application = load(session_factory, Application, app_id)
        assert application.status == 'analyzed'
        assert application.analysis_claimed_at is None

    def test_reclaim_does_not_release_a_competing_fresh_claim(self, orchestrator, classifier, session_factory):
        stale = utcnow() - timedelta(hours=2)
        fresh = utcnow()
        app_id = seed_application(session_factory, status='analyzing', analysis_claimed_at=stale)
        original = ApplicationRepository.compare_and_set_status
        calls = []

        def competing_reclaim(repo, *args, **kwargs):
            # Another worker reclaims and re-claims between our read and our update
            if not calls:
                repo.db.execute(
                    update(Application)
                    .where(Application.id == app_id)
                    .values(analysis_claimed_at=fresh)
                    .execution_options(synchronize_session=False)
                )
            calls.append(kwargs)
            return original(repo, *args, **kwargs)

        with patch.object(
            ApplicationRepository, 'compare_and_set_status', autospec=True, side_effect=competing_reclaim
        ):
            with pytest.raises(AnalysisInProgress):
                orchestrator.analyze(app_id, RESUME)

        assert calls[0]['expected_claimed_at'] is not None
        assert classifier.calls == []
        application = load(session_factory, Application, app_id)
        assert application.status == 'analyzing'
        assert as_utc(application.analysis_claimed_at) == as_utc(fresh)

    def test_claimless_analyzing_row_is_reclaimed(self, orchestrator, session_factory):
        app_id = seed_application(session_factory, status='analyzing', analysis_claimed_at=None)

        orchestrator.analyze(app_id, RESUME)

        assert load(session_factory, Application, app_id).status == 'analyzed'

    def test_externally_progressed_application_can_be_reanalyzed(self, orchestrator, session_factory):
        app_id = seed_application(session_factory, status='reviewed')

        orchestrator.analyze(app_id, RESUME)

        assert load(session_factory, Application, app_id).status == 'analyzed'
