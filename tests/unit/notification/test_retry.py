"""
Tests for the notification retry coordinator.

Tests verify:
- A retry re-renders, delivers and counts the attempt
- Sent notifications are never re-sent
- retry_count is bounded at MAX_RETRIES, enforced by a conditional UPDATE
"""
import uuid

import pytest

from core.errors import NotFoundError
from database.models import NotificationRecord
from database.repositories.notification import NotificationRepository
from database.uow import recruitment_uow
from notification.retry import (
    ALREADY_SENT_MESSAGE,
    MAX_RETRIES,
    RETRY_SUCCEEDED_MESSAGE,
    RetryCoordinator,
    max_retries_message,
)
from tests.fixtures.recruitment import load, seed_notification, seed_template
from tests.mocks.service_mocks import RecordingChannel

pytestmark = pytest.mark.db

VARIABLES = {
    'candidate_name': 'Jane Doe',
    'job_role': 'Backend Engineer',
    'match_score': '91',
    'score_message': 'Outstanding Match!',
    'threshold': '80',
}


@pytest.fixture
def coordinator(dispatcher, resolver, session_factory):
    return RetryCoordinator(dispatcher, resolver, session_factory)


class TestRetry:
    def test_successful_retry_marks_sent(self, coordinator, channel, session_factory):
        notification_id = seed_notification(
            session_factory, retry_count=2, notification_type='candidate_match', variables=VARIABLES,
        )

        result = coordinator.retry(notification_id)

        assert result.success is True
        assert result.message == RETRY_SUCCEEDED_MESSAGE
        record = load(session_factory, NotificationRecord, notification_id)
        assert record.status == 'sent'
        assert record.retry_count == 3
        assert record.error_message is None
        assert record.last_retry_at is not None
        assert channel.recipients() == ['candidate@example.com']

    def test_exhausted_retries_do_not_deliver(self, coordinator, channel, session_factory):
        notification_id = seed_notification(session_factory, retry_count=MAX_RETRIES)

        result = coordinator.retry(notification_id)

        assert result.success is False
        assert "Maximum retry attempts (3)" in result.message
        assert channel.attempts == 0
        assert load(session_factory, NotificationRecord, notification_id).retry_count == 3

    def test_sent_notification_is_not_resent(self, coordinator, channel, session_factory):
        notification_id = seed_notification(session_factory, status='sent', retry_count=1, error_message=None)

        result = coordinator.retry(notification_id)

        assert result.success is False
        assert result.message == ALREADY_SENT_MESSAGE
        assert channel.attempts == 0
        assert load(session_factory, NotificationRecord, notification_id).retry_count == 1

    def test_failed_retry_records_new_error(self, dispatcher, resolver, session_factory):
        dispatcher.channel = RecordingChannel(fail_all=True, error_message="Email provider returned 503")
        coordinator = RetryCoordinator(dispatcher, resolver, session_factory)
        notification_id = seed_notification(session_factory, retry_count=0)

        result = coordinator.retry(notification_id)

        assert result.success is False
        assert result.message == "Email provider returned 503"
        record = load(session_factory, NotificationRecord, notification_id)
        assert record.status == 'failed'
        assert record.retry_count == 1
        assert record.error_message == "Email provider returned 503"

    def test_retries_stop_at_the_bound(self, dispatcher, resolver, session_factory):
        dispatcher.channel = RecordingChannel(fail_all=True)
        coordinator = RetryCoordinator(dispatcher, resolver, session_factory)
        notification_id = seed_notification(session_factory)

        results = [coordinator.retry(notification_id) for _ in range(MAX_RETRIES + 2)]

        assert dispatcher.channel.attempts == MAX_RETRIES
        assert results[-1].message == max_retries_message(MAX_RETRIES)
        assert load(session_factory, NotificationRecord, notification_id).retry_count == MAX_RETRIES

    def test_retry_uses_the_current_template(self, coordinator, channel, session_factory):
        notification_id = seed_notification(
            session_factory, notification_type='candidate_match', variables=VARIABLES,
        )
        seed_template(session_factory, 'candidate_high_score', "Fixed: {{candidate_name}}", "<p>{{match_score}}</p>")

        coordinator.retry(notification_id)

        assert channel.sent[0]['subject'] == "Fixed: Jane Doe"
        assert load(session_factory, NotificationRecord, notification_id).subject == "Fixed: Jane Doe"

    def test_unknown_notification(self, coordinator):
        with pytest.raises(NotFoundError):
            coordinator.retry(uuid.uuid4())


class TestClaimRetryAttempt:
    def test_stale_observed_count_is_refused(self, session_factory):
        notification_id = seed_notification(session_factory, retry_count=2)

        with recruitment_uow(session_factory) as repo:
            first = repo.notifications.claim_retry_attempt(notification_id, 2, MAX_RETRIES)
            second = repo.notifications.claim_retry_attempt(notification_id, 2, MAX_RETRIES)

        assert (first, second) == (True, False)
        assert load(session_factory, NotificationRecord, notification_id).retry_count == 3

    def test_bound_is_enforced_by_the_update(self, session_factory):
        notification_id = seed_notification(session_factory, retry_count=3)

        with recruitment_uow(session_factory) as repo:
            claimed = repo.notifications.claim_retry_attempt(notification_id, 3, MAX_RETRIES)

        assert claimed is False

    def test_lost_race_rereads_and_respects_the_bound(self, coordinator, channel, session_factory, monkeypatch):
        notification_id = seed_notification(session_factory, retry_count=2)
        original = NotificationRepository.claim_retry_attempt
        calls = []

        def racing_claim(self, nid, observed, max_retries, now=None):
            if not calls:
                # Another retry counts the last attempt first
                original(self, nid, observed, max_retries, now)
            calls.append(observed)
            return original(self, nid, observed, max_retries, now)

        monkeypatch.setattr(NotificationRepository, 'claim_retry_attempt', racing_claim)

        result = coordinator.retry(notification_id)

        assert calls == [2]
        assert result.success is False
        assert "Maximum retry attempts (3)" in result.message
        assert channel.attempts == 0
