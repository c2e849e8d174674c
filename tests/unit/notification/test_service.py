#!/usr/bin/env python3
"""
Tests for notification dispatch and the service front end.

Tests cover:
1. Dispatcher records one notification_history row per attempt
2. Sync mode renders and delivers inline
3. Async mode enqueues on Redis Queue, falling back to sync when Redis is down
4. The RQ task entry point
"""

import unittest
from unittest.mock import MagicMock, patch

import pytest
from redis.exceptions import RedisError

from database.models import NotificationRecord
from notification.service import (
    NotificationDispatcher,
    NotificationService,
    SendResult,
    deliver_notification,
    process_notification_task,
)
from notification.templates import TemplateResolver
from tests.fixtures.recruitment import all_rows, load, seed_template
from tests.mocks.service_mocks import RecordingChannel

VARIABLES = {
    'candidate_name': 'Jane Doe',
    'job_role': 'Backend Engineer',
    'overall_score': '77',
    'skills_score': '82',
    'experience_score': '75',
    'education_score': '70',
    'score_message': 'Good performance!',
    'recommendations': 'Quantify your impact.',
    'summary': '',
}


@pytest.mark.db
class TestNotificationDispatcher:
    def test_success_is_recorded_as_sent(self, dispatcher, channel, session_factory):
        outcome = dispatcher.dispatch(
            'analysis_complete', 'jane@example.com', 'Results', '<p>Done</p>',
            recipient_name='Jane Doe', metadata={'variables': {'candidate_name': 'Jane Doe'}},
        )

        assert outcome.success is True
        assert channel.sent[0]['from'] == "Recruitment Team <noreply@example.com>"
        record = load(session_factory, NotificationRecord, outcome.notification_id)
        assert record.status == 'sent'
        assert record.retry_count == 0
        assert record.error_message is None
        assert record.metadata_['variables'] == {'candidate_name': 'Jane Doe'}

    def test_failure_is_recorded_with_provider_error(self, session_factory):
        dispatcher = NotificationDispatcher(
            RecordingChannel(fail_all=True, error_message="Email provider returned 503"),
            "Team <noreply@example.com>", session_factory,
        )

        outcome = dispatcher.dispatch('analysis_complete', 'jane@example.com', 'Results', '<p>Done</p>')

        assert outcome.success is False
        assert outcome.error == "Email provider returned 503"
        record = load(session_factory, NotificationRecord, outcome.notification_id)
        assert record.status == 'failed'
        assert record.retry_count == 0
        assert record.error_message == "Email provider returned 503"


@pytest.mark.db
class TestSyncDelivery:
    def test_send_renders_and_delivers(self, notification_service, channel, session_factory):
        result = notification_service.send_notification(
            'analysis_complete', 'jane@example.com', VARIABLES, recipient_name='Jane Doe',
            context={'application_id': 'app-1'},
        )

        assert isinstance(result, SendResult)
        assert (result.queued, result.success) == (False, True)
        assert channel.sent[0]['subject'] == "Your Application Analysis Results - Backend Engineer"
        [record] = all_rows(session_factory, NotificationRecord)
        assert str(record.id) == result.reference
        assert record.metadata_['context'] == {'application_id': 'app-1'}
        assert record.metadata_['template_key'] == 'analysis_complete'

    def test_failed_delivery_is_reported_not_raised(self, notification_service, dispatcher, session_factory):
        dispatcher.channel = RecordingChannel(fail_all=True)

        result = notification_service.send_notification('analysis_complete', 'jane@example.com', VARIABLES)

        assert result.success is False
        [record] = all_rows(session_factory, NotificationRecord)
        assert record.status == 'failed'

    def test_strict_render_failure_is_recorded_as_failed(self, dispatcher, channel, session_factory):
        seed_template(session_factory, 'analysis_complete', "Hi {{candidate_name}}", "<p>{{nickname}}</p>")
        resolver = TemplateResolver(session_factory, strict=True)

        outcome = deliver_notification(
            {'notification_type': 'analysis_complete', 'recipient_email': 'jane@example.com', 'variables': VARIABLES},
            dispatcher, resolver,
        )

        assert outcome.success is False
        assert channel.attempts == 0
        record = load(session_factory, NotificationRecord, outcome.notification_id)
        assert record.status == 'failed'
        assert 'nickname' in record.error_message

    def test_task_entry_point_returns_record_id(self, dispatcher, resolver, session_factory):
        notification_id = process_notification_task(
            {'notification_type': 'analysis_complete', 'recipient_email': 'jane@example.com', 'variables': VARIABLES},
            dispatcher, resolver,
        )

        [record] = all_rows(session_factory, NotificationRecord)
        assert notification_id == str(record.id)


class TestAsyncMode(unittest.TestCase):
    """Redis Queue handling, with Redis mocked out."""

    def setUp(self):
        self.dispatcher = MagicMock(spec=NotificationDispatcher)
        self.resolver = MagicMock(spec=TemplateResolver)

    @patch('notification.service.Queue')
    @patch('notification.service.Redis')
    def test_send_enqueues_task(self, mock_redis, mock_queue_class):
        mock_queue = mock_queue_class.return_value
        mock_queue.enqueue.return_value = MagicMock(id='job-123')

        service = NotificationService(
            self.dispatcher, self.resolver, redis_url='redis://cache:6379/1', use_async_queue=True
        )
        result = service.send_notification('analysis_complete', 'jane@example.com', VARIABLES)

        mock_redis.from_url.assert_called_once_with('redis://cache:6379/1')
        self.assertTrue(service.async_mode)
        self.assertEqual(result, SendResult(reference='job-123', queued=True, success=True))
        args, kwargs = mock_queue.enqueue.call_args
        self.assertIs(args[0], process_notification_task)
        self.assertEqual(args[1]['notification_type'], 'analysis_complete')
        self.assertEqual(args[1]['variables'], VARIABLES)
        self.dispatcher.dispatch.assert_not_called()

    @patch('notification.service.Queue')
    @patch('notification.service.Redis')
    def test_redis_failure_falls_back_to_sync(self, mock_redis, mock_queue_class):
        mock_redis.from_url.return_value.ping.side_effect = RedisError("Connection refused")

        service = NotificationService(self.dispatcher, self.resolver, use_async_queue=True)

        self.assertFalse(service.async_mode)
        self.assertIsNone(service.queue)
        mock_queue_class.assert_not_called()

    def test_sync_mode_never_touches_redis(self):
        with patch('notification.service.Redis') as mock_redis:
            service = NotificationService(self.dispatcher, self.resolver, use_async_queue=False)

        mock_redis.from_url.assert_not_called()
        self.assertFalse(service.async_mode)


if __name__ == '__main__':
    unittest.main()
