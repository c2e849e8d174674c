from dataclasses import dataclass
from typing import Optional

from core.analysis.orchestrator import AnalysisOrchestrator
from core.config_loader import AppConfig, LlmConfig
from core.llm.interfaces import ClassificationProvider
from core.llm.openai_service import OpenAIService
from core.matcher.service import MatchService
from notification.retry import RetryCoordinator
from notification.service import NotificationService, build_notification_service
from pipeline.reminders import ReminderScheduler
from pipeline.status_change import StatusChangeNotifier


@dataclass
class AppContext:
    """Application context container that holds all wired dependencies.

    Services hold a session factory, not a session; each operation opens
    its own unit of work via recruitment_uow().
    """
    config: AppConfig
    classifier: ClassificationProvider
    notification_service: NotificationService
    orchestrator: AnalysisOrchestrator
    match_service: MatchService
    retry_coordinator: RetryCoordinator
    reminder_scheduler: ReminderScheduler
    status_change_notifier: StatusChangeNotifier

    @classmethod
    def build(
        cls,
        config: AppConfig,
        session_factory=None,
        classifier: Optional[ClassificationProvider] = None,
    ) -> "AppContext":
        """Build an AppContext from config.

        Args:
            config: Loaded application configuration
            session_factory: Session factory for every unit of work
                (defaults to database.database.SessionLocal)
            classifier: Classification provider override

        Returns:
            Fully wired AppContext instance
        """
        classifier = classifier or cls._build_classifier(config.llm)
        notification_service = build_notification_service(config, session_factory)

        # Candidate-facing emails are optional; reminders and retries are not
        candidate_notifications = notification_service if config.notifications.enabled else None

        orchestrator = AnalysisOrchestrator(
            provider=classifier,
            notification_service=candidate_notifications,
            session_factory=session_factory,
            claim_timeout_minutes=config.analysis.claim_timeout_minutes,
            claim_retry_attempts=config.analysis.claim_retry_attempts,
        )
        match_service = MatchService(
            matching_config=config.matching,
            notification_config=config.notifications,
            notification_service=candidate_notifications,
            session_factory=session_factory,
            staff_roles=config.reminders.staff_roles,
        )
        retry_coordinator = RetryCoordinator(
            dispatcher=notification_service.dispatcher,
            resolver=notification_service.resolver,
            session_factory=session_factory,
            max_retries=config.notifications.max_retries,
        )
        reminder_scheduler = ReminderScheduler(
            notification_service=notification_service,
            config=config.reminders,
            session_factory=session_factory,
        )
        status_change_notifier = StatusChangeNotifier(
            notification_service=notification_service,
            session_factory=session_factory,
            staff_roles=config.reminders.staff_roles,
            notify_candidates=config.notifications.enabled,
        )

        return cls(
            config=config,
            classifier=classifier,
            notification_service=notification_service,
            orchestrator=orchestrator,
            match_service=match_service,
            retry_coordinator=retry_coordinator,
            reminder_scheduler=reminder_scheduler,
            status_change_notifier=status_change_notifier,
        )

    @staticmethod
    def _build_classifier(llm_config: LlmConfig) -> OpenAIService:
        """Build the OpenAI-compatible classification service."""
        return OpenAIService(
            api_key=llm_config.api_key,
            base_url=llm_config.base_url,
            model=llm_config.model,
            temperature=llm_config.temperature,
            request_timeout_seconds=llm_config.request_timeout_seconds,
            max_attempts=llm_config.max_attempts,
        )
