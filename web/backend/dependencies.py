#!/usr/bin/env python3
"""
FastAPI dependencies for dependency injection.

Routers depend on the individual services; tests override
get_app_context with a context wired to a test database.
"""

from functools import lru_cache

from fastapi import Depends

from core.analysis.orchestrator import AnalysisOrchestrator
from core.app_context import AppContext
from core.matcher.service import MatchService
from notification.retry import RetryCoordinator
from pipeline.reminders import ReminderScheduler
from pipeline.status_change import StatusChangeNotifier
from .config import get_config


@lru_cache()
def get_app_context() -> AppContext:
    """Build the process-wide AppContext on first use."""
    return AppContext.build(get_config())


def get_orchestrator(ctx: AppContext = Depends(get_app_context)) -> AnalysisOrchestrator:
    return ctx.orchestrator


def get_match_service(ctx: AppContext = Depends(get_app_context)) -> MatchService:
    return ctx.match_service


def get_retry_coordinator(ctx: AppContext = Depends(get_app_context)) -> RetryCoordinator:
    return ctx.retry_coordinator


def get_reminder_scheduler(ctx: AppContext = Depends(get_app_context)) -> ReminderScheduler:
    return ctx.reminder_scheduler


def get_status_change_notifier(ctx: AppContext = Depends(get_app_context)) -> StatusChangeNotifier:
    return ctx.status_change_notifier
