"""Scheduled pipeline jobs for TalentScout."""

from .reminders import ReminderScheduler, SweepResult
from .status_change import StatusChangeNotifier, StatusChangeResult

__all__ = ['ReminderScheduler', 'SweepResult', 'StatusChangeNotifier', 'StatusChangeResult']
