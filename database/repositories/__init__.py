from database.repositories.base import BaseRepository
from database.repositories.application import ApplicationRepository
from database.repositories.analysis import AnalysisRepository
from database.repositories.match import MatchRepository
from database.repositories.notification import NotificationRepository
from database.repositories.reminder import ReminderRepository, StaffRepository, SettingsRepository

__all__ = [
    'BaseRepository',
    'ApplicationRepository',
    'AnalysisRepository',
    'MatchRepository',
    'NotificationRepository',
    'ReminderRepository',
    'StaffRepository',
    'SettingsRepository',
]
