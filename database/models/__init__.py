from .base import Base, as_utc, utcnow
from .candidate import Candidate, Application, StaffMember
from .analysis import AnalysisResult, Skill, PROFICIENCY_LEVELS
from .match import JobRequirement, MatchResult
from .notification import NotificationRecord, NotificationTemplate, Reminder
from .settings import AppSetting

__all__ = [
    'Base',
    'as_utc',
    'utcnow',
    'Candidate',
    'Application',
    'StaffMember',
    'AnalysisResult',
    'Skill',
    'PROFICIENCY_LEVELS',
    'JobRequirement',
    'MatchResult',
    'NotificationRecord',
    'NotificationTemplate',
    'Reminder',
    'AppSetting',
]
