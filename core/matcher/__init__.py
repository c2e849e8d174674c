"""Matcher Module - score analyzed applications against job requirements."""
from core.matcher.dto import AnalysisDTO, RequirementDTO, MatchComputation
from core.matcher.scorer import score_match, recommendation_tier, calculate_skill_coverage
from core.matcher.service import MatchService, NotificationSettings, resolve_notification_settings

__all__ = [
    'MatchService', 'NotificationSettings', 'resolve_notification_settings',
    'score_match', 'recommendation_tier', 'calculate_skill_coverage',
    'AnalysisDTO', 'RequirementDTO', 'MatchComputation',
]
