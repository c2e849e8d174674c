#!/usr/bin/env python3
"""
Match Scorer - score one analyzed application against one job requirement.

Pure functions, no I/O.

skills_match blends the classifier's skills_score with how much of the
requirement's skill list the candidate actually holds:

    skills_match = (1 - c) * skills_score + c * 100 * coverage

where c is skill_coverage_weight and coverage weights required skills 1.0
and preferred skills preferred_skill_weight. Coverage only grows when a
skill is added, so skills_match (and with it match_score and the tier) is
monotone in the candidate's skill set. With no requirement skills it is
skills_score unchanged.
"""

from typing import Dict, Iterable, List, Tuple
import logging

from core.config_loader import MatchingConfig, MatchWeights, TierThresholds
from core.matcher.dto import AnalysisDTO, MatchComputation, RequirementDTO

logger = logging.getLogger(__name__)

TIERS = ('strong_match', 'good_match', 'partial_match', 'weak_match')


def normalize_skill(name: str) -> str:
    return " ".join((name or "").split()).lower()


def _clamp_score(value: float) -> int:
    return max(0, min(100, int(round(value))))


def _dedupe(skills: Iterable[str]) -> List[str]:
    """Drop blanks and case-insensitive duplicates, keeping first spelling and order."""
    seen = set()
    result = []
    for skill in skills or []:
        key = normalize_skill(skill)
        if key and key not in seen:
            seen.add(key)
            result.append(skill.strip())
    return result


def calculate_skill_coverage(
    candidate_skills: Iterable[str],
    required_skills: List[str],
    preferred_skills: List[str],
    preferred_weight: float,
) -> Tuple[float, List[str], List[str]]:
    """
    Weighted share of requirement skills the candidate holds.

    A skill listed as both required and preferred counts as required.

    Returns: (coverage 0.0-1.0, matched required, matched preferred)
    """
    held = {normalize_skill(s) for s in candidate_skills or []}
    required = _dedupe(required_skills)
    required_keys = {normalize_skill(s) for s in required}
    preferred = [s for s in _dedupe(preferred_skills) if normalize_skill(s) not in required_keys]

    matched_required = [s for s in required if normalize_skill(s) in held]
    matched_preferred = [s for s in preferred if normalize_skill(s) in held]

    total = len(required) + preferred_weight * len(preferred)
    if total <= 0:
        return 0.0, matched_required, matched_preferred

    covered = len(matched_required) + preferred_weight * len(matched_preferred)
    return covered / total, matched_required, matched_preferred


def calculate_skills_match(
    skills_score: int,
    coverage: float,
    has_requirement_skills: bool,
    coverage_weight: float,
) -> float:
    if not has_requirement_skills:
        return float(skills_score)
    return (1 - coverage_weight) * skills_score + coverage_weight * 100 * coverage


def resolve_weights(requirement: RequirementDTO, default: MatchWeights) -> MatchWeights:
    """Per-requirement weights override the configured ones when complete and valid."""
    if not requirement.weights:
        return default
    try:
        return MatchWeights(**{**default.model_dump(), **requirement.weights})
    except ValueError as e:
        logger.warning(f"Ignoring invalid weights on requirement {requirement.id}: {e}")
        return default


def weighted_match_score(
    skills_match: float,
    experience_match: float,
    education_match: float,
    weights: MatchWeights,
) -> int:
    total = weights.skills + weights.experience + weights.education
    score = (
        weights.skills * skills_match
        + weights.experience * experience_match
        + weights.education * education_match
    ) / total
    return _clamp_score(score)


def recommendation_tier(match_score: int, tiers: TierThresholds) -> str:
    if match_score >= tiers.strong_match:
        return 'strong_match'
    if match_score >= tiers.good_match:
        return 'good_match'
    if match_score >= tiers.partial_match:
        return 'partial_match'
    return 'weak_match'


def score_match(
    analysis: AnalysisDTO,
    skills: Iterable[str],
    requirement: RequirementDTO,
    config: MatchingConfig,
) -> MatchComputation:
    """Score one analysis against one requirement."""
    skills = list(skills or [])
    required = _dedupe(requirement.required_skills)
    preferred = _dedupe(requirement.preferred_skills)

    coverage, matched_required, matched_preferred = calculate_skill_coverage(
        skills, required, preferred, config.preferred_skill_weight
    )
    skills_match = calculate_skills_match(
        analysis.skills_score,
        coverage,
        has_requirement_skills=bool(required or preferred),
        coverage_weight=config.skill_coverage_weight,
    )
    experience_match = float(analysis.experience_score)
    education_match = float(analysis.education_score)

    weights = resolve_weights(requirement, config.weights)
    match_score = weighted_match_score(skills_match, experience_match, education_match, weights)

    held = {normalize_skill(s) for s in skills}
    limit = config.display_limit
    strengths = [s for s in _dedupe(required + preferred) if normalize_skill(s) in held][:limit]
    missing = [s for s in required if normalize_skill(s) not in held][:limit]

    sub_scores: Dict[str, int] = {
        'skills': _clamp_score(skills_match),
        'experience': _clamp_score(experience_match),
        'education': _clamp_score(education_match),
    }
    gaps = [
        f"{name.capitalize()} below {config.tiers.partial_match}"
        for name, score in sub_scores.items()
        if score < config.tiers.partial_match
    ]

    return MatchComputation(
        match_score=match_score,
        skills_match=sub_scores['skills'],
        experience_match=sub_scores['experience'],
        education_match=sub_scores['education'],
        recommendation=recommendation_tier(match_score, config.tiers),
        strengths=strengths,
        missing_skills=missing,
        gaps=gaps,
        matched_required_skills=matched_required,
        matched_preferred_skills=matched_preferred,
    )
