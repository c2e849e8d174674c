"""Data Transfer Objects for the match scorer.

ORM rows are copied into these inside the unit of work so scoring runs on
plain values after the session is closed.
"""

from dataclasses import dataclass, field
from typing import List, Any, Dict, Optional


@dataclass
class AnalysisDTO:
    """Scores of one analyzed application."""
    application_id: Any
    skills_score: int
    experience_score: int
    education_score: int
    overall_score: int
    candidate_name: Optional[str] = None
    candidate_email: Optional[str] = None


@dataclass
class RequirementDTO:
    """What a job role asks for."""
    id: Any
    job_role: str
    required_skills: List[str] = field(default_factory=list)
    preferred_skills: List[str] = field(default_factory=list)
    weights: Optional[Dict[str, float]] = None


@dataclass
class MatchComputation:
    """Result of scoring one application against one requirement."""
    match_score: int
    skills_match: int
    experience_match: int
    education_match: int
    recommendation: str
    strengths: List[str] = field(default_factory=list)
    missing_skills: List[str] = field(default_factory=list)
    gaps: List[str] = field(default_factory=list)
    matched_required_skills: List[str] = field(default_factory=list)
    matched_preferred_skills: List[str] = field(default_factory=list)

    def to_details(self) -> Dict[str, Any]:
        return {
            'recommendation': self.recommendation,
            'strengths': self.strengths,
            'missing_skills': self.missing_skills,
            'gaps': self.gaps,
            'matched_required_skills': self.matched_required_skills,
            'matched_preferred_skills': self.matched_preferred_skills,
        }
