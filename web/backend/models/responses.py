#!/usr/bin/env python3
"""
Response models for API endpoints.
"""

from pydantic import BaseModel, ConfigDict, Field
from typing import List, Optional


class SkillItem(BaseModel):
    name: str
    proficiency: Optional[str] = None


class AnalysisPayload(BaseModel):
    """Stored analysis of one application."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "applicationId": "550e8400-e29b-41d4-a716-446655440000",
                "skills_score": 82,
                "experience_score": 75,
                "education_score": 70,
                "overall_score": 77,
                "skills": [{"name": "Python", "proficiency": "advanced"}],
                "recommendations": "Highlight leadership experience.",
                "summary": "Backend engineer with six years of Python.",
                "experience_details": "Six years across two companies.",
                "education_details": "BSc Computer Science."
            }
        }
    )

    applicationId: str
    skills_score: int = Field(ge=0, le=100)
    experience_score: int = Field(ge=0, le=100)
    education_score: int = Field(ge=0, le=100)
    overall_score: int = Field(ge=0, le=100)
    skills: List[SkillItem] = Field(default_factory=list)
    recommendations: str = ""
    summary: str = ""
    experience_details: Optional[str] = None
    education_details: Optional[str] = None


class AnalysisResponse(BaseModel):
    success: bool
    analysis: AnalysisPayload


class MatchItem(BaseModel):
    """Score of one application against the requirement."""
    applicationId: str
    candidateName: Optional[str] = None
    match_score: int = Field(ge=0, le=100)
    skills_match: int = Field(ge=0, le=100)
    experience_match: int = Field(ge=0, le=100)
    education_match: int = Field(ge=0, le=100)
    recommendation: str
    strengths: List[str] = Field(default_factory=list)
    missing_skills: List[str] = Field(default_factory=list)
    gaps: List[str] = Field(default_factory=list)
    matched_required_skills: List[str] = Field(default_factory=list)
    matched_preferred_skills: List[str] = Field(default_factory=list)


class MatchBatchResponse(BaseModel):
    success: bool
    matches: List[MatchItem]
    candidateNotificationsSent: int = 0
    recruiterNotificationsSent: int = 0
    highScoreCandidates: int = 0


class RetryResponse(BaseModel):
    """Outcome of a retry. success=false with a message is not an error."""
    success: bool
    message: str


class StatusChangeResponse(BaseModel):
    """notified=false means the new status is not one that triggers emails."""
    success: bool
    notified: bool
    candidateNotified: bool = False
    staffNotificationsSent: int = 0
    message: Optional[str] = None


class SweepResponse(BaseModel):
    success: bool
    remindersSent: int
    remindersCreated: int
    applicationsProcessed: int


class HealthResponse(BaseModel):
    status: str
    service: str
