"""
Structured output contract for candidate classification.

ANALYZE_CANDIDATE_TOOL is sent to the model as a forced function call;
CandidateAnalysis validates whatever comes back.
"""
from typing import List, Literal

from pydantic import BaseModel, Field, field_validator

from database.models import PROFICIENCY_LEVELS

ANALYZE_CANDIDATE_TOOL_NAME = "analyze_candidate"

_SCORE_PROPERTY = {"type": "integer", "minimum": 0, "maximum": 100}

ANALYZE_CANDIDATE_TOOL = {
    "type": "function",
    "function": {
        "name": ANALYZE_CANDIDATE_TOOL_NAME,
        "description": "Return a structured evaluation of the candidate's application.",
        "parameters": {
            "type": "object",
            "properties": {
                "skills_score": {**_SCORE_PROPERTY, "description": "Skills assessment, 0-100"},
                "experience_score": {**_SCORE_PROPERTY, "description": "Experience evaluation, 0-100"},
                "education_score": {**_SCORE_PROPERTY, "description": "Education review, 0-100"},
                "overall_score": {**_SCORE_PROPERTY, "description": "Overall fit, 0-100"},
                "skills": {
                    "type": "array",
                    "description": "Every skill mentioned in the application",
                    "minItems": 8,
                    "maxItems": 15,
                    "items": {
                        "type": "object",
                        "properties": {
                            "name": {"type": "string"},
                            "proficiency": {"type": "string", "enum": list(PROFICIENCY_LEVELS)},
                        },
                        "required": ["name", "proficiency"],
                        "additionalProperties": False,
                    },
                },
                "recommendations": {"type": "string", "description": "Actionable recommendations for the candidate"},
                "summary": {"type": "string", "description": "Overall assessment summary"},
                "experience_details": {"type": "string", "description": "Breakdown of the work history"},
                "education_details": {"type": "string", "description": "Breakdown of qualifications"},
            },
            "required": [
                "skills_score", "experience_score", "education_score", "overall_score",
                "skills", "recommendations", "summary", "experience_details", "education_details",
            ],
            "additionalProperties": False,
        },
    },
}


Proficiency = Literal["beginner", "intermediate", "advanced", "expert"]

_SCORE_FIELDS = ("skills_score", "experience_score", "education_score", "overall_score")


class ExtractedSkill(BaseModel):
    name: str = Field(min_length=1)
    proficiency: Proficiency

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("skill name must not be blank")
        return value

    @field_validator("proficiency", mode="before")
    @classmethod
    def _normalize_proficiency(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value


class CandidateAnalysis(BaseModel):
    skills_score: int = Field(ge=0, le=100)
    experience_score: int = Field(ge=0, le=100)
    education_score: int = Field(ge=0, le=100)
    overall_score: int = Field(ge=0, le=100)
    skills: List[ExtractedSkill]
    recommendations: str
    summary: str
    experience_details: str
    education_details: str

    @field_validator(*_SCORE_FIELDS, mode="before")
    @classmethod
    def _require_numeric_score(cls, value):
        # "80" would otherwise be coerced; the contract asks for integers
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError("score must be a number")
        return value

    def unique_skills(self) -> List[ExtractedSkill]:
        """Skills with case-insensitive duplicates removed, first occurrence wins."""
        seen = set()
        unique = []
        for skill in self.skills:
            key = skill.name.lower()
            if key in seen:
                continue
            seen.add(key)
            unique.append(skill)
        return unique
