import uuid

from sqlalchemy import Column, Text, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, Index, Uuid, func

from .base import Base, JsonType, utcnow


class JobRequirement(Base):
    """
    What a job role asks for. weights, when set, overrides the configured
    skills/experience/education weights for this requirement only.
    """
    __tablename__ = 'job_requirements'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_role = Column(Text, nullable=False, unique=True)
    required_skills = Column(JsonType, nullable=False, default=list)
    preferred_skills = Column(JsonType, nullable=False, default=list)
    min_experience_years = Column(Integer)
    education_level = Column(Text)
    description = Column(Text)
    weights = Column(JsonType)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)


class MatchResult(Base):
    """
    Score of one application against one job requirement.

    Unique per (application, requirement); a new batch run replaces the row.
    match_details: recommendation, strengths, missing_skills, gaps,
    matched_required_skills, matched_preferred_skills.
    """
    __tablename__ = 'candidate_job_matches'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid, ForeignKey('applications.id', ondelete='CASCADE'), nullable=False)
    job_requirement_id = Column(Uuid, ForeignKey('job_requirements.id', ondelete='CASCADE'), nullable=False)
    match_score = Column(Integer, nullable=False)
    skills_match = Column(Integer, nullable=False)
    experience_match = Column(Integer, nullable=False)
    education_match = Column(Integer, nullable=False)
    match_details = Column(JsonType, default=dict)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        UniqueConstraint('application_id', 'job_requirement_id', name='uq_candidate_job_match'),
        Index('idx_candidate_job_matches_score', 'job_requirement_id', 'match_score'),
    )
