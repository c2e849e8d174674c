import uuid

from sqlalchemy import Column, Text, Integer, TIMESTAMP, ForeignKey, CheckConstraint, Index, Uuid, func
from sqlalchemy.orm import relationship

from .base import Base, JsonType, utcnow

PROFICIENCY_LEVELS = ('beginner', 'intermediate', 'advanced', 'expert')


class AnalysisResult(Base):
    """
    Classification scores for one application.

    At most one row per application: written only by upsert on
    application_id, so re-analysis replaces the previous result wholesale.
    """
    __tablename__ = 'ai_analysis'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid, ForeignKey('applications.id', ondelete='CASCADE'), nullable=False, unique=True)
    skills_score = Column(Integer, nullable=False)
    experience_score = Column(Integer, nullable=False)
    education_score = Column(Integer, nullable=False)
    overall_score = Column(Integer, nullable=False)
    recommendations = Column(Text)
    # summary, experience_details, education_details, raw_response
    analysis_summary = Column(JsonType, default=dict)
    analyzed_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    application = relationship("Application", back_populates="analysis")

    __table_args__ = (
        CheckConstraint('skills_score BETWEEN 0 AND 100', name='ck_ai_analysis_skills_score'),
        CheckConstraint('experience_score BETWEEN 0 AND 100', name='ck_ai_analysis_experience_score'),
        CheckConstraint('education_score BETWEEN 0 AND 100', name='ck_ai_analysis_education_score'),
        CheckConstraint('overall_score BETWEEN 0 AND 100', name='ck_ai_analysis_overall_score'),
    )


class Skill(Base):
    """A skill extracted from an application. Replaced as a set on each analysis."""
    __tablename__ = 'skills'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid, ForeignKey('applications.id', ondelete='CASCADE'), nullable=False)
    skill_name = Column(Text, nullable=False)
    proficiency_level = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    application = relationship("Application", back_populates="skills")

    __table_args__ = (
        Index('idx_skills_application', 'application_id'),
    )
