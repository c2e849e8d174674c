import uuid

from sqlalchemy import Column, Text, TIMESTAMP, ForeignKey, Index, Uuid, func
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Candidate(Base):
    """
    A person who applied. Owned by the intake side; read-only here.
    """
    __tablename__ = 'candidates'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    phone = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    applications = relationship("Application", back_populates="candidate")


class Application(Base):
    """
    One candidate's application to one job role.

    status is only written through core.state transitions, applied with a
    compare-and-swap UPDATE. analysis_claimed_at records when the current
    'analyzing' claim was taken so abandoned claims can be reclaimed.
    """
    __tablename__ = 'applications'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    candidate_id = Column(Uuid, ForeignKey('candidates.id', ondelete='CASCADE'), nullable=False)
    job_role = Column(Text)
    cover_letter = Column(Text)
    status = Column(Text, nullable=False, default='pending')
    analysis_claimed_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)

    candidate = relationship("Candidate", back_populates="applications")
    analysis = relationship("AnalysisResult", back_populates="application", uselist=False)
    skills = relationship("Skill", back_populates="application")

    __table_args__ = (
        Index('idx_applications_status_updated', 'status', 'updated_at'),
        Index('idx_applications_job_role', 'job_role'),
    )


class StaffMember(Base):
    """
    Recruitment staff. Reminders and recruiter alerts go to the admin and
    recruiter roles.
    """
    __tablename__ = 'staff_members'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, nullable=False, unique=True)
    full_name = Column(Text)
    role = Column(Text, nullable=False, default='viewer')
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        Index('idx_staff_members_role', 'role'),
    )
