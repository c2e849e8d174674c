import uuid

from sqlalchemy import Column, Text, TIMESTAMP, Boolean, Integer, ForeignKey, CheckConstraint, Index, Uuid, func

from .base import Base, JsonType, utcnow


class NotificationRecord(Base):
    """
    One attempted notification and its retry bookkeeping.

    retry_count only ever grows and never exceeds the configured maximum;
    once status is 'sent' the row is terminal. metadata holds the template
    variables so a retry can re-render the message.
    """
    __tablename__ = 'notification_history'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    notification_type = Column(Text, nullable=False)  # analysis_complete, candidate_match, recruiter_alert, interview_reminder, status_change, status_change_team
    recipient_email = Column(Text, nullable=False)
    recipient_name = Column(Text)
    subject = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='pending')
    error_message = Column(Text)
    # 'metadata' is reserved on declarative classes
    metadata_ = Column('metadata', JsonType, default=dict)
    retry_count = Column(Integer, nullable=False, default=0)
    last_retry_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        CheckConstraint('retry_count >= 0', name='ck_notification_history_retry_count'),
        Index('idx_notification_history_status', 'status', 'created_at'),
    )


class NotificationTemplate(Base):
    """Editable email template, looked up by template_key. Only active rows are used."""
    __tablename__ = 'email_templates'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    template_key = Column(Text, nullable=False, unique=True)
    template_name = Column(Text, nullable=False)
    subject_template = Column(Text, nullable=False)
    html_template = Column(Text, nullable=False)
    version = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, nullable=False, default=True)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)


class Reminder(Base):
    """
    A reminder emitted for a stale application.

    At most one 'sent' row per (application, reminder_type), enforced by a
    partial unique index so overlapping sweeps cannot both record one.
    """
    __tablename__ = 'reminders'

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    application_id = Column(Uuid, ForeignKey('applications.id', ondelete='CASCADE'), nullable=False)
    reminder_type = Column(Text, nullable=False)
    status = Column(Text, nullable=False, default='pending')
    scheduled_for = Column(TIMESTAMP(timezone=True), nullable=False)
    sent_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now())

    __table_args__ = (
        Index(
            'uq_reminders_sent_per_type',
            'application_id', 'reminder_type',
            unique=True,
            postgresql_where=status == 'sent',
            sqlite_where=status == 'sent',
        ),
    )
