from sqlalchemy import Column, Integer, String, TIMESTAMP, func

from .base import Base, JsonType, utcnow


class AppSetting(Base):
    """Runtime-editable settings, e.g. 'notification_threshold'."""
    __tablename__ = 'app_settings'

    id = Column(Integer, primary_key=True, autoincrement=True)
    setting_key = Column(String(255), unique=True, nullable=False, index=True)
    setting_value = Column(JsonType, nullable=False, default=dict)
    updated_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow, server_default=func.now(), onupdate=utcnow)
