#!/usr/bin/env python3
"""
Request models for API endpoints.

Bodies use camelCase keys; snake_case names are accepted too.
"""

from uuid import UUID
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class AnalysisRequest(BaseModel):
    """Request to analyze one application."""
    model_config = ConfigDict(populate_by_name=True)

    application_id: UUID = Field(..., alias="applicationId")
    resume_text: str = Field(..., alias="resumeText", description="Plain-text resume")
    cover_letter: Optional[str] = Field(None, alias="coverLetter")


class MatchRequest(BaseModel):
    """Request to score analyzed applications against a job requirement."""
    model_config = ConfigDict(populate_by_name=True)

    job_requirement_id: UUID = Field(..., alias="jobRequirementId")
    application_ids: Optional[List[UUID]] = Field(
        None,
        alias="applicationIds",
        description="Restrict scoring to these applications; defaults to every analyzed application for the role"
    )


class RetryRequest(BaseModel):
    """Request to retry a failed notification."""
    model_config = ConfigDict(populate_by_name=True)

    notification_id: UUID = Field(..., alias="notificationId")


class StatusChangeRequest(BaseModel):
    """Notify the candidate and staff that an application changed status."""
    model_config = ConfigDict(populate_by_name=True)

    application_id: UUID = Field(..., alias="applicationId")
    new_status: str = Field(..., alias="newStatus")
    old_status: Optional[str] = Field(None, alias="oldStatus")
