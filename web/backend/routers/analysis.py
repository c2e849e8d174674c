#!/usr/bin/env python3
"""
Analysis endpoints - evaluate one application.
"""

from fastapi import APIRouter, Depends

from core.analysis.orchestrator import AnalysisOrchestrator
from ..dependencies import get_orchestrator
from ..models.requests import AnalysisRequest
from ..models.responses import AnalysisResponse

router = APIRouter(prefix="/api/analysis", tags=["analysis"])


@router.post("", response_model=AnalysisResponse)
def analyze_application(
    request: AnalysisRequest,
    orchestrator: AnalysisOrchestrator = Depends(get_orchestrator)
):
    """
    Classify the resume, store scores and skills, and email the candidate.

    The application must not already be under analysis (409).
    """
    return orchestrator.analyze(
        request.application_id,
        request.resume_text,
        request.cover_letter,
    )
