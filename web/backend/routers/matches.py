#!/usr/bin/env python3
"""
Match endpoints - score analyzed applications against a job requirement.
"""

from fastapi import APIRouter, Depends

from core.matcher.service import MatchService
from ..dependencies import get_match_service
from ..models.requests import MatchRequest
from ..models.responses import MatchBatchResponse

router = APIRouter(prefix="/api/matches", tags=["matches"])


@router.post("", response_model=MatchBatchResponse)
def match_candidates(
    request: MatchRequest,
    match_service: MatchService = Depends(get_match_service)
):
    """
    Score every analyzed application for the requirement's role (or the
    given subset), store the results and notify high scorers.
    """
    return match_service.match_candidates(
        request.job_requirement_id,
        application_ids=request.application_ids,
    )
