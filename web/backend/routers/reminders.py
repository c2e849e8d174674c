#!/usr/bin/env python3
"""
Reminder endpoints - trigger the interview reminder sweep.
"""

from fastapi import APIRouter, Depends

from pipeline.reminders import ReminderScheduler
from ..dependencies import get_reminder_scheduler
from ..models.responses import SweepResponse

router = APIRouter(prefix="/api/reminders", tags=["reminders"])


@router.post("/sweep", response_model=SweepResponse)
def run_reminder_sweep(
    scheduler: ReminderScheduler = Depends(get_reminder_scheduler)
):
    """Remind staff about applications stuck awaiting an interview."""
    return scheduler.run_sweep().to_response()
