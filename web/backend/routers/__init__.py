"""API route handlers."""

from .analysis import router as analysis_router
from .matches import router as matches_router
from .notifications import router as notifications_router
from .reminders import router as reminders_router
