"""Candidate analysis: claim, classify, persist, notify."""
from core.analysis.orchestrator import AnalysisOrchestrator

__all__ = ['AnalysisOrchestrator']
