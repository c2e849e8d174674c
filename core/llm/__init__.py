"""LLM Module - classification services and interfaces."""
from core.llm.interfaces import ClassificationProvider
from core.llm.openai_service import OpenAIService
from core.llm.schema_models import CandidateAnalysis

__all__ = ['ClassificationProvider', 'OpenAIService', 'CandidateAnalysis']
