"""
Classification Provider Interface - Abstract base for candidate classification services.

The pipeline depends on this interface only; OpenAIService is the shipped
implementation for any OpenAI-compatible chat-completions endpoint.
"""
from abc import ABC, abstractmethod
from typing import Optional

from core.llm.schema_models import CandidateAnalysis


class ClassificationProvider(ABC):
    """
    Abstract Interface for classification providers.
    """

    @abstractmethod
    def classify_candidate(self, resume_text: str, cover_letter: Optional[str] = None) -> CandidateAnalysis:
        """
        Score a candidate from their resume and optional cover letter.

        Raises:
            UpstreamServiceError: the service was unreachable, timed out, or refused the call
            ParseError: the response carried no usable structured result
        """
        pass
