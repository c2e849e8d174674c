"""
OpenAI Service - candidate classification over an OpenAI-compatible API.

Forces the analyze_candidate function call and parses its arguments.
"""
from typing import Dict, Any, List, Optional
import logging

import openai
from openai import OpenAI
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity import RetryCallState

from core.errors import UpstreamServiceError
from core.llm.interfaces import ClassificationProvider
from core.llm.response_parser import extract_tool_arguments, parse_candidate_analysis
from core.llm.schema_models import (
    ANALYZE_CANDIDATE_TOOL,
    ANALYZE_CANDIDATE_TOOL_NAME,
    CandidateAnalysis,
)
from core.llm.system_prompts import (
    CANDIDATE_ANALYSIS_SYSTEM_PROMPT,
    build_candidate_analysis_prompt,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Retry helpers
# ---------------------------------------------------------------------------

RETRYABLE_ERRORS = (
    openai.RateLimitError,
    openai.APITimeoutError,
    openai.APIConnectionError,
    openai.InternalServerError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log a warning before each retry sleep."""
    exc = retry_state.outcome.exception()
    wait = retry_state.next_action.sleep if retry_state.next_action else 0
    if isinstance(exc, openai.RateLimitError):
        logger.warning(
            "Rate limit hit (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )
    else:
        logger.warning(
            "Transient API error (attempt %s). Waiting %.1fs before retry. Details: %s",
            retry_state.attempt_number, wait, exc,
        )


def _llm_retry(max_attempts: int = 3, **kwargs):
    """Return a tenacity @retry decorator for classification API calls."""
    return retry(
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        wait=wait_exponential(multiplier=1, min=2, max=30),
        stop=stop_after_attempt(max_attempts),
        before_sleep=_log_retry,
        reraise=True,
        **kwargs,
    )


class OpenAIService(ClassificationProvider):
    """
    OpenAI classification service.

    The SDK's own retries are disabled; transient failures are retried here
    with exponential backoff, bounded by max_attempts. Each HTTP call is
    bounded by request_timeout_seconds.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: str = "gpt-4o-mini",
        temperature: float = 0.0,
        request_timeout_seconds: float = 60.0,
        max_attempts: int = 3,
    ):
        client_kwargs: Dict[str, Any] = {
            'timeout': request_timeout_seconds,
            'max_retries': 0,
        }
        if api_key:
            client_kwargs['api_key'] = api_key
        if base_url:
            client_kwargs['base_url'] = base_url

        self.client = OpenAI(**client_kwargs)
        self.model = model
        self.temperature = temperature
        self.max_attempts = max_attempts

    def _create_completion(self, messages: List[Dict[str, str]]):
        return self.client.chat.completions.create(
            model=self.model,
            messages=messages,
            temperature=self.temperature,
            tools=[ANALYZE_CANDIDATE_TOOL],
            tool_choice={"type": "function", "function": {"name": ANALYZE_CANDIDATE_TOOL_NAME}},
        )

    def classify_candidate(self, resume_text: str, cover_letter: Optional[str] = None) -> CandidateAnalysis:
        messages = [
            {"role": "system", "content": CANDIDATE_ANALYSIS_SYSTEM_PROMPT},
            {"role": "user", "content": build_candidate_analysis_prompt(resume_text, cover_letter)},
        ]

        create = _llm_retry(self.max_attempts)(self._create_completion)
        try:
            response = create(messages)
        except openai.APIStatusError as e:
            logger.error(f"Classification service returned {e.status_code}: {e}")
            raise UpstreamServiceError(f"Classification service returned {e.status_code}") from e
        except openai.APIError as e:
            # Timeouts and connection failures after retries are exhausted
            logger.error(f"Classification service unavailable: {e}")
            raise UpstreamServiceError(f"Classification service unavailable: {e}") from e

        raw_arguments = extract_tool_arguments(response, ANALYZE_CANDIDATE_TOOL_NAME)
        analysis = parse_candidate_analysis(raw_arguments)

        logger.info(
            f"Classification complete ({self.model}): overall={analysis.overall_score}, "
            f"skills={len(analysis.skills)}"
        )
        return analysis
