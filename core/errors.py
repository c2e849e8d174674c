"""
Pipeline error taxonomy.

Every failure the pipeline reports to a caller is one of these. The web layer
maps them onto the {success: false, error, type} envelope.
"""


class PipelineError(Exception):
    """Base exception for pipeline errors."""
    pass


class ValidationError(PipelineError):
    """A required request field is missing or malformed. Raised before any mutation."""
    pass


class NotFoundError(PipelineError):
    """A referenced entity does not exist."""
    pass


class UpstreamServiceError(PipelineError):
    """The classification service or email provider failed, timed out, or was unreachable."""
    pass


class ParseError(PipelineError):
    """The classification response held no usable structured result."""
    pass


class PersistenceError(PipelineError):
    """A write to the relational store failed."""
    pass


class InvalidTransition(PipelineError):
    """An event was applied to a state that does not accept it."""

    def __init__(self, state, event):
        self.state = state
        self.event = event
        super().__init__(f"Cannot apply {getattr(event, 'value', event)} to state {getattr(state, 'value', state)}")


class AnalysisInProgress(PipelineError):
    """Another worker currently holds the analysis claim for this application."""
    pass


class TemplateRenderError(PipelineError):
    """A template referenced tokens with no binding while strict rendering was on."""

    def __init__(self, template_key: str, tokens):
        self.template_key = template_key
        self.tokens = sorted(set(tokens))
        super().__init__(
            f"Template '{template_key}' has unresolved tokens: {', '.join(self.tokens)}"
        )
