"""
Template Resolver

Renders a notification subject and HTML body from the active
email_templates row for a key, or from the built-in default when no
active row exists.

Substitution is a single pass over the template with an explicit
token -> value mapping, so a value that itself contains "{{x}}" is never
expanded a second time. Tokens without a binding are logged and removed
(or rejected in strict mode); the output never contains an unresolved
{{token}}.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from core.errors import TemplateRenderError
from database.uow import recruitment_uow
from notification.message_builder import NotificationMessageBuilder, RAW_HTML_TOKENS, escape_html_value

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{\s*([^{}]*?)\s*\}\}")


@dataclass(frozen=True)
class RenderedMessage:
    subject: str
    html: str
    template_key: str
    used_default: bool
    unresolved: Tuple[str, ...] = field(default_factory=tuple)


def substitute(
    template: str,
    variables: Mapping[str, Any],
    escape_html: bool = True,
    raw_tokens: frozenset = RAW_HTML_TOKENS,
) -> Tuple[str, List[str]]:
    """Replace every {{token}} in one pass. Returns (text, unresolved token names)."""
    unresolved: List[str] = []

    def _replace(match: re.Match) -> str:
        token = match.group(1)
        if token not in variables:
            unresolved.append(token)
            return ""
        value = variables[token]
        text = "" if value is None else str(value)
        if token in raw_tokens:
            return text
        if escape_html:
            return escape_html_value(text)
        # Plain text: a value must not smuggle a token into the output
        while "{{" in text:
            text = text.replace("{{", "{")
        return text

    return TOKEN_PATTERN.sub(_replace, template or ""), unresolved


class TemplateResolver:
    """Resolve templates from the store and render them."""

    def __init__(self, session_factory=None, strict: bool = False):
        self.session_factory = session_factory
        self.strict = strict

    def render(self, notification_type: str, variables: Mapping[str, Any]) -> RenderedMessage:
        template_key = NotificationMessageBuilder.template_key_for(notification_type)

        with recruitment_uow(self.session_factory) as repo:
            template = repo.notifications.get_active_template(template_key)
            stored = (template.subject_template, template.html_template) if template else None

        if stored is None:
            default = NotificationMessageBuilder.default_template(template_key)
            return self.render_text(template_key, default['subject'], default['html'], variables, used_default=True)

        return self.render_text(template_key, stored[0], stored[1], variables, used_default=False)

    def render_text(
        self,
        template_key: str,
        subject_template: str,
        html_template: str,
        variables: Mapping[str, Any],
        used_default: bool = False,
    ) -> RenderedMessage:
        # Subject is a plain-text header, so no HTML escaping there
        subject, subject_missing = substitute(subject_template, variables, escape_html=False)
        body, body_missing = substitute(html_template, variables, escape_html=True)
        unresolved = tuple(dict.fromkeys(subject_missing + body_missing))

        if unresolved:
            if self.strict:
                raise TemplateRenderError(template_key, unresolved)
            logger.warning(
                f"Template '{template_key}' had unresolved tokens, removed: {', '.join(unresolved)}"
            )

        return RenderedMessage(
            subject=subject.strip(),
            html=body,
            template_key=template_key,
            used_default=used_default,
            unresolved=unresolved,
        )
