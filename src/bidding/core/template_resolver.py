"""Boilerplate lookup for outline chapter titles.

Titles are compared after removing all whitespace and case-folding.
Rules are tested in order; the first whose keyword occurs in the title
wins. New templates are added by dropping a file into the template
library and appending a rule here.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

import structlog

from bidding.templates.registry import get_template

logger = structlog.get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class TemplateRule:
    """Maps any of several title keywords to one template id."""

    template_id: str
    keywords: tuple[str, ...]

    def matches(self, normalized_title: str) -> bool:
        return any(_normalize_title(k) in normalized_title for k in self.keywords)


TEMPLATE_RULES: tuple[TemplateRule, ...] = (
    # "投标涵" is a common misspelling in tender documents
    TemplateRule("bid_letter", ("投标函", "投标涵")),
    TemplateRule("power_of_attorney", ("授权委托书", "委托书")),
)


def _normalize_title(title: str) -> str:
    return _WHITESPACE.sub("", title).casefold()


def match_template_id(
    title: str, rules: tuple[TemplateRule, ...] = TEMPLATE_RULES
) -> str | None:
    """Return the id of the first rule matching title, or None."""
    normalized = _normalize_title(title or "")
    if not normalized:
        return None

    for rule in rules:
        if rule.matches(normalized):
            return rule.template_id
    return None


def resolve_template(title: str, rules: tuple[TemplateRule, ...] = TEMPLATE_RULES) -> str:
    """Return boilerplate text for a chapter title, or "" when none applies."""
    template_id = match_template_id(title, rules)
    if template_id is None:
        return ""

    logger.debug("template_resolver.matched", title=title, template_id=template_id)
    return get_template(template_id)
