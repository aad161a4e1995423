"""
Template placeholder rendering.

Templates carry ``{{identifier}}`` tokens (identifier = word characters).
Rendering substitutes each token whose key is present in the data map and
leaves every other token exactly as written, so a template can be rendered
again later with more data.

Usage:
    from notifications.rendering import render

    render("Hi {{username}}, order {{order_id}}", {"username": "Ada"})
    # -> "Hi Ada, order {{order_id}}"
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from notifications.models import NotificationTemplate

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")


def render(content: str, data: Mapping[str, Any] | None) -> str:
    """
    Substitute ``{{key}}`` tokens in content with values from data.

    A key that is missing, or whose value is None, keeps its token verbatim.
    Other values are inserted with ``str()``.
    """
    if not content:
        return content or ""
    if not data:
        return content

    def substitute(match: re.Match) -> str:
        value = data.get(match.group(1))
        if value is None:
            return match.group(0)
        return str(value)

    return PLACEHOLDER_PATTERN.sub(substitute, content)


def render_template(
    template: NotificationTemplate,
    data: Mapping[str, Any] | None,
) -> tuple[str, str]:
    """Render a template's subject and content, returning (subject, content)."""
    return render(template.subject, data), render(template.content, data)
