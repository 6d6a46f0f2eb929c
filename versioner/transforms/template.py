#!/usr/bin/env python3
"""Template rendering for configured rule strings using Jinja2.

Rules declared in YAML configuration parameterize their find patterns,
replacements and globs with the version token and module name:

Example:
    >>> renderer = TemplateRenderer(version="ABI45_0_0", module="expo-updates")
    >>> renderer.render("import {{ version }}.host.exp.expoview.R;")
    'import ABI45_0_0.host.exp.expoview.R;'
"""

from typing import Any, Dict, Optional

import jinja2

from versioner.core.constants import ErrorCode
from versioner.transforms.base import TransformError


class TemplateRenderer:
    """Renders Jinja2 template strings with a fixed context.

    Undefined variables are errors, so a typo in a configured rule fails
    the build instead of producing an empty replacement.
    """

    def __init__(self, context: Optional[Dict[str, Any]] = None, name: str = "template", **variables):
        """Initialize renderer.

        Args:
            context: Template context variables
            name: Name reported in errors
            **variables: Extra context variables
        """
        self.name = name
        self._context = dict(context or {})
        self._context.update(variables)
        self._env = jinja2.Environment(
            undefined=jinja2.StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
        )

    @property
    def context(self) -> Dict[str, Any]:
        return self._context.copy()

    def render(self, template_str: str, **extra) -> str:
        """Render one template string.

        Raises:
            TransformError: If the template is invalid or uses an undefined variable
        """
        if "{{" not in template_str and "{%" not in template_str:
            return template_str

        context = self._context.copy()
        context.update(extra)
        try:
            return self._env.from_string(template_str).render(**context)
        except jinja2.TemplateSyntaxError as e:
            raise TransformError(
                f"Invalid template {template_str!r}: {e}", self.name, ErrorCode.INVALID_INPUT
            )
        except jinja2.UndefinedError as e:
            raise TransformError(
                f"Undefined variable in template {template_str!r}: {e}",
                self.name,
                ErrorCode.INVALID_INPUT,
            )


def render_template(template_str: str, **context) -> str:
    """Render a single template string with the given context."""
    return TemplateRenderer(context).render(template_str)
