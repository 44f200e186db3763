# src/hexguard/templates/base.py
"""Jinja2-based text templating for prompts and reports."""

from collections.abc import Callable
from typing import Any

from jinja2 import StrictUndefined, TemplateSyntaxError, UndefinedError
from jinja2.exceptions import SecurityError
from jinja2.sandbox import SandboxedEnvironment


class TemplateError(Exception):
    """Error in template rendering (including sandbox violations)."""


class TextTemplate:
    """Sandboxed Jinja2 template producing plain text.

    Undefined variables raise instead of rendering empty, and nothing is
    HTML-escaped.

    Example:
        template = TextTemplate("Dependency: {{ dep }}")
        template.render(dep="ash")  # "Dependency: ash"
    """

    def __init__(
        self,
        template_string: str,
        *,
        filters: dict[str, Callable[..., Any]] | None = None,
    ) -> None:
        """Initialize template.

        Args:
            template_string: Jinja2 template string
            filters: Extra Jinja2 filters available to the template

        Raises:
            TemplateError: If template syntax is invalid
        """
        self._env = SandboxedEnvironment(
            undefined=StrictUndefined,
            autoescape=False,
            keep_trailing_newline=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self._env.filters.update(filters or {})
        try:
            self._template = self._env.from_string(template_string)
        except TemplateSyntaxError as e:
            raise TemplateError(f"Invalid template syntax: {e}") from e

    def render(self, **variables: Any) -> str:
        """Render template with variables.

        Raises:
            TemplateError: If rendering fails (undefined variable, sandbox violation)
        """
        try:
            return self._template.render(**variables)
        except UndefinedError as e:
            raise TemplateError(f"Undefined variable: {e}") from e
        except SecurityError as e:
            raise TemplateError(f"Sandbox violation: {e}") from e
