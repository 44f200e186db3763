"""Text templates: assistant prompts, pull-request and issue bodies."""

from hexguard.templates.base import TemplateError, TextTemplate

__all__ = ["TemplateError", "TextTemplate"]
