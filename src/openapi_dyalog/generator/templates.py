"""
Template engine wrapper for code generation.

Renders Jinja2 templates with the rendering contexts the compiler builds.
Templates are looked up in an optional override directory first, then in
the templates shipped with the package.
"""

import logging
from pathlib import Path

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateError as JinjaTemplateError,
    TemplateNotFound,
)
from pydantic import BaseModel

from openapi_dyalog.compiler.naming import camel_case, comment_lines, pascal_case, sanitize, snake_case
from openapi_dyalog.compiler.paths import apl_string

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).parent.parent / "templates"
TEMPLATE_SUFFIX = ".j2"


class TemplateError(Exception):
    """Exception raised for template-related errors."""

    pass


def template_variables(context: BaseModel) -> dict:
    """Flatten a rendering context into template variables.

    Custom entries are merged at top level under snake_case keys and win
    over context fields of the same name.
    """
    variables = context.model_dump()
    for key, value in variables.pop("custom", {}).items():
        variables[snake_case(key) or key] = value
    return variables


class TemplateEngine:
    """Wrapper for the Jinja2 environment used to render generated files."""

    def __init__(self, template_dir: Path | None = None):
        """
        Initialize template engine.

        Args:
            template_dir: Directory whose templates override the packaged ones
        """
        self.template_dir = template_dir
        loaders = []
        if template_dir is not None:
            if not template_dir.is_dir():
                raise TemplateError(f"Template directory not found: {template_dir}")
            loaders.append(FileSystemLoader(str(template_dir)))
        loaders.append(FileSystemLoader(str(TEMPLATES_DIR)))

        self._env = Environment(
            loader=ChoiceLoader(loaders),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )
        self._env.filters["comment_lines"] = comment_lines
        self._env.filters["camel_case"] = camel_case
        self._env.filters["pascal_case"] = pascal_case
        self._env.filters["sanitize"] = sanitize
        self._env.filters["apl_string"] = apl_string
        self._env.globals["comment_lines"] = comment_lines

    def list_templates(self) -> list[str]:
        """Names of every template available to this engine."""
        return sorted(
            name for name in self._env.list_templates()
            if name.endswith(TEMPLATE_SUFFIX)
        )

    def template_exists(self, template_name: str) -> bool:
        try:
            self._env.get_template(template_name)
        except TemplateNotFound:
            return False
        return True

    def render(self, template_name: str, context: BaseModel) -> str:
        """
        Render a template with a rendering context.

        Args:
            template_name: Template path relative to the template directories
            context: Document, operation, or model context

        Returns:
            Rendered content
        """
        try:
            template = self._env.get_template(template_name)
            return template.render(**template_variables(context))
        except TemplateNotFound as e:
            raise TemplateError(f"Template not found: {template_name}") from e
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template {template_name}: {e}") from e

    def render_string(self, source: str, context: BaseModel) -> str:
        """Render template source held in memory."""
        try:
            return self._env.from_string(source).render(**template_variables(context))
        except JinjaTemplateError as e:
            raise TemplateError(f"Failed to render template string: {e}") from e


def save_output(content: str, output_path: Path) -> bool:
    """Write content to a file unless it already holds exactly that content.

    Returns True when the file was written.
    """
    if output_path.exists() and output_path.read_text(encoding="utf-8") == content:
        return False
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    return True
