"""
Jinja2 template renderer for admin pages and field controls.

Templates load from the package's templates/ directory; a project
directory, when configured, is searched first so individual templates can
be overridden. Each Admin owns its environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)

from adminforge.core.errors import ConfigurationError
from adminforge.core.fields import FieldKind

# Template directory
TEMPLATES_DIR = Path(__file__).parent.parent / "templates"

PAGE_TEMPLATES = ("layout.html", "index.html", "login.html", "list.html", "edit.html")

REQUIRED_TEMPLATES = (
    *PAGE_TEMPLATES,
    "fields/cell.html",
    *(f"fields/{kind.value}.html" for kind in FieldKind),
)


def _truncate_filter(value: Any, length: int = 60) -> str:
    """Truncate text to a given length."""
    if value is None:
        return ""
    text = str(value)
    if len(text) <= length:
        return text
    return text[: length - 1].rstrip() + "…"


def create_jinja_env(project_templates_dir: Path | None = None) -> Environment:
    """
    Create a Jinja2 environment for admin templates.

    Args:
        project_templates_dir: Optional directory whose templates take
            precedence over the built-in ones
    """
    loaders = [FileSystemLoader(str(TEMPLATES_DIR))]
    if project_templates_dir is not None:
        loaders.insert(0, FileSystemLoader(str(project_templates_dir)))

    env = Environment(
        loader=ChoiceLoader(loaders),
        autoescape=select_autoescape(["html"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["truncate_text"] = _truncate_filter
    return env


def configure_templates(project_templates_dir: Path | None = None) -> Environment:
    """
    Build an environment and check that every required template loads.

    Called from ``setup``; the result belongs to that Admin alone.

    Raises:
        ConfigurationError: a project directory is missing, or a required
            template is missing or has a syntax error
    """
    if project_templates_dir is not None and not project_templates_dir.is_dir():
        raise ConfigurationError(f"Templates directory not found: {project_templates_dir}")

    env = create_jinja_env(project_templates_dir)
    for name in REQUIRED_TEMPLATES:
        try:
            env.get_template(name)
        except TemplateNotFound:
            raise ConfigurationError(f"Template not found: {name}") from None
        except TemplateSyntaxError as exc:
            raise ConfigurationError(f"Template {name} line {exc.lineno}: {exc.message}") from exc

    return env


def render_page(env: Environment, template: str, **context: Any) -> str:
    """Render a page template with the given variables."""
    return env.get_template(template).render(**context)
