"""Kida environment setup.

The environment is created once while the app freezes and shared,
read-only, by every request.
"""

from pathlib import PurePath

from kida import Environment, FileSystemLoader

from waypoint.config import AppConfig
from waypoint.templating.returns import Template


def create_environment(config: AppConfig) -> Environment:
    """Create a kida Environment rooted at ``config.template_dir``."""
    return Environment(
        loader=FileSystemLoader(str(config.template_dir)),
        autoescape=config.autoescape,
    )


def template_filename(name: str, extension: str) -> str:
    """``"index"`` -> ``"index.html"``; names with a suffix are kept."""
    if PurePath(name).suffix or not extension:
        return name
    return name + (extension if extension.startswith(".") else f".{extension}")


def render_template(env: Environment, tpl: Template, extension: str = "") -> str:
    """Render a full template to a string."""
    template = env.get_template(template_filename(tpl.name, extension))
    return template.render(tpl.context)
