"""
Jinja2 Template Configuration

Page templates are rendered from the per-request ``tplVars`` mapping.
"""

from typing import Any, Dict

from fastapi import Request
from fastapi.templating import Jinja2Templates
from jinja2 import TemplateError as JinjaTemplateError
from starlette.responses import Response

from apv.core.exceptions import TemplateError
from apv.core.logging import get_logger

logger = get_logger("apv.templating")


class TemplateVars(dict):
    """
    Per-request mapping of template variable names to display values.

    Created empty at request start, filled key by key (last write wins)
    and handed to the template engine as its context.
    """

    def set(self, name: str, value: Any) -> "TemplateVars":
        self[name] = value
        return self


class TemplateEngine:
    """Thin wrapper over Jinja2Templates that renders with tplVars"""

    def __init__(self, directory: str):
        self.directory = directory
        self.templates = Jinja2Templates(directory=directory)

    def render(
        self,
        request: Request,
        name: str,
        tpl_vars: Dict[str, Any],
        status_code: int = 200,
    ) -> Response:
        try:
            # Fail on missing templates before the response starts
            self.templates.get_template(name)
            return self.templates.TemplateResponse(
                request, name, dict(tpl_vars), status_code=status_code
            )
        except JinjaTemplateError as e:
            logger.error(f"Cannot render template {name}", exception=e, template=name)
            raise TemplateError(message=f"Cannot render template '{name}'", template=name) from e


def get_templates(request: Request) -> TemplateEngine:
    return request.app.state.templates
