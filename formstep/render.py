from __future__ import annotations
import os
from pathlib import Path
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .app import Response
from .csrf import ensure_token

def _resolve_views_path() -> Path:
    """Prefer ./app/views, then ./views. Allow override via FORMSTEP_VIEWS."""
    if os.getenv("FORMSTEP_VIEWS"):
        return Path(os.getenv("FORMSTEP_VIEWS")).resolve()
    base = Path(os.getenv("FORMSTEP_BASE", Path.cwd()))
    for candidate in (base / "app" / "views", base / "views"):
        if candidate.exists():
            return candidate.resolve()
    # default fallback even if missing (Jinja will error on missing template)
    return (base / "app" / "views").resolve()


def template_file(name: str) -> str:
    """'step1' -> 'step1.html'; names that already carry a suffix are left alone."""
    return name if Path(name).suffix else f"{name}.html"


class TemplateRenderer:
    def __init__(self, views_path: str | Path | None = None):
        self.views_path = Path(views_path).resolve() if views_path else None
        self._env = None

    @property
    def env(self) -> Environment:
        if self._env is None:
            self._env = Environment(
                loader=FileSystemLoader(str(self.views_path or _resolve_views_path())),
                autoescape=select_autoescape(["html", "xml"]),
                auto_reload=True,  # fine for dev; Jinja caches in prod anyway
                enable_async=False,
            )
        return self._env

    def render(self, req, template: str, payload: dict) -> Response:
        """
        Render with request context:
        - Ensures a CSRF token exists in the session
        Exposes `csrf` plus every payload key to the template.
        """
        csrf = ensure_token(req)
        html = self.env.get_template(template_file(template)).render(csrf=csrf, **payload)
        return Response.html(html)


_default = None

def default_renderer() -> TemplateRenderer:
    global _default
    if _default is None:
        _default = TemplateRenderer()
    return _default
