from pathlib import Path

from fastapi import Request
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates

from app.core.config import settings
from app.utils.flash import flash, get_flashed_messages

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.globals["get_flashed_messages"] = get_flashed_messages
templates.env.globals["project_name"] = settings.PROJECT_NAME


def render(request: Request, name: str, context: dict = None, status_code: int = 200):
    ctx = {
        "current_user": getattr(request.state, "user_context", None),
        "errors": {},
        "form": {},
    }
    ctx.update(context or {})
    return templates.TemplateResponse(request, name, ctx, status_code=status_code)


def redirect(request: Request, url: str, message: str = None, category: str = "info") -> RedirectResponse:
    """303 redirect, optionally queueing a flash message first."""
    if message:
        flash(request, message, category)
    return RedirectResponse(url, status_code=303)
