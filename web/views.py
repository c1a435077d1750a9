"""
web/views.py -- Jinja2 template rendering shared by the routes and the auth gate.

Views (web/templates/):
  login.html         -- login form, optional error_message
  index.html         -- home page for authenticated users
  addUser.html       -- add-user form, optional error_message
  displayUsers.html  -- user table, optional error_message
  test.html          -- diagnostic page, optional name
"""

from pathlib import Path

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))


def render(request: Request, view: str, data: dict | None = None, status_code: int = 200) -> HTMLResponse:
    """Render web/templates/<view>.html with data as the template context."""
    return templates.TemplateResponse(request, f"{view}.html", data or {}, status_code=status_code)
