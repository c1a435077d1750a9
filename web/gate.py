"""
web/gate.py -- The single authorization check for every request.

Each route declares its access level when it is registered:

    @router.get("/", openapi_extra=PUBLIC)
    @router.get("/users", openapi_extra=PROTECTED)

openapi_extra is the carrier. The gate is built from the declaring router's
own routes (make_auth_gate(web_router.routes + mounts)), so it does not
depend on how include_router() lays routes out inside the app. Routes that
declare nothing are protected. Static mounts are public.

The gate runs once per request, before dispatch:
  1. Load the Session from the cookie and park it on request.state.session.
  2. Resolve the request against the access table.
  3. Public route -> pass through.
     Anything else -> pass through only if the session is logged in,
     otherwise answer with the login view directly. No redirect; the
     intended handler never runs.

A path that matches no route counts as protected, so anonymous visitors get
the login view and logged-in visitors get the normal 404.

The gate never mutates the session.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from enum import Enum

from fastapi import Request
from starlette.concurrency import run_in_threadpool
from starlette.routing import BaseRoute, Match, Mount

from auth.dependencies import get_session
from web.views import render

logger = logging.getLogger("userdir.web")

ACCESS_KEY = "x-access"


class Access(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"


PUBLIC = {ACCESS_KEY: Access.PUBLIC.value}
PROTECTED = {ACCESS_KEY: Access.PROTECTED.value}

DENIED_MESSAGE = "Please log in to access this page"


def route_access(routes: Sequence[BaseRoute], request: Request) -> Access:
    """Return the declared access level of the route this request would hit.

    A PARTIAL match (right path, wrong method) still uses that route's level,
    so the framework's 405 reaches callers allowed to see the path.
    """
    partial: Access | None = None
    for route in routes:
        match, _ = route.matches(request.scope)
        if match == Match.NONE:
            continue
        if isinstance(route, Mount):
            level = Access.PUBLIC
        else:
            declared = (getattr(route, "openapi_extra", None) or {}).get(ACCESS_KEY)
            level = Access(declared) if declared else Access.PROTECTED
        if match == Match.FULL:
            return level
        if partial is None:
            partial = level
    return partial or Access.PROTECTED


def make_auth_gate(routes: Iterable[BaseRoute]):
    """Build the HTTP middleware that checks requests against ``routes``.

    ``routes`` is the access table: the declaring routers' own route objects
    plus any static mounts. The app's top-level route list is not consulted.
    """
    table = list(routes)

    async def auth_gate(request: Request, call_next):
        """Allow public routes, require login everywhere else."""
        session = await run_in_threadpool(get_session, request)
        if route_access(table, request) is Access.PUBLIC or session.is_logged_in:
            return await call_next(request)
        logger.debug("Denied anonymous %s %s", request.method, request.url.path)
        return render(request, "login", {"error_message": DENIED_MESSAGE})

    return auth_gate
