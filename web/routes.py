"""
web/routes.py -- Jinja2 template routes for the userdir web UI.

Every route declares its access level (PUBLIC / PROTECTED from web.gate).
The gate enforces it before dispatch; handlers only re-check where noted.

Routes:
  GET  /                      -- home if logged in, login form otherwise (public)
  POST /login                 -- check credentials, start session (public)
  GET  /logout                -- destroy session, redirect / (public)
  GET  /addUser               -- add-user form
  POST /addUser               -- validate, save image, insert, redirect /users
  GET  /users                 -- user table
  POST /deleteUser/{user_id}  -- delete by id, redirect /users
  GET  /test                  -- diagnostic page
  GET  /t                     -- diagnostic page without a name

Error surface differs per route on purpose:
  login / addUser  -- repository errors are logged, the client sees a generic message
  users            -- the raw repository error text is shown in the page
  deleteUser       -- the raw repository error is returned as a JSON payload
"""

import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from auth.dependencies import get_session
from auth.models import User
from auth.store import RepositoryError, UserStore
from auth.tokens import authenticate_user, clear_session_cookie, set_session_cookie
from core.uploads import UPLOADS_PREFIX, save_profile_image
from server.models import ErrorDetail, ErrorResponse
from sessions.store import Session
from web.gate import PROTECTED, PUBLIC
from web.views import render

logger = logging.getLogger("userdir.web")

router = APIRouter()

_INVALID_LOGIN = "Invalid login"
_MISSING_FIELDS = "Username and password are required."
_SAVE_FAILED = "Unable to save user. Please try again."


# ---------------------------------------------------------------------------
# GET / -- home
# ---------------------------------------------------------------------------


@router.get("/", response_class=HTMLResponse, openapi_extra=PUBLIC)
def home(request: Request, session: Session = Depends(get_session)) -> HTMLResponse:
    if session.is_logged_in:
        return render(request, "index", {"username": session.username})
    return render(request, "login", {"error_message": ""})


# ---------------------------------------------------------------------------
# Auth routes -- login, logout
# ---------------------------------------------------------------------------


@router.post("/login", response_class=HTMLResponse, openapi_extra=PUBLIC)
def login_post(
    request: Request,
    username: str = Form(default=""),
    password: str = Form(default=""),
    session: Session = Depends(get_session),
):
    """Handle the login form. Database failures look exactly like bad credentials."""
    user_store: UserStore = request.app.state.user_store
    try:
        ok = authenticate_user(user_store, username, password)
    except RepositoryError as exc:
        logger.error("Login error: %s", exc)
        ok = False
    if not ok:
        return render(request, "login", {"error_message": _INVALID_LOGIN})

    session.login(username)
    resp = RedirectResponse("/", status_code=302)
    set_session_cookie(resp, session.session_id)
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/logout", openapi_extra=PUBLIC)
def logout(request: Request, session: Session = Depends(get_session)) -> RedirectResponse:
    """Destroy the session and redirect home. Never fails visibly."""
    try:
        session.destroy()
    except sqlite3.Error as exc:
        logger.error("Session destroy failed: %s", exc)
    resp = RedirectResponse("/", status_code=302)
    clear_session_cookie(resp)
    return resp


# ---------------------------------------------------------------------------
# Add user
# ---------------------------------------------------------------------------


@router.get("/addUser", response_class=HTMLResponse, openapi_extra=PROTECTED)
def add_user_form(request: Request) -> HTMLResponse:
    return render(request, "addUser")


@router.post("/addUser", response_class=HTMLResponse, openapi_extra=PROTECTED)
def add_user_post(
    request: Request,
    username: str = Form(default=""),
    password: str = Form(default=""),
    profile_image: Optional[UploadFile] = File(default=None, alias="profileImage"),
):
    """Validate the form, store the optional image, then insert the row.

    The image is written before the insert. If the insert fails the file stays
    on disk; there is no cleanup.
    """
    if not username or not password:
        return render(request, "addUser", {"error_message": _MISSING_FIELDS}, status_code=400)

    image_path = save_profile_image(profile_image, request.app.state.upload_dir, UPLOADS_PREFIX)

    user_store: UserStore = request.app.state.user_store
    try:
        user_store.create_user(User(username=username, password=password, profile_image=image_path))
    except RepositoryError as exc:
        logger.error("Error inserting user: %s", exc)
        return render(request, "addUser", {"error_message": _SAVE_FAILED}, status_code=500)

    return RedirectResponse("/users", status_code=302)


# ---------------------------------------------------------------------------
# List / delete
# ---------------------------------------------------------------------------


@router.get("/users", response_class=HTMLResponse, openapi_extra=PROTECTED)
def list_users(request: Request, session: Session = Depends(get_session)) -> HTMLResponse:
    if not session.is_logged_in:
        return render(request, "login", {"error_message": ""})

    user_store: UserStore = request.app.state.user_store
    try:
        users = user_store.list_users()
    except RepositoryError as exc:
        logger.error("Database query error: %s", exc)
        return render(
            request,
            "displayUsers",
            {
                "users": [],
                "error_message": f"Database error: {exc}. Please check if the 'users' table exists.",
            },
        )

    logger.info("Successfully retrieved %d users from database", len(users))
    return render(request, "displayUsers", {"users": users})


@router.post("/deleteUser/{user_id}", openapi_extra=PROTECTED)
def delete_user(request: Request, user_id: int):
    """Delete by primary key. A missing row is not an error.

    A non-integer id is rejected with 422 by path validation and never reaches
    the store, so it does not produce the repository-error JSON body.
    """
    user_store: UserStore = request.app.state.user_store
    try:
        user_store.delete_user(user_id)
    except RepositoryError as exc:
        logger.error("Error deleting user %d: %s", user_id, exc)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="repository_error",
                    message="Unable to delete user.",
                    detail=str(exc),
                )
            ).model_dump(),
        )
    return RedirectResponse("/users", status_code=302)


# ---------------------------------------------------------------------------
# Diagnostic pages
# ---------------------------------------------------------------------------


@router.get("/test", response_class=HTMLResponse, openapi_extra=PROTECTED)
def test_page(request: Request, session: Session = Depends(get_session)) -> HTMLResponse:
    if not session.is_logged_in:
        return render(request, "login", {"error_message": ""})
    return render(request, "test", {"name": "BYU"})


@router.get("/t", response_class=HTMLResponse, openapi_extra=PROTECTED)
def test_page_short(request: Request) -> HTMLResponse:
    return render(request, "test")
