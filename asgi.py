"""
asgi.py -- Application assembly for userdir.

This is the ONLY file that imports from both server/ and web/. It joins the
two layers into a single ASGI app without coupling them to each other.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from fastapi.staticfiles import StaticFiles
from starlette.routing import Mount

from core.config import get_settings
from server.main import app
from web.gate import make_auth_gate
from web.routes import router as web_router

app.include_router(web_router, tags=["Web UI"])

# Uploaded profile images live under /images/uploads. The directory is created
# in lifespan, so skip StaticFiles' import-time existence check.
images = Mount("/images", app=StaticFiles(directory=get_settings().images_dir, check_dir=False), name="images")
app.router.routes.append(images)

# The gate reads access declarations from the router's own routes, not from
# the app's route list. Registered last so it is the outermost middleware.
app.middleware("http")(make_auth_gate([*web_router.routes, images]))
