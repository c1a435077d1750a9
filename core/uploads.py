"""
core/uploads.py -- Profile image persistence for the add-user form.

Writes at most one uploaded file into the uploads directory and returns the
public path the browser can load it from.

Known risks (kept on purpose):
  The client-supplied filename is used verbatim. Two uploads with the same
  name silently overwrite each other, and a crafted name containing path
  separators can escape the uploads directory. No MIME type, extension, or
  size check is made.

Layer rule: core/ is the kernel. Works on any object with .filename and .file
(Starlette's UploadFile in practice) so it needs no web framework import.
"""

import logging
import shutil
from pathlib import Path
from typing import Optional

logger = logging.getLogger("userdir.uploads")

UPLOADS_PREFIX = "/images/uploads"


def save_profile_image(upload, upload_dir: Path, public_prefix: str = UPLOADS_PREFIX) -> Optional[str]:
    """Persist an uploaded profile image and return its public path.

    Returns None when no file was attached. Browsers submit an empty part with
    filename="" when the file input is left blank, which counts as absent.

    OSError from the write propagates to the caller.
    """
    if upload is None or not upload.filename:
        return None

    filename = upload.filename
    upload_dir.mkdir(parents=True, exist_ok=True)
    path = upload_dir / filename
    with path.open("wb") as buffer:
        shutil.copyfileobj(upload.file, buffer)

    logger.info("Saved profile image %s", path)
    return f"{public_prefix}/{filename}"
