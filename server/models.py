"""
server/models.py -- Pydantic models for the few JSON bodies userdir returns.

The web UI answers in HTML everywhere except the delete-user failure path,
which returns the raw repository error in this envelope so scripts can parse
it without scraping a page.
"""

from typing import Optional

from pydantic import BaseModel


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    error: ErrorDetail
