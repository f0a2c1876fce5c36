"""
Error taxonomy of the blog API.

Every error is an ``HTTPException``. ``body`` is what the front end reads:
rejected input comes back as a bare JSON string, everything else as
``{"message": ...}``.
"""
from __future__ import annotations

from typing import Any

from fastapi import HTTPException


class BlogError(HTTPException):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(status_code=self.status_code, detail=detail)

    def body(self) -> Any:
        return {"message": self.detail}


class ValidationFailure(BlogError):
    status_code = 400

    def body(self) -> Any:
        return self.detail


class Unauthenticated(BlogError):
    status_code = 401


class Forbidden(BlogError):
    # The front end expects 400 for "not the author".
    status_code = 400

    def body(self) -> Any:
        return self.detail


class NotFound(BlogError):
    status_code = 404


class UpstreamFailure(BlogError):
    status_code = 500
