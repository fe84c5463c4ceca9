"""
Error taxonomy shared by routes and services.

Each error is an HTTPException so services can raise them the same way they
raise plain HTTPException; main.py renders the extra redirect/field hints.
"""

from typing import Optional
from fastapi import HTTPException, status

LOGIN_PATH = "/auth/login"
DEFAULT_VIEW_PATH = "/dashboard"
GENERIC_ERROR_MESSAGE = "Something went wrong. Please try again."


class SwimTrackrError(HTTPException):
    redirect: Optional[str] = None
    field: Optional[str] = None

    def to_content(self) -> dict:
        content = {"detail": self.detail}
        if self.redirect:
            content["redirect"] = self.redirect
        if self.field:
            content["field"] = self.field
        return content


class AuthenticationMissing(SwimTrackrError):
    redirect = LOGIN_PATH

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class AuthorizationDenied(SwimTrackrError):
    redirect = DEFAULT_VIEW_PATH

    def __init__(self, detail: str = "You do not have access to this resource"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class UpstreamQueryFailure(SwimTrackrError):
    def __init__(self, detail: str = GENERIC_ERROR_MESSAGE):
        super().__init__(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


class ValidationFailure(SwimTrackrError):
    def __init__(self, field: str, detail: str):
        super().__init__(status_code=422, detail=detail)
        self.field = field
